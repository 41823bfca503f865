# errors.py
"""
Domain errors shared by the data layer, the services and the HTTP layer.

Every error carries the HTTP status it maps to, so handlers never need to
translate messages by hand.
"""


class PortalError(Exception):
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(PortalError):
    status_code = 400


class AuthRequired(PortalError):
    status_code = 401


class PermissionDenied(PortalError):
    status_code = 403


class NotFoundError(PortalError, LookupError):
    status_code = 404


class ConflictError(PortalError):
    status_code = 409
