import logging
import re
from datetime import timedelta
from typing import Self, ClassVar, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from hackportal.config import Settings
from hackportal.db.database import DataBase
from hackportal.db.enums import ArrivalState, Track, UserRole
from hackportal.db.schemas.auth import ProfileUpdate, RegisterRequest
from hackportal.db.schemas.user import UserCreate, UserRead, UserUpdate
from hackportal.errors import AuthRequired, ValidationFailed
from hackportal.services.audit_log import audit_logger, instrument_service_class
from hackportal.utils.security import check_password, hash_password, new_token, sha256

logger = logging.getLogger(__name__)

_EMAIL = TypeAdapter(EmailStr)
_WHITESPACE = re.compile(r"\s")

# (pattern, message) pairs checked in order
_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[\W_]"), "Password must contain at least one special character"),
)


def validate_password(password: str, confirm_password: str) -> None:
    if not password:
        raise ValidationFailed("Password is required")
    if not 8 <= len(password) <= 4096:
        raise ValidationFailed("Password must be between 8 and 4096 characters long")
    if _WHITESPACE.search(password):
        raise ValidationFailed("Password cannot contain whitespace characters")
    if password != confirm_password:
        raise ValidationFailed("Passwords do not match")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            raise ValidationFailed(message)


def validate_username(username: str) -> None:
    if not username:
        raise ValidationFailed("Username is required")
    if not 3 <= len(username) <= 50:
        raise ValidationFailed("Username must be between 3 and 50 characters long")
    if _WHITESPACE.search(username):
        raise ValidationFailed("Username cannot contain whitespace characters")


class UserService:
    _instance: ClassVar[Optional["UserService"]] = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self.database = DataBase()
        self.settings = Settings()
        self._initialized = True

    async def register(self, payload: RegisterRequest) -> UserRead:
        """
        Create an account. Checks run in a fixed order and the first failure
        is reported: email, password policy, username, track.
        """
        email = payload.email.strip().lower()
        if not email:
            raise ValidationFailed("Email is required")
        if await self.database.get_user_by_email(email) is not None:
            raise ValidationFailed("Email is already registered")
        try:
            _EMAIL.validate_python(email)
        except ValidationError:
            raise ValidationFailed("Invalid email format")

        validate_password(payload.password, payload.confirm_password)
        validate_username(payload.username)

        track = None
        if payload.track:
            try:
                track = Track(payload.track)
            except ValueError:
                raise ValidationFailed("Track must be Software or Hardware")

        roles = [UserRole.USER]
        if payload.is_judge:
            roles.append(UserRole.JUDGE)
        if email in self.settings.admin_emails:
            roles.append(UserRole.ADMIN)

        user = await self.database.create_user(
            UserCreate(
                email=email,
                password_hash=hash_password(payload.password),
                name=payload.username,
                track=track,
                major=(payload.major or "").strip() or None,
                state=ArrivalState.PENDING,
                roles=roles,
            )
        )
        logger.info("Registered user id=%s judge=%s", user.id, user.is_judge)
        await audit_logger.log(
            action="services.user.register",
            actor=user,
            payload={"email": user.email, "roles": [str(r) for r in user.roles]},
        )
        return user

    async def login(self, email: str, password: str) -> str:
        """Check credentials and issue a new bearer token."""
        credentials = await self.database.get_credentials(email or "")
        if credentials is None or not check_password(password or "", credentials[1]):
            logger.info("Failed login for %s", (email or "").strip().lower() or "-")
            raise AuthRequired("Invalid credentials")

        user = credentials[0]
        token = new_token()
        await self.database.create_auth_token(user.id, sha256(token))
        return token

    async def logout(self, token: str) -> None:
        await self.database.delete_auth_token(sha256(token))

    async def resolve_token(self, token: str) -> Optional[UserRead]:
        if not token:
            return None
        max_age = timedelta(hours=self.settings.token_ttl_hours)
        return await self.database.get_user_by_token(sha256(token), max_age)

    async def list_users(self) -> list[UserRead]:
        return await self.database.list_users()

    async def list_participants(self) -> list[UserRead]:
        return await self.database.list_users(judges=False)

    async def list_judges(self) -> list[UserRead]:
        return await self.database.list_users(judges=True)

    async def update_profile(self, actor: UserRead, payload: ProfileUpdate) -> UserRead:
        return await self.database.update_user(
            actor.id,
            UserUpdate(name=payload.name, track=payload.track, major=payload.major),
        )

    async def set_arrival_state(self, actor: UserRead, user_id: int, state: ArrivalState) -> UserRead:
        return await self.database.update_user(user_id, UserUpdate(state=state))


instrument_service_class(
    UserService,
    prefix="services.user",
    exclude={"register", "login", "logout", "resolve_token", "list_users", "list_participants", "list_judges"},
)
