# db/schemas/auth.py
from typing import Optional
from hackportal.db.schemas._base import OrmModel
from hackportal.db.enums import ArrivalState, Track
from hackportal.utils.sentinels import Missing

class RegisterRequest(OrmModel):
    # Everything defaults to empty so that the service reports which field is missing.
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    username: str = ""
    track: Optional[str] = None
    major: Optional[str] = None
    is_judge: bool = False

class RegisteredUser(OrmModel):
    id: int
    email: str

class RegisterResponse(OrmModel):
    message: str
    user: RegisteredUser

class LoginRequest(OrmModel):
    email: str
    password: str

class TokenRead(OrmModel):
    token: str

class ProfileUpdate(OrmModel):
    name: str | Missing | None = Missing()
    track: Track | Missing | None = Missing()
    major: str | Missing | None = Missing()

class ArrivalUpdate(OrmModel):
    state: ArrivalState
