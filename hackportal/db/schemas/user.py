# db/schemas/user.py
from typing import Optional
from hackportal.db.schemas._base import OrmModel
from hackportal.db.enums import ArrivalState, Track, UserRole
from hackportal.utils.sentinels import Missing

class UserBase(OrmModel):
    email: str
    name: Optional[str] = None
    track: Optional[Track] = None
    major: Optional[str] = None
    state: ArrivalState = ArrivalState.PENDING

class UserCreate(UserBase):
    password_hash: str
    roles: list[UserRole] = [UserRole.USER]

class UserUpdate(OrmModel):
    name: str | Missing | None = Missing()
    track: Track | Missing | None = Missing()
    major: str | Missing | None = Missing()
    state: ArrivalState | Missing = Missing()

class UserRead(UserBase):
    id: int
    roles: list[UserRole]
    team_id: Optional[int] = None
    team_name: str = ""

    def has_role(self, role: UserRole) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(UserRole.ADMIN)

    @property
    def is_judge(self) -> bool:
        return self.has_role(UserRole.JUDGE)

class MemberRead(OrmModel):
    id: int
    name: str = ""
    email: str
    track: Optional[Track] = None
    state: ArrivalState = ArrivalState.PENDING

class JudgeRead(OrmModel):
    id: int
    name: str = ""
    email: str
