# db/models/user.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy import Enum as SAEnum, ForeignKey, Integer, String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from hackportal.db.models._base import Base, utcnow
from hackportal.db.enums import ArrivalState, Track, UserRole

class User(Base):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(180), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    roles: Mapped[list] = mapped_column(JSON, nullable=False, default=lambda: [UserRole.USER.value])
    track: Mapped[Optional[Track]] = mapped_column(SAEnum(Track, name="track"), nullable=True)
    major: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    state: Mapped[ArrivalState] = mapped_column(
        SAEnum(ArrivalState, name="arrival_state"), nullable=False, default=ArrivalState.PENDING
    )
    team_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("team.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)

    team: Mapped[Optional["Team"]] = relationship(back_populates="members", lazy="joined")
    tokens: Mapped[List["AuthToken"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def has_role(self, role: UserRole) -> bool:
        return role.value in (self.roles or [])

    @property
    def team_name(self) -> str:
        return self.team.name if self.team is not None else ""
