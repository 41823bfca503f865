# db/models/team.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy import Enum as SAEnum, Integer, String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from hackportal.db.models._base import Base, utcnow
from hackportal.db.enums import TeamStatus, Track

class Team(Base):
    __tablename__ = "team"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    status: Mapped[TeamStatus] = mapped_column(
        SAEnum(TeamStatus, name="team_status"), nullable=False, default=TeamStatus.UNVERIFIED
    )
    track: Mapped[Track] = mapped_column(SAEnum(Track, name="track"), nullable=False, default=Track.SOFTWARE)
    project_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    project_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # round id -> [judge user ids]
    judge_assignments: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)

    members: Mapped[List["User"]] = relationship(back_populates="team", order_by="User.id", lazy="selectin")
    invitations: Mapped[List["Invitation"]] = relationship(back_populates="team", passive_deletes=True)
    reviews: Mapped[List["Review"]] = relationship(
        back_populates="team", cascade="all, delete-orphan", passive_deletes=True
    )

    def judge_rounds(self, judge_id: int) -> list[str]:
        """Round ids in which the given judge is assigned to this team."""
        rounds = []
        for round_id, judge_ids in (self.judge_assignments or {}).items():
            if isinstance(judge_ids, (int, str)):
                judge_ids = [judge_ids]
            if judge_id in {int(j) for j in judge_ids}:
                rounds.append(round_id)
        return rounds
