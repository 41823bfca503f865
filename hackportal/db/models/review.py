# db/models/review.py
from datetime import datetime
from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from hackportal.db.models._base import Base, utcnow

THEME_BONUS = 5

class Review(Base):
    __tablename__ = "review"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True)
    judge_id: Mapped[int] = mapped_column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    round_id: Mapped[str] = mapped_column(String(32), nullable=False)
    application: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    technicality: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    creativity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    functionality: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    theme: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    review: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=utcnow, onupdate=utcnow
    )

    team = relationship("Team", back_populates="reviews")
    judge = relationship("User")

    __table_args__ = (
        UniqueConstraint("team_id", "judge_id", "round_id", name="uq_review_team_judge_round"),
        CheckConstraint("application BETWEEN 0 AND 5", name="check_application"),
        CheckConstraint("technicality BETWEEN 0 AND 5", name="check_technicality"),
        CheckConstraint("creativity BETWEEN 0 AND 5", name="check_creativity"),
        CheckConstraint("functionality BETWEEN 0 AND 5", name="check_functionality"),
    )

    @property
    def total_score(self) -> int:
        return (
            self.application
            + self.technicality
            + self.creativity
            + self.functionality
            + (THEME_BONUS if self.theme else 0)
        )
