import logging
from typing import Optional, ClassVar, Self, List

from hackportal.db.database import DataBase
from hackportal.db.schemas.review import (
    JudgeInfo, JudgeTeamsResponse, ReviewCreate, ReviewRead, TeamResult,
)
from hackportal.db.schemas.team import RoundRead, TeamRead
from hackportal.db.schemas.user import UserRead
from hackportal.errors import PermissionDenied, ValidationFailed
from hackportal.services.audit_log import instrument_service_class
from hackportal.utils.rounds import configured_rounds, round_ids

logger = logging.getLogger(__name__)


class JudgingService:
    """Round catalogue, judge assignments, review submission and result aggregation."""
    _instance: ClassVar[Optional["JudgingService"]] = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._database = DataBase()
        self._initialized = True

    def list_rounds(self) -> List[RoundRead]:
        return [RoundRead(**r) for r in configured_rounds()]

    async def set_round_assignment(
        self,
        actor: UserRead,
        team_id: int,
        round_id: str,
        judge_ids: list[int],
        merge: bool = False,
    ) -> TeamRead:
        if round_id not in round_ids():
            raise ValidationFailed(f"Unknown round '{round_id}'")
        team = await self._database.set_round_assignment(team_id, round_id, judge_ids, merge=merge)
        logger.info("Round %s of team %s now judged by %s", round_id, team_id, team.assignments.get(round_id, []))
        return team

    async def assigned_teams(self, actor: UserRead) -> JudgeTeamsResponse:
        if not actor.is_judge:
            raise PermissionDenied("Judge access required")
        teams = await self._database.list_teams_for_judge(actor.id)
        return JudgeTeamsResponse(
            judge=JudgeInfo(id=actor.id, name=actor.name or actor.email),
            teams=teams,
        )

    async def submit_review(self, actor: UserRead, team_id: int, payload: ReviewCreate) -> ReviewRead:
        if not actor.is_judge:
            raise PermissionDenied("Judge access required")
        review = await self._database.upsert_review(team_id, actor.id, payload)
        logger.info(
            "Judge %s scored team %s in %s: total=%s",
            actor.id, team_id, review.round_id, review.total_score,
        )
        return review

    async def results(self) -> List[TeamResult]:
        return await self._database.team_results()


instrument_service_class(
    JudgingService,
    prefix="services.judging",
    exclude={"assigned_teams", "results"},
)
