# seed.py
"""
Demo data for local development: participants, judges, a few showcase teams
and numbered fixture teams (one leader and one member each) for judge
assignment testing.

Running it again only fills in what is missing.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy import select

from hackportal.db.database import DataBase
from hackportal.db.enums import ArrivalState, TeamStatus, Track, UserRole
from hackportal.db.models.team import Team
from hackportal.db.models.user import User
from hackportal.utils.rounds import round_ids
from hackportal.utils.security import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"
TEST_TEAM_COUNT = 25

PEOPLE = [
    ("Ava Nguyen", "ava@demo.com", Track.SOFTWARE, [UserRole.USER]),
    ("Liam Chen", "liam@demo.com", Track.SOFTWARE, [UserRole.USER]),
    ("Mateo Rivera", "mateo@demo.com", Track.HARDWARE, [UserRole.USER]),
    ("Jordan Lee", "jordan@demo.com", Track.HARDWARE, [UserRole.USER]),
    ("Sofia Patel", "sofia@demo.com", Track.SOFTWARE, [UserRole.USER]),
    ("Noah Brooks", "noah@demo.com", Track.SOFTWARE, [UserRole.USER]),
    ("Eva Flores", "eva@demo.com", Track.HARDWARE, [UserRole.USER]),
    ("Alex Kim", "alex@demo.com", Track.SOFTWARE, [UserRole.USER]),
    ("Judge One", "judge1@demo.com", Track.SOFTWARE, [UserRole.USER, UserRole.JUDGE]),
    ("Judge Two", "judge2@demo.com", Track.HARDWARE, [UserRole.USER, UserRole.JUDGE]),
    ("Judge Three", "judge3@demo.com", Track.SOFTWARE, [UserRole.USER, UserRole.JUDGE]),
]

SHOWCASE_TEAMS = [
    ("Neon Ninjas", TeamStatus.VERIFIED, Track.SOFTWARE, "GlowFlow", "Realtime queue tracker for event operations."),
    ("Circuit Cowboys", TeamStatus.UNVERIFIED, Track.HARDWARE, "VoltVault", "Battery health dashboard and alerting."),
    ("Desert Debuggers", TeamStatus.VERIFIED, Track.SOFTWARE, "Dune Deploy", "Deploy monitor for student hackathon projects."),
    ("Byte Bandits", TeamStatus.UNVERIFIED, Track.HARDWARE, None, None),
]


def fixture_team_name(number: int) -> str:
    return f"ZZ Test Team {number:02d}"


class _Seeder:
    def __init__(self, session) -> None:
        self.s = session
        self.created = {"users": 0, "teams": 0}
        # one hash for every demo account; bcrypt is slow on purpose
        self._password_hash = hash_password(DEMO_PASSWORD)

    async def user(self, name: str, email: str, track: Track, roles: list[UserRole], team: Optional[Team] = None) -> User:
        user = (await self.s.execute(select(User).where(User.email == email))).scalar_one_or_none()
        if user is not None:
            # existing accounts keep whatever the API changed
            return user
        user = User(
            email=email,
            password_hash=self._password_hash,
            state=ArrivalState.PENDING,
            name=name,
            track=track,
            roles=[r.value for r in roles],
        )
        user.team = team
        self.s.add(user)
        self.created["users"] += 1
        return user

    async def team(self, name: str, status: TeamStatus, track: Track, project_name: Optional[str], project_details: Optional[str], assignments: dict) -> Team:
        team = (await self.s.execute(select(Team).where(Team.name == name))).scalar_one_or_none()
        if team is None:
            team = Team(
                name=name,
                status=status,
                track=track,
                project_name=project_name,
                project_details=project_details,
                judge_assignments=assignments,
            )
            team.members = []
            self.s.add(team)
            self.created["teams"] += 1
        return team


async def seed(db: Optional[DataBase] = None) -> dict[str, int]:
    """Insert missing demo rows. Returns how many users and teams were created."""
    db = db or DataBase()
    await db.create_all()

    rounds = round_ids()[:2]

    async with db.session() as s:
        seeder = _Seeder(s)
        for name, email, track, roles in PEOPLE:
            await seeder.user(name, email, track, roles)

        for name, status, track, project_name, project_details in SHOWCASE_TEAMS:
            await seeder.team(name, status, track, project_name, project_details, {})

        for number in range(1, TEST_TEAM_COUNT + 1):
            track = Track.HARDWARE if number % 2 == 0 else Track.SOFTWARE
            team = await seeder.team(
                fixture_team_name(number),
                TeamStatus.VERIFIED,
                track,
                f"Fixture Project {number:02d}",
                "Fixture team for judge assignment testing.",
                {r: [] for r in rounds},
            )
            await seeder.user(
                f"ZZ Team {number:02d} Lead",
                f"zz.team.{number:02d}.lead@demo.com",
                track,
                [UserRole.USER, UserRole.TEAM_LEADER],
                team=team,
            )
            await seeder.user(
                f"ZZ Team {number:02d} Member",
                f"zz.team.{number:02d}.member@demo.com",
                track,
                [UserRole.USER, UserRole.MEMBER],
                team=team,
            )

    logger.info("Seed finished: %s users and %s teams created", seeder.created["users"], seeder.created["teams"])
    return seeder.created


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
