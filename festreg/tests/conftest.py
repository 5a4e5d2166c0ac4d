"""
Shared fixtures: a file-backed SQLite database per test plus small factories
for the entities the services work on.
"""
import itertools
from typing import List, Optional

import pytest
import pytest_asyncio
from sqlalchemy import select, func

from festreg.database import build_engine, build_sessionmaker, create_all
from festreg.orm.user import User, UserRole, College, CollegeType
from festreg.orm.event import Event, EventCategory, EventType, Branch, BranchRep, Organizer
from festreg.orm.team import Team, TeamMember, TeamStatus
from festreg.orm.round import Round, Judge
from festreg.realtime.in_memory_adapter import InMemoryAdapter
from festreg.realtime.notifier import Notifier


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'festreg_test.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def notifier():
    notifier = Notifier(InMemoryAdapter())
    yield notifier
    await notifier.close()


class Factory:
    """Inserts rows directly, bypassing the services."""

    def __init__(self, db):
        self.db = db
        self._seq = itertools.count(1)

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def college(self, type: CollegeType = CollegeType.ENGINEERING) -> College:
        n = next(self._seq)
        return await self._save(College(name=f"College {n}", type=type))

    async def user(self, role: UserRole = UserRole.PARTICIPANT, college: Optional[College] = None) -> User:
        n = next(self._seq)
        return await self._save(User(
            name=f"User {n}",
            email=f"user{n}@fest.test",
            role=role,
            college_id=college.id if college else None,
        ))

    async def branch(self) -> Branch:
        n = next(self._seq)
        return await self._save(Branch(name=f"Branch {n}"))

    async def branch_rep(self, branch: Optional[Branch] = None, user: Optional[User] = None) -> User:
        branch = branch or await self.branch()
        user = user or await self.user(role=UserRole.BRANCH_REP)
        await self._save(BranchRep(user_id=user.id, branch_id=branch.id))
        return user

    async def event(
        self,
        category: EventCategory = EventCategory.TECHNICAL,
        event_type: EventType = EventType.TEAM,
        min_team_size: int = 1,
        max_team_size: int = 4,
        max_teams: Optional[int] = None,
        fees: int = 0,
        branch: Optional[Branch] = None,
        **kwargs,
    ) -> Event:
        n = next(self._seq)
        branch = branch or await self.branch()
        return await self._save(Event(
            name=f"Event {n}",
            category=category,
            event_type=event_type,
            min_team_size=min_team_size,
            max_team_size=max_team_size,
            max_teams=max_teams,
            fees=fees,
            branch_id=branch.id,
            **kwargs,
        ))

    async def organizer(self, event: Event, user: Optional[User] = None) -> User:
        user = user or await self.user(role=UserRole.ORGANIZER)
        await self._save(Organizer(user_id=user.id, event_id=event.id))
        return user

    async def round(self, event: Event, round_no: Optional[int] = None) -> Round:
        if round_no is None:
            result = await self.db.execute(
                select(func.count()).select_from(Round).where(Round.event_id == event.id)
            )
            round_no = result.scalar_one() + 1
        return await self._save(Round(event_id=event.id, round_no=round_no))

    async def judge(self, round_obj: Round, user: Optional[User] = None) -> User:
        user = user or await self.user(role=UserRole.JUDGE)
        await self._save(Judge(user_id=user.id, round_id=round_obj.id))
        return user

    async def team(
        self,
        event: Event,
        members: List[User],
        confirmed: bool = False,
        name: Optional[str] = None,
    ) -> Team:
        n = next(self._seq)
        team = Team(
            name=name or f"Team {n}",
            event_id=event.id,
            leader_id=members[0].id if members else None,
            status=TeamStatus.OPEN,
        )
        if confirmed:
            result = await self.db.execute(
                select(func.count()).select_from(Team).where(
                    Team.event_id == event.id, Team.status == TeamStatus.CONFIRMED
                )
            )
            team.status = TeamStatus.CONFIRMED
            team.confirmed_slot = result.scalar_one() + 1
        self.db.add(team)
        await self.db.flush()
        for slot, member in enumerate(members, start=1):
            self.db.add(TeamMember(
                user_id=member.id,
                team_id=team.id,
                slot=slot,
                exclusive_event_id=event.id if event.event_type.single_entry else None,
            ))
        await self.db.commit()
        return team


@pytest.fixture
def make(db):
    return Factory(db)


@pytest.fixture
def count_rows(session_factory):
    """Row count read through a fresh session, unaffected by the test session's state."""
    async def _count(model, *criteria) -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model).where(*criteria))
            return result.scalar_one()
    return _count


@pytest.fixture
def fetch(session_factory):
    """Load a row through a fresh session."""
    async def _fetch(model, ident):
        async with session_factory() as session:
            return await session.get(model, ident)
    return _fetch
