"""Pytest configuration for all tests."""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studylink.infrastructure.auth.jwt_service import jwt_service
from studylink.infrastructure.persistence.database import Base
from studylink.infrastructure.persistence.models import (
    AssignmentModel,
    ClassModel,
    ClassStudentModel,
    UserModel,
)

ROSTER_START = datetime(2026, 9, 1, 8, 0, tzinfo=timezone.utc)


@dataclass
class Classroom:
    """IDs of a seeded class: its teacher, roster, and people outside it."""

    class_id: str
    teacher_id: str
    other_teacher_id: str
    outsider_id: str
    student_ids: list[str] = field(default_factory=list)


async def seed_classroom(session: AsyncSession, student_count: int = 7) -> Classroom:
    """Create a teacher, a class with ``student_count`` students in roster order, a
    second teacher and a student who is not enrolled."""
    classroom = Classroom(
        class_id="class-1",
        teacher_id="teacher-1",
        other_teacher_id="teacher-2",
        outsider_id="outsider-1",
    )
    session.add_all(
        [
            UserModel(id="teacher-1", name="Ms. Rivera", email="rivera@school.test", role="teacher"),
            UserModel(id="teacher-2", name="Mr. Okafor", email="okafor@school.test", role="teacher"),
            UserModel(id="outsider-1", name="Outsider", email="outsider@school.test", role="student"),
        ]
    )
    for index in range(1, student_count + 1):
        student_id = f"student-{index}"
        session.add(
            UserModel(
                id=student_id,
                name=f"Student {index}",
                email=f"student{index}@school.test",
                role="student",
            )
        )
        classroom.student_ids.append(student_id)
    await session.flush()

    session.add(ClassModel(id="class-1", name="Physics 101", teacher_id="teacher-1"))
    await session.flush()

    for index, student_id in enumerate(classroom.student_ids, start=1):
        session.add(
            ClassStudentModel(
                class_id="class-1",
                student_id=student_id,
                created_at=ROSTER_START + timedelta(minutes=index),
            )
        )

    await session.commit()
    return classroom


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def classroom(db_session: AsyncSession) -> Classroom:
    """A class of seven students taught by teacher-1."""
    return await seed_classroom(db_session, student_count=7)


@pytest_asyncio.fixture
async def make_assignment(
    db_session: AsyncSession, classroom: Classroom
) -> Callable[..., Awaitable[str]]:
    """Factory creating assignments in the seeded class."""

    async def factory(
        config: dict | None = None,
        assignment_type: str = "GROUP_PROJECT",
        title: str = "Solar System Model",
    ) -> str:
        assignment_id = str(uuid.uuid4())
        db_session.add(
            AssignmentModel(
                id=assignment_id,
                class_id=classroom.class_id,
                title=title,
                type=assignment_type,
                group_config=json.dumps(config) if config is not None else None,
                deadline=datetime.now(timezone.utc) + timedelta(days=7),
            )
        )
        await db_session.commit()
        return assignment_id

    return factory


@pytest_asyncio.fixture
async def assignment_id(make_assignment) -> str:
    """A group project allowing groups of 2 to 4."""
    return await make_assignment({"minSize": 2, "maxSize": 4})


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database dependency."""
    from studylink.infrastructure.api.app import app
    from studylink.infrastructure.persistence.database import get_db_session

    app.dependency_overrides[get_db_session] = lambda: db_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def auth_headers() -> Callable[[str, str], dict[str, str]]:
    """Build Authorization headers for a user ID and role."""

    def build(user_id: str, role: str = "student") -> dict[str, str]:
        token = jwt_service.create_access_token(user_id=user_id, role=role, name=user_id)
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
def classroom_seeder() -> Callable[..., Awaitable[Classroom]]:
    """The classroom seeding routine, for tests managing their own sessions."""
    return seed_classroom
