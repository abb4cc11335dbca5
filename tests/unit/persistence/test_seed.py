import pytest
import pytest_asyncio
from sqlalchemy import func, select, text

from studylink.core.config import Settings
from studylink.domain.services import GroupRegistry
from studylink.infrastructure.persistence.database import DatabaseManager
from studylink.infrastructure.persistence.models import ClassStudentModel, UserModel
from studylink.infrastructure.persistence.seed import seed_demo_data


@pytest_asyncio.fixture
async def demo_db(tmp_path):
    manager = DatabaseManager(
        Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'demo.db'}")
    )
    await manager.create_tables()
    yield manager
    await manager.drop_tables()
    await manager.disconnect()


@pytest.mark.asyncio
async def test_seed_demo_data_with_foreign_keys_enforced(demo_db):
    async with demo_db.session() as session:
        assert (await session.execute(text("PRAGMA foreign_keys"))).scalar_one() == 1
        demo = await seed_demo_data(session, student_count=5)

    assert [role for _, _, role in demo.users] == ["teacher"] + ["student"] * 5

    async with demo_db.session() as session:
        assert await session.scalar(select(func.count()).select_from(UserModel)) == 6
        assert await session.scalar(select(func.count()).select_from(ClassStudentModel)) == 5

        registry = GroupRegistry(session)
        unassigned = await registry.get_unassigned(demo.assignment_id)
        assert unassigned == [user_id for user_id, _, role in demo.users if role == "student"]
        config = (await registry.load_assignment(demo.assignment_id)).config
        assert (config.min_size, config.max_size) == (2, 4)
