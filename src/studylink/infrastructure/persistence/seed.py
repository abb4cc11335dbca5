"""Demo data for trying the service locally."""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.logging import get_logger
from studylink.infrastructure.persistence.models import (
    AssignmentModel,
    ClassModel,
    ClassStudentModel,
    UserModel,
)

logger = get_logger(__name__)


@dataclass
class DemoData:
    """IDs of the seeded records."""

    class_id: str
    assignment_id: str
    users: list[tuple[str, str, str]] = field(default_factory=list)


async def seed_demo_data(
    session: AsyncSession, student_count: int = 7, min_size: int = 2, max_size: int = 4
) -> DemoData:
    """Insert a teacher, a class with enrolled students and a group project.

    Args:
        session: SQLAlchemy async session.
        student_count: Students to enroll, in roster order.
        min_size: Minimum group size of the assignment.
        max_size: Maximum group size of the assignment.

    Returns:
        The seeded IDs, users as ``(id, name, role)`` tuples.
    """
    suffix = uuid.uuid4().hex[:6]
    now = datetime.now(timezone.utc)

    teacher = UserModel(
        id=str(uuid.uuid4()),
        name="Demo Teacher",
        email=f"teacher-{suffix}@demo.studylink",
        role="teacher",
    )
    students = [
        UserModel(
            id=str(uuid.uuid4()),
            name=f"Student {index}",
            email=f"student{index}-{suffix}@demo.studylink",
            role="student",
        )
        for index in range(1, student_count + 1)
    ]
    session.add_all([teacher, *students])
    # users must exist before classes and rosters reference them
    await session.flush()

    classroom = ClassModel(id=str(uuid.uuid4()), name="Demo Class", teacher_id=teacher.id)
    session.add(classroom)
    await session.flush()

    demo = DemoData(class_id=classroom.id, assignment_id=str(uuid.uuid4()))
    demo.users.append((teacher.id, teacher.name, "teacher"))
    for index, student in enumerate(students, start=1):
        session.add(
            ClassStudentModel(
                class_id=classroom.id,
                student_id=student.id,
                created_at=now + timedelta(seconds=index),
            )
        )
        demo.users.append((student.id, student.name, "student"))

    session.add(
        AssignmentModel(
            id=demo.assignment_id,
            class_id=classroom.id,
            title="Demo Group Project",
            type="GROUP_PROJECT",
            group_config=json.dumps(
                {
                    "groupRequired": True,
                    "minSize": min_size,
                    "maxSize": max_size,
                    "allowSwitch": True,
                    "ungroupedPolicy": "TEACHER_ASSIGN",
                }
            ),
            deadline=now + timedelta(days=14),
        )
    )
    await session.commit()

    logger.info(
        "Demo data seeded",
        class_id=classroom.id,
        assignment_id=demo.assignment_id,
        students=student_count,
    )
    return demo
