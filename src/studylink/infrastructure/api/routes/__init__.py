"""API Routes for StudyLink."""

from studylink.infrastructure.api.routes.assignments_router import router as assignments_router
from studylink.infrastructure.api.routes.groups_router import router as groups_router
from studylink.infrastructure.api.routes.messages_router import router as messages_router

__all__ = [
    "assignments_router",
    "groups_router",
    "messages_router",
]
