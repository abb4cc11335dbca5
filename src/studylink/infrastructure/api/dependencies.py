"""FastAPI dependencies for authentication and service wiring.

Provides dependencies for extracting and validating JWT tokens from requests
and for building the domain services on the request's database session.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.logging import get_logger
from studylink.domain.services import (
    AutoAssignmentService,
    GroupRegistry,
    MembershipService,
    MessageChannel,
    SubmissionGate,
)
from studylink.infrastructure.auth import (
    InvalidTokenError,
    TokenExpiredError,
    jwt_service,
)
from studylink.infrastructure.persistence.database import get_db_session

logger = get_logger(__name__)


@dataclass
class CurrentUser:
    """Represents the current authenticated user context.

    Extracted from a valid JWT access token.
    """

    user_id: str
    role: str
    name: str

    @property
    def is_teacher(self) -> bool:
        return self.role == "teacher"

    @property
    def is_student(self) -> bool:
        return self.role == "student"


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Extract and validate the current user from the Authorization header.

    Args:
        authorization: The Authorization header value (e.g., "Bearer <token>").

    Returns:
        CurrentUser: The authenticated user's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if authorization is None:
        logger.info("Authentication failed: missing Authorization header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.info("Authentication failed: invalid Authorization header format")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt_service.validate_access_token(parts[1])
        return CurrentUser(
            user_id=payload["user_id"],
            role=payload["role"],
            name=payload.get("name") or payload["user_id"],
        )
    except TokenExpiredError:
        logger.info("Authentication failed: token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError as e:
        logger.info("Authentication failed: invalid token", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except KeyError as e:
        logger.warning("Authentication failed: missing claim in token", missing_claim=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing claim: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Type alias for dependency injection
AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]


async def require_student(current_user: AuthenticatedUser) -> CurrentUser:
    """Ensure the current user is a student.

    Raises:
        HTTPException: 403 if the user is not a student.
    """
    if not current_user.is_student:
        logger.info("Student access denied", user_id=current_user.user_id, role=current_user.role)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access required",
        )
    return current_user


async def require_teacher(current_user: AuthenticatedUser) -> CurrentUser:
    """Ensure the current user is a teacher.

    Raises:
        HTTPException: 403 if the user is not a teacher.
    """
    if not current_user.is_teacher:
        logger.info("Teacher access denied", user_id=current_user.user_id, role=current_user.role)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher access required",
        )
    return current_user


StudentUser = Annotated[CurrentUser, Depends(require_student)]
TeacherUser = Annotated[CurrentUser, Depends(require_teacher)]

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_group_registry(session: DbSession) -> GroupRegistry:
    """Get the group registry."""
    return GroupRegistry(session)


def get_membership_service(session: DbSession) -> MembershipService:
    """Get the membership lifecycle service."""
    return MembershipService(session)


def get_auto_assignment_service(session: DbSession) -> AutoAssignmentService:
    """Get the auto-assignment service."""
    return AutoAssignmentService(session)


def get_submission_gate(session: DbSession) -> SubmissionGate:
    """Get the submission gate."""
    return SubmissionGate(session)


def get_message_channel(session: DbSession) -> MessageChannel:
    """Get the message channel."""
    return MessageChannel(session)


Registry = Annotated[GroupRegistry, Depends(get_group_registry)]
Membership = Annotated[MembershipService, Depends(get_membership_service)]
AutoAssignment = Annotated[AutoAssignmentService, Depends(get_auto_assignment_service)]
Gate = Annotated[SubmissionGate, Depends(get_submission_gate)]
Channel = Annotated[MessageChannel, Depends(get_message_channel)]
