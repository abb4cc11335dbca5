"""Authentication infrastructure components.

Validation of the access tokens issued by the platform's identity service.
"""

from studylink.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
    jwt_service,
)

__all__ = [
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "TokenExpiredError",
    "jwt_service",
]
