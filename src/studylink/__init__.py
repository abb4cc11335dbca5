"""StudyLink - project group formation for classroom homework.

Students form bounded-size teams for group-project assignments, a single
leader owns submission rights, and every group keeps a small discussion log.
"""

__version__ = "0.1.0"

from studylink.infrastructure.api.app import app

__all__ = ["app", "__version__"]
