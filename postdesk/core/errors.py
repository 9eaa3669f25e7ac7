# Error kinds shared by the post services.
# Storage failures are mapped onto a small closed set so routers never
# need to look at driver messages; the raw detail stays in the logs.

from enum import Enum
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"


class PostStoreError(Exception):
    """Raised by the post repository when a statement fails"""

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None):
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail

    @classmethod
    def from_sqlalchemy(cls, exc: SQLAlchemyError) -> "PostStoreError":
        kind = ErrorKind.CONFLICT if isinstance(exc, IntegrityError) else ErrorKind.UNAVAILABLE
        return cls(kind, str(getattr(exc, "orig", None) or exc))


class AdminLoginRequired(Exception):
    """Raised when an admin-only route is hit without an authenticated session"""

    def __init__(self, message: str = "You must be logged in to perform this action."):
        super().__init__(message)
        self.message = message
