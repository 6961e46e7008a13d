"""Domain errors and the HTTP status each one maps to."""
from typing import List, Optional

from fastapi import status


class SkillPathError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(SkillPathError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, unanswered: Optional[List[int]] = None):
        super().__init__(message)
        self.unanswered = unanswered or []


class NotFound(SkillPathError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(SkillPathError):
    status_code = status.HTTP_403_FORBIDDEN


class Conflict(SkillPathError):
    status_code = status.HTTP_409_CONFLICT


class SessionNotOpen(Conflict):
    """Raised when stopping a learning session that is already closed."""


class GenerationFailed(SkillPathError):
    """The generator answered, but not with something we can accept."""


class UpstreamError(SkillPathError):
    """The generator returned a non-2xx response or could not be reached."""

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class AIConfigurationError(SkillPathError):
    def __init__(self, message: str = "AI service not configured"):
        super().__init__(message)
