"""Domain exceptions.

Every error a service raises derives from ``AcademyError`` and carries a
machine-readable ``code`` plus the HTTP status the API maps it to. Batch
operations do not raise for item failures; they record the item's ``code``
and message in a ``BatchResult`` instead.
"""

from typing import Any, Optional


class AcademyError(Exception):
    """Base exception for enrollment and season errors."""

    code = "ERROR"
    status_code = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(AcademyError):
    """Input rejected; the caller must fix it, retrying will not help."""

    code = "VALIDATION_ERROR"
    status_code = 400


class ScheduleConflictError(ValidationError):
    """A course's schedule slots are malformed or overlap each other."""

    code = "SCHEDULE_CONFLICT"

    def __init__(self, message: str, slot_indices: tuple[int, ...]) -> None:
        super().__init__(message, slot_indices=slot_indices)
        self.slot_indices = slot_indices


class NotFoundError(AcademyError):
    code = "NOT_FOUND"
    status_code = 404


class PermissionDeniedError(AcademyError):
    code = "PERMISSION_DENIED"
    status_code = 403


class AuthenticationError(AcademyError):
    code = "AUTHENTICATION_FAILED"
    status_code = 401


class StateConflictError(AcademyError):
    """The entity is in a state that does not allow the operation."""

    code = "STATE_CONFLICT"
    status_code = 409


class NotPendingError(StateConflictError):
    code = "NOT_PENDING"


class SeasonArchivedError(StateConflictError):
    code = "SEASON_ARCHIVED"


class SeasonNotArchivedError(StateConflictError):
    code = "SEASON_NOT_ARCHIVED"


class SeasonAlreadyPurgedError(StateConflictError):
    code = "SEASON_ALREADY_PURGED"


class DuplicateActiveEnrollmentError(StateConflictError):
    code = "DUPLICATE_ACTIVE_ENROLLMENT"


class CourseFullError(StateConflictError):
    code = "COURSE_FULL"


class PartialDeletionError(AcademyError):
    """
    A chunked delete stopped part way.

    Chunks committed before the failure stay deleted; ``deleted`` counts them.
    Re-running the same delete is safe.
    """

    code = "PARTIAL_DELETION"
    status_code = 500

    def __init__(self, message: str, deleted: int, failed_chunk: int, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, deleted=deleted, failed_chunk=failed_chunk)
        self.deleted = deleted
        self.failed_chunk = failed_chunk
        self.cause = cause


class TransportError(AcademyError):
    """The store could not be reached. Not retried automatically."""

    code = "STORE_UNAVAILABLE"
    status_code = 503
