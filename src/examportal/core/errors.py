"""Error taxonomy for the attempt engine.

- NotFoundError: unknown student, exam, question or attempt
- InvalidStateError: operation against an attempt in the wrong lifecycle state
- ValidationError: malformed input, rejected before any write

None of these are retried by the engine.
"""

from __future__ import annotations


class ExamPortalError(Exception):
    """Base class for engine errors."""

    pass


class NotFoundError(ExamPortalError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class InvalidStateError(ExamPortalError):
    """Raised when an attempt is not in a state that allows the operation."""

    pass


class AttemptExpiredError(InvalidStateError):
    """Raised when an attempt is past its deadline."""

    def __init__(self, attempt_id: int):
        self.attempt_id = attempt_id
        super().__init__(f"Attempt '{attempt_id}' has expired")


class ValidationError(ExamPortalError):
    """Raised for malformed input values."""

    pass
