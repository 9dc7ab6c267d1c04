"""
Error taxonomy for participant lifecycle operations.

Each error carries the HTTP status the API layer responds with.
"""

from __future__ import annotations

from typing import Sequence


class LifecycleError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "detail": self.message}


class InvalidInputError(LifecycleError):
    """Raised before any write when caller input is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, fields: Sequence[str] = ()):
        super().__init__(message)
        self.fields = list(fields)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.fields:
            payload["fields"] = self.fields
        return payload


class StoreUnavailableError(LifecycleError):
    """The backing store is not configured, unreachable, or rejected a write."""

    status_code = 503


class ParticipantNotFoundError(LifecycleError):
    status_code = 404

    def __init__(self, participant_id: str):
        super().__init__(f"Participant not found: {participant_id}")
        self.participant_id = participant_id


class PreconditionError(LifecycleError):
    status_code = 409


class GraduationNotReadyError(PreconditionError):
    def __init__(self, participant_id: str, completed: int, required: int):
        super().__init__(
            f"Participant {participant_id} has completed {completed} of "
            f"{required} graduation steps"
        )
        self.completed = completed
        self.required = required


class NotAuthorizedError(LifecycleError):
    status_code = 403
