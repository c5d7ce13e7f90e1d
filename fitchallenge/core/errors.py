"""Domain errors raised by the challenge services.

Every error is a `ValueError` so API routes can translate them the same way
they translate plain validation failures. `status_code` is the HTTP status the
routes answer with.
"""

from __future__ import annotations

from fastapi import status


class ChallengeError(ValueError):
    """Base class for challenge domain errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Challenge operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def code(self) -> str:
        return type(self).__name__


class ChallengeNotFound(ChallengeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Challenge not found"


class TaskNotFound(ChallengeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Task not found"


class ChallengeClosed(ChallengeError):
    default_message = "Challenge is already finished"


class TaskNotUnlocked(ChallengeError):
    default_message = "Task is not unlocked yet"


class NotEnrolled(ChallengeError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "User is not enrolled in this challenge"


class AlreadyCompleted(ChallengeError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Task already completed"


class PhotoRequired(ChallengeError):
    default_message = "This task requires a photo"


class AlreadyFinalized(ChallengeError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Challenge is already finished"


class AlreadyEnrolled(ChallengeError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already enrolled in this challenge"


class ChallengeFull(ChallengeError):
    default_message = "Challenge has reached its participant limit"


class InvalidChallenge(ChallengeError):
    status_code = 422
    default_message = "Invalid challenge definition"


class StoreUnavailable(ChallengeError):
    """The data store timed out or refused the connection."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Data store unavailable, try again later"
