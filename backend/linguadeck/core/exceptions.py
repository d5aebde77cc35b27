"""Domain errors raised by the scheduling engine and its collaborators."""

from __future__ import annotations


class LinguaDeckError(Exception):
    """Base class for every error the engine surfaces to callers."""

    status_code = 500
    code = "internal_error"


class InvalidGrade(LinguaDeckError):
    status_code = 400
    code = "invalid_grade"

    def __init__(self, quality: object) -> None:
        super().__init__(f"quality must be an integer between 0 and 5, got {quality!r}")
        self.quality = quality


class CardNotFound(LinguaDeckError):
    status_code = 404
    code = "card_not_found"

    def __init__(self, card_id: int) -> None:
        super().__init__(f"Flashcard {card_id} not found")
        self.card_id = card_id


class SessionNotFound(LinguaDeckError):
    status_code = 404
    code = "session_not_found"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Review session {session_id} not found")
        self.session_id = session_id


class SessionStateError(LinguaDeckError):
    status_code = 409
    code = "invalid_session_state"


class StorageUnavailable(LinguaDeckError):
    """The card store could not be reached. Never retried internally."""

    status_code = 503
    code = "storage_unavailable"


class CompletionError(LinguaDeckError):
    """The AI completion provider failed after exhausting its retries."""

    status_code = 502
    code = "completion_failed"
