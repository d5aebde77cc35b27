"""Flashcards and their review history (SM-2 scheduling fields)."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from ..core.clock import utcnow

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


class CardType(StrEnum):
    VOCAB = "vocab"
    CONJUGATION = "conjugation"


class SchedulingState(SQLModel):
    ease_factor: float = INITIAL_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review: datetime


class HistoryRecord(SQLModel):
    quality: int
    ease_factor: float
    interval: int
    reviewed_at: datetime


class Flashcard(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    language_code: str = Field(foreign_key="language.code", ondelete="CASCADE", index=True)
    card_type: CardType = Field(index=True)

    # Exactly one origin is set, matching card_type
    vocab_id: int | None = Field(default=None, foreign_key="vocab.id", ondelete="CASCADE", unique=True)
    conjugation_id: int | None = Field(
        default=None, foreign_key="conjugation.id", ondelete="CASCADE", unique=True
    )

    front: str
    back: str

    # SM-2 fields, written only by the grading policy
    ease_factor: float = Field(default=INITIAL_EASE_FACTOR)
    interval: int = Field(default=0)
    repetitions: int = Field(default=0)
    next_review: datetime = Field(default_factory=utcnow, index=True)

    created_at: datetime = Field(default_factory=utcnow)

    @property
    def scheduling(self) -> SchedulingState:
        return SchedulingState(
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            next_review=self.next_review,
        )


class ReviewHistory(SQLModel, table=True):
    """Append-only log of grading events, values recorded after the update."""

    id: int | None = Field(default=None, primary_key=True)
    flashcard_id: int = Field(foreign_key="flashcard.id", ondelete="CASCADE", index=True)

    quality: int
    ease_factor: float
    interval: int
    reviewed_at: datetime = Field(default_factory=utcnow, index=True)
