"""Bounded review sessions over a frozen snapshot of due cards."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from ..core.exceptions import CardNotFound, SessionNotFound, SessionStateError
from ..models.flashcard import CardType, SchedulingState
from .card_store import CardStore
from .srs_engine import PASS_THRESHOLD, SRSEngine, round_half_up, validate_quality

logger = logging.getLogger(__name__)


def submit_grade(store: CardStore, card_id: int, quality: int, now: datetime) -> SchedulingState:
    """Grade one card: validate, apply the SM-2 policy, persist card and history atomically."""
    quality = validate_quality(quality)
    card = store.get(card_id)
    state, record = SRSEngine.grade(card.scheduling, quality, now)
    store.save_grade(card_id, state, record)
    logger.info(
        "Graded card %s q=%d -> interval=%dd ef=%.2f reps=%d",
        card_id,
        quality,
        state.interval,
        state.ease_factor,
        state.repetitions,
    )
    return state


class SessionState(StrEnum):
    IDLE = "idle"
    LOADED = "loaded"
    PRESENTING = "presenting"
    GRADED = "graded"
    COMPLETE = "complete"


@dataclass(frozen=True)
class DueCard:
    id: int
    card_type: CardType
    front: str
    back: str


@dataclass(frozen=True)
class PresentedCard:
    id: int
    card_type: CardType
    front: str
    position: int
    total: int


@dataclass(frozen=True)
class SessionSummary:
    state: SessionState
    total: int
    reviewed: int
    correct: int
    incorrect: int

    @property
    def accuracy(self) -> int:
        if self.reviewed == 0:
            return 0
        return round_half_up(self.correct / self.reviewed * 100)


class ReviewSession:
    """One learner pass over the cards due at session start.

    The due set is fetched once and walked with an in-memory cursor, so a
    card graded here never comes back in the same pass even if its new
    ``next_review`` is still before the frozen clock.
    """

    def __init__(self, language: str, card_type: CardType | None = None) -> None:
        self.id = uuid.uuid4().hex
        self.language = language
        self.card_type = card_type
        self.state = SessionState.IDLE
        self.started_at: datetime | None = None
        self._cards: list[DueCard] = []
        self._cursor = -1
        self._reviewed = 0
        self._correct = 0
        self._incorrect = 0

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, store: CardStore, now: datetime) -> SessionSummary:
        self._require(SessionState.IDLE)
        due = store.find_due(self.language, self.card_type, as_of=now)
        self._cards = [DueCard(id=c.id, card_type=c.card_type, front=c.front, back=c.back) for c in due]
        self.started_at = now
        self.state = SessionState.LOADED
        logger.info(
            "Review session %s loaded %d due card(s) for %s/%s",
            self.id,
            len(self._cards),
            self.language,
            self.card_type or "all",
        )
        return self.summary()

    def next_card(self) -> PresentedCard | None:
        if self.state == SessionState.PRESENTING:
            return self._presented()
        if self.state == SessionState.COMPLETE:
            return None
        self._require(SessionState.LOADED, SessionState.GRADED)

        if self._cursor + 1 >= len(self._cards):
            self.state = SessionState.COMPLETE
            return None
        self._cursor += 1
        self.state = SessionState.PRESENTING
        return self._presented()

    def reveal(self) -> str:
        self._require(SessionState.PRESENTING)
        return self._cards[self._cursor].back

    def grade(self, store: CardStore, quality: int, now: datetime) -> SchedulingState:
        self._require(SessionState.PRESENTING)
        quality = validate_quality(quality)
        card = self._cards[self._cursor]
        try:
            state = submit_grade(store, card.id, quality, now)
        except CardNotFound:
            # Deleted since the snapshot; step past it without counting it
            logger.warning("Card %s vanished during review session %s", card.id, self.id)
            self._advance()
            raise

        self._reviewed += 1
        if quality >= PASS_THRESHOLD:
            self._correct += 1
        else:
            self._incorrect += 1
        self._advance()
        return state

    def restart(self, store: CardStore, now: datetime, card_type: CardType | None = None) -> SessionSummary:
        self.cancel()
        self.card_type = card_type
        return self.start(store, now)

    def cancel(self) -> None:
        self._cards = []
        self._cursor = -1
        self._reviewed = self._correct = self._incorrect = 0
        self.started_at = None
        self.state = SessionState.IDLE

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def remaining(self) -> int:
        return len(self._cards) - self._cursor - 1

    def summary(self) -> SessionSummary:
        return SessionSummary(
            state=self.state,
            total=len(self._cards),
            reviewed=self._reviewed,
            correct=self._correct,
            incorrect=self._incorrect,
        )

    def _presented(self) -> PresentedCard:
        card = self._cards[self._cursor]
        return PresentedCard(
            id=card.id,
            card_type=card.card_type,
            front=card.front,
            position=self._cursor + 1,
            total=len(self._cards),
        )

    def _advance(self) -> None:
        if self._cursor + 1 >= len(self._cards):
            self.state = SessionState.COMPLETE
        else:
            self.state = SessionState.GRADED

    def _require(self, *allowed: SessionState) -> None:
        if self.state not in allowed:
            expected = ", ".join(s.value for s in allowed)
            raise SessionStateError(f"Session is {self.state.value}; expected {expected}")


class ReviewSessionRegistry:
    """In-memory sessions for the HTTP surface.

    Sessions never time out, but finished ones are dropped whenever a new
    session is created so the registry only holds passes still in use.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ReviewSession] = {}

    def create(self, language: str, card_type: CardType | None = None) -> ReviewSession:
        self._prune_complete()
        session = ReviewSession(language, card_type)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> ReviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def discard(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.cancel()

    def __len__(self) -> int:
        return len(self._sessions)

    def _prune_complete(self) -> None:
        finished = [sid for sid, s in self._sessions.items() if s.state == SessionState.COMPLETE]
        for sid in finished:
            del self._sessions[sid]
        if finished:
            logger.debug("Dropped %d finished review session(s)", len(finished))
