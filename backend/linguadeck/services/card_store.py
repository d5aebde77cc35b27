"""Persistence boundary for flashcards and their due-date index."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from ..core.clock import utcnow
from ..core.db import storage_guard
from ..core.exceptions import CardNotFound
from ..models.content import Conjugation, Vocab
from ..models.flashcard import (
    INITIAL_EASE_FACTOR,
    CardType,
    Flashcard,
    HistoryRecord,
    SchedulingState,
)
from .history_log import HistoryLog

logger = logging.getLogger(__name__)

# Weakest material first: least practised, then hardest, then most overdue
DUE_ORDER = (Flashcard.repetitions, Flashcard.ease_factor, Flashcard.next_review, Flashcard.id)


class CardStore:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.history = HistoryLog(session)

    @staticmethod
    def _filters(language: str, card_type: CardType | None) -> list:
        conditions = [Flashcard.language_code == language]
        if card_type is not None:
            conditions.append(Flashcard.card_type == card_type)
        return conditions

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_due(
        self, language: str, card_type: CardType | None = None, *, as_of: datetime
    ) -> list[Flashcard]:
        statement = (
            select(Flashcard)
            .where(*self._filters(language, card_type), Flashcard.next_review <= as_of)
            .order_by(*DUE_ORDER)
        )
        with storage_guard(self.session, "find_due"):
            return list(self.session.exec(statement).all())

    def count_all(self, language: str, card_type: CardType | None = None) -> int:
        statement = select(func.count(Flashcard.id)).where(*self._filters(language, card_type))
        with storage_guard(self.session, "count_all"):
            return self.session.exec(statement).one()

    def count_due(self, language: str, card_type: CardType | None = None, *, as_of: datetime) -> int:
        statement = select(func.count(Flashcard.id)).where(
            *self._filters(language, card_type), Flashcard.next_review <= as_of
        )
        with storage_guard(self.session, "count_due"):
            return self.session.exec(statement).one()

    def get(self, card_id: int) -> Flashcard:
        with storage_guard(self.session, "get"):
            card = self.session.get(Flashcard, card_id)
        if card is None:
            raise CardNotFound(card_id)
        return card

    def find_by_origin(
        self, *, vocab_id: int | None = None, conjugation_id: int | None = None
    ) -> Flashcard | None:
        column, origin_id = self._origin_column(vocab_id, conjugation_id)
        with storage_guard(self.session, "find_by_origin"):
            return self.session.exec(select(Flashcard).where(column == origin_id)).first()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(self, card: Flashcard, now: datetime | None = None) -> Flashcard | None:
        """Create the card for its origin, or refresh the text of the existing one.

        An existing card only gets ``front``/``back`` rewritten; its scheduling
        columns are never part of the statement. A brand new card starts from
        the initial scheduling state and is due at ``now``. Returns ``None``
        when the origin row no longer exists.
        """
        vocab_id, conjugation_id = self._origin_of(card)
        now = now or utcnow()

        with storage_guard(self.session, "upsert"):
            if self._refresh_content(card, vocab_id, conjugation_id):
                self.session.commit()
                return self.find_by_origin(vocab_id=vocab_id, conjugation_id=conjugation_id)

            fresh = Flashcard(
                language_code=card.language_code,
                card_type=card.card_type,
                vocab_id=vocab_id,
                conjugation_id=conjugation_id,
                front=card.front,
                back=card.back,
                ease_factor=INITIAL_EASE_FACTOR,
                interval=0,
                repetitions=0,
                next_review=now,
                created_at=now,
            )
            self.session.add(fresh)
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                if not self._origin_exists(vocab_id, conjugation_id):
                    logger.debug(
                        "Origin vanished before card creation (vocab=%s, conjugation=%s)",
                        vocab_id,
                        conjugation_id,
                    )
                    return None
                # Lost a creation race; the other writer's card wins
                self._refresh_content(card, vocab_id, conjugation_id)
                self.session.commit()
                return self.find_by_origin(vocab_id=vocab_id, conjugation_id=conjugation_id)

            self.session.refresh(fresh)
            logger.info("Created %s flashcard %s", fresh.card_type, fresh.id)
            return fresh

    def save_grade(self, card_id: int, state: SchedulingState, record: HistoryRecord) -> None:
        """Persist a computed grade and its history entry as one transaction."""
        statement = (
            update(Flashcard)
            .where(Flashcard.id == card_id)
            .values(
                ease_factor=state.ease_factor,
                interval=state.interval,
                repetitions=state.repetitions,
                next_review=state.next_review,
            )
        )
        with storage_guard(self.session, "save_grade"):
            try:
                result = self.session.exec(statement)
                if result.rowcount == 0:
                    raise CardNotFound(card_id)
                self.history.append(card_id, record)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise

    def delete_by_origin(self, *, vocab_id: int | None = None, conjugation_id: int | None = None) -> int:
        column, origin_id = self._origin_column(vocab_id, conjugation_id)
        with storage_guard(self.session, "delete_by_origin"):
            result = self.session.exec(delete(Flashcard).where(column == origin_id))
            self.session.commit()
        return result.rowcount

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _refresh_content(self, card: Flashcard, vocab_id: int | None, conjugation_id: int | None) -> int:
        column, origin_id = self._origin_column(vocab_id, conjugation_id)
        result = self.session.exec(
            update(Flashcard).where(column == origin_id).values(front=card.front, back=card.back)
        )
        return result.rowcount

    def _origin_exists(self, vocab_id: int | None, conjugation_id: int | None) -> bool:
        if vocab_id is not None:
            return self.session.get(Vocab, vocab_id) is not None
        return self.session.get(Conjugation, conjugation_id) is not None

    @staticmethod
    def _origin_of(card: Flashcard) -> tuple[int | None, int | None]:
        if card.card_type == CardType.VOCAB and card.vocab_id is not None and card.conjugation_id is None:
            return card.vocab_id, None
        if (
            card.card_type == CardType.CONJUGATION
            and card.conjugation_id is not None
            and card.vocab_id is None
        ):
            return None, card.conjugation_id
        raise ValueError(f"{card.card_type} flashcard needs exactly one matching origin reference")

    @staticmethod
    def _origin_column(vocab_id: int | None, conjugation_id: int | None) -> tuple:
        if (vocab_id is None) == (conjugation_id is None):
            raise ValueError("Pass exactly one of vocab_id or conjugation_id")
        if vocab_id is not None:
            return Flashcard.vocab_id, vocab_id
        return Flashcard.conjugation_id, conjugation_id
