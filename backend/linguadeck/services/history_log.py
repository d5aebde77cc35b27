from __future__ import annotations

from datetime import datetime

from sqlmodel import Session, func, select

from ..core.db import storage_guard
from ..models.flashcard import Flashcard, HistoryRecord, ReviewHistory


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class HistoryLog:
    """Append-only review log. Entries disappear only when their card does."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, flashcard_id: int, record: HistoryRecord) -> ReviewHistory:
        # Staged only; the caller commits together with the card update
        entry = ReviewHistory(
            flashcard_id=flashcard_id,
            quality=record.quality,
            ease_factor=record.ease_factor,
            interval=record.interval,
            reviewed_at=record.reviewed_at,
        )
        self.session.add(entry)
        return entry

    def entries_for(self, flashcard_id: int) -> list[ReviewHistory]:
        statement = (
            select(ReviewHistory)
            .where(ReviewHistory.flashcard_id == flashcard_id)
            .order_by(ReviewHistory.reviewed_at, ReviewHistory.id)
        )
        with storage_guard(self.session, "entries_for"):
            return list(self.session.exec(statement).all())

    def count_since(self, since: datetime, language: str | None = None) -> int:
        statement = select(func.count(ReviewHistory.id)).where(ReviewHistory.reviewed_at >= since)
        if language:
            statement = statement.join(Flashcard, Flashcard.id == ReviewHistory.flashcard_id).where(
                Flashcard.language_code == language
            )
        with storage_guard(self.session, "count_since"):
            return self.session.exec(statement).one()

    def reviewed_today(self, now: datetime, language: str | None = None) -> int:
        return self.count_since(start_of_day(now), language)
