from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW
from linguadeck.core.exceptions import StorageUnavailable
from linguadeck.models.flashcard import HistoryRecord
from linguadeck.services.history_log import HistoryLog, start_of_day


def _log(session, card_id: int, reviewed_at: datetime, quality: int = 4) -> None:
    HistoryLog(session).append(
        card_id, HistoryRecord(quality=quality, ease_factor=2.5, interval=1, reviewed_at=reviewed_at)
    )
    session.commit()


def test_start_of_day():
    assert start_of_day(datetime(2026, 3, 2, 23, 59, 59, 999)) == datetime(2026, 3, 2)
    assert start_of_day(NOW) == datetime(2026, 3, 2, tzinfo=timezone.utc)


def test_reviewed_today_counts_from_midnight(session, make_card):
    card = make_card()
    _log(session, card.id, start_of_day(NOW) - timedelta(seconds=1))
    _log(session, card.id, start_of_day(NOW))
    _log(session, card.id, NOW)

    assert HistoryLog(session).reviewed_today(NOW) == 2


def test_reviewed_today_across_languages(session, make_card):
    arabic = make_card(language="ar")
    spanish = make_card(language="es")
    _log(session, arabic.id, NOW)
    _log(session, spanish.id, NOW)
    _log(session, spanish.id, NOW)

    log = HistoryLog(session)
    assert log.reviewed_today(NOW) == 3
    assert log.reviewed_today(NOW, language="ar") == 1
    assert log.reviewed_today(NOW, language="es") == 2


def test_entries_for_returns_oldest_first(session, make_card):
    card = make_card()
    _log(session, card.id, NOW, quality=1)
    _log(session, card.id, NOW - timedelta(days=1), quality=5)

    entries = HistoryLog(session).entries_for(card.id)
    assert [e.quality for e in entries] == [5, 1]


def test_unreachable_database_raises_storage_unavailable(unreachable_session):
    log = HistoryLog(unreachable_session)
    with pytest.raises(StorageUnavailable):
        log.reviewed_today(NOW)
    with pytest.raises(StorageUnavailable):
        log.entries_for(1)
