import pytest

from linguadeck.core.db import get_session
from linguadeck.main import app


def _add_word(client, english="book", target="كتاب", lang="ar"):
    response = client.post("/api/vocab", json={"languageCode": lang, "english": english, "target": target})
    assert response.status_code == 200
    return response.json()


def test_new_translated_word_is_due(client):
    word = _add_word(client)
    assert word["flashcard"]["front"] == "book"

    response = client.get("/api/flashcards", params={"lang": "ar"})
    assert response.status_code == 200
    data = response.json()
    assert data["dueCount"] == 1
    assert data["totalCards"] == 1
    card = data["due"][0]
    assert card["cardType"] == "vocab"
    assert card["back"] == "كتاب"
    assert card["easeFactor"] == 2.5
    assert card["repetitions"] == 0


def test_default_language_applies(client):
    _add_word(client)
    assert client.get("/api/flashcards").json()["dueCount"] == 1
    assert client.get("/api/flashcards", params={"lang": "es"}).json()["dueCount"] == 0


def test_card_type_filter(client):
    _add_word(client)
    assert client.get("/api/flashcards", params={"cardType": "conjugation"}).json()["dueCount"] == 0
    assert client.get("/api/flashcards", params={"cardType": "all"}).json()["dueCount"] == 1


def test_review_updates_schedule_and_stats(client):
    card_id = _add_word(client)["flashcard"]["id"]

    response = client.post("/api/flashcards/review", json={"flashcardId": card_id, "quality": 5})
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == card_id
    assert data["interval"] == 1
    assert data["repetitions"] == 1
    assert data["easeFactor"] == pytest.approx(2.6)

    stats = client.get("/api/flashcards/stats").json()
    assert stats["totalCards"] == 1
    assert stats["dueCards"] == 0
    assert stats["reviewedToday"] == 1
    assert stats["totalVocab"] == 1
    assert stats["totalVerbs"] == 0

    detail = client.get(f"/api/flashcards/{card_id}").json()
    assert [h["quality"] for h in detail["history"]] == [5]


def test_review_with_bad_quality(client):
    card_id = _add_word(client)["flashcard"]["id"]

    response = client.post("/api/flashcards/review", json={"flashcardId": card_id, "quality": 6})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grade"
    assert client.get(f"/api/flashcards/{card_id}").json()["history"] == []


def test_review_unknown_card(client):
    response = client.post("/api/flashcards/review", json={"flashcardId": 12345, "quality": 4})
    assert response.status_code == 404
    assert response.json()["error"] == "card_not_found"


def test_quality_labels(client):
    data = client.get("/api/flashcards/qualities").json()
    assert [q["label"] for q in data] == ["Blackout", "Wrong", "Hard", "Okay", "Good", "Easy"]
    assert data[3]["passed"] is True


def test_stats_when_storage_is_unreachable(client, unreachable_session):
    app.dependency_overrides[get_session] = lambda: unreachable_session

    response = client.get("/api/flashcards/stats")

    assert response.status_code == 503
    assert response.json()["error"] == "storage_unavailable"
