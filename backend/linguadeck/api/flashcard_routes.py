"""Flashcard review API: due set, stats, grading."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import func, select

from ..core.clock import utcnow
from ..core.config import get_config
from ..core.db import storage_guard
from ..models.content import Verb, Vocab
from ..models.flashcard import Flashcard, SchedulingState
from ..services.card_store import CardStore
from ..services.review_session import submit_grade
from ..services.srs_engine import QUALITY_LABELS
from .deps import get_card_store, parse_card_type, resolve_language


class ReviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    flashcard_id: int = Field(alias="flashcardId")
    # Range is checked by the grading policy so the error type stays InvalidGrade
    quality: int


def create_flashcard_router() -> APIRouter:
    router = APIRouter(prefix="/api/flashcards", tags=["flashcards"])

    @router.get("")
    async def get_due_set(
        lang: str | None = None,
        cardType: str | None = None,  # noqa: N803
        store: CardStore = Depends(get_card_store),
    ) -> dict[str, Any]:
        language = resolve_language(lang)
        card_type = parse_card_type(cardType)
        due = store.find_due(language, card_type, as_of=utcnow())
        return {
            "due": [flashcard_to_dict(c) for c in due],
            "totalCards": store.count_all(language, card_type),
            "dueCount": len(due),
        }

    @router.get("/stats")
    async def get_stats(
        lang: str | None = None,
        cardType: str | None = None,  # noqa: N803
        store: CardStore = Depends(get_card_store),
    ) -> dict[str, Any]:
        language = resolve_language(lang)
        card_type = parse_card_type(cardType)
        now = utcnow()
        scoped = get_config().srs.scope_reviewed_today_to_language
        session = store.session
        with storage_guard(session, "stats"):
            return {
                "totalCards": store.count_all(language, card_type),
                "dueCards": store.count_due(language, card_type, as_of=now),
                "reviewedToday": store.history.reviewed_today(now, language if scoped else None),
                "totalVocab": session.exec(
                    select(func.count(Vocab.id)).where(Vocab.language_code == language)
                ).one(),
                "totalVerbs": session.exec(
                    select(func.count(Verb.id)).where(Verb.language_code == language)
                ).one(),
            }

    @router.get("/qualities")
    async def list_qualities() -> list[dict[str, Any]]:
        return [
            {"quality": q.quality, "label": q.label, "hint": q.hint, "passed": q.passed}
            for q in QUALITY_LABELS
        ]

    @router.post("/review")
    async def review_flashcard(
        body: ReviewRequest, store: CardStore = Depends(get_card_store)
    ) -> dict[str, Any]:
        state = submit_grade(store, body.flashcard_id, body.quality, utcnow())
        return {"id": body.flashcard_id, **scheduling_to_dict(state)}

    @router.get("/{card_id}")
    async def get_flashcard(card_id: int, store: CardStore = Depends(get_card_store)) -> dict[str, Any]:
        card = store.get(card_id)
        return {
            **flashcard_to_dict(card),
            "history": [
                {
                    "quality": h.quality,
                    "easeFactor": h.ease_factor,
                    "interval": h.interval,
                    "reviewedAt": h.reviewed_at.isoformat(),
                }
                for h in store.history.entries_for(card_id)
            ],
        }

    return router


def scheduling_to_dict(state: SchedulingState) -> dict[str, Any]:
    return {
        "easeFactor": state.ease_factor,
        "interval": state.interval,
        "repetitions": state.repetitions,
        "nextReview": state.next_review.isoformat(),
    }


def flashcard_to_dict(card: Flashcard) -> dict[str, Any]:
    return {
        "id": card.id,
        "languageCode": card.language_code,
        "cardType": str(card.card_type),
        "vocabId": card.vocab_id,
        "conjugationId": card.conjugation_id,
        "front": card.front,
        "back": card.back,
        **scheduling_to_dict(card.scheduling),
        "createdAt": card.created_at.isoformat() if card.created_at else None,
    }
