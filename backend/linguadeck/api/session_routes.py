"""Review session API: one card at a time over a frozen due set."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ..core.clock import utcnow
from ..services.card_store import CardStore
from ..services.review_session import PresentedCard, ReviewSession, ReviewSessionRegistry
from .deps import get_card_store, parse_card_type, resolve_language
from .flashcard_routes import scheduling_to_dict


class StartSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lang: str | None = None
    card_type: str | None = Field(default=None, alias="cardType")


class RestartSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    card_type: str | None = Field(default=None, alias="cardType")


class GradeRequest(BaseModel):
    quality: int


def create_session_router(registry: ReviewSessionRegistry) -> APIRouter:
    router = APIRouter(prefix="/api/sessions", tags=["sessions"])

    @router.post("")
    async def start_session(
        body: StartSessionRequest, store: CardStore = Depends(get_card_store)
    ) -> dict[str, Any]:
        session = registry.create(resolve_language(body.lang), parse_card_type(body.card_type))
        session.start(store, utcnow())
        return session_to_dict(session)

    @router.get("/{session_id}")
    async def get_session_summary(session_id: str) -> dict[str, Any]:
        return session_to_dict(registry.get(session_id))

    @router.get("/{session_id}/next")
    async def next_card(session_id: str) -> dict[str, Any]:
        session = registry.get(session_id)
        card = session.next_card()
        return {"card": presented_to_dict(card), **session_to_dict(session)}

    @router.post("/{session_id}/reveal")
    async def reveal_card(session_id: str) -> dict[str, Any]:
        session = registry.get(session_id)
        return {"back": session.reveal()}

    @router.post("/{session_id}/grade")
    async def grade_card(
        session_id: str, body: GradeRequest, store: CardStore = Depends(get_card_store)
    ) -> dict[str, Any]:
        session = registry.get(session_id)
        state = session.grade(store, body.quality, utcnow())
        return {"scheduling": scheduling_to_dict(state), **session_to_dict(session)}

    @router.post("/{session_id}/restart")
    async def restart_session(
        session_id: str, body: RestartSessionRequest, store: CardStore = Depends(get_card_store)
    ) -> dict[str, Any]:
        session = registry.get(session_id)
        session.restart(store, utcnow(), parse_card_type(body.card_type))
        return session_to_dict(session)

    @router.delete("/{session_id}")
    async def cancel_session(session_id: str) -> dict[str, str]:
        registry.discard(session_id)
        return {"status": "cancelled"}

    return router


def session_to_dict(session: ReviewSession) -> dict[str, Any]:
    summary = session.summary()
    return {
        "sessionId": session.id,
        "language": session.language,
        "cardType": str(session.card_type) if session.card_type else "all",
        "state": summary.state.value,
        "total": summary.total,
        "reviewed": summary.reviewed,
        "correct": summary.correct,
        "incorrect": summary.incorrect,
        "remaining": session.remaining,
        "accuracy": summary.accuracy,
    }


def presented_to_dict(card: PresentedCard | None) -> dict[str, Any] | None:
    if card is None:
        return None
    return {
        "id": card.id,
        "cardType": str(card.card_type),
        "front": card.front,
        "position": card.position,
        "total": card.total,
    }
