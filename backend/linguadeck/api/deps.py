from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from ..core.config import get_config
from ..core.db import get_session
from ..models.flashcard import CardType
from ..services.card_lifecycle import CardLifecycleManager
from ..services.card_store import CardStore
from ..services.completion import CompletionClient
from ..services.content_generator import ContentGenerator


def get_llm_config(request: Request) -> dict:
    """LLM settings from request headers (bring your own key), else config.yaml."""
    cfg = get_config()

    api_key = request.headers.get("X-LLM-API-Key", "")
    if api_key:
        return {
            "base_url": request.headers.get("X-LLM-Base-URL", "") or cfg.llm.base_url,
            "api_key": api_key,
            "model": request.headers.get("X-LLM-Model", "") or cfg.llm.model,
        }

    if cfg.llm.api_key and cfg.llm.api_key != "YOUR_API_KEY":
        return {"base_url": cfg.llm.base_url, "api_key": cfg.llm.api_key, "model": cfg.llm.model}

    raise HTTPException(400, "Missing X-LLM-API-Key header. Configure your API key in Settings.")


async def get_content_generator(request: Request) -> AsyncGenerator[ContentGenerator, None]:
    llm_config = get_llm_config(request)
    client = CompletionClient(
        api_key=llm_config["api_key"],
        model=llm_config["model"],
        base_url=llm_config["base_url"],
        max_retries=get_config().llm.max_retries,
    )
    try:
        yield ContentGenerator(client)
    finally:
        await client.close()


def get_card_store(session: Session = Depends(get_session)) -> CardStore:
    return CardStore(session)


def get_lifecycle(session: Session = Depends(get_session)) -> CardLifecycleManager:
    return CardLifecycleManager(session)


def parse_card_type(value: str | None) -> CardType | None:
    # Anything other than a known card type ("all", empty) means no filter
    if value in (CardType.VOCAB.value, CardType.CONJUGATION.value):
        return CardType(value)
    return None


def resolve_language(lang: str | None) -> str:
    return lang or get_config().srs.default_language
