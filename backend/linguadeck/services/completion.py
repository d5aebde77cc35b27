from __future__ import annotations

import asyncio
import logging

import httpx

from ..core.exceptions import CompletionError

logger = logging.getLogger(__name__)


class CompletionClient:
    """OpenAI-compatible chat completion endpoint (DeepSeek, Gemini compat, OpenAI...)."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        max_retries: int = 3,
        base_delay: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(120.0, connect=10.0),
            transport=transport,
        )

    @property
    def name(self) -> str:
        return self.model

    async def complete(self, prompt: str, system_prompt: str | None = None) -> str:
        for attempt in range(self.max_retries):
            try:
                return await self._do_complete(prompt, system_prompt)
            except (httpx.HTTPError, CompletionError) as exc:
                if attempt == self.max_retries - 1:
                    logger.error("Completion failed after %d attempt(s): %s", self.max_retries, exc)
                    raise CompletionError(f"AI request failed: {exc}") from exc
                delay = self.base_delay * (2 ** attempt)
                logger.warning("Completion error: %s, retrying in %.0fs...", exc, delay)
                await asyncio.sleep(delay)
        raise CompletionError("AI request failed")

    async def _do_complete(self, prompt: str, system_prompt: str | None) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.2,
            "max_tokens": 8192,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        response = await self._client.post("/chat/completions", json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
        choice = (data.get("choices") or [{}])[0]
        content = (choice.get("message") or {}).get("content") or ""
        if not content.strip():
            raise CompletionError(f"Unexpected empty response from {self.model}")
        return content.strip()

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CompletionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()
