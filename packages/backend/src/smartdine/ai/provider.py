"""Completion provider — any OpenAI-compatible chat API (Groq by default).

Learn: The fallback client only needs two calls from a provider:
create_completion(**params) and list_models(). Keeping that seam
narrow lets tests swap in a scripted fake without patching the SDK.
"""

from typing import Any, Optional, Protocol

import structlog
from openai import AsyncOpenAI

from smartdine.ai.fallback import ModelFallbackClient
from smartdine.config import settings

logger = structlog.get_logger()


class CompletionProvider(Protocol):
    async def create_completion(self, **params: Any) -> Any:
        ...

    async def list_models(self) -> list[str]:
        ...


class OpenAICompatibleProvider:
    """Thin adapter over the openai SDK's async client."""

    def __init__(self, api_key: str, base_url: str, timeout: float = 60.0):
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def create_completion(self, **params: Any) -> Any:
        return await self.client.chat.completions.create(**params)

    async def list_models(self) -> list[str]:
        page = await self.client.models.list()
        return [m.id for m in page.data if getattr(m, "id", None)]


# ─── Lazy singleton ──────────────────────────────────────

_client: Optional[ModelFallbackClient] = None


def get_completion_client() -> Optional[ModelFallbackClient]:
    """FastAPI dependency: the fallback client, or None if AI is not configured."""
    global _client
    if _client is not None:
        return _client
    if not settings.groq_api_key or not settings.groq_model:
        logger.warning(
            "ai.not_configured",
            has_key=bool(settings.groq_api_key),
            has_model=bool(settings.groq_model),
        )
        return None
    provider = OpenAICompatibleProvider(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        timeout=settings.ai_timeout_seconds,
    )
    _client = ModelFallbackClient(provider, settings.groq_model)
    return _client
