"""Model-fallback completion client.

Learn: The loop, in order:
1. Try every spelling from generate_candidates(model_name)
2. If all were "model not found", ask the provider which models exist
   and try those (ids already tried are skipped)
3. Still nothing → NoCandidateSucceeded, carrying the last error seen

Any failure that is not a not-found aborts the loop at once and is
re-raised as-is. Only request params' `model` changes between attempts.

A candidate counts as successful when the provider accepts the call.
For stream=True that is the HTTP response, before any token arrives,
so at most one successful call is ever made.
"""

from typing import Any, Optional

import structlog

from smartdine.ai.candidates import generate_candidates
from smartdine.ai.errors import NoCandidateSucceeded, is_model_not_found

logger = structlog.get_logger()


class ModelFallbackClient:
    def __init__(self, provider, model_name: str):
        self.provider = provider
        self.model_name = model_name

    @property
    def candidates(self) -> list[str]:
        return generate_candidates(self.model_name)

    async def create(self, **params: Any) -> Any:
        """Create a completion with the first model id the provider accepts."""
        tried: list[str] = []
        last_error: Optional[BaseException] = None

        # ── Guessed spellings ───────────────────────────────
        for model_id in self.candidates:
            ok, result, last_error = await self._attempt(model_id, params, last_error)
            tried.append(model_id)
            if ok:
                return result

        # ── Provider's own list ─────────────────────────────
        try:
            available = await self.provider.list_models()
        except Exception as e:
            logger.error("ai.list_models_failed", error=str(e))
            raise NoCandidateSucceeded(e, tried) from e

        remaining = [m for m in dict.fromkeys(available) if m and m not in tried]
        logger.warning(
            "ai.fallback_to_listed_models",
            model=self.model_name,
            available=len(remaining),
        )
        for model_id in remaining:
            ok, result, last_error = await self._attempt(model_id, params, last_error)
            tried.append(model_id)
            if ok:
                return result

        raise NoCandidateSucceeded(last_error, tried) from last_error

    async def _attempt(self, model_id: str, params: dict, last_error):
        """One call. Returns (ok, result, last_error); re-raises non-not-found errors."""
        try:
            result = await self.provider.create_completion(**{**params, "model": model_id})
        except Exception as e:
            if not is_model_not_found(e):
                raise
            logger.info("ai.model_not_found", model_id=model_id)
            return False, None, e

        if model_id != self.model_name:
            logger.info("ai.model_resolved", model=self.model_name, model_id=model_id)
        return True, result, last_error
