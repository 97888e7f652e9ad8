"""Completion errors and the "model not found" signature.

Learn: Only a not-found failure means "wrong spelling, try the next id".
Everything else (bad key, rate limit, malformed request) is a real
upstream failure and must reach the caller untouched.
"""

import re
from typing import Optional

_NOT_FOUND_MESSAGE = re.compile(
    r"model not found|model\s+`?[\w./:-]+`?\s+does not exist", re.IGNORECASE
)


def _status_of(obj) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(obj, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_model_not_found(error: BaseException) -> bool:
    """True if the provider rejected the model id rather than the request.

    Matches any of: error code "model_not_found", HTTP 404 (on the
    error itself or its response), or a "model not found" or
    "The model `x` does not exist" message, whatever the status.
    """
    if getattr(error, "code", None) == "model_not_found":
        return True
    if _status_of(error) == 404:
        return True
    response = getattr(error, "response", None)
    if response is not None and _status_of(response) == 404:
        return True
    message = getattr(error, "message", None) or str(error)
    return bool(_NOT_FOUND_MESSAGE.search(str(message)))


class NoCandidateSucceeded(Exception):
    """Raised when every candidate and every listed model was rejected."""

    def __init__(self, last_error: Optional[BaseException], tried: list[str]):
        self.last_error = last_error
        self.tried = list(tried)
        reason = f": {last_error}" if last_error else ""
        super().__init__(
            f"No model candidate succeeded after {len(self.tried)} attempts{reason}"
        )


class AssistantUnavailableError(Exception):
    """Raised when the completion provider is not configured."""
