"""Model id candidates from a human-friendly model name.

Learn: Providers spell the same model many ways. Given "Llama 3.1 70B"
we try, in order:

    Llama 3.1 70B      original (trimmed)
    llama 3.1 70b      lowercase
    llama-3.1-70b      whitespace → dash
    llama-3-1-70b      whitespace and dots → dash
    llama-31-70b       dots removed, then whitespace → dash
    llama3170b         everything outside [a-z0-9-] removed

Duplicates are dropped, first occurrence wins. Pure and deterministic.
"""

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")
_WHITESPACE_OR_DOTS = re.compile(r"[.\s]+")
_NOT_ID_CHAR = re.compile(r"[^a-z0-9-]")


def generate_candidates(model_name: Optional[str]) -> list[str]:
    if not model_name:
        return []
    original = str(model_name).strip()
    if not original:
        return []
    lower = original.lower()

    variants = [
        original,
        lower,
        _WHITESPACE.sub("-", lower),
        _WHITESPACE_OR_DOTS.sub("-", lower),
        _WHITESPACE.sub("-", lower.replace(".", "")),
        _NOT_ID_CHAR.sub("", lower),
    ]
    return [v for v in dict.fromkeys(variants) if v]
