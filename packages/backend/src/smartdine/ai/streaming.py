"""Streaming response relay — completion stream → text/event-stream.

Learn: The relay has two phases:
1. prime_stream() pulls chunks until the first non-empty delta. This
   runs before the HTTP response starts, so a failure here can still
   become a proper JSON error with a 5xx status.
2. relay() yields one `data: {"content": ...}` frame per delta and
   finishes with `data: [DONE]`. Once headers are sent the status can't
   change, so a mid-stream failure becomes an apology frame, then DONE.

The client tells "partial answer, then error" from a clean answer by
the apology text in the last content frame.
"""

import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import structlog

logger = structlog.get_logger()

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # nginx: don't buffer the stream
}
DONE_FRAME = "data: [DONE]\n\n"
APOLOGY = (
    "\n\nSorry, I encountered an error. "
    "Please check if the AI service is configured correctly."
)


def sse_frame(content: str) -> str:
    return f"data: {json.dumps({'content': content})}\n\n"


def extract_delta(chunk: Any) -> str:
    """Text delta of one streamed chunk, or "" for role/usage/empty chunks."""
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    content = getattr(delta, "content", None) if delta is not None else None
    return content or ""


@dataclass
class PrimedStream:
    """A completion stream whose first text delta has already been read.

    `source` is the provider's stream object. relay() closes it however
    the answer ends, including when the client disconnects.
    """

    first: Optional[str]
    rest: AsyncIterator[Any]
    source: Any = None


async def prime_stream(stream: Any) -> PrimedStream:
    iterator = stream.__aiter__()
    try:
        while True:
            try:
                chunk = await iterator.__anext__()
            except StopAsyncIteration:
                return PrimedStream(first=None, rest=_empty(), source=stream)
            content = extract_delta(chunk)
            if content:
                return PrimedStream(first=content, rest=iterator, source=stream)
    except BaseException:
        await close_stream(stream)
        raise


async def relay(primed: PrimedStream) -> AsyncIterator[str]:
    """Yield SSE frames for a primed stream, always ending with DONE."""
    frames = 0
    try:
        try:
            if primed.first:
                frames += 1
                yield sse_frame(primed.first)
            async for chunk in primed.rest:
                content = extract_delta(chunk)
                if content:
                    frames += 1
                    yield sse_frame(content)
        except Exception as e:
            logger.error("ai.stream_failed", frames=frames, error=str(e))
            yield sse_frame(APOLOGY)
        yield DONE_FRAME
        logger.debug("ai.stream_completed", frames=frames)
    finally:
        await close_stream(primed.source)


async def close_stream(stream: Any) -> None:
    """Release the upstream HTTP response behind a completion stream."""
    close = getattr(stream, "close", None)
    if close is None:
        return
    try:
        await close()
    except Exception as e:
        logger.warning("ai.stream_close_failed", error=str(e))


async def _empty() -> AsyncIterator[Any]:
    return
    yield
