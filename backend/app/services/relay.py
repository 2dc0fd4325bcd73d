"""
Stream relay: turns a gateway fragment stream into a chunked HTTP body.

The first fragment is awaited before any response is returned, so an
upstream call that fails up front becomes a plain 500. After that, each
fragment is written as its own chunk the moment it arrives. A failure
mid-stream is re-raised inside the body iterator, which makes the server
drop the connection before the terminating chunk: the client sees a
truncated body instead of a clean end.
"""
import logging
from typing import AsyncIterator, Callable, Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse

log = logging.getLogger("relay")

STREAM_HEADERS = {
    "Transfer-Encoding": "chunked",
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


async def _relay_body(
    first: Optional[str],
    fragments: AsyncIterator[str],
    label: str,
) -> AsyncIterator[bytes]:
    count = 0
    sent = 0
    try:
        if first is not None:
            data = first.encode("utf-8")
            count += 1
            sent += len(data)
            yield data

        async for fragment in fragments:
            data = fragment.encode("utf-8")
            count += 1
            sent += len(data)
            yield data
    except Exception:
        log.exception(f"[{label}] Stream error after {count} fragment(s)")
        raise

    log.info(f"[{label}] Stream complete: {count} fragment(s), {sent} bytes")


async def open_relay(
    start: Callable[[], AsyncIterator[str]],
    label: str = "relay",
) -> StreamingResponse:
    """
    Call `start` exactly once and relay its fragments as a streaming
    text/plain response.

    Raises HTTPException(500) if the upstream fails before producing
    its first fragment.
    """
    try:
        fragments = start()
        first: Optional[str] = await anext(fragments)
    except StopAsyncIteration:
        first = None
    except Exception as e:
        log.error(f"[{label}] Upstream call failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error: {str(e)}")

    return StreamingResponse(
        _relay_body(first, fragments, label),
        media_type="text/plain; charset=utf-8",
        headers=STREAM_HEADERS,
    )
