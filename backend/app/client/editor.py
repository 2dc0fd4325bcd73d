"""
Editor API client: what the page does, over httpx.

ReviewSession and ChatSession each drive one endpoint, feed the body into
a StreamConsumer and turn every failure into visible text.
"""
import os
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Sequence

import httpx

from app.client.consumer import ChatTranscript, StreamConsumer, StreamState
from app.client.suggestions import ExtractedAnswer
from app.models.chat import ChatTurn

log = logging.getLogger("client")

INTERRUPTED_MESSAGE = "Request was interrupted"
REVIEW_ERROR_TEMPLATE = "# Error\n\nFailed to process document: {message}"
CHAT_ERROR_TEMPLATE = "Error: {message}"


class EditorAPIError(Exception):
    """Non-2xx answer from the editor API."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error: {status_code} - {detail}")


def _error_detail(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return text


class EditorClient:
    """Async HTTP client for the review and chat endpoints."""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url or os.getenv("EDITOR_API_URL", "http://localhost:8000")
        # No read timeout: a long report can pause between fragments
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(10.0, read=None),
        )

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self) -> "EditorClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    @asynccontextmanager
    async def _stream(self, endpoint: str, payload: dict) -> AsyncIterator[AsyncIterator[bytes]]:
        async with self.client.stream("POST", endpoint, json=payload) as response:
            if response.is_error:
                body = await response.aread()
                raise EditorAPIError(response.status_code, _error_detail(body))
            yield response.aiter_bytes()

    def stream_review(self, text: str):
        return self._stream("/api/review", {"text": text})

    def stream_chat(self, messages: Sequence[ChatTurn]):
        return self._stream("/api/chat", {"messages": [m.model_dump() for m in messages]})


class ReviewSession:
    """Document review tab: one report at a time, rewritten on every chunk."""

    def __init__(self, client: EditorClient, on_update: Optional[Callable[[str], None]] = None):
        self.client = client
        self.on_update = on_update
        self.report = ""
        self.filename = ""
        self.state = StreamState.PENDING

    @property
    def is_processing(self) -> bool:
        return self.state == StreamState.STREAMING

    def _set_report(self, text: str) -> None:
        self.report = text
        if self.on_update:
            self.on_update(text)

    async def review(self, text: str, filename: str = "") -> str:
        self.filename = filename
        self.report = ""
        self.state = StreamState.STREAMING
        consumer = StreamConsumer(self._set_report, error_template=REVIEW_ERROR_TEMPLATE)

        try:
            async with self.client.stream_review(text) as chunks:
                await consumer.consume(chunks)
        except (EditorAPIError, httpx.HTTPError) as e:
            log.error(f"Review error: {e}")
            consumer.fail(str(e))
        except BaseException:
            # Cancelled or unexpected: the report must not stay half-written
            if not consumer.is_finished:
                consumer.fail(INTERRUPTED_MESSAGE)
            raise
        finally:
            self.state = consumer.state

        return self.report

    async def review_file(self, path: Path) -> str:
        return await self.review(read_document(path), filename=path.name)

    def save(self, directory: Optional[Path] = None) -> Path:
        """Write the finished report as `<stem>_review.md`."""
        stem = Path(self.filename).stem if self.filename else "document"
        target = (directory or Path.cwd()) / f"{stem}_review.md"
        target.write_text(self.report, encoding="utf-8")
        return target


class ChatSession:
    """Quick Q&A tab: history lives here and is resent in full every time."""

    def __init__(
        self,
        client: EditorClient,
        on_update: Optional[Callable[[ChatTranscript], None]] = None,
    ):
        self.client = client
        self.on_update = on_update
        self.transcript = ChatTranscript()
        self.is_loading = False
        self.error: Optional[str] = None

    @property
    def messages(self) -> List[ChatTurn]:
        return self.transcript.messages

    @property
    def suggestions(self) -> List[str]:
        return self.transcript.suggestions

    def _notify(self) -> None:
        if self.on_update:
            self.on_update(self.transcript)

    def _publish(self, text: str) -> None:
        self.transcript.publish(text)
        self._notify()

    async def ask(self, question: str) -> Optional[ExtractedAnswer]:
        """
        Send `question` with the whole conversation so far.

        Returns None when the question is blank or another answer is
        still streaming; otherwise the answer split from its follow-ups.
        """
        if not question.strip() or self.is_loading:
            return None

        self.transcript.add_user_turn(question)
        self.is_loading = True
        self.error = None
        self._notify()
        consumer = StreamConsumer(self._publish, error_template=CHAT_ERROR_TEMPLATE)

        try:
            async with self.client.stream_chat(self.transcript.history()) as chunks:
                await consumer.consume(chunks)
            answer = self.transcript.complete()
        except (EditorAPIError, httpx.HTTPError) as e:
            log.error(f"Chat error: {e}")
            self.error = str(e)
            consumer.on_update = None
            self.transcript.fail(consumer.fail(str(e)))
            answer = ExtractedAnswer(consumer.text, [])
        except BaseException:
            # Cancelled or unexpected: close the open answer so the next ask works
            self.error = INTERRUPTED_MESSAGE
            consumer.on_update = None
            self.transcript.fail(consumer.fail(INTERRUPTED_MESSAGE))
            raise
        finally:
            self.is_loading = False

        self._notify()
        return answer


def read_document(path: Path) -> str:
    """Plain-text uploads only; binary formats need a separate extractor."""
    if path.suffix.lower() not in (".txt", ".md"):
        raise ValueError("Unsupported file type. Please upload .txt or .md files.")
    return path.read_text(encoding="utf-8")
