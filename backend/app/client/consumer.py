"""
Incremental reassembly of a streamed plain-text response.

StreamConsumer turns byte chunks into one growing string and publishes it
after every chunk. ChatTranscript keeps the conversation list so a single
assistant answer occupies exactly one entry no matter how many chunks it
arrived in.
"""
import codecs
from enum import Enum
from typing import AsyncIterable, Callable, List, Optional

from app.client.suggestions import ExtractedAnswer, extract_suggestions
from app.models.chat import ChatTurn

UpdateCallback = Callable[[str], None]


class StreamState(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class StreamConsumer:
    """Accumulates decoded text from a chunked body."""

    def __init__(
        self,
        on_update: Optional[UpdateCallback] = None,
        error_template: str = "Error: {message}",
    ):
        self.on_update = on_update
        self.error_template = error_template
        self.state = StreamState.PENDING
        self.error: Optional[str] = None
        self._text = ""
        # Stateful so a multi-byte character split across chunks decodes once
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def text(self) -> str:
        return self._text

    @property
    def is_finished(self) -> bool:
        return self.state in (StreamState.COMPLETED, StreamState.FAILED)

    def _publish(self, decoded: str) -> None:
        if not decoded:
            return
        self._text += decoded
        if self.on_update:
            self.on_update(self._text)

    def feed(self, chunk: bytes) -> None:
        if self.is_finished:
            raise RuntimeError(f"Stream already {self.state.value}")
        self.state = StreamState.STREAMING
        self._publish(self._decoder.decode(chunk))

    def close(self) -> str:
        """Mark a normal end of stream and flush any buffered bytes."""
        if self.is_finished:
            return self._text
        self._publish(self._decoder.decode(b"", final=True))
        self.state = StreamState.COMPLETED
        return self._text

    def fail(self, message: str) -> str:
        """Replace whatever arrived so far with a visible error message."""
        self.error = message
        self.state = StreamState.FAILED
        self._text = self.error_template.format(message=message)
        if self.on_update:
            self.on_update(self._text)
        return self._text

    async def consume(self, chunks: AsyncIterable[bytes]) -> str:
        """
        Read `chunks` until the source reports completion.

        Transport errors propagate to the caller, which decides how to
        report them through `fail`.
        """
        async for chunk in chunks:
            self.feed(chunk)
        return self.close()


class ChatTranscript:
    """
    Conversation list held by the page.

    Two states: idle (no assistant answer in progress) and streaming
    (the last entry is the answer being written). The first published
    text of an answer appends an entry; later texts overwrite it.
    """

    def __init__(self):
        self.messages: List[ChatTurn] = []
        self.suggestions: List[str] = []
        self._streaming_index: Optional[int] = None

    @property
    def is_streaming(self) -> bool:
        return self._streaming_index is not None

    def add_user_turn(self, content: str) -> ChatTurn:
        if self.is_streaming:
            raise RuntimeError("An assistant answer is still in progress")
        turn = ChatTurn(role="user", content=content)
        self.messages.append(turn)
        self.suggestions = []
        return turn

    def history(self) -> List[ChatTurn]:
        return [turn.model_copy() for turn in self.messages]

    def publish(self, text: str) -> None:
        if self._streaming_index is None:
            self.messages.append(ChatTurn(role="assistant", content=text))
            self._streaming_index = len(self.messages) - 1
        else:
            self.messages[self._streaming_index].content = text

    def complete(self) -> ExtractedAnswer:
        """Finish the in-progress answer and move its follow-ups out of the text."""
        if self._streaming_index is None:
            return ExtractedAnswer("", [])

        turn = self.messages[self._streaming_index]
        self._streaming_index = None
        answer = extract_suggestions(turn.content)
        turn.content = answer.display_text
        self.suggestions = answer.suggestions
        return answer

    def fail(self, message: str) -> None:
        if self._streaming_index is None:
            self.messages.append(ChatTurn(role="assistant", content=message))
        else:
            self.messages[self._streaming_index].content = message
            self._streaming_index = None
        self.suggestions = []
