"""
Model gateway: streams text fragments from the hosted Gemini model.

Gemini is reached through its OpenAI-compatible endpoint, so the
LangChain ChatOpenAI client does the wire work. Each request builds its
own gateway; nothing is shared between in-flight exchanges.
"""
import os
import logging
from typing import AsyncIterator, Callable, List, Optional, Sequence

from langchain_openai import ChatOpenAI
from langchain_core.messages import AIMessage, AnyMessage, HumanMessage, SystemMessage

from app.models.chat import ChatTurn

log = logging.getLogger("gateway")

API_KEY_ENV = "GEMINI_API_KEY"
API_KEY_PLACEHOLDER = "your_gemini_api_key_here"
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def get_api_key() -> Optional[str]:
    """Return the Gemini API key if it is present and plausible, else None"""
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        return None
    api_key = api_key.strip()
    if not api_key or api_key == API_KEY_PLACEHOLDER:
        return None
    if len(api_key) < 10:
        return None
    return api_key


def to_langchain_messages(turns: Sequence[ChatTurn]) -> List[AnyMessage]:
    """Map our user/assistant turns onto the model's human/AI message types."""
    messages: List[AnyMessage] = []
    for turn in turns:
        if turn.role == "assistant":
            messages.append(AIMessage(content=turn.content))
        else:
            messages.append(HumanMessage(content=turn.content))
    return messages


class ModelGateway:
    """Thin streaming wrapper around the hosted chat model."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        if not api_key:
            raise ValueError(f"{API_KEY_ENV} is required")

        self.model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self.llm = ChatOpenAI(
            model=self.model,
            temperature=float(os.getenv("GEMINI_TEMPERATURE", "0.7")),
            streaming=True,
            api_key=api_key,
            base_url=base_url or os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            max_retries=0,
        )

    async def generate_stream(
        self,
        system_instruction: str,
        turns: Sequence[ChatTurn],
    ) -> AsyncIterator[str]:
        """Yield the model's text fragments in the order they are produced."""
        messages = [SystemMessage(content=system_instruction)] + to_langchain_messages(turns)
        log.debug(f"Calling {self.model} with {len(turns)} turn(s)")

        async for chunk in self.llm.astream(messages):
            content = chunk.content
            if isinstance(content, list):
                # Multi-part content: keep only the text parts
                content = "".join(
                    part if isinstance(part, str) else part.get("text", "")
                    for part in content
                )
            if content:
                yield content


GatewayFactory = Callable[[str], ModelGateway]


def get_gateway_factory() -> GatewayFactory:
    """FastAPI dependency: returns the callable that builds a gateway from a key"""
    return ModelGateway
