"""
Chat API route: style-guide Q&A, streamed back as plain text.

No conversation state is kept here: the client resends the full history
on every call.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from app.models.chat import ChatRequest
from app.services.gateway import API_KEY_ENV, GatewayFactory, get_api_key, get_gateway_factory
from app.services.prompts import CHAT_SYSTEM_PROMPT
from app.services.relay import open_relay

log = logging.getLogger("relay")

router = APIRouter()


@router.post("/chat")
async def chat_endpoint(
    request: ChatRequest,
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
):
    """Chat endpoint - relays the model's answer fragment by fragment"""
    api_key = get_api_key()
    if not api_key:
        raise HTTPException(
            status_code=500,
            detail=f"{API_KEY_ENV} is missing or invalid. Please check your .env file."
        )

    try:
        gateway = gateway_factory(api_key)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Model gateway initialization failed: {str(e)}")

    log.info(f"[chat] Relaying answer for {len(request.messages)} turn(s)")
    return await open_relay(
        lambda: gateway.generate_stream(CHAT_SYSTEM_PROMPT, request.messages),
        label="chat",
    )
