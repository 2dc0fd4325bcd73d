"""
Review API route: one document in, a streamed compliance report out.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from app.models.chat import ChatTurn, ReviewRequest
from app.services.gateway import API_KEY_ENV, GatewayFactory, get_api_key, get_gateway_factory
from app.services.prompts import REVIEW_SYSTEM_PROMPT, build_review_prompt
from app.services.relay import open_relay

log = logging.getLogger("relay")

router = APIRouter()


@router.post("/review")
async def review_endpoint(
    request: ReviewRequest,
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
):
    """Review endpoint - single-shot, stateless"""
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

    log.info(f"[review] Relaying report for a {len(request.text)}-character document")
    turns = [ChatTurn(role="user", content=build_review_prompt(request.text))]
    return await open_relay(
        lambda: gateway.generate_stream(REVIEW_SYSTEM_PROMPT, turns),
        label="review",
    )
