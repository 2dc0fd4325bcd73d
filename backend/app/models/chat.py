"""
Chat-related Pydantic models
"""
from typing import List, Literal

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    """One role-tagged message in a conversation"""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request model for chat endpoint - the full history, newest user turn last"""
    messages: List[ChatTurn]


class ReviewRequest(BaseModel):
    """Request model for review endpoint"""
    text: str = Field(min_length=1)
