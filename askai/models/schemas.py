from __future__ import annotations

from pydantic import BaseModel


# --- Requests ---


class InboundMessageRequest(BaseModel):
    channel_id: str
    content: str
    message_id: str | None = None
    quote_id: str | None = None


# --- Responses ---


class OutboundMessageResponse(BaseModel):
    id: str
    text: str | None = None
    image_base64: str | None = None
    mime_type: str | None = None
    quote_id: str | None = None


class DispatchResponse(BaseModel):
    message_id: str
    handled: bool
    messages: list[OutboundMessageResponse]
    retracted: list[str]
