from __future__ import annotations

import base64

from fastapi import APIRouter, Depends

from askai.agents.dispatcher import MessageDispatcher
from askai.api.deps import get_dispatcher
from askai.models.schemas import DispatchResponse, InboundMessageRequest, OutboundMessageResponse
from askai.transport import BufferedSession, SentMessage

router = APIRouter(prefix="/api/messages", tags=["messages"])


def _to_response(sent: SentMessage) -> OutboundMessageResponse:
    message = sent.message
    return OutboundMessageResponse(
        id=sent.id,
        text=message.text,
        image_base64=base64.b64encode(message.image).decode("ascii") if message.image else None,
        mime_type=message.mime_type if message.image else None,
        quote_id=message.quote_id,
    )


@router.post("", response_model=DispatchResponse)
async def post_message(
    request: InboundMessageRequest,
    dispatcher: MessageDispatcher = Depends(get_dispatcher),
):
    """Deliver one chat message and return the replies it produced."""
    session = BufferedSession(
        channel_id=request.channel_id,
        content=request.content,
        quote_id=request.quote_id,
    )
    if request.message_id:
        session.message_id = request.message_id

    handled = await dispatcher.dispatch(session)
    return DispatchResponse(
        message_id=session.message_id,
        handled=handled,
        messages=[_to_response(sent) for sent in session.sent],
        retracted=session.retracted,
    )
