"""Chat transport interface used by the pipeline and the lookup responder."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class OutboundMessage:
    text: str | None = None
    image: bytes | None = None
    mime_type: str = "image/png"
    quote_id: str | None = None


class Session(Protocol):
    message_id: str
    channel_id: str
    content: str
    quote_id: str | None

    async def send(self, message: OutboundMessage) -> list[str]: ...
    async def delete(self, message_id: str) -> None: ...


@dataclass
class SentMessage:
    id: str
    message: OutboundMessage


@dataclass
class BufferedSession:
    """In-process session that records what would be delivered.

    Used by the HTTP API and the CLI, where the outbound messages are returned
    to the caller instead of being pushed to a chat platform.
    """

    channel_id: str
    content: str
    message_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    quote_id: str | None = None
    sent: list[SentMessage] = field(default_factory=list)
    retracted: list[str] = field(default_factory=list)

    async def send(self, message: OutboundMessage) -> list[str]:
        sent = SentMessage(id=uuid.uuid4().hex, message=message)
        self.sent.append(sent)
        return [sent.id]

    async def delete(self, message_id: str) -> None:
        self.retracted.append(message_id)
        self.sent = [s for s in self.sent if s.id != message_id]

