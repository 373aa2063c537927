from __future__ import annotations

from askai.agents.citation_lookup import CitationLookupResponder
from askai.agents.orchestrator import AnswerPipeline
from askai.services.logger import logger
from askai.services.prompt_store import render_prompt
from askai.transport import OutboundMessage, Session


def parse_command(content: str, aliases: list[str]) -> str | None:
    """Return the prompt after a ``search``-style command, or None."""
    parts = content.strip().split(maxsplit=1)
    if not parts or parts[0].lower() not in aliases:
        return None
    return parts[1].strip() if len(parts) > 1 else ""


class MessageDispatcher:
    """Routes one inbound message.

    Citation lookups are checked first; anything else must start with one of
    the command aliases to reach the pipeline.
    """

    def __init__(
        self,
        pipeline: AnswerPipeline,
        responder: CitationLookupResponder,
        *,
        aliases: list[str],
    ):
        self.pipeline = pipeline
        self.responder = responder
        self.aliases = [a.lower() for a in aliases]

    async def dispatch(self, session: Session) -> bool:
        if await self.responder.handle(session):
            return True

        prompt = parse_command(session.content, self.aliases)
        if prompt is None:
            return False
        if not prompt:
            await session.send(
                OutboundMessage(text=render_prompt("messages.empty_prompt"), quote_id=session.message_id)
            )
            return True

        try:
            await self.pipeline.run(session, prompt)
        except Exception:
            # Search, completion and render failures end the run; the user
            # gets a generic reply and the traceback goes to the log.
            logger.exception(f"Pipeline failed for message {session.message_id}")
            await session.send(
                OutboundMessage(text=render_prompt("messages.failure"), quote_id=session.message_id)
            )
        return True
