from __future__ import annotations

from askai.services.citation_cache import (
    CitationCache,
    CitationLookupError,
    CitationNotFoundError,
    IndexOutOfRangeError,
    InvalidIndexError,
)
from askai.services.logger import logger
from askai.services.prompt_store import render_prompt
from askai.transport import OutboundMessage, Session


class CitationLookupResponder:
    """Answers a reply like "2" to a rendered result with its second link."""

    def __init__(self, cache: CitationCache):
        self.cache = cache

    def reply_for(self, message_id: str, raw_index: str) -> str:
        try:
            return self.cache.resolve(message_id, raw_index)
        except InvalidIndexError:
            return render_prompt("messages.invalid_index")
        except CitationNotFoundError:
            return render_prompt("messages.no_citations")
        except IndexOutOfRangeError as e:
            return render_prompt("messages.out_of_range", count=e.count)
        except CitationLookupError as e:
            logger.error(f"Citation lookup failed for {message_id}: {e}")
            return render_prompt("messages.unexpected_error")

    async def handle(self, session: Session) -> bool:
        """Reply to a citation lookup; False when the message is not one."""
        if not session.quote_id or not self.cache.enabled:
            return False
        if self.cache.get(session.quote_id) is None:
            return False

        text = self.reply_for(session.quote_id, session.content.strip())
        await session.send(OutboundMessage(text=text, quote_id=session.message_id))
        return True
