"""askai - search-grounded answers with numbered citations

Simple CLI for asking a question or looking up a citation.
"""

import argparse
import asyncio
import sys

from askai.api.deps import build_dispatcher
from askai.config import settings
from askai.transport import BufferedSession


async def run(content: str, *, reply_to: str | None = None) -> int:
    """Dispatch one message through the pipeline and print the replies."""
    config = settings.model_copy(update={"text_mode": True})
    dispatcher = build_dispatcher(config)

    session = BufferedSession(channel_id="cli", content=content, quote_id=reply_to)
    handled = await dispatcher.dispatch(session)
    if not handled:
        print("[!] Message was not handled", file=sys.stderr)
        return 1

    for sent in session.sent:
        print(f"--- message {sent.id}")
        print(sent.message.text or f"<{len(sent.message.image or b'')} byte image>")
    return 0


def main():
    parser = argparse.ArgumentParser(description="askai: cited answers from web search")
    parser.add_argument("--query", "-q", help="Question to answer")
    parser.add_argument("--reply-to", help="Message id of a previous answer")
    parser.add_argument("--index", "-i", help="Citation number to look up (with --reply-to)")

    args = parser.parse_args()

    if args.reply_to:
        if args.index is None:
            parser.error("--reply-to requires --index")
        content = args.index
    elif args.query:
        content = f"{settings.command_alias_list[0]} {args.query}"
    else:
        parser.error("one of --query or --reply-to is required")

    sys.exit(asyncio.run(run(content, reply_to=args.reply_to)))


if __name__ == "__main__":
    main()
