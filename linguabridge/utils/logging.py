import logging
import re
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chat text is user content; never log more than this many characters of it
MAX_LOGGED_TEXT = 40


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging for applications embedding the pipeline.

    Library modules only create loggers; the host application decides whether
    to call this.
    """
    if level is None:
        from linguabridge.core.config import get_settings

        level = get_settings().LOG_LEVEL

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def redact_text(text: str, limit: int = MAX_LOGGED_TEXT) -> str:
    """
    Shorten chat text before it reaches a log line.

    Emails and long digit runs are masked, then the result is truncated to
    ``limit`` characters with the original length appended.
    """
    if not isinstance(text, str):
        return repr(text)

    # Email addresses
    text = re.sub(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", "[EMAIL]", text)

    # Phone numbers and other long numeric sequences
    text = re.sub(r"\d{6,}", "[NUMBER]", text)

    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... ({len(text)} chars)"
