"""
Logging setup for the validation API.

Every record is flattened to one line so request logs stay greppable even
when a message embeds a multi-line graph payload or traceback text.
"""
import json
import logging
import re
from typing import Any, Iterable, Optional

_WHITESPACE = re.compile(r"\s+")
_TRUNCATED = " …(truncated)"

# Libraries that log every HTTP exchange at INFO
NOISY_LOGGERS = ("urllib3", "werkzeug", "requests", "flask_cors")


def _clip(text: str, limit: Optional[int]) -> str:
    if limit and len(text) > limit:
        return text[:limit] + _TRUNCATED
    return text


class OneLineFormatter(logging.Formatter):
    """Collapses whitespace in the rendered record and caps its length."""

    def __init__(self, fmt=None, datefmt=None, max_len: Optional[int] = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.max_len = max_len

    def format(self, record: logging.LogRecord) -> str:
        return _clip(_WHITESPACE.sub(" ", super().format(record)).strip(), self.max_len)


def compact_json(data: Any, limit: Optional[int] = None) -> str:
    """Serialize a request or response body for a log line, clipped to ``limit``."""
    try:
        text = json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        text = str(data)
    return _clip(text, limit)


def setup_logging(
    level: Optional[str] = None,
    max_len: Optional[int] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure the root logger once.

    Args:
        level: Level name; defaults to ``config.LOG_LEVEL``
        max_len: Maximum rendered line length; defaults to ``config.LOG_MAX_LEN``
        quiet: Loggers held at WARNING unless the root level is stricter
    """
    import config

    resolved = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)
    if max_len is None:
        max_len = config.LOG_MAX_LEN

    root = logging.getLogger()
    root.setLevel(resolved)
    # Re-running (e.g. Flask reloader) only adjusts the level
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(OneLineFormatter(
            fmt="%(asctime)s %(levelname)s [%(name)s] - %(message)s",
            datefmt="%H:%M:%S",
            max_len=max_len or None,
        ))
        root.addHandler(handler)

    for name in quiet:
        logging.getLogger(name).setLevel(max(logging.WARNING, resolved))
