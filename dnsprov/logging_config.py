from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

EVENT_LOGGER = "dnsprov.events"


class BracketLevelFormatter(logging.Formatter):
    """Formatter with bracketed lowercase level tags and UTC timestamps."""

    _TAGS = {
        logging.DEBUG: "[debug]",
        logging.INFO: "[info]",
        logging.WARNING: "[warn]",
        logging.ERROR: "[error]",
        logging.CRITICAL: "[crit]",
    }

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    def format(self, record):
        record.level_tag = self._TAGS.get(record.levelno, f"[lvl{record.levelno}]")
        return super().format(record)


def parse_level(name: str | None) -> int:
    return _LEVELS.get(str(name or "info").strip().lower(), logging.INFO)


def init_logging(level: str | None = "info", stream=None) -> None:
    """Configure the root logger with a single stream handler (stderr by default)."""
    formatter = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(parse_level(level))
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    logging.captureWarnings(True)

    if str(level or "info").strip().lower() not in _LEVELS:
        logging.getLogger(__name__).warning("Unknown log level %r, using info", level)


def log_event(level: str, message: str, container: str | None = None) -> None:
    """Log a convergence event, tagged with the container it concerns."""
    logger = logging.getLogger(EVENT_LOGGER)
    if container:
        message = f"[{container}] {message}"
    logger.log(parse_level(level), message)
