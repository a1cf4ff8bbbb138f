"""Turn correlation for log output.

Every inbound message gets a turn id of the form ``{contact}-{epoch_ms}``.
It lives in a ContextVar, so concurrent turns on one event loop keep
their own ids. The id reaches log lines in two ways:

- ``get_turn_logger`` puts a ``TurnIdFilter`` on a module logger, so its
  records carry ``turn_id`` even under handlers we did not configure
  (pytest's caplog, an embedding application).
- ``install_turn_filter`` puts the filter on a handler, so every record
  that handler formats with ``LOG_FORMAT`` has a ``turn_id``, including
  records from library loggers.

Background tasks copy the context at creation, so writes spawned during a
turn log under that turn's id.
"""

import logging
import time
from contextvars import ContextVar

NO_TURN = "-"

LOG_FORMAT = "%(asctime)s [%(name)s] [%(turn_id)s] %(levelname)s: %(message)s"

_turn_id: ContextVar[str] = ContextVar("turn_id", default=NO_TURN)


def start_turn(contact_id: str) -> str:
    """Open a new turn for ``contact_id`` and return its id."""
    turn_id = f"{contact_id}-{int(time.time() * 1000)}"
    _turn_id.set(turn_id)
    return turn_id


def set_turn_id(turn_id: str) -> None:
    _turn_id.set(turn_id)


def get_turn_id() -> str:
    return _turn_id.get()


class TurnIdFilter(logging.Filter):
    """Stamps the current turn id onto records that lack one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "turn_id"):
            record.turn_id = _turn_id.get()  # type: ignore[attr-defined]
        return True


def _has_turn_filter(filterer: logging.Filterer) -> bool:
    return any(isinstance(f, TurnIdFilter) for f in filterer.filters)


def install_turn_filter(handler: logging.Handler) -> None:
    """Make ``%(turn_id)s`` safe to use in ``handler``'s format."""
    if not _has_turn_filter(handler):
        handler.addFilter(TurnIdFilter())


def get_turn_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not _has_turn_filter(logger):
        logger.addFilter(TurnIdFilter())
    return logger
