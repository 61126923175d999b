"""Logging setup for installment-ledger.

Records carry ledger context (user, sale, account ids) under the ``extra``
attribute, passed as ``extra={"extra": {...}}`` or bound once with
:func:`get_logger`. :class:`JsonFormatter` lifts that context to the top
level of each JSON line.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, MutableMapping

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Faker logs locale loading at DEBUG
QUIET_LOGGERS = ("faker",)


def build_formatter(format_type: str) -> logging.Formatter:
    """Formatter for ``"json"`` or, for anything else, the pipe-separated format."""
    if format_type == "json":
        return JsonFormatter()
    return logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    log_file: str | Path | None = None,
) -> None:
    """Configure logging for installment-ledger.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Unknown names
        fall back to INFO.
    format_type : str
        Format type: "standard" or "json".
    log_file : str | Path | None
        Also write records to this file, creating its directory.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = build_formatter(format_type)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("installment_ledger").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ledger context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        context = getattr(record, "extra", None)
        if isinstance(context, Mapping):
            log_data.update(context)

        # Decimal amounts are written as strings
        return json.dumps(log_data, default=str, ensure_ascii=False)


class LedgerLogAdapter(logging.LoggerAdapter):
    """Adds bound ledger context to the ``extra`` of every record.

    Per-call context given as ``extra={"extra": {...}}`` wins over the
    bound values.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["extra"] = {**self.extra, **extra.get("extra", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, **context: Any) -> logging.Logger | LedgerLogAdapter:
    """Get a logger, bound to ``context`` when any is given.

    Parameters
    ----------
    name : str
        Logger name (usually __name__).
    **context : Any
        Ledger ids attached to every record, e.g. ``user_id``.

    Returns
    -------
    logging.Logger | LedgerLogAdapter
        Plain logger without context, adapter otherwise.
    """
    logger = logging.getLogger(name)
    if context:
        return LedgerLogAdapter(logger, context)
    return logger
