# refshelf/core/log_setup.py
# Console + rotating file logging for the "refshelf" logger tree.
# - Every record carries an item_id (default "-") so one format string fits all
# - item_logger(id) attaches the id to everything logged for one store operation

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

LOGGER_NAME = "refshelf"
LOGGER = logging.getLogger(LOGGER_NAME)


class EnsureContext(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "item_id"):
            record.item_id = "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "name": record.name,
            "item_id": getattr(record, "item_id", None),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def item_logger(item_id: str, name: str = LOGGER_NAME) -> logging.LoggerAdapter:
    """Attach item_id to every log record for one store operation."""
    return logging.LoggerAdapter(logging.getLogger(name), {"item_id": item_id})


def setup_logging(logs_dir: Optional[Path], level: str = "INFO", json_logs: bool = False,
                  console: bool = True) -> logging.Logger:
    """
    Console (human format) + file (TimedRotatingFileHandler, midnight, 14 backups).
    Re-running replaces previously installed handlers instead of stacking them.
    """
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level!r}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    if console:
        ch = logging.StreamHandler()
        ch.setLevel(numeric)
        ch.addFilter(EnsureContext())
        ch.setFormatter(logging.Formatter("%(levelname)s [%(item_id)s] %(message)s"))
        logger.addHandler(ch)

    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path = logs_dir / "refshelf.log"
        fh = logging.handlers.TimedRotatingFileHandler(
            log_path, when="midnight", backupCount=14, encoding="utf-8"
        )
        fh.setLevel(numeric)
        fh.addFilter(EnsureContext())
        if json_logs:
            fh.setFormatter(JsonFormatter())
        else:
            fh.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] [%(name)s:%(item_id)s] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S"
            ))
        logger.addHandler(fh)
        logger.debug(f"Log file: {log_path}")

    return logger
