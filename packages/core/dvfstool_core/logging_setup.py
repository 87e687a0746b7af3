"""JSON-lines file logging for dvfstool runs, plus crash capture."""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import config_root


_LOGGER_NAME = "dvfstool"
_EXTRA_KEYS = ("event", "crash_id", "path", "rows", "overruns")


def log_dir() -> Path:
    path = config_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    """One JSON object per record; sampling events carry rows/overruns."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update({key: getattr(record, key) for key in _EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(keep_files: int = 7, verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir() / "dvfstool.log"),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    # stdout carries JSON payloads; only problems go to the terminal.
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    logger.addHandler(console)
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def _log_crash(kind: str, exc_info) -> None:
    crash_id = str(uuid.uuid4())
    get_logger().critical(f"{kind} crash_id={crash_id}", exc_info=exc_info, extra={"event": kind, "crash_id": crash_id})


def install_crash_hooks() -> None:
    sys.excepthook = lambda *exc_info: _log_crash("uncaught_exception", exc_info)
    threading.excepthook = lambda args: _log_crash(
        "thread_exception", (args.exc_type, args.exc_value, args.exc_traceback)
    )
    faulthandler.enable(file=(log_dir() / "fault.log").open("a", encoding="utf-8"), all_threads=True)
