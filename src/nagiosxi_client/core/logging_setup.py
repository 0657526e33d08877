"""
Central logging for the Nagios XI client.

- Console handler on stderr (WARNING by default)
- Optional timed rotated file handler: DEBUG (logs/app.log, daily rotation)
- Secret redaction: masks apikey/tokens/passwords in both msg and % args
- UTC timestamps in ISO-8601

Library modules only call `logging.getLogger(__name__)`; handlers are
attached here, by the command line entry point or by the embedding
application.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import re
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional


class MaskSecretsFilter(logging.Filter):
    """
    Redact common secrets (API keys in URLs, bearer tokens, passwords) from log records.
    """

    _patterns = [
        re.compile(r"(Authorization:\s*Bearer\s+)([A-Za-z0-9._-]+)", re.IGNORECASE),
        re.compile(r"(api[_-]?key\s*[=:]\s*)([^&\s,'\"]+)", re.IGNORECASE),
        re.compile(r"(password\s*[=:]\s*)([^,\s]+)", re.IGNORECASE),
        re.compile(r"(\btoken\s*[=:]\s*)([A-Za-z0-9._-]+)", re.IGNORECASE),
    ]

    @staticmethod
    def _mask(text: str) -> str:
        masked = text
        for pat in MaskSecretsFilter._patterns:
            masked = pat.sub(r"\1***REDACTED***", masked)
        return masked

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._mask(a) if isinstance(a, str) else a for a in record.args
                )
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)
        return True


class ContextDefaultsFilter(logging.Filter):
    """Give records from plain loggers the context fields used by the format."""

    _fields = ("run_id", "action", "object")

    def filter(self, record: logging.LogRecord) -> bool:
        for name in self._fields:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "run=%(run_id)s action=%(action)s object=%(object)s | "
    "%(message)s"
)


def _utc_formatter(fmt: str) -> logging.Formatter:
    f = logging.Formatter(fmt=fmt, datefmt="%Y-%m-%dT%H:%M:%SZ")
    f.converter = time.gmtime  # type: ignore[assignment]
    return f


def _level(name: str, default: int) -> int:
    return getattr(logging, str(name).upper(), default)


def _ensure_single_console_handler(
    base_logger: logging.Logger,
    *,
    console_level: str,
    formatter: logging.Formatter,
    filters: list,
) -> None:
    """
    Make sure there is exactly ONE StreamHandler bound to sys.stderr
    (pytest may close/replace stdio between tests; also avoid duplicates).
    """
    for h in list(base_logger.handlers):
        if type(h) is logging.StreamHandler:
            base_logger.removeHandler(h)
            h.close()

    sh = logging.StreamHandler(stream=sys.stderr)
    sh.setLevel(_level(console_level, logging.WARNING))
    sh.setFormatter(formatter)
    for f in filters:
        sh.addFilter(f)
    base_logger.addHandler(sh)


def _ensure_app_file_handler(
    base_logger: logging.Logger,
    *,
    base_dir: str,
    file_level: str,
    formatter: logging.Formatter,
    filters: list,
) -> None:
    """
    Ensure a single TimedRotatingFileHandler points to <base_dir>/app.log.
    A handler left over from a previous call with another path is replaced.
    """
    os.makedirs(base_dir, exist_ok=True)
    desired = os.path.abspath(os.path.join(base_dir, "app.log"))
    Path(desired).touch(exist_ok=True)

    for h in list(base_logger.handlers):
        if isinstance(h, logging.handlers.TimedRotatingFileHandler):
            if os.path.abspath(getattr(h, "baseFilename", "")) != desired:
                base_logger.removeHandler(h)
                h.close()

    if not any(
        isinstance(h, logging.handlers.TimedRotatingFileHandler)
        and os.path.abspath(getattr(h, "baseFilename", "")) == desired
        for h in base_logger.handlers
    ):
        rh = logging.handlers.TimedRotatingFileHandler(
            desired,
            when="midnight",
            backupCount=14,
            encoding="utf-8",
            utc=True,
        )
        rh.setLevel(_level(file_level, logging.DEBUG))
        rh.setFormatter(formatter)
        for f in filters:
            rh.addFilter(f)
        base_logger.addHandler(rh)


def build_logger(
    *,
    name: str = "nagiosxi_client",
    run_id: str,
    action: str,
    base_dir: str = "logs",
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    to_file: bool = False,
    extra: Optional[Dict[str, Any]] = None,
) -> logging.LoggerAdapter:
    """
    Configure the `<name>` logger and return an adapter carrying run context.

    Records from the library modules (`<name>.core.*`) propagate to the same
    handlers, so request lines show up in the log file at DEBUG.
    """
    filters = [ContextDefaultsFilter(), MaskSecretsFilter()]
    formatter = _utc_formatter(FORMAT)

    base = logging.getLogger(name)
    base.setLevel(logging.DEBUG)
    base.propagate = False

    _ensure_single_console_handler(
        base, console_level=console_level, formatter=formatter, filters=filters,
    )
    if to_file:
        _ensure_app_file_handler(
            base, base_dir=base_dir, file_level=file_level, formatter=formatter, filters=filters,
        )

    adapter = logging.LoggerAdapter(
        logging.getLogger(f"{name}.cli"),
        {
            "run_id": run_id,
            "action": action,
            "object": (extra or {}).get("object", "-"),
        },
    )
    adapter.debug("Logger initialised")
    return adapter
