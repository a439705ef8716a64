"""Logging configuration for the command-line entry points.

Diagnostics (missing feeds, exhausted reels, configuration errors) go to
the logging channel on stderr; G-code goes to stdout or a file.  The two
streams never mix.

Public API:
    setup_logging(log_level="INFO", log_file=None, json=False, context={...})
    push_context(board="main.pos")
    pop_context(keys=["board"])

Format examples:
    Human: 2026-10-19T13:45:12.345Z | WARNING  | app=pnp | No tape for 'R0805@10k'
    JSON: {"t":"2026-10-19T13:45:12.345Z","lvl":"WARNING","app":"pnp","msg":"..."}

Context uses contextvars.  Idempotent: repeated setup_logging() calls
replace handlers instead of duplicating them.
"""

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


_context_var = contextvars.ContextVar('logging_context', default={})

# Handlers installed by setup_logging, replaced on the next call
_installed: List[logging.Handler] = []


class ContextFormatter(logging.Formatter):
    """Formatter that appends contextual fields.

    Supports a human-readable format with optional colors and a JSON line
    format for machine ingestion.
    """

    def __init__(
        self,
        fmt_mode: str = "human",
        use_color: bool = True,
        tz: str = "UTC"
    ):
        super().__init__()
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

        self.colors = {
            'DEBUG': '\033[36m',
            'INFO': '\033[32m',
            'WARNING': '\033[33m',
            'ERROR': '\033[31m',
            'CRITICAL': '\033[35m',
            'RESET': '\033[0m'
        }

    def format(self, record: logging.LogRecord) -> str:
        context = _context_var.get({})

        if self.tz == "UTC":
            ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        else:
            ts = datetime.fromtimestamp(record.created)

        if self.fmt_mode == "json":
            return self._format_json(record, ts, context)
        return self._format_human(record, ts, context)

    def _format_json(
        self,
        record: logging.LogRecord,
        ts: datetime,
        context: dict
    ) -> str:
        log_dict = {
            't': ts.isoformat(),
            'lvl': record.levelname,
            'name': record.name,
            'pid': os.getpid(),
            'msg': record.getMessage()
        }
        log_dict.update(context)

        if record.exc_info:
            log_dict['exc'] = self.formatException(record.exc_info)

        return json.dumps(log_dict)

    def _format_human(
        self,
        record: logging.LogRecord,
        ts: datetime,
        context: dict
    ) -> str:
        ts_str = ts.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'

        level = record.levelname
        if self.use_color:
            level = f"{self.colors.get(level, '')}{level:8s}{self.colors['RESET']}"
        else:
            level = f"{level:8s}"

        parts = [ts_str, '|', level, '|']
        context_str = ' '.join(f"{k}={v}" for k, v in context.items())
        if context_str:
            parts.append(f"{context_str} |")
        parts.append(record.getMessage())

        line = ' '.join(parts)
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    tz: str = "UTC",
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Configure root logger (idempotent).

    Parameters
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
    log_file : str, optional
        Log file path; None for no file logging
    json : bool
        Use JSON line format on every handler, default False
    color : bool
        Use ANSI colors in console output, default True
    to_stderr : bool
        Log to stderr (console), default True
    tz : str
        Timezone for timestamps, "UTC" (default) or "local"
    context : dict, optional
        Initial contextual fields (e.g., {"app": "pnp"})

    Returns
    -------
    list[logging.Handler]
        Handlers attached to the root logger.
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    root.setLevel(getattr(logging, log_level.upper()))

    fmt_mode = "json" if json else "human"
    handlers: List[logging.Handler] = []

    if to_stderr:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ContextFormatter(fmt_mode, color, tz))
        handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(ContextFormatter(fmt_mode, use_color=False, tz=tz))
        handlers.append(file_handler)

    for handler in handlers:
        root.addHandler(handler)
    _installed.extend(handlers)

    if context:
        push_context(**context)

    logging.captureWarnings(True)
    return handlers


def push_context(**kwargs) -> None:
    """Add contextual fields to all subsequent log records.

    Examples
    --------
    >>> push_context(app="pnp")
    >>> push_context(board="main.pos")
    >>> logger.info("Started")  # → "... | app=pnp board=main.pos | Started"
    """
    current = _context_var.get({})
    _context_var.set({**current, **kwargs})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove contextual fields; all of them when *keys* is None."""
    if keys is None:
        _context_var.set({})
        return
    current = dict(_context_var.get({}))
    for key in keys:
        current.pop(key, None)
    _context_var.set(current)


def get_context() -> Dict[str, Any]:
    """Return a copy of the current contextual fields."""
    return dict(_context_var.get({}))
