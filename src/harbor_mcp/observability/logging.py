"""Structured logging for the Harbor MCP server, built on structlog.

Responsibilities:
- Route every log line to stderr; with the stdio transport stdout carries
  protocol messages and must stay clean
- Optionally mirror logs into a midnight-rotated ``server.log``
- Keep a JSON-lines audit trail of tool invocations

Usage:
    from harbor_mcp.observability.logging import get_logger

    logger = get_logger(__name__)
    logger.info("project_deleted", project="library")

Audit trail:
    from harbor_mcp.observability.logging import get_audit_logger

    audit = get_audit_logger()
    audit.record(tool="delete_tag", arguments={...}, success=True, duration_ms=42)
"""

import getpass
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from harbor_mcp.config.schema import LoggingConfig

SERVER_LOG_NAME = "server.log"
AUDIT_LOG_NAME = "tool-audit.log"
AUDIT_LOGGER_NAME = "harbor_mcp.audit"


class RetentionFileHandler(logging.handlers.TimedRotatingFileHandler):
    """Midnight-rotated file handler that prunes rotated files past retention."""

    def __init__(self, filename: str, max_days: int = 30, **kwargs):
        super().__init__(filename, when="midnight", interval=1, **kwargs)
        self.max_days = max_days

    def doRollover(self) -> None:
        super().doRollover()
        self._prune_rotated_files()

    def _prune_rotated_files(self) -> None:
        log_dir = os.path.dirname(self.baseFilename)
        prefix = os.path.basename(self.baseFilename) + "."
        cutoff = datetime.now(timezone.utc).timestamp() - self.max_days * 86400

        for entry in os.listdir(log_dir):
            if not entry.startswith(prefix):
                continue
            path = os.path.join(log_dir, entry)
            try:
                if os.path.getmtime(path) < cutoff:
                    os.remove(path)
            except OSError as e:
                logging.getLogger(__name__).warning("Could not prune log file %s: %s", path, e)


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the application name."""
    event_dict["app"] = "harbor-mcp"
    return event_dict


def _build_processors(json_logs: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def _attach_file_handler(root: logging.Logger, log_dir: Path, max_days: int, level: int) -> None:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RetentionFileHandler(
            str(log_dir / SERVER_LOG_NAME),
            max_days=max_days,
            encoding="utf-8",
        )
    except OSError as e:
        root.warning("File logging disabled, cannot write to %s: %s", log_dir, e)
        return
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_dir: Optional[Path] = None,
    max_days: int = 30,
    enable_file: bool = False,
) -> None:
    """Configure structlog and the stdlib root logger.

    May be called more than once; each call replaces the previous handlers.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render events as JSON instead of key=value console lines
        log_dir: Directory for ``server.log``
        max_days: Retention for rotated log files
        enable_file: Write to ``log_dir`` in addition to stderr
    """
    log_level = getattr(logging, str(level).upper())

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(stderr_handler)

    if enable_file and log_dir:
        _attach_file_handler(root, log_dir, max_days, log_level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    structlog.configure(
        processors=_build_processors(json_logs),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def configure_from_config(config: LoggingConfig) -> None:
    """Apply the ``[logging]`` section of the application config."""
    configure_logging(
        level=config.level.value,
        json_logs=config.json_logs,
        log_dir=config.log_dir if config.enable_file else None,
        max_days=config.max_days,
        enable_file=config.enable_file,
    )


class AuditLogger:
    """Appends one JSON object per tool call to a rotating audit file.

    Uses its own non-propagating stdlib logger so audit entries never reach
    stderr or ``server.log``.
    """

    def __init__(self, log_file: Path, max_days: int = 30):
        self.log_file = log_file
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        self._handler = RetentionFileHandler(str(log_file), max_days=max_days, encoding="utf-8")
        self._handler.setFormatter(logging.Formatter("%(message)s"))

        self._logger = logging.getLogger(f"{AUDIT_LOGGER_NAME}.{id(self)}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._logger.addHandler(self._handler)

    def record(
        self,
        tool: str,
        arguments: dict[str, Any],
        success: bool,
        duration_ms: Optional[int] = None,
        error: Optional[str] = None,
        user: Optional[str] = None,
    ) -> None:
        """Append an entry for one tool call.

        Args:
            tool: Tool name as requested by the client
            arguments: Arguments as received
            success: False when the call ended in a protocol error
            duration_ms: Wall time of the call
            error: Error message of a failed call
            user: Account running the server (defaults to the local user)
        """
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "tool": tool,
            "arguments": arguments,
            "success": success,
            "duration_ms": duration_ms,
            "error": error,
            "user": user or getpass.getuser(),
        }
        self._logger.info(json.dumps(entry, default=str))

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()


_audit_logger: Optional[AuditLogger] = None


def get_audit_logger(log_dir: Optional[Path] = None, max_days: int = 30) -> AuditLogger:
    """Return the process-wide audit logger, creating it on first use.

    Args:
        log_dir: Directory for ``tool-audit.log`` (default ``~/.harbor-mcp/logs``)
        max_days: Retention for rotated audit files
    """
    global _audit_logger

    if _audit_logger is None:
        if log_dir is None:
            log_dir = Path.home() / ".harbor-mcp" / "logs"
        _audit_logger = AuditLogger(log_dir / AUDIT_LOG_NAME, max_days)

    return _audit_logger
