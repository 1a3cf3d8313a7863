import json
import logging
import os
import sys

_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes passed through ``extra=`` by the sync modules
CONTEXT_FIELDS = ("operation", "record_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers and CI artefacts.

    Always carries ts, level, logger and msg. Per-operation records also
    carry the CONTEXT_FIELDS, and "exc" holds any formatted traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field))
            for field in CONTEXT_FIELDS
            if hasattr(record, field)
        )
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(log_format: str, with_name: bool) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    if with_name:
        return logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s %(message)s", datefmt=_DATEFMT
        )
    return logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s", datefmt=_DATEFMT)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    log_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure logging for the command-line tools.

    Diagnostics go to stderr so that reports printed on stdout stay
    clean; a log file, when given, receives the same records.

    Args:
        debug: If True, overrides LOG_LEVEL to DEBUG.
        log_file: Optional file that also receives log records.
        log_format: "text" (default) or "json".
        level: Level name used when LOG_LEVEL is not set.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO.
    """
    if debug:
        log_level = logging.DEBUG
    else:
        env_level = os.getenv("LOG_LEVEL", level or "INFO").upper()
        log_level = getattr(logging, env_level, logging.INFO)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_make_formatter(log_format, with_name=False))
    handlers: list[logging.Handler] = [stderr_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(_make_formatter(log_format, with_name=True))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers)

    # Keep transport chatter out of normal runs
    if log_level != logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("requests").setLevel(logging.WARNING)
