import json
import logging
import os
import sys

_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured debug output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(debug_format: str, with_name: bool) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    fmt = "[%(asctime)s] [%(levelname)s] "
    if with_name:
        fmt += "%(name)s "
    return logging.Formatter(fmt + "%(message)s", datefmt=_DATEFMT)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    default_level: str = "INFO",
) -> None:
    """
    Configure logging for command-line runs.

    Log records go to stderr so stdout stays clean for plan output; when
    a log file is given they are also appended there.

    Args:
        debug: If True, overrides LOG_LEVEL to DEBUG.
        log_file: Optional log file path (overrides LOG_FILE env var).
        debug_format: "text" (default) or "json" for structured output.
        default_level: Level used when LOG_LEVEL is unset, typically the
            ``logging.level`` value from the config file.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
        LOG_FILE: Log file path used when *log_file* is not given.
    """
    env_level = os.getenv("LOG_LEVEL", default_level).upper()

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, env_level, logging.INFO)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_make_formatter(debug_format, False))
    handlers.append(stderr_handler)

    final_log_file = log_file or os.getenv("LOG_FILE")
    if final_log_file:
        file_handler = logging.FileHandler(final_log_file, mode="a")
        file_handler.setFormatter(_make_formatter(debug_format, True))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
    )

    # imapclient logs every command at DEBUG; keep it quiet otherwise
    if log_level != logging.DEBUG:
        logging.getLogger("imapclient").setLevel(logging.WARNING)
