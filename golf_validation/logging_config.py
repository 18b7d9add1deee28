"""
Logging setup for the CLI and the API.

Console gets a short coloured line per record; logs/golf_validation.log gets
one JSON object per record, carrying any of EXTRA_FIELDS the caller passed
through `extra=`.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs")

EXTRA_FIELDS = ("tournament", "season", "metric", "course_type", "duration_ms", "error")

LEVEL_COLORS = {
    "DEBUG": "\033[90m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[41m\033[37m",
}
RESET = "\033[0m"


class JsonFormatter(logging.Formatter):
    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in EXTRA_FIELDS
                      if getattr(record, key, None) is not None})
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    def format(self, record):
        color = LEVEL_COLORS.get(record.levelname, "")
        stamp = datetime.now().strftime("%H:%M:%S")
        return f"{color}{stamp} [{record.name}] {record.levelname}: {record.getMessage()}{RESET if color else ''}"


def setup_logging(level: str = "INFO", log_file: str = None):
    """Install the console and JSON file handlers on the root logger. Call once per process."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ConsoleFormatter())
    console.setLevel(numeric_level)
    root.addHandler(console)

    log_file = log_file or os.path.join(LOG_DIR, "golf_validation.log")
    try:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        root.warning("Could not open log file %s: %s", log_file, e)
    else:
        file_handler.setFormatter(JsonFormatter())
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    # uvicorn logs every request at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
