"""Log formatters and the SUCCESS level used by the import pipeline."""
import json
import logging
from datetime import datetime, timezone

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# Console tags printed by the pipeline formatter.
LEVEL_TAGS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUCCESS: "SUCCESS",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}


def _iso_timestamp(record: logging.LogRecord) -> str:
    moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PipelineFormatter(logging.Formatter):
    """``2025-03-04T10:12:00.000Z [WARN] message`` lines for batch scripts."""

    def format(self, record: logging.LogRecord) -> str:
        tag = LEVEL_TAGS.get(record.levelno, record.levelname)
        line = f"{_iso_timestamp(record)} [{tag}] {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for the rotating file handler."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _iso_timestamp(record),
            "level": LEVEL_TAGS.get(record.levelno, record.levelname),
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
