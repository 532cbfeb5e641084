"""Log formatters that render the structured ``extra`` fields.

Services log with ``logger.info("...", extra={"event_id": ...})``. The
standard formatter drops those attributes; these formatters keep them.
Selected in ``config.settings.LOGGING`` by ``LOG_FORMAT`` (text or json).
"""

import json
import logging
from datetime import datetime, timezone

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_KEYS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_KEYS and not key.startswith("_")
    }


class KeyValueFormatter(logging.Formatter):
    """Standard line format followed by sorted ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = extra_fields(record)
        if not fields:
            return line
        pairs = " ".join(f"{key}={fields[key]}" for key in sorted(fields))
        head, newline, rest = line.partition("\n")
        return f"{head} {pairs}{newline}{rest}"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extra fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(extra_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)
