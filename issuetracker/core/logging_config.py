"""
Logging setup.
Configures the root logger once at startup with a text or JSON formatter.
"""
from __future__ import annotations

import json
import logging
import sys

from issuetracker.core.config import settings

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Attach a single stdout handler to the root logger. Safe to call twice."""
    root = logging.getLogger()
    if any(getattr(h, "_issuetracker", False) for h in root.handlers):
        return

    level_name = (level or settings.LOG_LEVEL).upper()
    use_json = settings.LOG_JSON if json_output is None else json_output

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if use_json else logging.Formatter(TEXT_FORMAT, DATE_FORMAT))
    handler._issuetracker = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))
