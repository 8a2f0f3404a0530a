"""Structured logging setup for the fit calculator."""

import json
import logging
import sys
from typing import Optional, TextIO


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        # Structured fields emitted by reconciliation, engine and batch driver
        for attr in [
            "stage",
            "bucket",
            "fit_type",
            "basis_system",
            "error_code",
            "line",
            "rows",
            "succeeded",
            "failed",
            "report",
            "source",
        ]:
            if hasattr(record, attr):
                data[attr] = getattr(record, attr)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    root = logging.getLogger()
    root.setLevel((level or "INFO").upper())
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers = [handler]
