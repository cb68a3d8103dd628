"""Logging setup for the transcriber CLI.

Log records go to stderr so stdout stays reserved for the transcript. Two
formats are available: a terse human-readable line for interactive use and
a structured JSON line (severity, timestamp, message plus selected extra
fields) suitable for log aggregation.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Extra fields copied into JSON output when passed via the `extra` kwarg
EXTRA_FIELDS = (
    "job_name",
    "stage",
    "object_uri",
    "upload_id",
    "part_number",
    "attempt",
    "duration_seconds",
    "error",
    "metrics",
)


class StructuredJsonFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    SEVERITY_MAP: dict[int, str] = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            JSON string with severity, timestamp, logger, message and extra fields.
        """
        log_entry: dict[str, object] = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "severity": self.SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Configure the root logger with a single stderr handler.

    Replaces any handler previously installed by this function so repeated
    calls (e.g. in tests) do not duplicate output.

    Args:
        level: Root log level.
        json_format: Emit structured JSON instead of plain text.
        stream: Output stream (defaults to sys.stderr).

    Returns:
        The installed handler.
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_media_transcriber", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_format:
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S"))
    handler._media_transcriber = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(level)
    # SDK loggers stay at WARNING or above
    logging.getLogger("botocore").setLevel(max(level, logging.WARNING))
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return handler
