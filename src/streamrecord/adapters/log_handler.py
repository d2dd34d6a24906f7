"""Logging handler that turns log calls into runtime records.

Every log call becomes one runtime_* record. Records at ERROR and above
use runtime_error and always carry a stack: the exception traceback when
the call has exception info, otherwise the record's stack_info or the
stack of the logging call. Lower levels use runtime_version.

Custom `extra=` attributes land in the open attribute bag; identifying
extras (trace_id, span_id, ...) become the record context. Context and
data bound with streamrecord.context.bind_context fill in whatever the
call's extras leave out.

The handler only builds, validates and encodes. Writing the line is the
sink's job, a plain callable taking the JSON line.
"""

from __future__ import annotations

import logging
import sys
import traceback
from typing import Any, Callable, Optional

from streamrecord.context import current_data
from streamrecord.models.streams import CONTEXT_FIELD_NAMES, StreamKind
from streamrecord.pipeline import RecordPipeline

# Attributes every LogRecord has; anything else came from extra=.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

SEVERITY_UNDEFINED = "undefined"
_SEVERITIES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def severity_for_level(levelno: int) -> str:
    """Map a logging level to a record severity."""
    return _SEVERITIES.get(levelno, SEVERITY_UNDEFINED)


def runtime_payload(
    log_record: logging.LogRecord,
) -> tuple[StreamKind, dict[str, str], dict[str, Any]]:
    """Extract (stream, context, payload) from a log record."""
    context: dict[str, str] = {}
    attributes: dict[str, Any] = dict(current_data())
    for key, value in vars(log_record).items():
        if key in _STANDARD_ATTRS or key.startswith("_"):
            continue
        if key in CONTEXT_FIELD_NAMES and isinstance(value, str):
            context[key] = value
        else:
            attributes[key] = value

    payload: dict[str, Any] = {
        "severity": severity_for_level(log_record.levelno),
        "message": log_record.getMessage(),
    }
    if attributes:
        payload["attributes"] = attributes

    exc_info = log_record.exc_info
    if exc_info and exc_info[1] is not None:
        exc = exc_info[1]
        payload["cause"] = str(exc) or type(exc).__name__
        payload["type"] = type(exc).__name__
        payload["stack"] = "".join(traceback.format_exception(*exc_info))
        i18n_key = getattr(exc, "i18n_key", None)
        if isinstance(i18n_key, str):
            payload["i18n_key"] = i18n_key
        return StreamKind.RUNTIME_ERROR, context, payload

    if log_record.levelno >= logging.ERROR:
        payload["cause"] = payload["message"]
        payload["stack"] = log_record.stack_info or "".join(traceback.format_stack())
        return StreamKind.RUNTIME_ERROR, context, payload

    return StreamKind.RUNTIME_VERSION, context, payload


def _write_stderr(line: str) -> None:
    sys.stderr.write(line + "\n")


class RecordLogHandler(logging.Handler):
    """logging.Handler emitting one encoded runtime record per log call.

    Any failure while building or writing the record (a rejected record,
    a broken format string, a failing sink) is routed through
    Handler.handleError so a bad log call never raises into application
    code.
    """

    def __init__(
        self,
        pipeline: RecordPipeline,
        sink: Optional[Callable[[str], None]] = None,
        level: int = logging.NOTSET,
    ):
        super().__init__(level)
        self.pipeline = pipeline
        self.sink = sink or _write_stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream, context, payload = runtime_payload(record)
            line = self.pipeline.emit_json(stream, context, payload)
            self.sink(line)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)
