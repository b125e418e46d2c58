"""Tracing for browse events in the StudyShelf TUI.

Each user-visible event (a batch load, a criteria change, a folder toggle,
a filter reset) runs inside one OpenTelemetry span named ``tui.<event>``.
Attributes are recorded under the ``browse.`` prefix, and the event is
logged when its span closes. ``configure_file_logging`` writes every
``studyshelf.tui.*`` record as a JSON line stamped with the active trace.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import Status, StatusCode

from studyshelf.browse.filters import FilterCriteria

LOGGER_NAME = "studyshelf.tui"
ATTRIBUTE_PREFIX = "browse."

logger = logging.getLogger(LOGGER_NAME)

AttributeValue = bool | int | float | str


def _attribute_value(value: object) -> AttributeValue:
    """OTel only accepts primitives; criteria are recorded by their summary."""
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, FilterCriteria):
        return value.describe()
    return str(value)


class BrowseEvent:
    """An open browse span. Attributes recorded here also go into the log line."""

    def __init__(self, name: str, span: trace.Span) -> None:
        self.name = name
        self.attributes: dict[str, AttributeValue] = {}
        self._span = span

    def record(self, **attributes: object) -> None:
        for key, value in attributes.items():
            converted = _attribute_value(value)
            self.attributes[key] = converted
            self._span.set_attribute(ATTRIBUTE_PREFIX + key, converted)

    def fail(self, exc: BaseException) -> None:
        self._span.record_exception(exc)
        self._span.set_status(Status(StatusCode.ERROR, str(exc)))
        self.attributes["error"] = repr(exc)

    def summary(self) -> str:
        parts = [f"tui.{self.name}"]
        parts += [f"{key}={value!r}" for key, value in self.attributes.items()]
        return " ".join(parts)


class Telemetry:
    """Opens one span per browse event.

    Usage::

        tel = Telemetry()
        with tel.span("folder_toggled", key="B.Tech/CSE") as event:
            event.record(expanded=session.on_toggle("B.Tech/CSE"))
    """

    def __init__(self, provider: TracerProvider | None = None) -> None:
        self._provider = provider if provider is not None else TracerProvider()
        self._tracer = self._provider.get_tracer(LOGGER_NAME)

    @contextmanager
    def span(self, name: str, **attributes: object) -> Iterator[BrowseEvent]:
        """Run a browse event in span ``tui.<name>`` with initial attributes."""
        with self._tracer.start_as_current_span(f"tui.{name}") as otel_span:
            event = BrowseEvent(name, otel_span)
            event.record(**attributes)
            yield event
            level = logging.WARNING if "error" in event.attributes else logging.INFO
            logger.log(level, "%s", event.summary())

    @classmethod
    def in_memory(cls) -> tuple[Telemetry, InMemorySpanExporter]:
        """Telemetry whose finished spans can be read back from the exporter."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return cls(provider), exporter


# ---------------------------------------------------------------------------
# File logging
# ---------------------------------------------------------------------------


class _TraceContextFilter(logging.Filter):
    """Stamp the ids of the span that is current when a record is emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        record.trace_id = format(ctx.trace_id, "032x") if ctx.is_valid else None
        record.span_id = format(ctx.span_id, "016x") if ctx.is_valid else None
        return True


class _JsonLinesFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        trace_id = getattr(record, "trace_id", None)
        if trace_id:
            entry["trace_id"] = trace_id
            entry["span_id"] = record.span_id
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_file_logging(log_dir: str | Path = "logs") -> Path:
    """Append ``studyshelf.tui`` records to ``{log_dir}/tui-YYYYMMDD.log``.

    Calling it again for the same file adds no second handler.

    Returns:
        Path of the log file.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"tui-{datetime.now():%Y%m%d}.log"

    tui_logger = logging.getLogger(LOGGER_NAME)
    target = os.path.abspath(log_path)
    if any(getattr(h, "baseFilename", None) == target for h in tui_logger.handlers):
        return log_path

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.addFilter(_TraceContextFilter())
    handler.setFormatter(_JsonLinesFormatter())
    tui_logger.addHandler(handler)
    tui_logger.setLevel(logging.DEBUG)
    return log_path
