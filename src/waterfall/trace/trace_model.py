"""Trace model and ingestion utilities."""
from __future__ import annotations

import errno
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from waterfall.errors import SpanDataError, TracePayloadError
from waterfall.trace.span_model import Span


@dataclass(frozen=True)
class TraceSummary:
    """Server-side summary of a trace.

    ``duration_ms`` is whatever the backend reported; it may disagree with the
    duration derived from the spans.
    """

    trace_id: str
    service_name: str = ""
    operation: str = ""
    start_time_utc: Optional[str] = None
    end_time_utc: Optional[str] = None
    duration_ms: float = 0.0
    status: str = ""
    span_count: int = 0
    correlation_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TraceSummary:
        """Create a TraceSummary from a camelCase payload."""
        try:
            duration = float(data.get("durationMs") or 0.0)
            span_count = int(data.get("spanCount") or 0)
        except (TypeError, ValueError) as e:
            raise TracePayloadError(f"Invalid trace summary: {e}") from e
        return cls(
            trace_id=str(data.get("traceId") or ""),
            service_name=data.get("serviceName") or "",
            operation=data.get("operation") or "",
            start_time_utc=data.get("startTimeUtc"),
            end_time_utc=data.get("endTimeUtc"),
            duration_ms=duration,
            status=data.get("status") or "",
            span_count=span_count,
            correlation_id=data.get("correlationId"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            "traceId": self.trace_id,
            "serviceName": self.service_name,
            "operation": self.operation,
            "startTimeUtc": self.start_time_utc,
            "endTimeUtc": self.end_time_utc,
            "durationMs": self.duration_ms,
            "status": self.status,
            "spanCount": self.span_count,
            "correlationId": self.correlation_id,
        }


@dataclass(frozen=True)
class Trace:
    """All spans of one trace, with the summary when the payload had one."""

    spans: list[Span] = field(default_factory=list)
    summary: Optional[TraceSummary] = None

    @classmethod
    def from_dict(cls, payload: Any) -> Trace:
        """Create a Trace from a trace-detail payload or a bare span list.

        Raises:
            TracePayloadError: If the payload shape is wrong.
            SpanDataError: If a span record is unusable.
        """
        if isinstance(payload, list):
            return cls(spans=_parse_spans(payload))
        if not isinstance(payload, dict):
            raise TracePayloadError(
                f"Expected an object with 'spans' or a list of spans, got {type(payload).__name__}"
            )
        raw_spans = payload.get("spans")
        if raw_spans is None:
            raw_spans = []
        if not isinstance(raw_spans, list):
            raise TracePayloadError("'spans' must be a list")

        summary_data = payload.get("summary")
        summary = None
        if summary_data is not None:
            if not isinstance(summary_data, dict):
                raise TracePayloadError("'summary' must be an object")
            summary = TraceSummary.from_dict(summary_data)
        return cls(spans=_parse_spans(raw_spans), summary=summary)

    def to_dict(self) -> dict[str, Any]:
        summary = self.summary or summarize_spans(self.spans)
        return {
            "summary": summary.to_dict(),
            "spans": [s.to_dict() for s in self.spans],
        }


def _parse_spans(records: list[Any]) -> list[Span]:
    spans: list[Span] = []
    for i, record in enumerate(records):
        try:
            spans.append(Span.from_dict(record))
        except SpanDataError as e:
            raise SpanDataError(f"spans[{i}]: {e}") from e
    return spans


def trace_bounds(spans: Sequence[Span]) -> Optional[tuple[float, float]]:
    """Return (earliest start, latest end) in epoch ms, or None if empty."""
    if not spans:
        return None
    start = min(span.start_ms for span in spans)
    end = max(span.end_ms for span in spans)
    return start, end


def _iso_utc(epoch_ms: float) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()


def summarize_spans(spans: Sequence[Span], trace_id: Optional[str] = None) -> TraceSummary:
    """Synthesize a summary for a payload that has none.

    The root is the earliest span whose parent is absent from the set.
    """
    bounds = trace_bounds(spans)
    if bounds is None:
        return TraceSummary(trace_id=trace_id or "")

    known = {s.span_id for s in spans}
    roots = [s for s in spans if not s.parent_span_id or s.parent_span_id not in known]
    candidates = roots or list(spans)
    root = min(candidates, key=lambda s: s.start_ms)

    has_error = any(s.status.lower() == "error" for s in spans)
    start, end = bounds
    return TraceSummary(
        trace_id=trace_id or root.trace_id or "",
        service_name=root.service_name,
        operation=root.operation_name,
        start_time_utc=_iso_utc(start),
        end_time_utc=_iso_utc(end),
        duration_ms=end - start,
        status="Error" if has_error else "Ok",
        span_count=len(spans),
        correlation_id=root.correlation_id,
    )


def read_trace_payload(path: Path) -> Any:
    """Read the raw payload of a trace file (.json, .yaml/.yml, or .jsonl).

    Raises:
        FileNotFoundError: If the file does not exist.
        TracePayloadError: If the content cannot be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(errno.ENOENT, "Trace file not found", str(path))

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise TracePayloadError(f"{path}: not UTF-8 text: {e}") from e
    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(text)
        if suffix == ".jsonl":
            records = []
            for line_no, line in enumerate(text.splitlines(), start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError as e:
                    raise TracePayloadError(f"{path}:{line_no}: invalid JSON: {e}") from e
            return records
        return json.loads(text)
    except yaml.YAMLError as e:
        raise TracePayloadError(f"{path}: invalid YAML: {e}") from e
    except json.JSONDecodeError as e:
        raise TracePayloadError(f"{path}: invalid JSON: {e}") from e


def load_trace(path: str | Path) -> Trace:
    """Load a trace from a JSON, YAML, or JSONL file."""
    return Trace.from_dict(read_trace_payload(Path(path)))
