from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from waterfall.errors import SpanDataError
from waterfall.trace.timestamps import Timestamp, to_epoch_ms


# Canonical field name -> accepted payload keys (wire format first)
FIELD_MAPPINGS: dict[str, list[str]] = {
    "span_id": ["spanId", "span_id"],
    "parent_span_id": ["parentSpanId", "parent_span_id"],
    "start_time": ["startTime", "start_time"],
    "end_time": ["endTime", "end_time"],
    "service_name": ["serviceName", "service_name"],
    "operation_name": ["operationName", "operation_name"],
    "status": ["status"],
    "kind": ["kind"],
    "trace_id": ["traceId", "trace_id"],
    "correlation_id": ["correlationId", "correlation_id"],
    "attributes": ["attributes"],
    "events": ["events"],
    "resource_attributes": ["resourceAttributes", "resource_attributes"],
}


def wire_keys(record: Any) -> Any:
    """Rename snake_case span keys to their camelCase wire names.

    Non-mapping records are returned unchanged. When both spellings are
    present the camelCase value wins, as in :meth:`Span.from_dict`.
    """
    if not isinstance(record, Mapping):
        return record
    result = dict(record)
    for wire, *aliases in FIELD_MAPPINGS.values():
        for alias in aliases:
            if alias in result:
                result.setdefault(wire, result.pop(alias))
    return result


def _pick(data: Mapping[str, Any], name: str) -> Any:
    for key in FIELD_MAPPINGS[name]:
        if key in data:
            return data[key]
    return None


def _string_map(value: Any, name: str) -> dict[str, Optional[str]]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SpanDataError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return {str(k): (None if v is None else str(v)) for k, v in value.items()}


@dataclass(frozen=True)
class Span:
    """One timed operation within a trace, as delivered by the trace API."""

    span_id: str
    parent_span_id: Optional[str]

    # Timing (ISO strings, datetimes, or epoch milliseconds)
    start_time: Timestamp
    end_time: Timestamp

    # Display
    service_name: str = ""
    operation_name: str = ""
    status: str = ""
    kind: Optional[str] = None

    attributes: dict[str, Optional[str]] = field(default_factory=dict)

    # Correlation
    trace_id: Optional[str] = None
    correlation_id: Optional[str] = None

    events: dict[str, Optional[str]] = field(default_factory=dict)
    resource_attributes: dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def start_ms(self) -> float:
        return to_epoch_ms(self.start_time)

    @property
    def end_ms(self) -> float:
        return to_epoch_ms(self.end_time)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Span:
        """Build a Span from a camelCase (or snake_case) payload record.

        Raises:
            SpanDataError: If the id or timestamps are missing or unparseable.
        """
        if not isinstance(data, Mapping):
            raise SpanDataError(f"Span record must be an object, got {type(data).__name__}")

        span_id = _pick(data, "span_id")
        if span_id is None or span_id == "":
            raise SpanDataError("Span record has no spanId")
        span_id = str(span_id)

        timing: dict[str, Timestamp] = {}
        for name in ("start_time", "end_time"):
            value = _pick(data, name)
            if value is None:
                raise SpanDataError(f"Span {span_id} has no {FIELD_MAPPINGS[name][0]}")
            try:
                to_epoch_ms(value)
            except ValueError as e:
                raise SpanDataError(f"Span {span_id}: {e}") from e
            timing[name] = value

        parent = _pick(data, "parent_span_id")
        kind = _pick(data, "kind")

        return cls(
            span_id=span_id,
            parent_span_id=None if parent is None or parent == "" else str(parent),
            start_time=timing["start_time"],
            end_time=timing["end_time"],
            service_name=str(_pick(data, "service_name") or ""),
            operation_name=str(_pick(data, "operation_name") or ""),
            status=str(_pick(data, "status") or ""),
            kind=str(kind) if kind else None,
            attributes=_string_map(_pick(data, "attributes"), "attributes"),
            trace_id=_pick(data, "trace_id"),
            correlation_id=_pick(data, "correlation_id"),
            events=_string_map(_pick(data, "events"), "events"),
            resource_attributes=_string_map(
                _pick(data, "resource_attributes"), "resourceAttributes"
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            "traceId": self.trace_id,
            "spanId": self.span_id,
            "parentSpanId": self.parent_span_id,
            "serviceName": self.service_name,
            "operationName": self.operation_name,
            "startTime": _wire_timestamp(self.start_time),
            "endTime": _wire_timestamp(self.end_time),
            "status": self.status,
            "kind": self.kind,
            "correlationId": self.correlation_id,
            "attributes": dict(self.attributes),
            "events": dict(self.events),
            "resourceAttributes": dict(self.resource_attributes),
        }


def _wire_timestamp(value: Timestamp) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class PositionedSpan:
    """A span with computed waterfall positioning."""

    span: Span
    depth: int
    left: float
    width: float
    duration_ms: float

    @property
    def span_id(self) -> str:
        return self.span.span_id

    @property
    def parent_span_id(self) -> Optional[str]:
        return self.span.parent_span_id

    @property
    def start_ms(self) -> float:
        return self.span.start_ms

    @property
    def end_ms(self) -> float:
        return self.span.end_ms

    @property
    def service_name(self) -> str:
        return self.span.service_name

    @property
    def operation_name(self) -> str:
        return self.span.operation_name

    @property
    def status(self) -> str:
        return self.span.status

    def to_dict(self) -> dict[str, Any]:
        """Wire shape of the span plus its layout fields."""
        result = self.span.to_dict()
        result.update({
            "depth": self.depth,
            "left": self.left,
            "width": self.width,
            "durationMs": self.duration_ms,
        })
        return result
