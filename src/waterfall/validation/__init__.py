"""Schema validation for trace payload files."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import jsonschema

from waterfall.errors import TracePayloadError
from waterfall.trace.span_model import wire_keys
from waterfall.trace.timestamps import is_timestamp
from waterfall.trace.trace_model import read_trace_payload

TRACE_SCHEMA = "trace.schema.json"


@dataclass
class ValidationError:
    """A single validation error."""

    path: str
    message: str
    line_number: int | None = None  # For JSONL files


@dataclass
class ValidationResult:
    """Result of validating a payload."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    file_path: str = ""

    def summary(self) -> str:
        """Return a human-readable summary."""
        name = self.file_path or "<payload>"
        if self.valid:
            return f"✓ {name}: Valid"
        lines = [f"✗ {name}: {len(self.errors)} error(s)"]
        for err in self.errors:
            if err.line_number is not None:
                lines.append(f"  Line {err.line_number}: {err.path} - {err.message}")
            else:
                lines.append(f"  {err.path} - {err.message}")
        return "\n".join(lines)


def _get_schema_dir() -> Path:
    """Get the directory containing schemas."""
    return Path(__file__).parent.parent / "schemas"


def _load_schema(schema_name: str) -> dict[str, Any]:
    """Load a JSON schema by name."""
    schema_path = _get_schema_dir() / schema_name
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def _format_path(path: list[Any]) -> str:
    """Format a jsonschema path as a dotted string."""
    if not path:
        return "$"
    parts = ["$"]
    for p in path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(f".{p}")
    return "".join(parts)


def _plain_json(data: Any) -> Any:
    """YAML loads unquoted timestamps as datetimes; check them as ISO strings."""
    if isinstance(data, (datetime, date)):
        return data.isoformat()
    if isinstance(data, dict):
        return {k: _plain_json(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_plain_json(v) for v in data]
    return data


def _normalize_span_keys(data: Any) -> Any:
    """Span records may use snake_case keys; the schema names the camelCase ones."""
    if isinstance(data, list):
        return [wire_keys(record) for record in data]
    if isinstance(data, dict) and isinstance(data.get("spans"), list):
        return {**data, "spans": [wire_keys(record) for record in data["spans"]]}
    return data


def _span_records(data: Any) -> tuple[list[Any], list[Any]]:
    """Return (span records, path prefix) for a payload of either shape."""
    if isinstance(data, list):
        return data, []
    if isinstance(data, dict) and isinstance(data.get("spans"), list):
        return data["spans"], ["spans"]
    return [], []


def _check_timestamps(data: Any) -> list[ValidationError]:
    """Timestamps must parse; the schema only checks their JSON type.

    Numbers must be finite; JSON parsers accept NaN and Infinity.
    """
    errors: list[ValidationError] = []
    records, prefix = _span_records(data)
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            continue
        for key in ("startTime", "endTime"):
            value = record.get(key)
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                continue
            if not is_timestamp(value):
                errors.append(ValidationError(
                    path=_format_path(prefix + [i, key]),
                    message=f"{value!r} is not an ISO-8601 timestamp or finite epoch milliseconds",
                ))
    return errors


def validate_trace_payload(data: Any, file_path: str = "") -> ValidationResult:
    """Validate an in-memory trace payload against trace.schema.json.

    Args:
        data: A trace-detail object ``{summary, spans}`` or a list of spans.
        file_path: Label used in the summary.

    Returns:
        ValidationResult with any errors found.
    """
    result = ValidationResult(valid=True, file_path=file_path)
    data = _normalize_span_keys(_plain_json(data))

    try:
        schema = _load_schema(TRACE_SCHEMA)
    except FileNotFoundError as e:
        result.valid = False
        result.errors.append(ValidationError(path="$", message=str(e)))
        return result

    if isinstance(data, list):
        schema = {"$ref": "#/$defs/spanList", "$defs": schema["$defs"]}

    validator = jsonschema.Draft202012Validator(schema)
    for err in validator.iter_errors(data):
        result.errors.append(ValidationError(
            path=_format_path(list(err.absolute_path)),
            message=err.message,
        ))
    result.errors.extend(_check_timestamps(data))

    records, _ = _span_records(data)
    if not records and not result.errors:
        result.errors.append(ValidationError(path="$", message="Trace has no spans"))

    result.valid = not result.errors
    return result


def validate_trace_file(trace_path: str | Path) -> ValidationResult:
    """Validate a trace file (.json, .yaml/.yml or .jsonl).

    Args:
        trace_path: Path to the trace file.

    Returns:
        ValidationResult with any errors found.
    """
    trace_path = Path(trace_path)
    result = ValidationResult(valid=True, file_path=str(trace_path))

    if not trace_path.exists():
        result.valid = False
        result.errors.append(ValidationError(
            path="$",
            message=f"File not found: {trace_path}"
        ))
        return result

    try:
        data = read_trace_payload(trace_path)
    except TracePayloadError as e:
        result.valid = False
        result.errors.append(ValidationError(path="$", message=str(e)))
        return result

    checked = validate_trace_payload(data, file_path=str(trace_path))
    if trace_path.suffix.lower() == ".jsonl":
        # Report JSONL problems against the line the span came from
        for err in checked.errors:
            if err.path.startswith("$["):
                index = int(err.path[2:err.path.index("]")])
                err.line_number = _jsonl_line_number(trace_path, index)
    return checked


def _jsonl_line_number(path: Path, index: int) -> int | None:
    seen = -1
    for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if line.strip():
            seen += 1
            if seen == index:
                return line_no
    return None
