"""Tests for trace payload schema validation."""
from __future__ import annotations

import json
from pathlib import Path

from waterfall.trace.trace_model import load_trace
from waterfall.validation import validate_trace_file, validate_trace_payload


class TestValidatePayload:

    def test_valid_detail_payload(self) -> None:
        result = validate_trace_payload({
            "summary": {"traceId": "t1"},
            "spans": [{"spanId": "a", "startTime": "2024-05-01T12:00:00Z", "endTime": 10}],
        })
        assert result.valid, result.summary()

    def test_span_list_payload(self) -> None:
        result = validate_trace_payload([
            {"spanId": "a", "startTime": 0, "endTime": 10},
            {"spanId": "", "startTime": 0, "endTime": 10},
        ])
        assert not result.valid
        assert [e.path for e in result.errors] == ["$[1].spanId"]

    def test_missing_spans(self) -> None:
        result = validate_trace_payload({"summary": {"traceId": "t1"}})
        assert not result.valid
        assert result.errors[0].path == "$"
        assert "spans" in result.errors[0].message

    def test_empty_span_list(self) -> None:
        result = validate_trace_payload({"spans": []})
        assert not result.valid
        assert result.errors[0].message == "Trace has no spans"

    def test_wrong_attribute_type(self) -> None:
        result = validate_trace_payload({
            "spans": [{"spanId": "a", "startTime": 0, "endTime": 1, "attributes": {"n": 3}}],
        })
        assert [e.path for e in result.errors] == ["$.spans[0].attributes.n"]

    def test_snake_case_span_keys(self) -> None:
        result = validate_trace_payload({
            "spans": [
                {"span_id": "a", "parent_span_id": None, "start_time": 0, "end_time": 10},
                {"span_id": "b", "parent_span_id": "a", "start_time": 2, "end_time": "oops"},
            ],
        })
        assert [e.path for e in result.errors] == ["$.spans[1].endTime"]

    def test_numeric_span_ids(self) -> None:
        result = validate_trace_payload([
            {"spanId": 0, "startTime": 0, "endTime": 10},
            {"spanId": 1, "parentSpanId": 0, "startTime": 1, "endTime": 2},
        ])
        assert result.valid, result.summary()

    def test_non_finite_time(self) -> None:
        result = validate_trace_payload([{"spanId": "a", "startTime": float("nan"), "endTime": 1}])
        assert [e.path for e in result.errors] == ["$[0].startTime"]

    def test_null_attribute_values_allowed(self) -> None:
        result = validate_trace_payload({
            "spans": [{"spanId": "a", "startTime": 0, "endTime": 1, "attributes": {"n": None}}],
        })
        assert result.valid


class TestValidateFile:

    def test_fixture_files_valid(self, traces_dir: Path) -> None:
        for name in ("checkout_trace.json", "broken_links.yaml", "flat_spans.jsonl"):
            result = validate_trace_file(traces_dir / name)
            assert result.valid, result.summary()
            assert result.summary().startswith("✓")

    def test_invalid_span_file(self, traces_dir: Path) -> None:
        result = validate_trace_file(traces_dir / "invalid_span.json")

        assert not result.valid
        paths = [e.path for e in result.errors]
        assert "$.spans[0]" in paths
        assert "$.spans[1].startTime" in paths
        assert "2 error(s)" in result.summary()

    def test_jsonl_line_numbers(self, tmp_path: Path) -> None:
        path = tmp_path / "spans.jsonl"
        good = {"spanId": "a", "startTime": 0, "endTime": 1}
        bad = {"spanId": "b", "startTime": "soon", "endTime": 1}
        path.write_text(f"{json.dumps(good)}\n\n{json.dumps(bad)}\n", encoding="utf-8")

        result = validate_trace_file(path)

        assert not result.valid
        (error,) = result.errors
        assert error.path == "$[1].startTime"
        assert error.line_number == 3
        assert "Line 3:" in result.summary()

    def test_missing_file(self, tmp_path: Path) -> None:
        result = validate_trace_file(tmp_path / "missing.json")
        assert not result.valid
        assert "File not found" in result.errors[0].message

    def test_unparseable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("[1,", encoding="utf-8")
        result = validate_trace_file(path)
        assert not result.valid
        assert "invalid JSON" in result.errors[0].message

    def test_snake_case_file_agrees_with_loader(self, tmp_path: Path) -> None:
        path = tmp_path / "snake.json"
        path.write_text(json.dumps({"spans": [
            {"span_id": "a", "parent_span_id": None, "start_time": 0, "end_time": 10},
            {"span_id": "b", "parent_span_id": "a", "start_time": 2, "end_time": 8},
        ]}), encoding="utf-8")

        result = validate_trace_file(path)

        assert result.valid, result.summary()
        assert [s.span_id for s in load_trace(path).spans] == ["a", "b"]

    def test_not_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"spans": [{"spanId": "caf\xe9"}]}')
        result = validate_trace_file(path)
        assert not result.valid
        assert "not UTF-8" in result.errors[0].message
