"""Tests for the full waterfall build and its diagnostics."""
from __future__ import annotations

import logging

import pytest
from conftest import make_span

from waterfall.layout import build_trace_waterfall, build_waterfall
from waterfall.trace.trace_model import Trace, load_trace


class TestBuildWaterfall:

    def test_empty(self) -> None:
        result = build_waterfall([])
        assert result.spans == []
        assert result.duration_ms == 0
        assert not result.diagnostics.has_issues()
        assert result.diagnostics.warnings == []

    def test_example_scenario(self, example_spans) -> None:
        result = build_waterfall(example_spans)

        assert [p.span_id for p in result.spans] == ["a", "b", "c"]
        assert [p.depth for p in result.spans] == [0, 1, 1]
        b, c = result.spans[1], result.spans[2]
        assert (b.left, b.width) == (pytest.approx(10), pytest.approx(40))
        assert (c.left, c.width) == (pytest.approx(60), pytest.approx(30))
        assert result.trace_start_ms == 0
        assert result.trace_end_ms == 100
        assert not result.diagnostics.has_issues()

    def test_orphan_never_dropped(self) -> None:
        spans = [make_span("a", None, 0, 100), make_span("x", "missing", 10, 20)]
        result = build_waterfall(spans)

        depths = {p.span_id: p.depth for p in result.spans}
        assert depths == {"a": 0, "x": 0}
        assert result.diagnostics.orphans == ["x"]
        assert any("x" in w for w in result.diagnostics.warnings)

    def test_cycle_and_negative_duration_diagnostics(self) -> None:
        spans = [
            make_span("root", None, 0, 100),
            make_span("A", "B", 10, 5),
            make_span("B", "A", 20, 30),
        ]
        result = build_waterfall(spans)
        diagnostics = result.diagnostics

        assert len(result.spans) == 3
        assert diagnostics.cycles == ["B"]
        assert diagnostics.negative_durations == ["A"]
        assert diagnostics.unreachable == ["A", "B"]
        assert diagnostics.has_issues()
        assert len(diagnostics.warnings) == 4

    def test_duplicate_ids_reported(self) -> None:
        spans = [make_span("a", None, 0, 10), make_span("a", None, 2, 8)]
        result = build_waterfall(spans)
        assert result.diagnostics.duplicate_ids == ["a"]
        assert len(result.spans) == 2
        assert "share the depth of the first" in result.diagnostics.warnings[0]

    def test_duplicate_with_dangling_parent_reported_as_orphan(self) -> None:
        spans = [
            make_span("root", None, 0, 100),
            make_span("a", "root", 10, 20),
            make_span("a", "ghost", 30, 40),
        ]
        result = build_waterfall(spans)
        assert result.diagnostics.orphans == ["a"]
        assert result.diagnostics.duplicate_ids == ["a"]

    def test_numeric_zero_parent_id(self) -> None:
        trace = Trace.from_dict([
            {"spanId": 0, "startTime": 0, "endTime": 100},
            {"spanId": 1, "parentSpanId": 0, "startTime": 10, "endTime": 20},
        ])
        result = build_trace_waterfall(trace)
        assert [(s.span_id, s.parent_span_id, s.depth) for s in result.spans] == [
            ("0", None, 0),
            ("1", "0", 1),
        ]
        assert not result.diagnostics.has_issues()

    def test_logs_warning_when_degraded(self, caplog: pytest.LogCaptureFixture) -> None:
        spans = [make_span("a", None, 0, 100), make_span("x", "missing", 10, 20)]
        with caplog.at_level(logging.WARNING, logger="waterfall.layout.pipeline"):
            build_waterfall(spans)
        assert "1 orphan(s)" in caplog.text

    def test_clean_trace_logs_nothing(self, example_spans, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="waterfall"):
            build_waterfall(example_spans)
        assert caplog.records == []

    def test_to_dict(self, example_spans) -> None:
        data = build_waterfall(example_spans).to_dict()
        assert data["durationMs"] == 100
        assert [s["spanId"] for s in data["spans"]] == ["a", "b", "c"]
        assert data["spans"][1]["depth"] == 1
        assert data["spans"][1]["durationMs"] == pytest.approx(40)
        assert data["warnings"] == []


class TestTraceFiles:
    """End to end from fixture payloads."""

    def test_checkout_trace(self, checkout_trace_path) -> None:
        result = build_trace_waterfall(load_trace(checkout_trace_path))

        assert [p.span_id for p in result.spans] == ["a1", "b1", "b2", "c1"]
        assert [p.depth for p in result.spans] == [0, 1, 1, 2]
        positioned = {p.span_id: p for p in result.spans}
        assert positioned["b1"].left == pytest.approx(5)
        assert positioned["b1"].width == pytest.approx(20)
        assert positioned["c1"].left == pytest.approx(35)
        assert positioned["c1"].width == pytest.approx(40)
        # Derived from the spans, not the summary's 198.7ms
        assert result.duration_ms == pytest.approx(200)

    def test_broken_links_trace(self, broken_links_path) -> None:
        result = build_trace_waterfall(load_trace(broken_links_path))

        assert [p.span_id for p in result.spans] == ["root", "child", "orphan", "loop-a", "loop-b"]
        assert result.diagnostics.orphans == ["orphan"]
        assert result.diagnostics.cycles == ["loop-b"]
        assert result.diagnostics.unreachable == ["loop-a", "loop-b"]
