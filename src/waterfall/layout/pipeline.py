"""Full waterfall build: depths, timeline positions, render order."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from waterfall.layout.hierarchy import find_hierarchy_issues
from waterfall.layout.ordering import order, unreachable_spans
from waterfall.layout.timeline import layout
from waterfall.trace.span_model import PositionedSpan, Span
from waterfall.trace.trace_model import Trace, trace_bounds

logger = logging.getLogger(__name__)


@dataclass
class LayoutDiagnostics:
    """Malformed-input observations gathered while building a layout.

    None of these change the layout; they only make the lenient handling
    visible to the caller.
    """

    orphans: list[str] = field(default_factory=list)
    cycles: list[str] = field(default_factory=list)
    negative_durations: list[str] = field(default_factory=list)
    unreachable: list[str] = field(default_factory=list)
    duplicate_ids: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        """Human-readable warning lines."""
        lines: list[str] = []
        for span_id in self.orphans:
            lines.append(f"Span {span_id} references a parent not in the trace; shown as a root")
        for span_id in self.cycles:
            lines.append(f"Span {span_id} closes a parent cycle; treated as depth 0")
        for span_id in self.negative_durations:
            lines.append(f"Span {span_id} ends before it starts")
        for span_id in self.unreachable:
            lines.append(f"Span {span_id} is not reachable from any root; appended at the end")
        for span_id in self.duplicate_ids:
            lines.append(
                f"Span id {span_id} appears more than once; "
                "later spans share the depth of the first"
            )
        return lines

    def has_issues(self) -> bool:
        return bool(
            self.orphans
            or self.cycles
            or self.negative_durations
            or self.unreachable
            or self.duplicate_ids
        )


@dataclass
class WaterfallLayout:
    """Ordered, positioned spans of one trace plus diagnostics."""

    spans: list[PositionedSpan]
    trace_start_ms: float = 0.0
    trace_end_ms: float = 0.0
    diagnostics: LayoutDiagnostics = field(default_factory=LayoutDiagnostics)

    @property
    def duration_ms(self) -> float:
        return self.trace_end_ms - self.trace_start_ms

    def to_dict(self) -> dict:
        return {
            "traceStartMs": self.trace_start_ms,
            "traceEndMs": self.trace_end_ms,
            "durationMs": self.duration_ms,
            "spans": [p.to_dict() for p in self.spans],
            "warnings": self.diagnostics.warnings,
        }


def build_waterfall(spans: Sequence[Span]) -> WaterfallLayout:
    """Resolve depths, position and order the spans of one trace.

    Never raises for malformed hierarchies; see :class:`LayoutDiagnostics`.
    """
    positioned = layout(spans)
    ordered = order(positioned)

    issues = find_hierarchy_issues(spans)
    counts = Counter(span.span_id for span in spans)
    diagnostics = LayoutDiagnostics(
        orphans=issues.orphans,
        cycles=issues.cycle_breaks,
        negative_durations=[p.span_id for p in positioned if p.duration_ms < 0],
        unreachable=[p.span_id for p in unreachable_spans(positioned)],
        duplicate_ids=sorted(span_id for span_id, n in counts.items() if n > 1),
    )
    if diagnostics.has_issues():
        logger.warning(
            "Trace layout degraded: %d orphan(s), %d cycle break(s), "
            "%d negative duration(s), %d unreachable, %d duplicate id(s)",
            len(diagnostics.orphans),
            len(diagnostics.cycles),
            len(diagnostics.negative_durations),
            len(diagnostics.unreachable),
            len(diagnostics.duplicate_ids),
        )

    bounds = trace_bounds(spans)
    start, end = bounds if bounds is not None else (0.0, 0.0)
    return WaterfallLayout(
        spans=ordered,
        trace_start_ms=start,
        trace_end_ms=end,
        diagnostics=diagnostics,
    )


def build_trace_waterfall(trace: Trace) -> WaterfallLayout:
    """Build the waterfall for a loaded :class:`Trace`."""
    return build_waterfall(trace.spans)
