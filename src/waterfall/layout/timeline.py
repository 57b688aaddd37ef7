"""Map span start/end times onto a 0-100 percentage timeline."""
from __future__ import annotations

from typing import Sequence

from waterfall.layout.hierarchy import resolve_depths
from waterfall.trace.span_model import PositionedSpan, Span
from waterfall.trace.trace_model import trace_bounds


def layout(spans: Sequence[Span]) -> list[PositionedSpan]:
    """Position every span on the trace timeline.

    Offsets and widths are percentages of the trace's total time span, which
    is derived from the spans themselves. They are not clamped: a span lying
    outside the computed bounds, or ending before it starts, keeps its raw
    value. A zero-length trace gives every span the full width.

    Args:
        spans: Spans of one trace, in any order.

    Returns:
        Positioned spans, in input order.
    """
    bounds = trace_bounds(spans)
    if bounds is None:
        return []

    trace_start, trace_end = bounds
    trace_duration = trace_end - trace_start
    depths = resolve_depths(spans)

    if trace_duration == 0:
        return [
            PositionedSpan(
                span=span,
                depth=depths[span.span_id],
                left=0.0,
                width=100.0,
                duration_ms=0.0,
            )
            for span in spans
        ]

    positioned: list[PositionedSpan] = []
    for span in spans:
        span_start = span.start_ms
        duration = span.end_ms - span_start
        positioned.append(PositionedSpan(
            span=span,
            depth=depths[span.span_id],
            left=(span_start - trace_start) / trace_duration * 100,
            width=duration / trace_duration * 100,
            duration_ms=duration,
        ))
    return positioned
