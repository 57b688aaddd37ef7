"""Trace waterfall layout: hierarchy, timeline normalization, render order."""
from waterfall.layout.hierarchy import find_hierarchy_issues, resolve_depths
from waterfall.layout.ordering import order, unreachable_spans
from waterfall.layout.pipeline import (
    LayoutDiagnostics,
    WaterfallLayout,
    build_trace_waterfall,
    build_waterfall,
)
from waterfall.layout.timeline import layout, trace_bounds

__all__ = [
    "LayoutDiagnostics",
    "WaterfallLayout",
    "build_trace_waterfall",
    "build_waterfall",
    "find_hierarchy_issues",
    "layout",
    "order",
    "resolve_depths",
    "trace_bounds",
    "unreachable_spans",
]
