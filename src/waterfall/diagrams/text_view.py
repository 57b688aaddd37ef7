"""Plain-text waterfall for terminals.

One row per span in render order: an indented service/operation label, a
bar on a fixed-width character timeline, and the span duration.
"""
from __future__ import annotations

from waterfall.diagrams.formatting import (
    MIN_BAR_WIDTH,
    format_duration,
    is_error,
    visible_width,
)
from waterfall.layout.pipeline import WaterfallLayout
from waterfall.trace.span_model import PositionedSpan

LABEL_WIDTH = 40
INDENT = "  "
BAR_CHAR = "#"
ERROR_BAR_CHAR = "!"
EMPTY_CHAR = "."


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text.ljust(width)
    return text[: width - 1] + "~"


def _render_bar(span: PositionedSpan, width: int, min_bar_width: float) -> str:
    """Render one bar, clamped to the visible timeline."""
    start = int(round(span.left / 100 * width))
    start = min(max(start, 0), width - 1)
    length = int(round(visible_width(span.width, min_bar_width) / 100 * width))
    length = min(max(length, 1), width - start)

    char = ERROR_BAR_CHAR if is_error(span.status) else BAR_CHAR
    return EMPTY_CHAR * start + char * length + EMPTY_CHAR * (width - start - length)


def _render_row(
    span: PositionedSpan,
    width: int,
    min_bar_width: float,
    indent: str,
) -> str:
    label = f"{indent * span.depth}{span.service_name} {span.operation_name}".rstrip()
    return (
        f"{_truncate(label, LABEL_WIDTH)} |"
        f"{_render_bar(span, width, min_bar_width)}| "
        f"{format_duration(span.duration_ms)}"
    )


def render_text_waterfall(
    waterfall: WaterfallLayout,
    width: int = 60,
    min_bar_width: float = MIN_BAR_WIDTH,
    indent: str = INDENT,
) -> str:
    """Render a waterfall layout as text.

    Args:
        waterfall: Layout from :func:`waterfall.layout.build_waterfall`.
        width: Number of characters in the timeline column.
        min_bar_width: Minimum bar width in percent.
        indent: String repeated once per depth level in the label.

    Returns:
        The rendered lines joined with newlines (no trailing newline).
    """
    if width < 10:
        raise ValueError(f"Timeline width must be at least 10, got {width}")

    end_label = format_duration(waterfall.duration_ms) if waterfall.duration_ms > 0 else "0ms"
    axis = "0ms" + end_label.rjust(width - 3)
    lines = [f"{_truncate('Service / Operation', LABEL_WIDTH)} |{axis}|"]

    if not waterfall.spans:
        lines.append("(no spans)")
        return "\n".join(lines)

    for span in waterfall.spans:
        lines.append(_render_row(span, width, min_bar_width, indent))
    return "\n".join(lines)
