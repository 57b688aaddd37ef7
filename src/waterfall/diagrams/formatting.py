"""Per-span display values for a waterfall row.

These mirror what a waterfall row shows next to its bar: duration text, the
minimum visible bar width, indentation by depth, and the expandable
attribute panel grouped by key prefix.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from waterfall.trace.span_model import PositionedSpan

MIN_BAR_WIDTH = 0.5  # percent; keeps sub-pixel spans visible
INDENT_STEP_PX = 20
OTHER_GROUP = "other"


def format_duration(ms: float) -> str:
    """Format a duration as ``<1ms``, ``12.3ms`` or ``1.23s``."""
    if ms < 0:
        return "-" + format_duration(-ms)
    if ms < 1:
        return "<1ms"
    if ms < 1000:
        return f"{ms:.1f}ms"
    return f"{ms / 1000:.2f}s"


def visible_width(width: float, minimum: float = MIN_BAR_WIDTH) -> float:
    """Bar width with a floor so very short spans stay visible."""
    return max(width, minimum)


def indent_px(depth: int, step: int = INDENT_STEP_PX) -> int:
    return depth * step


def is_error(status: Optional[str]) -> bool:
    return (status or "").lower() == "error"


def display_kind(kind: Optional[str]) -> str:
    return kind or "Internal"


@dataclass
class AttributeItem:
    full_key: str
    key: str
    value: str


@dataclass
class AttributeGroup:
    group: str
    items: list[AttributeItem] = field(default_factory=list)

    @property
    def title(self) -> str:
        return self.group.replace("_", " ")


def group_attributes(attributes: Optional[Mapping[str, Optional[str]]]) -> list[AttributeGroup]:
    """Group span attributes by the prefix before the first dot.

    ``http.method`` lands in group ``http`` as key ``method``. Keys without a
    prefix go to ``other``, which always sorts last. Missing values display
    as ``-``.
    """
    if not attributes:
        return []

    groups: dict[str, list[AttributeItem]] = {}
    for full_key, value in attributes.items():
        separator = full_key.find(".")
        if separator > 0:
            group, key = full_key[:separator], full_key[separator + 1:]
        else:
            group, key = OTHER_GROUP, full_key
        groups.setdefault(group, []).append(
            AttributeItem(full_key=full_key, key=key, value=value or "-")
        )

    result = [
        AttributeGroup(group=name, items=sorted(items, key=lambda item: item.key))
        for name, items in groups.items()
    ]
    result.sort(key=lambda g: (g.group == OTHER_GROUP, g.group))
    return result


def display_fields(
    span: PositionedSpan,
    min_bar_width: float = MIN_BAR_WIDTH,
    indent_step: int = INDENT_STEP_PX,
) -> dict[str, Any]:
    """Everything a waterfall row needs beyond the layout numbers."""
    return {
        "indentPx": indent_px(span.depth, indent_step),
        "visibleWidth": visible_width(span.width, min_bar_width),
        "durationText": format_duration(span.duration_ms),
        "isError": is_error(span.status),
        "kind": display_kind(span.span.kind),
        "attributeGroups": [
            {
                "group": group.group,
                "title": group.title,
                "items": [
                    {"fullKey": item.full_key, "key": item.key, "value": item.value}
                    for item in group.items
                ],
            }
            for group in group_attributes(span.span.attributes)
        ],
    }
