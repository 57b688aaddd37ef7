"""Render order for the waterfall: every span directly above its subtree."""
from __future__ import annotations

import logging
from typing import Sequence

from waterfall.trace.span_model import PositionedSpan

logger = logging.getLogger(__name__)


def _sorted_by_start(positioned: Sequence[PositionedSpan]) -> list[PositionedSpan]:
    # Stable: equal (start, depth) keeps input order.
    return sorted(positioned, key=lambda p: (p.start_ms, p.depth))


def _walk(ordered: list[PositionedSpan]) -> tuple[list[int], list[int]]:
    """Pre-order walk from the roots.

    Returns:
        Tuple of (emitted positions, unreached positions), both as indexes
        into ``ordered``.
    """
    known_ids = {p.span_id for p in ordered}
    children: dict[str, list[int]] = {}
    roots: list[int] = []
    for i, p in enumerate(ordered):
        parent_id = p.parent_span_id
        if not parent_id or parent_id not in known_ids:
            roots.append(i)
        else:
            children.setdefault(parent_id, []).append(i)

    visited = [False] * len(ordered)
    emitted: list[int] = []
    for root in roots:
        stack = [root]
        while stack:
            i = stack.pop()
            if visited[i]:
                continue
            visited[i] = True
            emitted.append(i)
            kids = children.get(ordered[i].span_id, [])
            # Reversed so the earliest child is popped first.
            stack.extend(k for k in reversed(kids) if not visited[k])

    unreached = [i for i, seen in enumerate(visited) if not seen]
    return emitted, unreached


def order(positioned: Sequence[PositionedSpan]) -> list[PositionedSpan]:
    """Order spans for depth-indented waterfall rendering.

    Candidates are sorted by (start time, depth). Each root (no parent, or a
    parent id not present in the trace) is emitted followed by its subtree in
    pre-order, siblings keeping the sorted order. Spans no root reaches, such
    as members of a parent cycle, are appended flat at the end in sorted
    order.

    The result is a permutation of the input: no span is dropped or repeated.
    """
    ordered = _sorted_by_start(positioned)
    emitted, unreached = _walk(ordered)
    if unreached:
        logger.debug(
            "%d span(s) unreachable from any root: %s",
            len(unreached),
            ", ".join(ordered[i].span_id for i in unreached),
        )
    return [ordered[i] for i in emitted + unreached]


def unreachable_spans(positioned: Sequence[PositionedSpan]) -> list[PositionedSpan]:
    """Spans that :func:`order` appends flat because no root reaches them."""
    ordered = _sorted_by_start(positioned)
    _, unreached = _walk(ordered)
    return [ordered[i] for i in unreached]
