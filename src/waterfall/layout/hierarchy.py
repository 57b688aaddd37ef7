"""Nesting depth of each span relative to the trace root(s).

A span is a root (depth 0) when it has no parent id or its parent id does not
name a span in the same trace. Parent chains that loop back on themselves are
cut at the span whose parent link closes the loop; that span is given depth 0
and the rest of the chain nests below it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from waterfall.trace.span_model import Span

logger = logging.getLogger(__name__)


@dataclass
class HierarchyIssues:
    """Malformed parent links found while resolving depths."""

    orphans: list[str] = field(default_factory=list)
    cycle_breaks: list[str] = field(default_factory=list)


def _index_spans(spans: Sequence[Span]) -> dict[str, Span]:
    """Map span_id -> span; the first span with a given id wins."""
    index: dict[str, Span] = {}
    for span in spans:
        index.setdefault(span.span_id, span)
    return index


def _resolve(spans: Sequence[Span]) -> tuple[dict[str, int], HierarchyIssues]:
    index = _index_spans(spans)
    depths: dict[str, int] = {}
    issues = HierarchyIssues()

    for span in spans:
        if span.span_id in depths:
            # A repeated id shares the first span's depth, but its own parent
            # link can still be dangling.
            parent_id = span.parent_span_id
            if span is not index[span.span_id] and parent_id and parent_id not in index:
                issues.orphans.append(span.span_id)
                logger.debug("Span %s has unknown parent %s", span.span_id, parent_id)
            continue

        # Walk up until we reach a root, a resolved span, or our own chain.
        chain: list[str] = []
        on_chain: set[str] = set()
        current = span
        while True:
            chain.append(current.span_id)
            on_chain.add(current.span_id)

            parent_id = current.parent_span_id
            if not parent_id:
                base = 0
                break
            parent = index.get(parent_id)
            if parent is None:
                issues.orphans.append(current.span_id)
                logger.debug("Span %s has unknown parent %s", current.span_id, parent_id)
                base = 0
                break
            if parent.span_id in on_chain:
                issues.cycle_breaks.append(current.span_id)
                logger.debug("Parent cycle closed by span %s -> %s", current.span_id, parent_id)
                base = 0
                break
            if parent.span_id in depths:
                base = depths[parent.span_id] + 1
                break
            current = parent

        # chain[-1] is the topmost span reached; everything below nests under it.
        for offset, span_id in enumerate(reversed(chain)):
            depths[span_id] = base + offset

    return depths, issues


def resolve_depths(spans: Sequence[Span]) -> dict[str, int]:
    """Compute the nesting depth of every span.

    Each span's depth is computed once. Orphans and cycle-closing spans
    resolve to 0; no error is raised for either.

    Args:
        spans: Spans of one trace, in any order.

    Returns:
        Mapping of span_id to depth (root = 0).
    """
    depths, _ = _resolve(spans)
    return depths


def find_hierarchy_issues(spans: Sequence[Span]) -> HierarchyIssues:
    """Report orphan spans and the spans that close parent cycles."""
    _, issues = _resolve(spans)
    return issues
