"""Waterfall test configuration and fixtures."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from waterfall.trace.span_model import Span  # noqa: E402


def make_span(
    span_id: str,
    parent: Optional[str] = None,
    start: float = 0,
    end: float = 0,
    **kwargs,
) -> Span:
    """Build a span with epoch-millisecond timestamps."""
    kwargs.setdefault("service_name", "svc")
    kwargs.setdefault("operation_name", f"op-{span_id}")
    kwargs.setdefault("status", "Ok")
    return Span(
        span_id=span_id,
        parent_span_id=parent,
        start_time=start,
        end_time=end,
        **kwargs,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def traces_dir(fixtures_dir: Path) -> Path:
    """Return the directory of sample trace payloads."""
    return fixtures_dir / "traces"


@pytest.fixture
def checkout_trace_path(traces_dir: Path) -> Path:
    """Return the path to checkout_trace.json."""
    return traces_dir / "checkout_trace.json"


@pytest.fixture
def broken_links_path(traces_dir: Path) -> Path:
    """Return the path to broken_links.yaml (orphan + cycle)."""
    return traces_dir / "broken_links.yaml"


@pytest.fixture
def example_spans() -> list[Span]:
    """Root a with children b and c over a 0-100ms trace."""
    return [
        make_span("c", "a", 60, 90),
        make_span("a", None, 0, 100),
        make_span("b", "a", 10, 50),
    ]
