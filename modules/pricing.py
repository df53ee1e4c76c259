"""Per-page pricing rule."""

from __future__ import annotations


def compute_cost(page_count: int, copies: int, price_per_page: float) -> float:
    """Cost of printing ``copies`` copies of a ``page_count``-page document."""
    return page_count * copies * price_per_page
