"""Search, status filtering and market statistics over a listing."""

from __future__ import annotations

from collections.abc import Iterable

from plano.models import Blueprint, BlueprintStatus, MarketStats


def filter_blueprints(
    blueprints: Iterable[Blueprint],
    search: str = "",
    status: BlueprintStatus | None = None,
) -> list[Blueprint]:
    """Case-insensitive substring search over title and architect, plus status."""
    term = search.strip().lower()
    matched = []
    for bp in blueprints:
        if term and term not in bp.title.lower() and term not in bp.architect.lower():
            continue
        if status is not None and bp.status != status:
            continue
        matched.append(bp)
    return matched


def summarize(blueprints: Iterable[Blueprint]) -> MarketStats:
    stats = MarketStats()
    for bp in blueprints:
        stats.total += 1
        if bp.status == BlueprintStatus.DRAFT:
            stats.draft += 1
        elif bp.status == BlueprintStatus.PUBLISHED:
            stats.published += 1
        elif bp.status == BlueprintStatus.SOLD:
            stats.sold += 1
        price = bp.price
        if price is not None:
            stats.total_value += price
    return stats
