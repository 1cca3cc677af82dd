"""Build ranking and selection.

Splits generated builds into "within budget" and "near-budget alternatives",
orders each by score (then price), and keeps the top N of each.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from pcbuilder.models.build import Build, TopN


def rank_key(build: Build) -> Tuple[float, float, tuple]:
    """Higher score first, then cheaper, then a stable identity."""
    return (-build.total_score, build.total_price, build.key)


def deduplicate(builds: Iterable[Build]) -> List[Build]:
    """Drop builds with the same part selection, keeping the first seen."""
    seen = set()
    unique: List[Build] = []
    for build in builds:
        if build.key in seen:
            continue
        seen.add(build.key)
        unique.append(build)
    return unique


def partition_by_budget(
    builds: Iterable[Build],
    budget: Optional[float],
    margin: float,
) -> Tuple[List[Build], List[Build]]:
    """Split into (within, near). Builds beyond budget + margin are discarded.

    Without a budget every build counts as within budget.
    """
    builds = list(builds)
    if budget is None:
        return builds, []

    within: List[Build] = []
    near: List[Build] = []
    for build in builds:
        price = build.total_price
        if price <= budget:
            within.append(build)
        elif price <= budget + margin:
            near.append(build)
    return within, near


def select_builds(
    builds: Iterable[Build],
    budget: Optional[float],
    margin: float,
    top_n: Optional[TopN] = None,
) -> Tuple[List[Build], List[Build]]:
    """Partition, sort and truncate candidate builds."""
    top_n = top_n or TopN()
    within, near = partition_by_budget(deduplicate(builds), budget, margin)
    within.sort(key=rank_key)
    near.sort(key=rank_key)
    return within[: top_n.within], near[: top_n.near]
