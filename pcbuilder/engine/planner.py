"""Generation entry point: validate the request, search, then rank.

`generate` is a pure function of its inputs: the catalog is passed in as an
immutable snapshot (or a plain sequence of parts) and nothing is cached at
module level.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Mapping, Optional, Union

from pcbuilder.catalog.snapshot import CatalogSnapshot
from pcbuilder.engine.generator import (
    DEFAULT_CONFIG,
    GeneratorConfig,
    build_pools,
    exhaustive_search,
    greedy_search,
    search_order,
)
from pcbuilder.engine.ranking import select_builds
from pcbuilder.models.build import (
    Build,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    TopN,
)
from pcbuilder.models.components import Category, PartBase, SearchStrategy

logger = logging.getLogger(__name__)

NO_CONFIGURATIONS_MESSAGE = "No configurations found"

CatalogInput = Union[CatalogSnapshot, Iterable[PartBase]]


def _catalog_parts(catalog: CatalogInput) -> tuple:
    if isinstance(catalog, CatalogSnapshot):
        return catalog.parts
    return tuple(catalog)


def _unmatched(order: List[Category], pools: Mapping, builds: List[Build]) -> List[Category]:
    return [
        c for c in order
        if pools.get(c) and any(c not in b.parts for b in builds)
    ]


def run_generation(
    request: GenerationRequest,
    catalog: CatalogInput,
    config: Optional[GeneratorConfig] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> GenerationResult:
    """Run one generation for an already-validated request."""
    config = config or DEFAULT_CONFIG
    parts = _catalog_parts(catalog)
    pools = build_pools(parts, request.active_categories)
    order = search_order(request.active_categories)

    if request.strategy == SearchStrategy.GREEDY:
        # Greedy never goes past the budget itself
        outcome = greedy_search(pools, order, request.budget, config, should_stop)
    else:
        outcome = exhaustive_search(pools, order, request.ceiling, config, should_stop)

    within, near = select_builds(outcome.builds, request.budget, request.margin, request.top_n)
    found = bool(within or near)

    result = GenerationResult(
        within=within,
        near=near,
        status=GenerationStatus.OK if found else GenerationStatus.NO_CONFIGURATIONS,
        message=(
            f"Found {len(within)} within budget, {len(near)} near budget"
            if found else NO_CONFIGURATIONS_MESSAGE
        ),
        strategy=request.strategy,
        budget=request.budget,
        candidates_considered=len(outcome.builds),
        truncated=outcome.truncated,
        cancelled=outcome.cancelled,
        empty_categories=[c for c in order if not pools.get(c)],
        unmatched_categories=_unmatched(order, pools, within + near),
        rejections=outcome.rejections,
    )

    logger.info(
        "Generation (%s, budget=%s): %d candidates from %d parts, %d within / %d near%s",
        request.strategy.value,
        request.budget,
        result.candidates_considered,
        len(parts),
        len(within),
        len(near),
        " [partial]" if result.truncated or result.cancelled else "",
    )
    return result


def generate(
    catalog: CatalogInput,
    active_categories: Iterable[Union[Category, str]],
    budget: Optional[float] = None,
    tolerance: Optional[float] = None,
    top_n: Optional[TopN] = None,
    strategy: Union[SearchStrategy, str] = SearchStrategy.EXHAUSTIVE,
    tolerance_mode: str = "absolute",
    config: Optional[GeneratorConfig] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> GenerationResult:
    """Propose ranked, compatible builds from a catalog.

    Args:
        catalog: Normalized parts (or a CatalogSnapshot).
        active_categories: Categories to include; others are left out entirely.
        budget: Price ceiling, or None for unconstrained.
        tolerance: Margin above budget for near-budget alternatives; None
            takes the default for `tolerance_mode`.
        top_n: How many builds to keep per partition.
        strategy: "exhaustive" (bounded backtracking) or "greedy".
        tolerance_mode: "absolute" or "fraction" (of budget).
        config: Search limits and rule policies.
        should_stop: Polled during search; returning True aborts early.

    Raises:
        pydantic.ValidationError: budget is non-numeric or <= 0, no
            categories were requested, or a fractional tolerance exceeds 1.
            No search is attempted.
    """
    request = GenerationRequest(
        active_categories=list(active_categories or []),
        budget=budget,
        tolerance=tolerance,
        tolerance_mode=tolerance_mode,
        top_n=top_n or TopN(),
        strategy=strategy,
    )
    return run_generation(request, catalog, config=config, should_stop=should_stop)
