"""Combination generator: enumerates compatible PC builds under a price ceiling.

Two strategies:

- exhaustive: backtracking over categories in a fixed pruning order, bounded
  by a hard cap on emitted builds;
- greedy: best-value pick per category, then a local-improvement pass that
  swaps one or two categories at a time while total score rises.

Each branch works on its own copy of the partial build; nothing is shared
between branches except the result list.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from pcbuilder.config import (
    DEFAULT_MAX_CANDIDATES,
    DEFAULT_MAX_IMPROVEMENT_ROUNDS,
    DEFAULT_MAX_PAIR_EVALUATIONS,
)
from pcbuilder.engine.compatibility import (
    DEFAULT_POLICY,
    RulePolicy,
    check_candidate,
    check_compatibility,
)
from pcbuilder.models.build import Build
from pcbuilder.models.components import Category, PartBase

logger = logging.getLogger(__name__)

# Tolerance for float score/price comparisons during local improvement
_EPSILON = 1e-9


# ──────────────────────────────────────────────
# Search Order & Configuration
# ──────────────────────────────────────────────

# Selection order: constraining parts first, power supply last
CATEGORY_ORDER = (
    Category.PROCESSOR,         # Determines socket / platform
    Category.MOTHERBOARD,       # Must match processor socket
    Category.RAM,               # Must match motherboard memory type
    Category.STORAGE,           # Must match a motherboard interface
    Category.GRAPHICS_CARD,     # Must fit the motherboard PCIe slot
    Category.COOLER,            # Must support the processor socket
    Category.CASE,              # Must fit the motherboard form factor
    Category.MONITOR,
    Category.KEYBOARD,
    Category.MOUSE,
    Category.OPERATING_SYSTEM,
    Category.POWER_SUPPLY,      # Must cover everything drawing power
)


@dataclass(frozen=True)
class GeneratorConfig:
    """Per-run search limits and policies."""

    max_candidates: int = DEFAULT_MAX_CANDIDATES
    time_limit: Optional[float] = None  # seconds, None = no deadline
    skip_gpu_with_integrated_graphics: bool = True
    local_improvement: bool = True
    max_improvement_rounds: int = DEFAULT_MAX_IMPROVEMENT_ROUNDS
    max_pair_evaluations: int = DEFAULT_MAX_PAIR_EVALUATIONS
    rules: RulePolicy = DEFAULT_POLICY


DEFAULT_CONFIG = GeneratorConfig()


@dataclass
class SearchOutcome:
    """Raw generator output before ranking."""

    builds: List[Build] = field(default_factory=list)
    truncated: bool = False
    cancelled: bool = False
    rejections: Dict[str, int] = field(default_factory=dict)


# ──────────────────────────────────────────────
# Candidate Pools
# ──────────────────────────────────────────────


def value_density(part: PartBase) -> float:
    """Score per unit of price; higher is better value."""
    return part.score / part.price


def sort_by_value(parts: Iterable[PartBase]) -> List[PartBase]:
    """Best value first; ties broken by price, then id, so runs are repeatable."""
    return sorted(parts, key=lambda p: (-value_density(p), p.price, p.id))


def build_pools(
    catalog: Iterable[PartBase],
    active_categories: Iterable[Category],
) -> Dict[Category, List[PartBase]]:
    """Group active-category parts and pre-sort each group by value density."""
    active = set(active_categories)
    groups: Dict[Category, List[PartBase]] = {c: [] for c in active}
    for part in catalog:
        if part.category in active:
            groups[part.category].append(part)
    return {c: sort_by_value(parts) for c, parts in groups.items()}


def search_order(active_categories: Iterable[Category]) -> List[Category]:
    active = set(active_categories)
    return [c for c in CATEGORY_ORDER if c in active]


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────


class _StopCheck:
    """Cooperative cancellation: caller flag or wall-clock deadline."""

    def __init__(
        self,
        time_limit: Optional[float],
        should_stop: Optional[Callable[[], bool]],
    ) -> None:
        self._deadline = time.monotonic() + time_limit if time_limit else None
        self._should_stop = should_stop
        self.triggered = False

    def __call__(self) -> bool:
        if self.triggered:
            return True
        if self._should_stop is not None and self._should_stop():
            self.triggered = True
        elif self._deadline is not None and time.monotonic() >= self._deadline:
            self.triggered = True
        return self.triggered


def _gated(
    category: Category,
    partial: Mapping[Category, PartBase],
    config: GeneratorConfig,
) -> bool:
    """Skip the discrete GPU step when the chosen processor has integrated graphics."""
    if category != Category.GRAPHICS_CARD or not config.skip_gpu_with_integrated_graphics:
        return False
    processor = partial.get(Category.PROCESSOR)
    return processor is not None and processor.integrated_graphics


def _total(parts: Mapping[Category, PartBase], attr: str) -> float:
    return sum(getattr(p, attr) for p in parts.values())


# ──────────────────────────────────────────────
# Exhaustive Strategy
# ──────────────────────────────────────────────


class _ExhaustiveSearch:
    def __init__(
        self,
        pools: Mapping[Category, Sequence[PartBase]],
        order: Sequence[Category],
        ceiling: Optional[float],
        config: GeneratorConfig,
        stop: _StopCheck,
    ) -> None:
        self.pools = pools
        self.order = order
        self.ceiling = ceiling
        self.config = config
        self.stop = stop
        self.builds: List[Build] = []
        self.rejections: Counter = Counter()
        self.truncated = False

    def _halted(self) -> bool:
        return self.truncated or self.stop()

    def run(self) -> SearchOutcome:
        self._extend(0, {}, 0.0)
        return SearchOutcome(
            builds=self.builds,
            truncated=self.truncated,
            cancelled=self.stop.triggered,
            rejections=dict(self.rejections),
        )

    def _emit(self, partial: Dict[Category, PartBase]) -> None:
        if not partial:
            return
        if len(self.builds) >= self.config.max_candidates:
            self.truncated = True
            return
        self.builds.append(Build(parts=partial))

    def _extend(self, depth: int, partial: Dict[Category, PartBase], running_price: float) -> None:
        if self._halted():
            return
        if depth == len(self.order):
            self._emit(partial)
            return

        category = self.order[depth]
        candidates = self.pools.get(category, ())
        if not candidates or _gated(category, partial, self.config):
            self._extend(depth + 1, partial, running_price)
            return

        extended = False
        for part in candidates:
            if self._halted():
                return
            if self.ceiling is not None and running_price + part.price > self.ceiling:
                continue
            violation = check_candidate(partial, part, self.config.rules)
            if violation:
                self.rejections[violation.rule] += 1
                continue
            extended = True
            self._extend(depth + 1, {**partial, category: part}, running_price + part.price)

        # Nothing in this category fits the branch: it contributes nothing
        if not extended:
            self._extend(depth + 1, partial, running_price)


def exhaustive_search(
    pools: Mapping[Category, Sequence[PartBase]],
    order: Sequence[Category],
    ceiling: Optional[float] = None,
    config: GeneratorConfig = DEFAULT_CONFIG,
    should_stop: Optional[Callable[[], bool]] = None,
) -> SearchOutcome:
    """Enumerate compatible builds up to `ceiling`, stopping at the candidate cap."""
    stop = _StopCheck(config.time_limit, should_stop)
    outcome = _ExhaustiveSearch(pools, order, ceiling, config, stop).run()
    if outcome.truncated:
        logger.warning(
            "Candidate cap reached (%d builds), results are partial",
            config.max_candidates,
        )
    return outcome


# ──────────────────────────────────────────────
# Greedy Strategy + Local Improvement
# ──────────────────────────────────────────────


class _LocalImprovement:
    """Hill-climb on total score by swapping one, then two, categories."""

    def __init__(
        self,
        pools: Mapping[Category, Sequence[PartBase]],
        order: Sequence[Category],
        ceiling: Optional[float],
        config: GeneratorConfig,
        stop: _StopCheck,
    ) -> None:
        self.pools = pools
        self.order = [c for c in order if pools.get(c)]
        self.ceiling = ceiling
        self.config = config
        self.stop = stop

    def run(self, start: Dict[Category, PartBase]) -> List[Build]:
        accepted: List[Build] = []
        current = start
        for _ in range(self.config.max_improvement_rounds):
            if self.stop():
                break
            better = self._best_single_swap(current) or self._best_pair_swap(current)
            if better is None:
                break
            current = better
            accepted.append(Build(parts=current))
        return accepted

    def _acceptable(self, trial: Dict[Category, PartBase]) -> bool:
        if self.ceiling is not None and _total(trial, "price") > self.ceiling:
            return False
        return check_compatibility(trial, self.config.rules).passed

    @staticmethod
    def _improves(trial: Mapping[Category, PartBase], best: Mapping[Category, PartBase]) -> bool:
        """Higher score wins; at equal score, lower price wins."""
        gain = _total(trial, "score") - _total(best, "score")
        if gain > _EPSILON:
            return True
        saving = _total(best, "price") - _total(trial, "price")
        return abs(gain) <= _EPSILON and saving > _EPSILON

    def _can_take(self, category: Category, current: Mapping[Category, PartBase]) -> bool:
        # Filling an empty GPU slot still honours integrated-graphics gating
        return category in current or not _gated(category, current, self.config)

    def _best_single_swap(self, current: Dict[Category, PartBase]) -> Optional[Dict[Category, PartBase]]:
        best: Optional[Dict[Category, PartBase]] = None
        for category in self.order:
            if self.stop():
                break
            if not self._can_take(category, current):
                continue
            chosen = current.get(category)
            for part in self.pools[category]:
                if chosen is not None and part.id == chosen.id:
                    continue
                trial = {**current, category: part}
                if self._improves(trial, best or current) and self._acceptable(trial):
                    best = trial
        return best

    def _best_pair_swap(self, current: Dict[Category, PartBase]) -> Optional[Dict[Category, PartBase]]:
        best: Optional[Dict[Category, PartBase]] = None
        evaluations = 0
        for first, second in combinations(self.order, 2):
            if self.stop():
                break
            if not (self._can_take(first, current) and self._can_take(second, current)):
                continue
            chosen_first = current.get(first)
            chosen_second = current.get(second)
            for a in self.pools[first]:
                if chosen_first is not None and a.id == chosen_first.id:
                    continue
                for b in self.pools[second]:
                    if chosen_second is not None and b.id == chosen_second.id:
                        continue
                    evaluations += 1
                    if evaluations > self.config.max_pair_evaluations:
                        return best
                    trial = {**current, first: a, second: b}
                    if self._improves(trial, best or current) and self._acceptable(trial):
                        best = trial
        return best


def greedy_search(
    pools: Mapping[Category, Sequence[PartBase]],
    order: Sequence[Category],
    ceiling: Optional[float] = None,
    config: GeneratorConfig = DEFAULT_CONFIG,
    should_stop: Optional[Callable[[], bool]] = None,
) -> SearchOutcome:
    """Best-value pick per category, optionally refined by local improvement.

    Emits the greedy build followed by every build accepted during the
    improvement pass, each one strictly better than the last.
    """
    stop = _StopCheck(config.time_limit, should_stop)
    rejections: Counter = Counter()
    partial: Dict[Category, PartBase] = {}
    running_price = 0.0

    for category in order:
        if stop():
            break
        if _gated(category, partial, config):
            continue
        for part in pools.get(category, ()):
            if ceiling is not None and running_price + part.price > ceiling:
                continue
            violation = check_candidate(partial, part, config.rules)
            if violation:
                rejections[violation.rule] += 1
                continue
            partial = {**partial, category: part}
            running_price += part.price
            break

    builds: List[Build] = []
    if partial and not stop.triggered:
        builds.append(Build(parts=partial))
        if config.local_improvement:
            improver = _LocalImprovement(pools, order, ceiling, config, stop)
            builds.extend(improver.run(partial))

    return SearchOutcome(
        builds=builds,
        cancelled=stop.triggered,
        rejections=dict(rejections),
    )
