"""Hardware compatibility rules: six pairwise constraints plus the PSU budget.

A violation is a boolean fail that disqualifies the part combination. Rules
never raise: the generator treats a violation as "skip this candidate".
A rule whose attributes are missing on either side is not evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

from pcbuilder.catalog.normalize import parse_pcie_version
from pcbuilder.config import (
    DEFAULT_PCIE_POLICY,
    DEFAULT_POWER_OVERHEAD_W,
    DEFAULT_PSU_SAFETY_MULTIPLIER,
)
from pcbuilder.models.build import Build
from pcbuilder.models.components import Category, PartBase, PCIePolicy


# ──────────────────────────────────────────────
# Result Types
# ──────────────────────────────────────────────


@dataclass
class Violation:
    """A single compatibility violation."""

    rule: str
    message: str
    parts_involved: List[str] = field(default_factory=list)


@dataclass
class CompatibilityResult:
    """Result of a full compatibility check."""

    passed: bool
    violations: List[Violation] = field(default_factory=list)


# ──────────────────────────────────────────────
# Policies
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class PowerPolicy:
    """PSU sizing: (sum of draws + overhead) × safety multiplier."""

    overhead_watts: float = DEFAULT_POWER_OVERHEAD_W
    safety_multiplier: float = DEFAULT_PSU_SAFETY_MULTIPLIER

    def required_wattage(self, draws: Iterable[PartBase]) -> float:
        return (sum(p.power for p in draws) + self.overhead_watts) * self.safety_multiplier


@dataclass(frozen=True)
class RulePolicy:
    """Tunable knobs shared by every rule evaluation in a run."""

    power: PowerPolicy = field(default_factory=PowerPolicy)
    pcie: PCIePolicy = PCIePolicy(DEFAULT_PCIE_POLICY)


DEFAULT_POLICY = RulePolicy()

# Parts whose `power` counts toward the PSU requirement
POWER_DRAW_CATEGORIES = (Category.PROCESSOR, Category.GRAPHICS_CARD, Category.COOLER)


# ──────────────────────────────────────────────
# Individual Rule Checkers
# ──────────────────────────────────────────────


def check_processor_motherboard_socket(
    processor: PartBase, motherboard: PartBase
) -> Optional[Violation]:
    """RULE 1: processor.socket == motherboard.socket"""
    if not processor.socket or not motherboard.socket:
        return None  # Can't check if data is missing

    if processor.socket != motherboard.socket:
        return Violation(
            rule="processor_motherboard_socket",
            message=(
                f"Processor socket ({processor.socket}) does not match "
                f"motherboard socket ({motherboard.socket})"
            ),
            parts_involved=[processor.name, motherboard.name],
        )
    return None


def check_motherboard_ram_type(
    motherboard: PartBase, ram: PartBase
) -> Optional[Violation]:
    """RULE 2: ram.ram_type == motherboard.ram_type"""
    if not motherboard.ram_type or not ram.ram_type:
        return None

    if ram.ram_type != motherboard.ram_type:
        return Violation(
            rule="motherboard_ram_type",
            message=(
                f"RAM type ({ram.ram_type}) does not match "
                f"motherboard RAM type ({motherboard.ram_type})"
            ),
            parts_involved=[ram.name, motherboard.name],
        )
    return None


def check_motherboard_storage_interface(
    motherboard: PartBase, storage: PartBase
) -> Optional[Violation]:
    """RULE 3: storage.interface IN motherboard.supported_interfaces"""
    if not storage.interface or not motherboard.supported_interfaces:
        return None

    if storage.interface not in motherboard.supported_interfaces:
        return Violation(
            rule="motherboard_storage_interface",
            message=(
                f"Storage interface ({storage.interface}) is not supported by "
                f"motherboard (supports: {', '.join(sorted(motherboard.supported_interfaces))})"
            ),
            parts_involved=[storage.name, motherboard.name],
        )
    return None


def check_motherboard_gpu_pcie(
    motherboard: PartBase,
    gpu: PartBase,
    policy: PCIePolicy = PCIePolicy.NO_GREATER_THAN,
) -> Optional[Violation]:
    """RULE 4: graphics card PCIe version fits the motherboard slot.

    NO_GREATER_THAN accepts a card whose version is at most the highest
    version the board lists (a newer slot takes an older card). EXACT
    requires the card's version to be listed. When neither side names a
    version the tokens are matched as-is; when only one side does, the
    rule is skipped.
    """
    required = gpu.pcie_version
    supported = motherboard.pcie_versions
    if not required or not supported:
        return None

    required_num = parse_pcie_version(required)
    supported_nums = [n for n in (parse_pcie_version(s) for s in supported) if n is not None]

    if required_num is not None and supported_nums:
        if policy == PCIePolicy.NO_GREATER_THAN:
            ok = required_num <= max(supported_nums)
        else:
            ok = required_num in supported_nums
    elif required_num is None and not supported_nums:
        ok = required in supported
    else:
        # Only one side names a version: nothing to compare
        return None

    if not ok:
        return Violation(
            rule="motherboard_gpu_pcie",
            message=(
                f"Graphics card PCIe version ({required}) is not supported by "
                f"motherboard (supports: {', '.join(sorted(supported))})"
            ),
            parts_involved=[gpu.name, motherboard.name],
        )
    return None


def check_processor_cooler_socket(
    processor: PartBase, cooler: PartBase
) -> Optional[Violation]:
    """RULE 5: processor.socket IN cooler.supported_sockets"""
    if not processor.socket or not cooler.supported_sockets:
        return None

    if processor.socket not in cooler.supported_sockets:
        return Violation(
            rule="processor_cooler_socket",
            message=(
                f"Processor socket ({processor.socket}) is not supported "
                f"by cooler (supports: {', '.join(sorted(cooler.supported_sockets))})"
            ),
            parts_involved=[cooler.name, processor.name],
        )
    return None


def check_motherboard_case_form_factor(
    motherboard: PartBase, case: PartBase
) -> Optional[Violation]:
    """RULE 6: motherboard.form_factor IN case.supported_form_factors"""
    if not motherboard.form_factor or not case.supported_form_factors:
        return None

    if motherboard.form_factor not in case.supported_form_factors:
        return Violation(
            rule="motherboard_case_form_factor",
            message=(
                f"Motherboard form factor ({motherboard.form_factor}) is not supported "
                f"by case (supports: {', '.join(sorted(case.supported_form_factors))})"
            ),
            parts_involved=[motherboard.name, case.name],
        )
    return None


def check_power_supply_wattage(
    power_supply: PartBase,
    draws: Iterable[PartBase],
    policy: Optional[PowerPolicy] = None,
) -> Optional[Violation]:
    """RULE 7: power_supply.wattage >= (processor + GPU + cooler draw + overhead) × multiplier

    Always evaluated when a PSU is present: a PSU with unknown wattage
    cannot be shown to cover even the fixed overhead.
    """
    policy = policy or DEFAULT_POLICY.power
    draws = list(draws)
    required = policy.required_wattage(draws)

    if power_supply.wattage < required:
        return Violation(
            rule="power_supply_wattage",
            message=(
                f"Power supply wattage ({power_supply.wattage:g}W) is below "
                f"required {required:g}W"
            ),
            parts_involved=[power_supply.name] + [p.name for p in draws],
        )
    return None


# ──────────────────────────────────────────────
# Rule Registry
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class PairRule:
    left: Category
    right: Category
    check: Callable[[PartBase, PartBase, RulePolicy], Optional[Violation]]


PAIR_RULES = (
    PairRule(
        Category.PROCESSOR, Category.MOTHERBOARD,
        lambda cpu, board, _: check_processor_motherboard_socket(cpu, board),
    ),
    PairRule(
        Category.MOTHERBOARD, Category.RAM,
        lambda board, ram, _: check_motherboard_ram_type(board, ram),
    ),
    PairRule(
        Category.MOTHERBOARD, Category.STORAGE,
        lambda board, storage, _: check_motherboard_storage_interface(board, storage),
    ),
    PairRule(
        Category.MOTHERBOARD, Category.GRAPHICS_CARD,
        lambda board, gpu, policy: check_motherboard_gpu_pcie(board, gpu, policy.pcie),
    ),
    PairRule(
        Category.PROCESSOR, Category.COOLER,
        lambda cpu, cooler, _: check_processor_cooler_socket(cpu, cooler),
    ),
    PairRule(
        Category.MOTHERBOARD, Category.CASE,
        lambda board, case, _: check_motherboard_case_form_factor(board, case),
    ),
)


def _power_draws(parts: Mapping[Category, PartBase]) -> List[PartBase]:
    return [parts[c] for c in POWER_DRAW_CATEGORIES if c in parts]


# ──────────────────────────────────────────────
# Incremental Check — used by the generator
# ──────────────────────────────────────────────


def check_candidate(
    partial: Mapping[Category, PartBase],
    candidate: PartBase,
    policy: RulePolicy = DEFAULT_POLICY,
) -> Optional[Violation]:
    """Check whether adding `candidate` keeps a partial build compatible.

    Only rules involving the candidate's category are evaluated, and only
    against parts already present. Returns the first violation found.
    """
    category = candidate.category

    for rule in PAIR_RULES:
        if rule.left == category and rule.right in partial:
            v = rule.check(candidate, partial[rule.right], policy)
        elif rule.right == category and rule.left in partial:
            v = rule.check(partial[rule.left], candidate, policy)
        else:
            continue
        if v:
            return v

    if category == Category.POWER_SUPPLY:
        return check_power_supply_wattage(candidate, _power_draws(partial), policy.power)

    if category in POWER_DRAW_CATEGORIES and Category.POWER_SUPPLY in partial:
        extended = {**partial, category: candidate}
        return check_power_supply_wattage(
            partial[Category.POWER_SUPPLY], _power_draws(extended), policy.power
        )

    return None


# ──────────────────────────────────────────────
# Main Compatibility Check
# ──────────────────────────────────────────────


def _index_parts(
    parts: Union[Build, Mapping[Category, PartBase], Iterable[PartBase]],
) -> Dict[Category, PartBase]:
    """Category → part; for a plain list the first part of each category wins."""
    if isinstance(parts, Build):
        return dict(parts.parts)
    if isinstance(parts, Mapping):
        return dict(parts)
    indexed: Dict[Category, PartBase] = {}
    for p in parts:
        indexed.setdefault(p.category, p)
    return indexed


def check_compatibility(
    parts: Union[Build, Mapping[Category, PartBase], Iterable[PartBase]],
    policy: RulePolicy = DEFAULT_POLICY,
) -> CompatibilityResult:
    """Run every applicable rule against a build.

    Returns a CompatibilityResult with passed=True if all checks pass,
    or passed=False with a list of violations.
    """
    indexed = _index_parts(parts)
    violations: List[Violation] = []

    for rule in PAIR_RULES:
        left = indexed.get(rule.left)
        right = indexed.get(rule.right)
        if left is not None and right is not None:
            v = rule.check(left, right, policy)
            if v:
                violations.append(v)

    power_supply = indexed.get(Category.POWER_SUPPLY)
    if power_supply is not None:
        v = check_power_supply_wattage(power_supply, _power_draws(indexed), policy.power)
        if v:
            violations.append(v)

    return CompatibilityResult(
        passed=len(violations) == 0,
        violations=violations,
    )
