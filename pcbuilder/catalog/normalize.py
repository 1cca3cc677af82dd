"""Raw catalog record normalization and part scoring.

Turns loosely-typed records (spreadsheet rows, JSON from a catalog
provider) into typed, immutable parts. Multi-valued text fields are split
into token sets here, once, so the rule engine never re-parses strings.

Malformed records are dropped and logged; they never abort a batch.
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from pcbuilder.models.components import (
    PART_MODELS,
    Category,
    PartBase,
    parse_category,
)

logger = logging.getLogger(__name__)

# Flat score for categories without a meaningful performance axis
BASELINE_SCORE = 1.0

_TOKEN_SEPARATORS = re.compile(r"[,;]")
_VERSION_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")
_LANE_WIDTH = re.compile(r"x\s*\d+", re.IGNORECASE)
_TRUTHY = {"true", "yes", "y", "1"}


# ──────────────────────────────────────────────
# Field Coercion Helpers
# ──────────────────────────────────────────────


def _field(record: Mapping[str, Any], *names: str) -> Any:
    """Return the first non-empty value among the given keys."""
    for name in names:
        value = record.get(name)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _token(value: Any) -> str:
    return _text(value).lower()


def _number(value: Any) -> float:
    """Coerce to float; missing or non-numeric values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(" ", ""))
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _amount(value: Any) -> float:
    """Non-negative numeric attribute."""
    return max(0.0, _number(value))


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    token = _token(value)
    return token in _TRUTHY or "true" in token


def parse_tokens(value: Any) -> FrozenSet[str]:
    """Split a comma-separated string (or a list of strings) into normalized tokens."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        raw = _TOKEN_SEPARATORS.split(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        raw = [str(v) for v in value if v is not None]
    else:
        raw = [str(value)]
    return frozenset(t for t in (_token(r) for r in raw) if t)


def parse_pcie_version(token: str) -> Optional[float]:
    """Extract the numeric PCIe generation from tokens like '4.0', 'PCIe 4.0' or 'gen4'.

    Lane widths ('x16', 'PCIe 4.0 x8') are not versions and are ignored, so
    a token carrying only a lane width yields None.
    """
    match = _VERSION_NUMBER.search(_LANE_WIDTH.sub(" ", token or ""))
    if match is None:
        return None
    return float(match.group(1))


def part_id(category: Category, name: str, price: float = 0.0, description: str = "") -> str:
    """Stable id for records that do not carry one.

    Price and description are hashed too: the same product listed twice
    at different prices is two distinct parts.
    """
    material = f"{category.value}:{name.lower()}:{price:.2f}:{description.lower()}"
    digest = hashlib.sha1(material.encode()).hexdigest()[:12]
    return f"{category.value}-{digest}"


# ──────────────────────────────────────────────
# Scoring
# ──────────────────────────────────────────────


def score_part(category: Category, attrs: Mapping[str, Any], performance: float = 0.0) -> float:
    """Deterministic performance proxy for one part.

    Processors, graphics cards and RAM get a formula over their specs; when
    the specs are missing the record's explicit `performance` value is used.
    Every other category contributes a flat baseline so it does not skew
    total score comparisons.
    """
    if category == Category.PROCESSOR:
        score = attrs.get("frequency", 0.0) * 10 + attrs.get("cores", 0) * 5
    elif category == Category.GRAPHICS_CARD:
        bonus = parse_pcie_version(attrs.get("pcie_version", "")) or 0.0
        score = attrs.get("memory", 0.0) * 10
        if score > 0:
            score += bonus
    elif category == Category.RAM:
        score = attrs.get("frequency", 0.0) / 100 + attrs.get("capacity", 0.0)
    else:
        return BASELINE_SCORE

    if score <= 0 and performance > 0:
        return performance
    return max(0.0, score)


# ──────────────────────────────────────────────
# Per-Category Attribute Extraction
# ──────────────────────────────────────────────


def _category_attrs(category: Category, record: Mapping[str, Any]) -> Dict[str, Any]:
    if category == Category.PROCESSOR:
        return {
            "socket": _token(_field(record, "socket")),
            "frequency": _amount(_field(record, "frequency", "clock", "boostClock")),
            "cores": int(_amount(_field(record, "cores", "coreCount", "core_count"))),
            "integrated_graphics": _flag(
                _field(record, "integratedGraphics", "integrated_graphics")
            ),
            "power": _amount(_field(record, "power", "tdp")),
        }
    if category == Category.MOTHERBOARD:
        return {
            "socket": _token(_field(record, "socket")),
            "ram_type": _token(_field(record, "ramType", "ram_type", "memoryType")),
            "form_factor": _token(_field(record, "formFactor", "form_factor")),
            "supported_interfaces": parse_tokens(
                _field(record, "supportedInterfaces", "supported_interfaces", "interfaces", "interface")
            ),
            "pcie_versions": parse_tokens(
                _field(record, "pcieVersions", "pcie_versions", "pcieVersion", "pcie_version", "pcie")
            ),
        }
    if category == Category.RAM:
        return {
            "ram_type": _token(_field(record, "ramType", "ram_type", "memoryType")),
            "frequency": _amount(_field(record, "frequency", "speed", "speedMhz")),
            "capacity": _amount(_field(record, "capacity", "capacityGb", "capacity_gb")),
        }
    if category == Category.STORAGE:
        return {
            "interface": _token(_field(record, "interface", "storageType", "storage_type")),
            "capacity": _amount(_field(record, "capacity", "capacityGb", "capacity_gb")),
        }
    if category == Category.GRAPHICS_CARD:
        return {
            "memory": _amount(_field(record, "memory", "vram", "vramGb", "vram_gb")),
            "pcie_version": _token(_field(record, "pcieVersion", "pcie_version", "pcie")),
            "power": _amount(_field(record, "power", "tdp")),
        }
    if category == Category.CASE:
        # Spreadsheet catalogs keep supported form factors in `formFactor`
        return {
            "supported_form_factors": parse_tokens(
                _field(
                    record,
                    "supportedFormFactors", "supported_form_factors",
                    "formFactorSupport", "form_factor_support",
                    "formFactor", "form_factor",
                )
            ),
        }
    if category == Category.COOLER:
        # ...and a cooler's supported sockets in `socket`
        return {
            "supported_sockets": parse_tokens(
                _field(
                    record,
                    "supportedSockets", "supported_sockets",
                    "socketSupport", "socket_support", "socket",
                )
            ),
            "power": _amount(_field(record, "power")),
        }
    if category == Category.POWER_SUPPLY:
        return {"wattage": _amount(_field(record, "wattage", "watts"))}
    return {"category": category}


# ──────────────────────────────────────────────
# Record → Part
# ──────────────────────────────────────────────


def normalize_record(record: Mapping[str, Any]) -> Optional[PartBase]:
    """Normalize one raw record, or return None if it must be excluded."""
    category = parse_category(_field(record, "category", "type", "component_type"))
    name = _text(record.get("name"))
    price = _number(record.get("price"))

    if category is None:
        logger.debug("Dropping record %r: missing or unknown category", name or record)
        return None
    if not name:
        logger.debug("Dropping %s record: missing name", category.value)
        return None
    if price <= 0:
        logger.debug("Dropping %s %r: non-positive price (%s)", category.value, name, price)
        return None

    attrs = _category_attrs(category, record)
    score = score_part(category, attrs, _amount(record.get("performance")))

    raw_id = _text(record.get("id"))
    description = _text(record.get("description"))
    try:
        return PART_MODELS[category](
            id=raw_id or part_id(category, name, price, description),
            name=name,
            description=description,
            price=price,
            score=score,
            **attrs,
        )
    except ValidationError as e:
        logger.debug("Dropping %s %r: %s", category.value, name, e)
        return None


def normalize_catalog(records: Iterable[Mapping[str, Any]]) -> List[PartBase]:
    """Normalize a batch of raw records, silently skipping malformed ones."""
    parts: List[PartBase] = []
    dropped = 0
    for record in records:
        if not isinstance(record, Mapping):
            dropped += 1
            continue
        part = normalize_record(record)
        if part is None:
            dropped += 1
            continue
        parts.append(part)

    if dropped:
        logger.info("Catalog normalized: %d parts kept, %d records dropped", len(parts), dropped)
    return parts
