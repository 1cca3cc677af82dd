"""Shared enums and typed part models for the PC Builder engine."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, FrozenSet, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ──────────────────────────────────────────────
# Enums — Shared Vocabulary
# ──────────────────────────────────────────────


class Category(str, Enum):
    """Component slots a build can fill."""

    PROCESSOR = "processor"
    MOTHERBOARD = "motherboard"
    RAM = "ram"
    STORAGE = "storage"
    GRAPHICS_CARD = "graphicsCard"
    CASE = "case"
    COOLER = "cooler"
    MONITOR = "monitor"
    POWER_SUPPLY = "powerSupply"
    KEYBOARD = "keyboard"
    MOUSE = "mouse"
    OPERATING_SYSTEM = "operatingSystem"


# Raw category spellings seen in catalogs, folded to lower case
CATEGORY_ALIASES: dict[str, Category] = {
    **{c.value.lower(): c for c in Category},
    "cpu": Category.PROCESSOR,
    "mobo": Category.MOTHERBOARD,
    "memory": Category.RAM,
    "gpu": Category.GRAPHICS_CARD,
    "graphics_card": Category.GRAPHICS_CARD,
    "graphics card": Category.GRAPHICS_CARD,
    "psu": Category.POWER_SUPPLY,
    "power_supply": Category.POWER_SUPPLY,
    "power supply": Category.POWER_SUPPLY,
    "os": Category.OPERATING_SYSTEM,
    "operating_system": Category.OPERATING_SYSTEM,
    "operating system": Category.OPERATING_SYSTEM,
}


def parse_category(value: object) -> Optional[Category]:
    """Resolve a raw category token, or None if it is empty or unknown."""
    if isinstance(value, Category):
        return value
    if not isinstance(value, str):
        return None
    return CATEGORY_ALIASES.get(value.strip().lower())


class SearchStrategy(str, Enum):
    """How the combination generator explores the catalog."""

    EXHAUSTIVE = "exhaustive"
    GREEDY = "greedy"


class PCIePolicy(str, Enum):
    """How a GPU's PCIe version is matched against a motherboard."""

    NO_GREATER_THAN = "no_greater_than"
    EXACT = "exact"


# ──────────────────────────────────────────────
# Part Models — One Variant per Category
# ──────────────────────────────────────────────


class PartBase(BaseModel):
    """Fields every catalog part carries.

    Parts are immutable once normalized. Absent attributes are stored as
    empty strings, empty sets or zero, never None.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    price: float = Field(gt=0)
    score: float = Field(default=0.0, ge=0)

    # Watts drawn; only processors, GPUs and coolers count toward the PSU load
    power: float = Field(default=0.0, ge=0)


class ProcessorPart(PartBase):
    category: Literal[Category.PROCESSOR] = Category.PROCESSOR
    socket: str = ""
    frequency: float = 0.0
    cores: int = 0
    integrated_graphics: bool = False


class MotherboardPart(PartBase):
    category: Literal[Category.MOTHERBOARD] = Category.MOTHERBOARD
    socket: str = ""
    ram_type: str = ""
    form_factor: str = ""
    supported_interfaces: FrozenSet[str] = frozenset()
    pcie_versions: FrozenSet[str] = frozenset()


class RamPart(PartBase):
    category: Literal[Category.RAM] = Category.RAM
    ram_type: str = ""
    frequency: float = 0.0
    capacity: float = 0.0


class StoragePart(PartBase):
    category: Literal[Category.STORAGE] = Category.STORAGE
    interface: str = ""
    capacity: float = 0.0


class GraphicsCardPart(PartBase):
    category: Literal[Category.GRAPHICS_CARD] = Category.GRAPHICS_CARD
    memory: float = 0.0
    pcie_version: str = ""


class CasePart(PartBase):
    category: Literal[Category.CASE] = Category.CASE
    supported_form_factors: FrozenSet[str] = frozenset()


class CoolerPart(PartBase):
    category: Literal[Category.COOLER] = Category.COOLER
    supported_sockets: FrozenSet[str] = frozenset()


class PowerSupplyPart(PartBase):
    category: Literal[Category.POWER_SUPPLY] = Category.POWER_SUPPLY
    wattage: float = 0.0


class PeripheralPart(PartBase):
    """Monitors, keyboards, mice and operating systems: no compatibility axis."""

    category: Literal[
        Category.MONITOR,
        Category.KEYBOARD,
        Category.MOUSE,
        Category.OPERATING_SYSTEM,
    ]


Part = Annotated[
    Union[
        ProcessorPart,
        MotherboardPart,
        RamPart,
        StoragePart,
        GraphicsCardPart,
        CasePart,
        CoolerPart,
        PowerSupplyPart,
        PeripheralPart,
    ],
    Field(discriminator="category"),
]


PART_MODELS: dict[Category, type[PartBase]] = {
    Category.PROCESSOR: ProcessorPart,
    Category.MOTHERBOARD: MotherboardPart,
    Category.RAM: RamPart,
    Category.STORAGE: StoragePart,
    Category.GRAPHICS_CARD: GraphicsCardPart,
    Category.CASE: CasePart,
    Category.COOLER: CoolerPart,
    Category.POWER_SUPPLY: PowerSupplyPart,
    Category.MONITOR: PeripheralPart,
    Category.KEYBOARD: PeripheralPart,
    Category.MOUSE: PeripheralPart,
    Category.OPERATING_SYSTEM: PeripheralPart,
}
