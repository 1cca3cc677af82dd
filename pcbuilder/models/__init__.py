"""Pydantic models for parts, builds, requests and results."""

from pcbuilder.models.build import (
    Build,
    BuildRequest,
    CatalogPayload,
    CompatibilityCheckRequest,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    TemplateBuild,
    TopN,
)
from pcbuilder.models.components import (
    CasePart,
    Category,
    CoolerPart,
    GraphicsCardPart,
    MotherboardPart,
    Part,
    PART_MODELS,
    PartBase,
    PCIePolicy,
    PeripheralPart,
    PowerSupplyPart,
    ProcessorPart,
    RamPart,
    SearchStrategy,
    StoragePart,
    parse_category,
)

__all__ = [
    # Parts & enums
    "CasePart",
    "Category",
    "CoolerPart",
    "GraphicsCardPart",
    "MotherboardPart",
    "Part",
    "PART_MODELS",
    "PartBase",
    "PCIePolicy",
    "PeripheralPart",
    "PowerSupplyPart",
    "ProcessorPart",
    "RamPart",
    "SearchStrategy",
    "StoragePart",
    "parse_category",
    # Build models
    "Build",
    "BuildRequest",
    "CatalogPayload",
    "CompatibilityCheckRequest",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStatus",
    "TemplateBuild",
    "TopN",
]
