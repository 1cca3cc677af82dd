"""Build, request, and result models for the PC Builder engine."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from pcbuilder.config import (
    DEFAULT_TOLERANCE,
    DEFAULT_TOLERANCE_FRACTION,
    DEFAULT_TOP_NEAR,
    DEFAULT_TOP_WITHIN,
)
from pcbuilder.models.components import (
    Category,
    Part,
    SearchStrategy,
    parse_category,
)


# ──────────────────────────────────────────────
# Build
# ──────────────────────────────────────────────


class Build(BaseModel):
    """One candidate configuration: at most one part per category.

    Categories the caller did not ask for, or that had nothing compatible,
    are simply absent.
    """

    model_config = ConfigDict(frozen=True)

    parts: Dict[Category, Part] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_price(self) -> float:
        return sum(p.price for p in self.parts.values())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_score(self) -> float:
        return sum(p.score for p in self.parts.values())

    @property
    def key(self) -> Tuple[Tuple[str, str], ...]:
        """Deterministic identity: sorted (category, part id) pairs."""
        return tuple(sorted((c.value, p.id) for c, p in self.parts.items()))


# ──────────────────────────────────────────────
# Generation Request
# ──────────────────────────────────────────────


class TopN(BaseModel):
    """How many builds to keep in each partition."""

    within: int = Field(default=DEFAULT_TOP_WITHIN, ge=0)
    near: int = Field(default=DEFAULT_TOP_NEAR, ge=0)


class GenerationRequest(BaseModel):
    """Validated parameters for one generation run.

    Budget is optional. None means unconstrained and only the search cap
    applies. Tolerance is either an absolute margin above the budget or a
    fraction of it (at most 1), depending on `tolerance_mode`. Left unset,
    it takes the default for its mode.
    """

    active_categories: List[Category] = Field(min_length=1)
    budget: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    tolerance: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    tolerance_mode: Literal["absolute", "fraction"] = "absolute"
    top_n: TopN = Field(default_factory=TopN)
    strategy: SearchStrategy = SearchStrategy.EXHAUSTIVE

    @field_validator("active_categories", mode="before")
    @classmethod
    def _parse_categories(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple, set, frozenset)):
            return value
        parsed: List[Any] = []
        for raw in value:
            category = parse_category(raw)
            # Unknown tokens are passed through so pydantic reports them
            item = category if category is not None else raw
            if item not in parsed:
                parsed.append(item)
        return parsed

    @model_validator(mode="after")
    def _resolve_tolerance(self) -> "GenerationRequest":
        if self.tolerance is None:
            self.tolerance = (
                DEFAULT_TOLERANCE_FRACTION if self.tolerance_mode == "fraction"
                else DEFAULT_TOLERANCE
            )
        elif self.tolerance_mode == "fraction" and self.tolerance > 1:
            raise ValueError("fractional tolerance must be between 0 and 1")
        return self

    @property
    def margin(self) -> float:
        """Price margin above the budget that still counts as near-budget."""
        if self.budget is None:
            return 0.0
        if self.tolerance_mode == "fraction":
            return self.budget * self.tolerance
        return self.tolerance

    @property
    def ceiling(self) -> Optional[float]:
        """Highest total price any collected build may reach."""
        if self.budget is None:
            return None
        return self.budget + self.margin


class CatalogPayload(BaseModel):
    """Raw catalog data carried by an API request.

    `catalog` holds flat records; `sheet_rows` holds spreadsheet tabs keyed
    by category. Both are normalized and merged.
    """

    catalog: List[Dict[str, Any]] = Field(default_factory=list)
    sheet_rows: Dict[str, List[List[Any]]] = Field(default_factory=dict)


class BuildRequest(CatalogPayload, GenerationRequest):
    """Input contract for POST /builds."""


class CompatibilityCheckRequest(BaseModel):
    """Input contract for POST /compatibility/check."""

    parts: List[Dict[str, Any]] = Field(default_factory=list)


# ──────────────────────────────────────────────
# Generation Result
# ──────────────────────────────────────────────


class GenerationStatus(str, Enum):
    OK = "ok"
    NO_CONFIGURATIONS = "no_configurations"


class GenerationResult(BaseModel):
    """Ranked builds plus what the caller needs to judge them."""

    within: List[Build] = Field(default_factory=list)
    near: List[Build] = Field(default_factory=list)
    status: GenerationStatus = GenerationStatus.OK
    message: str = ""

    strategy: SearchStrategy = SearchStrategy.EXHAUSTIVE
    budget: Optional[float] = None
    candidates_considered: int = 0

    # Search was cut short by the candidate cap / by a deadline or cancel
    truncated: bool = False
    cancelled: bool = False

    # Active categories with no catalog parts at all
    empty_categories: List[Category] = Field(default_factory=list)
    # Active categories that have parts but are missing from a returned build
    unmatched_categories: List[Category] = Field(default_factory=list)
    rejections: Dict[str, int] = Field(default_factory=dict)

    cached: bool = False


class TemplateBuild(BaseModel):
    """A preset budget tier and the build picked for it (if any)."""

    name: str
    budget: float
    build: Optional[Build] = None
