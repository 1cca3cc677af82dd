"""Preset build tiers: one greedy build per budget level."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from pcbuilder.engine.generator import GeneratorConfig
from pcbuilder.engine.planner import CatalogInput, generate
from pcbuilder.models.build import TemplateBuild, TopN
from pcbuilder.models.components import Category, SearchStrategy


@dataclass(frozen=True)
class BuildTemplate:
    name: str
    budget: float
    categories: Tuple[Category, ...] = tuple(Category)


DEFAULT_TEMPLATES = (
    BuildTemplate("Office PC", 200_000),
    BuildTemplate("Budget gaming", 300_000),
    BuildTemplate("Optimal gaming", 400_000),
)


def build_templates(
    catalog: CatalogInput,
    templates: Iterable[BuildTemplate] = DEFAULT_TEMPLATES,
    config: Optional[GeneratorConfig] = None,
) -> List[TemplateBuild]:
    """Pick the best greedy build for each template within its budget."""
    catalog = tuple(catalog.parts if hasattr(catalog, "parts") else catalog)
    results: List[TemplateBuild] = []
    for template in templates:
        result = generate(
            catalog,
            template.categories,
            budget=template.budget,
            top_n=TopN(within=1, near=0),
            strategy=SearchStrategy.GREEDY,
            config=config,
        )
        results.append(
            TemplateBuild(
                name=template.name,
                budget=template.budget,
                build=result.within[0] if result.within else None,
            )
        )
    return results
