"""End-to-end tests for generate() and the preset templates."""

import math

import pytest
from pydantic import ValidationError

from pcbuilder.catalog.snapshot import CatalogSnapshot
from pcbuilder.engine.compatibility import check_compatibility
from pcbuilder.engine.generator import GeneratorConfig
from pcbuilder.engine.planner import NO_CONFIGURATIONS_MESSAGE, generate
from pcbuilder.engine.templates import DEFAULT_TEMPLATES, BuildTemplate, build_templates
from pcbuilder.models.build import GenerationRequest, GenerationStatus, TopN
from pcbuilder.models.components import PART_MODELS, Category, SearchStrategy


# ──────────────────────────────────────────────
# Test Fixtures — Sample catalog
# ──────────────────────────────────────────────


def _make(category: Category, name: str, price: float, score: float = 1.0, **attrs):
    return PART_MODELS[category](
        id=f"{category.value}-{name}",
        name=name,
        category=category,
        price=price,
        score=score,
        **attrs,
    )


SAMPLE_RECORDS = [
    {"category": "processor", "name": "Ryzen 5 7600", "price": 60000, "socket": "AM5",
     "frequency": 3.8, "cores": 6, "power": 65},
    {"category": "processor", "name": "Ryzen 5 5600G", "price": 30000, "socket": "AM4",
     "frequency": 3.9, "cores": 6, "power": 65, "integratedGraphics": "TRUE"},
    {"category": "motherboard", "name": "B650M", "price": 45000, "socket": "AM5",
     "ramType": "DDR5", "formFactor": "mATX", "supportedInterfaces": "NVMe,SATA",
     "pcieVersions": "4.0"},
    {"category": "motherboard", "name": "B550M", "price": 25000, "socket": "AM4",
     "ramType": "DDR4", "formFactor": "mATX", "supportedInterfaces": "NVMe,SATA",
     "pcieVersions": "4.0"},
    {"category": "ram", "name": "DDR5 16GB", "price": 15000, "ramType": "DDR5",
     "frequency": 5200, "capacity": 16},
    {"category": "ram", "name": "DDR4 16GB", "price": 10000, "ramType": "DDR4",
     "frequency": 3200, "capacity": 16},
    {"category": "storage", "name": "NVMe 1TB", "price": 12000, "interface": "NVMe"},
    {"category": "graphicsCard", "name": "RTX 4060", "price": 90000, "memory": 8,
     "pcieVersion": "4.0", "power": 115},
    {"category": "case", "name": "H5 Flow", "price": 15000, "formFactor": "ATX,mATX"},
    {"category": "cooler", "name": "AK400", "price": 6000, "socket": "AM4,AM5"},
    {"category": "powerSupply", "name": "550W", "price": 9000, "wattage": 550},
]


@pytest.fixture
def snapshot():
    return CatalogSnapshot.from_records(SAMPLE_RECORDS)


# ──────────────────────────────────────────────
# Request Validation
# ──────────────────────────────────────────────


class TestValidation:
    @pytest.mark.parametrize("budget", [0, -5, "abc", math.nan, math.inf])
    def test_invalid_budget_rejected(self, snapshot, budget):
        with pytest.raises(ValidationError):
            generate(snapshot, [Category.PROCESSOR], budget=budget)

    def test_empty_categories_rejected(self, snapshot):
        with pytest.raises(ValidationError):
            generate(snapshot, [], budget=100_000)

    def test_unknown_category_rejected(self, snapshot):
        with pytest.raises(ValidationError):
            generate(snapshot, ["toaster"], budget=100_000)

    def test_aliases_and_duplicates_normalized(self):
        request = GenerationRequest(active_categories=["cpu", "processor", "GPU", "psu"])
        assert request.active_categories == [
            Category.PROCESSOR, Category.GRAPHICS_CARD, Category.POWER_SUPPLY,
        ]

    def test_margin_modes(self):
        absolute = GenerationRequest(active_categories=["ram"], budget=200_000, tolerance=50_000)
        fraction = GenerationRequest(
            active_categories=["ram"], budget=200_000, tolerance=0.1, tolerance_mode="fraction",
        )
        assert absolute.ceiling == 250_000
        assert fraction.margin == pytest.approx(20_000)
        assert GenerationRequest(active_categories=["ram"]).ceiling is None

    def test_fraction_mode_has_its_own_default(self):
        request = GenerationRequest(
            active_categories=["ram"], budget=200_000, tolerance_mode="fraction",
        )
        assert request.tolerance == pytest.approx(0.1)
        assert request.ceiling == pytest.approx(220_000)
        assert GenerationRequest(active_categories=["ram"]).tolerance == 100_000

    def test_fraction_above_one_rejected(self, snapshot):
        with pytest.raises(ValidationError):
            generate(
                snapshot, [Category.PROCESSOR], budget=100_000,
                tolerance=100_000, tolerance_mode="fraction",
            )


# ──────────────────────────────────────────────
# generate()
# ──────────────────────────────────────────────


class TestGenerate:
    def test_within_and_near_partitions(self, snapshot):
        result = generate(snapshot, list(Category), budget=200_000, tolerance=60_000)
        assert result.status == GenerationStatus.OK
        assert result.within
        assert all(b.total_price <= 200_000 for b in result.within)
        assert all(200_000 < b.total_price <= 260_000 for b in result.near)
        assert all(
            a.total_score >= b.total_score for a, b in zip(result.within, result.within[1:])
        )

    def test_returned_builds_are_compatible(self, snapshot):
        result = generate(snapshot, list(Category), budget=300_000)
        for build in result.within + result.near:
            assert check_compatibility(build).passed

    def test_empty_categories_reported(self, snapshot):
        result = generate(
            snapshot, [Category.PROCESSOR, Category.MONITOR], budget=100_000,
        )
        assert result.empty_categories == [Category.MONITOR]
        assert result.within
        assert all(Category.MONITOR not in b.parts for b in result.within)

    def test_no_configurations(self):
        cpu = _make(Category.PROCESSOR, "cpu", 500_000)
        result = generate([cpu], [Category.PROCESSOR], budget=100_000, tolerance=0)
        assert result.status == GenerationStatus.NO_CONFIGURATIONS
        assert result.message == NO_CONFIGURATIONS_MESSAGE
        assert result.within == [] and result.near == []

    def test_scenario_ranking_by_score(self):
        cheap = _make(Category.PROCESSOR, "cheap", 90_000, score=50)
        better = _make(Category.PROCESSOR, "better", 95_000, score=80)
        result = generate([cheap, better], [Category.PROCESSOR], budget=100_000)
        assert result.within[0].parts[Category.PROCESSOR] == better

    def test_same_product_from_two_listings_kept_apart(self):
        listings = CatalogSnapshot.from_records([
            {"category": "processor", "name": "Ryzen 5 7600", "price": 100},
            {"category": "processor", "name": "Ryzen 5 7600", "price": 90},
        ])
        result = generate(listings, [Category.PROCESSOR], budget=1_000)
        assert sorted(b.total_price for b in result.within) == [90, 100]

    def test_idempotent(self, snapshot):
        first = generate(snapshot, list(Category), budget=250_000)
        second = generate(snapshot, list(Category), budget=250_000)
        assert first.model_dump() == second.model_dump()

    def test_unconstrained_budget(self, snapshot):
        result = generate(snapshot, [Category.PROCESSOR, Category.MOTHERBOARD])
        assert result.budget is None
        assert result.near == []
        assert len(result.within) == 2

    def test_top_n_respected(self, snapshot):
        result = generate(snapshot, list(Category), budget=400_000, top_n=TopN(within=1, near=0))
        assert len(result.within) == 1
        assert result.near == []

    def test_truncation_reported(self, snapshot):
        result = generate(
            snapshot, list(Category), config=GeneratorConfig(max_candidates=1),
        )
        assert result.truncated is True
        assert result.candidates_considered == 1

    def test_cancellation_reported(self, snapshot):
        result = generate(snapshot, list(Category), budget=200_000, should_stop=lambda: True)
        assert result.cancelled is True
        assert result.status == GenerationStatus.NO_CONFIGURATIONS

    def test_greedy_strategy_stays_within_budget(self, snapshot):
        result = generate(snapshot, list(Category), budget=150_000, strategy="greedy")
        assert result.strategy == SearchStrategy.GREEDY
        assert result.within
        assert result.near == []
        assert all(b.total_price <= 150_000 for b in result.within)


# ──────────────────────────────────────────────
# Templates
# ──────────────────────────────────────────────


class TestTemplates:
    def test_default_tiers(self):
        assert [(t.name, t.budget) for t in DEFAULT_TEMPLATES] == [
            ("Office PC", 200_000),
            ("Budget gaming", 300_000),
            ("Optimal gaming", 400_000),
        ]

    def test_builds_honour_budgets(self, snapshot):
        results = build_templates(snapshot)
        assert len(results) == 3
        for template in results:
            assert template.build is not None
            assert template.build.total_price <= template.budget

    def test_unaffordable_template_has_no_build(self, snapshot):
        results = build_templates(snapshot, [BuildTemplate("Too cheap", 1_000)])
        assert results[0].build is None
