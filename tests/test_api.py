"""Tests for the HTTP API.

Uses FastAPI's TestClient with an in-memory cache; no Redis needed.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from pcbuilder.api import routes
from pcbuilder.api.app import create_app
from pcbuilder.cache.redis_cache import InMemoryCache


# ──────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────


SAMPLE_CATALOG = [
    {"category": "processor", "name": "Ryzen 5 7600", "price": 60000, "socket": "AM5",
     "frequency": 3.8, "cores": 6, "power": 65},
    {"category": "motherboard", "name": "B650M", "price": 45000, "socket": "AM5",
     "ramType": "DDR5", "formFactor": "mATX", "supportedInterfaces": "NVMe,SATA"},
    {"category": "motherboard", "name": "B760M", "price": 40000, "socket": "LGA1700",
     "ramType": "DDR5", "formFactor": "mATX"},
    {"category": "ram", "name": "DDR5 16GB", "price": 15000, "ramType": "DDR5",
     "frequency": 5200, "capacity": 16},
    {"category": "powerSupply", "name": "550W", "price": 9000, "wattage": 550},
]

SAMPLE_SHEET_ROWS = {
    "case": [["H5 Flow", "15000", "Airflow case", "", "", "ATX,mATX", ""]],
}

BUILD_REQUEST = {
    "active_categories": ["processor", "motherboard", "ram", "case", "powerSupply"],
    "budget": 200000,
    "catalog": SAMPLE_CATALOG,
    "sheet_rows": SAMPLE_SHEET_ROWS,
}


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def client(cache):
    app = create_app()
    with TestClient(app) as c:
        # Lifespan wires Redis (or nothing); tests always use memory
        routes.set_cache(cache)
        yield c
    routes.set_cache(None)


# ──────────────────────────────────────────────
# Root & Health
# ──────────────────────────────────────────────


class TestRoot:
    def test_root_returns_engine_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        data = resp.json()
        assert data["engine"] == "PC Builder"
        assert "/builds" in data["routes"]

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["cache_available"] is True
        assert data["cache"]["keys"] == 0

    def test_health_counts_cached_results(self, client):
        client.post("/builds", json=BUILD_REQUEST)
        assert client.get("/health").json()["cache"]["keys"] == 1

    def test_health_without_cache(self, client):
        routes.set_cache(None)
        data = client.get("/health").json()
        assert data["cache_available"] is False
        assert data["cache"] == {"available": False, "keys": 0}


# ──────────────────────────────────────────────
# POST /builds
# ──────────────────────────────────────────────


class TestBuilds:
    def test_generates_compatible_build(self, client):
        resp = client.post("/builds", json=BUILD_REQUEST)
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        best = data["within"][0]
        assert best["total_price"] <= 200000
        assert best["parts"]["motherboard"]["name"] == "B650M"
        assert best["parts"]["case"]["name"] == "H5 Flow"

    def test_second_request_is_cached(self, client):
        first = client.post("/builds", json=BUILD_REQUEST).json()
        second = client.post("/builds", json=BUILD_REQUEST).json()
        assert first["cached"] is False
        assert second["cached"] is True
        prices = [b["total_price"] for b in first["within"]]
        assert [b["total_price"] for b in second["within"]] == prices

    def test_catalog_change_misses_cache(self, client):
        client.post("/builds", json=BUILD_REQUEST)
        changed = dict(BUILD_REQUEST, catalog=SAMPLE_CATALOG[:-1])
        assert client.post("/builds", json=changed).json()["cached"] is False

    def test_flush_drops_cached_results(self, client):
        client.post("/builds", json=BUILD_REQUEST)
        resp = client.delete("/cache")
        assert resp.status_code == 200
        assert resp.json() == {"cleared": 1}
        assert client.post("/builds", json=BUILD_REQUEST).json()["cached"] is False

    def test_no_configurations(self, client):
        resp = client.post("/builds", json=dict(BUILD_REQUEST, budget=1000, tolerance=0))
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "no_configurations"
        assert data["message"] == "No configurations found"

    @pytest.mark.parametrize("budget", [0, -100, "cheap"])
    def test_invalid_budget_is_422(self, client, budget):
        resp = client.post("/builds", json=dict(BUILD_REQUEST, budget=budget))
        assert resp.status_code == 422

    def test_empty_categories_is_422(self, client):
        resp = client.post("/builds", json=dict(BUILD_REQUEST, active_categories=[]))
        assert resp.status_code == 422

    def test_fraction_tolerance_above_one_is_422(self, client):
        body = dict(BUILD_REQUEST, tolerance=50_000, tolerance_mode="fraction")
        assert client.post("/builds", json=body).status_code == 422


# ──────────────────────────────────────────────
# POST /compatibility/check
# ──────────────────────────────────────────────


class TestCompatibilityCheck:
    def test_compatible_parts(self, client):
        resp = client.post("/compatibility/check", json={"parts": SAMPLE_CATALOG[:2]})
        assert resp.status_code == 200
        assert resp.json() == {"compatible": True, "violations": [], "ignored_parts": 0}

    def test_socket_mismatch_reported(self, client):
        parts = [SAMPLE_CATALOG[0], SAMPLE_CATALOG[2], {"category": "ram", "name": ""}]
        data = client.post("/compatibility/check", json={"parts": parts}).json()
        assert data["compatible"] is False
        assert data["violations"][0]["rule"] == "processor_motherboard_socket"
        assert data["ignored_parts"] == 1


# ──────────────────────────────────────────────
# POST /templates
# ──────────────────────────────────────────────


class TestTemplates:
    def test_three_tiers_within_budget(self, client):
        resp = client.post(
            "/templates",
            json={"catalog": SAMPLE_CATALOG, "sheet_rows": SAMPLE_SHEET_ROWS},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [t["name"] for t in data] == ["Office PC", "Budget gaming", "Optimal gaming"]
        for template in data:
            assert template["build"]["total_price"] <= template["budget"]
