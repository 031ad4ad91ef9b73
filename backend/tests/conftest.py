"""
conftest.py — Shared pytest fixtures for the BuildTrack engine test suite.

All tests are pure unit tests over in-memory documents; no database or
external services are involved.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``buildtrack.*`` imports resolve regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any package imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Aggregator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def cost_aggregator():
    """CostAggregator with the default policy (no tax rate, no markup)."""
    from buildtrack.services.cost_aggregator import CostAggregator
    return CostAggregator()


@pytest.fixture(scope="session")
def markup_aggregator():
    """CostAggregator applying a 10% markup rate."""
    from buildtrack.config import PricingPolicy
    from buildtrack.services.cost_aggregator import CostAggregator
    return CostAggregator(PricingPolicy(markup_rate=0.10))


@pytest.fixture(scope="session")
def progress_aggregator():
    from buildtrack.services.progress_aggregator import ProgressAggregator
    return ProgressAggregator()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def foundation_bom():
    """
    One "Foundation" category: 10 × 500 + 5 × 1000 = 10 000.
    Labor 20 000, tax 3 000 → total project cost 33 000.
    """
    return {
        "projectDetails": {
            "totalArea": 120,
            "numFloors": 2,
            "roomCount": 5,
            "foundationDepth": 1.5,
            "avgFloorHeight": 3,
        },
        "categories": [
            {
                "category": "Foundation",
                "materials": [
                    {"description": "Cement", "quantity": 10, "unit": "bags", "cost": 500},
                    {"description": "Rebar", "quantity": 5, "unit": "pcs", "cost": 1000},
                ],
            }
        ],
        "laborCost": 20000,
        "tax": 3000,
    }


@pytest.fixture
def two_floor_project(foundation_bom):
    """
    Floor A tasks [50, 100] → 75; floor B has no tasks → 0.
    Project progress = 37.5 (38% for display).
    """
    return {
        "_id": "p-001",
        "name": "Soriano Residence",
        "startDate": "2024-03-01T00:00:00Z",
        "status": "in-progress",
        "updatedAt": "2024-06-15T08:30:00Z",
        "floors": [
            {
                "_id": "f-a",
                "name": "Ground Floor",
                "progress": 12,
                "images": [{"path": "/uploads/ground.jpg", "remark": "Slab poured"}],
                "tasks": [
                    {"_id": "t-1", "name": "Excavation", "progress": 50,
                     "images": [{"path": "/uploads/excavation.jpg"}]},
                    {"_id": "t-2", "name": "Footings", "progress": 100},
                ],
            },
            {"_id": "f-b", "name": "Second Floor", "tasks": []},
        ],
        "bom": foundation_bom,
    }
