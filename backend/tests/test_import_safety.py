"""
test_import_safety.py — Import and independence checks.

Verifies that:
  1. Every engine module imports cleanly with only the declared dependencies.
  2. The two aggregators stay independent of each other (no shared state).
  3. Engine modules do no I/O: no storage, HTTP or filesystem access in source.
"""

import importlib
import inspect

import pytest


_ENGINE_MODULES = [
    "buildtrack.config",
    "buildtrack.models.project_schema",
    "buildtrack.services.numeric",
    "buildtrack.services.errors",
    "buildtrack.services.validation",
    "buildtrack.services.cost_aggregator",
    "buildtrack.services.progress_aggregator",
    "buildtrack.services.report_engine",
    "buildtrack.services.logging_config",
    "buildtrack.services.perf_monitor",
]


class TestModuleImports:

    @pytest.mark.parametrize("module_path", _ENGINE_MODULES)
    def test_module_imports(self, module_path):
        try:
            mod = importlib.import_module(module_path)
        except Exception as e:
            pytest.fail(f"{module_path} raised on import: {type(e).__name__}: {e}")
        assert mod is not None


class TestIndependence:

    def test_aggregators_do_not_import_each_other(self):
        import buildtrack.services.cost_aggregator as cost
        import buildtrack.services.progress_aggregator as progress
        assert "progress_aggregator" not in inspect.getsource(cost)
        assert "cost_aggregator" not in inspect.getsource(progress)

    @pytest.mark.parametrize("module_path", [
        "buildtrack.services.cost_aggregator",
        "buildtrack.services.progress_aggregator",
        "buildtrack.services.numeric",
        "buildtrack.services.validation",
    ])
    def test_engine_modules_do_no_io(self, module_path):
        src = inspect.getsource(importlib.import_module(module_path))
        for marker in ("open(", "import requests", "httpx", "sqlalchemy", "os.environ", "getenv"):
            assert marker not in src, f"{module_path} must not reference {marker!r}"

    def test_aggregators_hold_no_mutable_state(self, cost_aggregator, progress_aggregator):
        assert set(vars(cost_aggregator)) == {"policy"}
        assert vars(progress_aggregator) == {}
