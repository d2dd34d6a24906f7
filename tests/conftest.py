"""Pytest configuration for the streamrecord test suite."""

import os
import logging
from datetime import datetime, timezone

import pytest

# Ensure test environment variables are set before any imports
os.environ.setdefault("STREAMRECORD_LOG_LEVEL", "warning")

from streamrecord.enrichment import EnrichmentLayer  # noqa: E402
from streamrecord.records.builder import RecordBuilder  # noqa: E402
from streamrecord.records.validator import RecordValidator  # noqa: E402
from streamrecord.schema.catalog import default_registry  # noqa: E402

FIXED_NOW = datetime(2025, 1, 14, 16, 20, 59, 123456, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """bootstrap() installs a JSON handler; undo it between tests."""
    yield
    root = logging.getLogger("streamrecord")
    for h in list(root.handlers):
        root.removeHandler(h)
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def enrichment():
    layer = EnrichmentLayer()
    layer.configure({"region": "US1"})
    return layer


@pytest.fixture
def builder(registry, enrichment):
    return RecordBuilder(registry, enrichment, clock=lambda: FIXED_NOW)


@pytest.fixture
def validator(registry):
    return RecordValidator(registry)
