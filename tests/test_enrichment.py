"""Tests for the write-once enrichment layer."""

import threading

import pytest
from streamrecord.enrichment import EnrichmentLayer
from streamrecord.errors import (
    EnrichmentAlreadyConfiguredError,
    EnrichmentConfigurationError,
    EnrichmentNotInitializedError,
    StartupError,
)


class TestLifecycle:

    def test_fields_before_configure(self):
        with pytest.raises(EnrichmentNotInitializedError):
            EnrichmentLayer().fields()

    def test_configure_twice(self):
        layer = EnrichmentLayer()
        layer.configure({"region": "US1"})
        with pytest.raises(EnrichmentNotInitializedError) as exc_info:
            layer.configure({"region": "EU1"})
        assert isinstance(exc_info.value, EnrichmentAlreadyConfiguredError)
        assert isinstance(exc_info.value, StartupError)
        assert layer.fields()["region"] == "US1"

    def test_empty_set_is_configured(self):
        layer = EnrichmentLayer()
        layer.configure({})
        assert layer.configured
        assert dict(layer.fields()) == {}


class TestFrozenSet:

    def test_read_only(self):
        layer = EnrichmentLayer()
        layer.configure({"region": "US1"})
        with pytest.raises(TypeError):
            layer.fields()["region"] = "EU1"

    def test_source_mapping_not_shared(self):
        source = {"region": "US1"}
        layer = EnrichmentLayer()
        layer.configure(source)
        source["region"] = "EU1"
        assert layer.fields()["region"] == "US1"

    def test_sorted_keys(self):
        layer = EnrichmentLayer()
        layer.configure({"zone": "b", "region": "US1", "build": 7})
        assert list(layer.fields()) == ["build", "region", "zone"]

    def test_concurrent_readers(self):
        layer = EnrichmentLayer()
        layer.configure({"region": "US1"})
        seen = []

        def read():
            for _ in range(200):
                seen.append(layer.fields()["region"])

        threads = [threading.Thread(target=read) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert set(seen) == {"US1"}
        assert len(seen) == 1600


class TestConfigurationErrors:

    @pytest.mark.parametrize("key", [
        "stream", "version", "observed_time",
        "trace_id", "span_id", "instance_id", "org_id", "user_id",
    ])
    def test_common_field_keys_rejected(self, key):
        with pytest.raises(EnrichmentConfigurationError):
            EnrichmentLayer().configure({key: "x"})

    @pytest.mark.parametrize("value", [1.5, None, ["a"], {"a": 1}])
    def test_non_primitive_values(self, value):
        with pytest.raises(EnrichmentConfigurationError):
            EnrichmentLayer().configure({"region": value})

    def test_failed_configure_leaves_layer_unset(self):
        layer = EnrichmentLayer()
        with pytest.raises(EnrichmentConfigurationError):
            layer.configure({"stream": "x"})
        assert not layer.configured
        layer.configure({"region": "US1"})
