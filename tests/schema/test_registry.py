"""Tests for the schema registry and the built-in v1 catalog."""

import pytest
from streamrecord.errors import SchemaNotFoundError, SchemaRegistrationError
from streamrecord.models.streams import (
    COMMON_FIELD_NAMES,
    COMMON_FIELDS,
    FieldSpec,
    FieldType,
    StreamKind,
)
from streamrecord.schema.catalog import V1, default_registry, register_v1
from streamrecord.schema.registry import SchemaRegistry


class TestLookup:
    """Every stream has a v1 schema; anything else is not found."""

    @pytest.mark.parametrize("kind", list(StreamKind))
    def test_every_stream_registered(self, registry, kind):
        schema = registry.lookup(kind, V1)
        assert schema.stream is kind
        assert schema.version == V1
        assert schema.all_fields()[:len(COMMON_FIELDS)] == COMMON_FIELDS

    def test_notification_has_only_common_fields(self, registry):
        schema = registry.lookup(StreamKind.NOTIFICATION, V1)
        assert schema.fields == ()
        assert [f.name for f in schema.all_fields()] == list(COMMON_FIELD_NAMES)

    def test_lookup_by_string(self, registry):
        assert registry.lookup("request_http", "v1").stream is StreamKind.REQUEST_HTTP

    @pytest.mark.parametrize("stream,version", [
        ("request_http", "v2"),
        ("request_http", ""),
        ("bogus", "v1"),
        ("REQUEST_HTTP", "v1"),
    ])
    def test_unregistered_pairs(self, registry, stream, version):
        with pytest.raises(SchemaNotFoundError) as exc_info:
            registry.lookup(stream, version)
        assert exc_info.value.version == version

    def test_contains(self, registry):
        assert ("event", "v1") in registry
        assert (StreamKind.EVENT, "v2") not in registry
        assert "event" not in registry


class TestRegistration:
    """Registration is a one-time, validated startup phase."""

    def test_register_and_lookup(self):
        reg = SchemaRegistry()
        reg.register(
            "event", "v2",
            [FieldSpec(name="id", required=True, namespace="event_")],
        )
        assert reg.lookup("event", "v2").field_by_name("id").key == "event_id"

    def test_duplicate_rejected(self):
        reg = register_v1(SchemaRegistry())
        with pytest.raises(SchemaRegistrationError):
            reg.register("event", V1, [])

    def test_frozen_rejects_register(self):
        reg = default_registry()
        assert reg.frozen
        with pytest.raises(SchemaRegistrationError):
            reg.register("event", "v2", [])

    def test_unknown_stream_rejected(self):
        with pytest.raises(SchemaRegistrationError):
            SchemaRegistry().register("metrics", "v1", [])

    def test_duplicate_local_name_rejected(self):
        fields = [
            FieldSpec(name="id", namespace="event_"),
            FieldSpec(name="id", namespace="event_", type=FieldType.INTEGER),
        ]
        with pytest.raises(SchemaRegistrationError):
            SchemaRegistry().register("event", "v2", fields)

    def test_stream_field_needs_namespace(self):
        with pytest.raises(SchemaRegistrationError):
            SchemaRegistry().register("event", "v2", [FieldSpec(name="id")])

    def test_namespace_must_end_with_underscore(self):
        with pytest.raises(ValueError):
            FieldSpec(name="id", namespace="event")


class TestNamespaces:
    """Ownership resolves to the longest registered prefix."""

    def test_longest_prefix_wins(self, registry):
        assert registry.namespace_of("runtime_service_name") == "runtime_service_"
        assert registry.namespace_of("runtime_message") == "runtime_"
        assert registry.namespace_of("action_trigger_event_id") == "action_trigger_event_"
        assert registry.namespace_of("event_id") == "event_"
        assert registry.namespace_of("request_http_status") == "request_http_"
        assert registry.namespace_of("request_latency") == "request_"

    def test_unowned_keys(self, registry):
        assert registry.namespace_of("region") is None
        assert registry.namespace_of("event_") is None

    def test_shared_namespaces(self, registry):
        http = registry.lookup("request_http", V1).namespaces
        grpc = registry.lookup("request_grpc", V1).namespaces
        assert "request_" in http & grpc
        assert "request_http_" not in grpc

    def test_runtime_open_bag(self, registry):
        for kind in ("runtime_version", "runtime_service", "runtime_error"):
            schema = registry.lookup(kind, V1)
            assert schema.open_bag == "runtime_attributes_"
            assert schema.open_bag_name == "attributes"
        assert registry.lookup("event", V1).open_bag is None

    def test_declaration_order(self, registry):
        keys = [f.key for f in registry.lookup("event", V1).fields]
        assert keys[:4] == ["event_id", "event_sequence", "event_position", "event_type"]
