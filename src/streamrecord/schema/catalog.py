"""Built-in v1 record schemas.

One entry per StreamKind. Shared namespaces: request_ is owned by both
request streams, runtime_ by every runtime stream, action_trigger_grpc_
by both action_trigger_grpc streams.
"""

from __future__ import annotations

from streamrecord.models.streams import FieldSpec, FieldType, StreamKind
from streamrecord.schema.registry import SchemaRegistry

V1 = "v1"

RUNTIME_ATTRIBUTES = "runtime_attributes_"

STR = FieldType.STRING
INT = FieldType.INTEGER
BOOL = FieldType.BOOLEAN
DUR = FieldType.DURATION
OBJ = FieldType.OBJECT


def _group(namespace: str, *fields: tuple) -> list[FieldSpec]:
    """Build FieldSpecs from (name, type[, required]) tuples."""
    specs: list[FieldSpec] = []
    for entry in fields:
        name, ftype = entry[0], entry[1]
        required = entry[2] if len(entry) > 2 else False
        specs.append(
            FieldSpec(name=name, type=ftype, required=required, namespace=namespace)
        )
    return specs


def _request_shared() -> list[FieldSpec]:
    return _group(
        "request_",
        ("is_system_user", BOOL),
        ("is_authenticated", BOOL),
        ("latency", DUR),
    )


def _runtime_shared() -> list[FieldSpec]:
    return _group(
        "runtime_",
        ("severity", STR, True),
        ("message", STR, True),
    )


def _action_trigger_grpc() -> list[FieldSpec]:
    return _group(
        "action_trigger_grpc_",
        ("service", STR, True),
        ("method", STR, True),
    )


# (stream, fields, open bag prefix)
V1_SCHEMAS: list[tuple[StreamKind, list[FieldSpec], str | None]] = [
    (
        StreamKind.REQUEST_HTTP,
        _group(
            "request_http_",
            ("protocol", STR),
            ("host", STR),
            ("port", STR),
            ("path", STR, True),
            ("method", STR, True),
            ("status", INT),
            ("referer", STR),
            ("user_agent", STR),
            ("remote_ip", STR),
            ("bytes_received", INT),
            ("bytes_sent", INT),
        ) + _request_shared(),
        None,
    ),
    (
        StreamKind.REQUEST_GRPC,
        _group(
            "request_grpc_",
            ("service", STR, True),
            ("method", STR, True),
            ("code", STR),
        ) + _request_shared(),
        None,
    ),
    (
        StreamKind.RUNTIME_VERSION,
        _runtime_shared(),
        RUNTIME_ATTRIBUTES,
    ),
    (
        StreamKind.RUNTIME_SERVICE,
        _runtime_shared() + _group(
            "runtime_service_",
            ("name", STR, True),
            ("version", STR),
            ("process", STR),
        ),
        RUNTIME_ATTRIBUTES,
    ),
    (
        StreamKind.RUNTIME_ERROR,
        _runtime_shared() + _group(
            "runtime_error_",
            ("cause", STR, True),
            ("stack", STR),
            ("i18n_key", STR),
            ("type", STR),
        ),
        RUNTIME_ATTRIBUTES,
    ),
    (StreamKind.NOTIFICATION, [], None),
    (
        StreamKind.ACTION_TARGETCALL,
        _group(
            "action_targetcall_",
            ("target_id", STR, True),
            ("name", STR),
            ("protocol", STR),
            ("host", STR),
            ("port", STR),
            ("path", STR),
            ("method", STR),
            ("status", INT),
        ),
        None,
    ),
    (StreamKind.ACTION_TRIGGER_GRPC_REQUEST, _action_trigger_grpc(), None),
    (
        StreamKind.ACTION_TRIGGER_GRPC_RESPONSE,
        _action_trigger_grpc() + _group(
            "action_trigger_grpc_",
            ("response_code", INT),
        ),
        None,
    ),
    (
        StreamKind.ACTION_TRIGGER_EVENT,
        _group("action_trigger_event_", ("id", STR, True)),
        None,
    ),
    (
        StreamKind.ACTION_TRIGGER_FUNCTION,
        _group("action_trigger_function_", ("name", STR, True)),
        None,
    ),
    (
        StreamKind.EVENT,
        _group(
            "event_",
            ("id", STR, True),
            ("sequence", STR),
            ("position", STR),
            ("type", STR, True),
            ("data", OBJ),
            ("editor_user", STR),
            ("version", STR),
            ("aggregate_id", STR, True),
            ("aggregate_type", STR, True),
            ("resource_owner", STR),
        ),
        None,
    ),
]


def register_v1(registry: SchemaRegistry) -> SchemaRegistry:
    """Register every built-in v1 schema on registry."""
    for stream, fields, open_bag in V1_SCHEMAS:
        registry.register(stream, V1, fields, open_bag=open_bag)
    return registry


def default_registry() -> SchemaRegistry:
    """Return a frozen registry holding the built-in v1 catalog."""
    registry = register_v1(SchemaRegistry())
    registry.freeze()
    return registry
