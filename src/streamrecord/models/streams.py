"""Stream discriminators and field definitions.

A record's shape is selected by its (stream, version) discriminator.
Each discriminator maps to one StreamSchema: the ordered set of
namespaced fields that stream may carry, plus an optional open
attribute bag whose inner keys are caller-defined.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StreamKind(str, Enum):
    """Event categories. The value is also the stream's field prefix root."""
    REQUEST_HTTP = "request_http"
    REQUEST_GRPC = "request_grpc"
    RUNTIME_VERSION = "runtime_version"
    RUNTIME_SERVICE = "runtime_service"
    RUNTIME_ERROR = "runtime_error"
    NOTIFICATION = "notification"
    ACTION_TARGETCALL = "action_targetcall"
    ACTION_TRIGGER_GRPC_REQUEST = "action_trigger_grpc_request"
    ACTION_TRIGGER_GRPC_RESPONSE = "action_trigger_grpc_response"
    ACTION_TRIGGER_EVENT = "action_trigger_event"
    ACTION_TRIGGER_FUNCTION = "action_trigger_function"
    EVENT = "event"

    @classmethod
    def parse(cls, value: "StreamKind | str") -> Optional["StreamKind"]:
        """Return the member for value, or None if it is not a known stream."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class FieldType(str, Enum):
    """Semantic type of a field value."""
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DURATION = "duration"
    TIMESTAMP = "timestamp"
    OBJECT = "object"


class FieldSpec(BaseModel):
    """Definition of one field.

    `name` is the local name producers use in payloads (e.g. 'status');
    `key` is the qualified name the field carries in a record
    (e.g. 'request_http_status').
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unqualified local name")
    type: FieldType = Field(default=FieldType.STRING, description="Semantic type")
    required: bool = Field(default=False, description="Must be present and non-null")
    namespace: str = Field(
        default="",
        description="Owning prefix ending in '_' ('' for common fields)",
    )

    @model_validator(mode="after")
    def check_namespace(self) -> "FieldSpec":
        if self.namespace and not self.namespace.endswith("_"):
            raise ValueError(f"namespace {self.namespace!r} must end with '_'")
        if not self.name:
            raise ValueError("field name must not be empty")
        return self

    @property
    def key(self) -> str:
        return f"{self.namespace}{self.name}"


# Common fields, in canonical emission order.
COMMON_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(name="stream", required=True),
    FieldSpec(name="version", required=True),
    FieldSpec(name="observed_time", type=FieldType.TIMESTAMP, required=True),
    FieldSpec(name="trace_id"),
    FieldSpec(name="span_id"),
    FieldSpec(name="instance_id"),
    FieldSpec(name="org_id"),
    FieldSpec(name="user_id"),
)
COMMON_FIELD_NAMES: tuple[str, ...] = tuple(f.name for f in COMMON_FIELDS)
CONTEXT_FIELD_NAMES: tuple[str, ...] = COMMON_FIELD_NAMES[3:]


class StreamSchema(BaseModel):
    """The legal field set for one (stream, version) discriminator."""
    model_config = ConfigDict(frozen=True)

    stream: StreamKind
    version: str
    fields: tuple[FieldSpec, ...] = Field(
        default=(),
        description="Stream fields in declaration (= emission) order",
    )
    open_bag: Optional[str] = Field(
        default=None,
        description="Prefix of the open attribute bag, if the stream has one",
    )

    @model_validator(mode="after")
    def check_fields(self) -> "StreamSchema":
        names: set[str] = set()
        keys: set[str] = set()
        for spec in self.fields:
            if not spec.namespace:
                raise ValueError(f"stream field {spec.name!r} has no namespace")
            if spec.name in names:
                raise ValueError(f"duplicate local name {spec.name!r}")
            if spec.key in keys or spec.key in COMMON_FIELD_NAMES:
                raise ValueError(f"duplicate field key {spec.key!r}")
            names.add(spec.name)
            keys.add(spec.key)
        if self.open_bag is not None and not self.open_bag.endswith("_"):
            raise ValueError(f"open bag prefix {self.open_bag!r} must end with '_'")
        return self

    @property
    def namespaces(self) -> frozenset[str]:
        owned = {spec.namespace for spec in self.fields}
        if self.open_bag:
            owned.add(self.open_bag)
        return frozenset(owned)

    @property
    def open_bag_name(self) -> Optional[str]:
        """Local payload name of the open bag ('runtime_attributes_' -> 'attributes')."""
        if not self.open_bag:
            return None
        for ns in sorted(self.namespaces, key=len, reverse=True):
            if ns != self.open_bag and self.open_bag.startswith(ns):
                return self.open_bag[len(ns):].rstrip("_")
        return self.open_bag.rstrip("_")

    def field_by_name(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def field_by_key(self, key: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.key == key:
                return spec
        return None

    def all_fields(self) -> tuple[FieldSpec, ...]:
        """The full FieldSpec set: common fields followed by stream fields.

        Never empty. A stream with no fields of its own (notification)
        still carries stream, version and observed_time.
        """
        return COMMON_FIELDS + self.fields
