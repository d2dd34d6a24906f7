"""Record builder.

Assembles a candidate Record from a stream discriminator, the common
context and a payload keyed by local field names. The builder owns
the namespace prefixing so producers never spell qualified keys.

Merge order: common fields, stream fields, open bag, enrichment.
Enrichment wins every collision with a stream field or bag key.
Context bound with streamrecord.context.bind_context fills in common
fields the caller does not pass.

The builder holds no mutable state of its own. It only reads the
frozen registry and enrichment layer, so one instance can serve any
number of concurrent producers.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from pydantic import BaseModel

from streamrecord.context import current_context
from streamrecord.enrichment import EnrichmentLayer
from streamrecord.errors import NamespaceViolationError, TypeMismatchError
from streamrecord.models.record import Record, RecordContext
from streamrecord.models.streams import (
    CONTEXT_FIELD_NAMES,
    FieldSpec,
    FieldType,
    StreamKind,
    StreamSchema,
)
from streamrecord.schema.registry import SchemaRegistry
from streamrecord.utils.timefmt import format_compact_timestamp, parse_duration

logger = logging.getLogger("streamrecord.records.builder")

ContextLike = Union[RecordContext, Mapping[str, Any], None]
PayloadLike = Union[BaseModel, Mapping[str, Any], None]


class UnknownFieldPolicy(str, Enum):
    """What to do with payload keys that map to no declared field."""
    DROP = "drop"
    REJECT = "reject"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordBuilder:
    """Build Records for any registered (stream, version).

    Args:
        registry: Frozen schema registry.
        enrichment: Configured enrichment layer.
        unknown_fields: Policy for undeclared payload keys that do not
            belong to a foreign namespace. Foreign-namespace keys are
            always rejected.
        clock: Returns the current time. Defaults to the system UTC clock.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        enrichment: EnrichmentLayer,
        unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.DROP,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.registry = registry
        self.enrichment = enrichment
        self.unknown_fields = UnknownFieldPolicy(unknown_fields)
        self._clock = clock or _utcnow

    def build(
        self,
        stream: StreamKind | str,
        version: str,
        context: ContextLike = None,
        payload: PayloadLike = None,
    ) -> Record:
        """Assemble a candidate record.

        Raises:
            SchemaNotFoundError: (stream, version) is not registered.
            EnrichmentNotInitializedError: enrichment was never configured.
            NamespaceViolationError: a context or payload key belongs to
                another stream's namespace (or is unknown under REJECT).
            TypeMismatchError: a context value is not a string.
        """
        schema = self.registry.lookup(stream, version)
        enrichment = self.enrichment.fields()
        observed_time = format_compact_timestamp(self._clock())

        common = {**current_context(), **self._context_fields(schema, context)}
        values, attributes = self._payload_fields(schema, payload)

        fields = {
            spec.key: values[spec.key]
            for spec in schema.fields
            if spec.key in values and spec.key not in enrichment
        }
        if schema.open_bag:
            attributes = {
                k: v
                for k, v in attributes.items()
                if f"{schema.open_bag}{k}" not in enrichment
            }

        return Record(
            stream=schema.stream,
            version=schema.version,
            observed_time=observed_time,
            fields=fields,
            open_bag=schema.open_bag,
            attributes=attributes,
            enrichment=dict(enrichment),
            **common,
        )

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def _context_fields(
        self, schema: StreamSchema, context: ContextLike
    ) -> dict[str, str]:
        if context is None:
            return {}
        if isinstance(context, RecordContext):
            return context.present()

        out: dict[str, str] = {}
        for key, value in context.items():
            if key not in CONTEXT_FIELD_NAMES:
                raise NamespaceViolationError(key, schema.stream)
            if value is None:
                continue
            if not isinstance(value, str):
                raise TypeMismatchError(key, FieldType.STRING, value)
            out[key] = value
        return out

    # ------------------------------------------------------------------
    # Payload
    # ------------------------------------------------------------------

    def _payload_fields(
        self, schema: StreamSchema, payload: PayloadLike
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Map payload keys to qualified stream fields and open-bag entries."""
        values: dict[str, Any] = {}
        attributes: dict[str, Any] = {}
        bag_name = schema.open_bag_name

        for key, value in _payload_items(payload):
            if value is None:
                continue

            if bag_name is not None and key == bag_name:
                if not isinstance(value, Mapping):
                    raise TypeMismatchError(key, FieldType.OBJECT, value)
                for inner, inner_value in value.items():
                    attributes[str(inner)] = inner_value
                continue

            spec = schema.field_by_name(key) or schema.field_by_key(key)
            if spec is not None:
                values[spec.key] = _normalize(spec, value)
                continue

            if schema.open_bag and key.startswith(schema.open_bag) and key != schema.open_bag:
                attributes[key[len(schema.open_bag):]] = value
                continue

            owner = self.registry.namespace_of(key)
            if owner is not None and owner not in schema.namespaces:
                raise NamespaceViolationError(key, schema.stream)
            if self.unknown_fields is UnknownFieldPolicy.REJECT:
                raise NamespaceViolationError(key, schema.stream)
            logger.debug(
                "Dropping undeclared payload key %s for %s/%s",
                key, schema.stream.value, schema.version,
            )

        return values, attributes


def _payload_items(payload: PayloadLike) -> Iterable[tuple[str, Any]]:
    if payload is None:
        return ()
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_none=True).items()
    return payload.items()


def _normalize(spec: FieldSpec, value: Any) -> Any:
    """Bring convenience inputs to their in-record representation.

    Values that cannot be normalized are kept as given; the validator
    reports them as type mismatches.
    """
    if spec.type is FieldType.DURATION:
        if isinstance(value, str):
            try:
                return parse_duration(value)
            except (ValueError, OverflowError):
                return value
        if _is_seconds(value):
            try:
                return timedelta(seconds=value)
            except OverflowError:
                return value
    elif spec.type is FieldType.TIMESTAMP and isinstance(value, datetime):
        return format_compact_timestamp(value)
    return value


def _is_seconds(value: Any) -> bool:
    """Finite, non-negative int or float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return value >= 0
