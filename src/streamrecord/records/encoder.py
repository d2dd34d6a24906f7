"""Flattening encoder.

Turns a Record into an ordered list of (key, primitive) pairs ready for
a column store or a JSON log line:

    common fields -> stream fields (schema order) -> open bag (sorted)
    -> enrichment (sorted)

Opaque objects become canonical JSON text, so two encodings of
semantically identical records are byte-identical.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any, Iterable, Union

from streamrecord.errors import DecodingError, EncodingError
from streamrecord.models.record import Record
from streamrecord.models.streams import COMMON_FIELD_NAMES, FieldSpec, FieldType
from streamrecord.records.validator import matches_type
from streamrecord.schema.registry import SchemaRegistry
from streamrecord.utils.timefmt import (
    format_compact_timestamp,
    format_duration,
    parse_duration,
)

Primitive = Union[str, int, bool]
FlatPairs = list[tuple[str, Primitive]]


def canonical_json(value: Any) -> str:
    """Deterministic JSON text: sorted keys, no whitespace, no NaN."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def encode_value(key: str, value: Any) -> Primitive:
    """Flatten one value to a primitive."""
    if isinstance(value, (str, int)):  # bool is an int
        return value
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, datetime):
        return format_compact_timestamp(value)
    try:
        return canonical_json(value)
    except (TypeError, ValueError) as exc:
        raise EncodingError(key, str(exc)) from exc


def encode(record: Record) -> FlatPairs:
    """Encode a record into ordered flat pairs. Null values are omitted."""
    pairs: FlatPairs = []
    for key, value in record.items():
        if value is None:
            continue
        pairs.append((key, encode_value(key, value)))
    return pairs


def to_json_line(pairs: Iterable[tuple[str, Primitive]]) -> str:
    """Render flat pairs as one compact JSON object, keeping pair order."""
    return json.dumps(dict(pairs), ensure_ascii=False, separators=(",", ":"))


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_value(spec: FieldSpec, value: Any) -> Any:
    if spec.type is FieldType.DURATION and isinstance(value, str):
        try:
            return parse_duration(value)
        except (ValueError, OverflowError) as exc:
            raise DecodingError(spec.key, str(exc)) from exc
    if spec.type is FieldType.OBJECT and isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError as exc:
            raise DecodingError(spec.key, str(exc)) from exc
    if not matches_type(spec.type, value):
        raise DecodingError(
            spec.key, f"expected {spec.type.value}, got {type(value).__name__}"
        )
    return value


def decode(pairs: Iterable[tuple[str, Primitive]], registry: SchemaRegistry) -> Record:
    """Rebuild a Record from flat pairs.

    Primitive fields come back exactly; durations become timedeltas and
    object fields are parsed from JSON. Keys that are neither common,
    declared, nor in the open bag are taken as enrichment fields.
    """
    flat: dict[str, Primitive] = {}
    for key, value in pairs:
        if key in flat:
            raise DecodingError(key, "duplicate key")
        flat[key] = value

    for name in ("stream", "version", "observed_time"):
        if not isinstance(flat.get(name), str):
            raise DecodingError(name, "missing or not a string")
    schema = registry.lookup(flat["stream"], flat["version"])

    common: dict[str, str] = {}
    decoded: dict[str, Any] = {}
    attributes: dict[str, Any] = {}
    enrichment: dict[str, Any] = {}
    for key, value in flat.items():
        if key in COMMON_FIELD_NAMES:
            if not isinstance(value, str):
                raise DecodingError(key, "common fields are strings")
            common[key] = value
            continue
        spec = schema.field_by_key(key)
        if spec is not None:
            decoded[key] = _decode_value(spec, value)
        elif schema.open_bag and key.startswith(schema.open_bag):
            attributes[key[len(schema.open_bag):]] = value
        else:
            enrichment[key] = value

    return Record(
        stream=schema.stream,
        version=schema.version,
        observed_time=common.pop("observed_time"),
        fields={s.key: decoded[s.key] for s in schema.fields if s.key in decoded},
        open_bag=schema.open_bag,
        attributes=dict(sorted(attributes.items())),
        enrichment=enrichment,
        **{k: v for k, v in common.items() if k not in ("stream", "version")},
    )
