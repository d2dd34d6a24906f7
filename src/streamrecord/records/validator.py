"""Record validation.

Checks a Record against the schema of its (stream, version). Pure and
side-effect free. Every violation is collected so one call surfaces
all problems with a record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from streamrecord.errors import (
    MissingRequiredFieldError,
    NamespaceViolationError,
    RecordError,
    RecordRejectedError,
    TypeMismatchError,
)
from streamrecord.models.record import Record
from streamrecord.models.streams import CONTEXT_FIELD_NAMES, FieldType
from streamrecord.schema.registry import SchemaRegistry
from streamrecord.utils.timefmt import is_compact_timestamp


@dataclass
class ValidationResult:
    """Outcome of validating one record. Empty errors means ok."""
    errors: list[RecordError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise RecordRejectedError(self.errors)


def matches_type(ftype: FieldType, value: Any) -> bool:
    """Whether value is a valid in-record representation of ftype."""
    if ftype is FieldType.STRING:
        return isinstance(value, str)
    if ftype is FieldType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if ftype is FieldType.BOOLEAN:
        return isinstance(value, bool)
    if ftype is FieldType.DURATION:
        return isinstance(value, timedelta)
    if ftype is FieldType.TIMESTAMP:
        return is_compact_timestamp(value)
    if ftype is FieldType.OBJECT:
        return isinstance(value, (Mapping, list, tuple))
    return False


class RecordValidator:
    """Validate records against a schema registry."""

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry

    def validate(self, record: Record) -> ValidationResult:
        """Return every violation found in record.

        Raises SchemaNotFoundError if the record's discriminator is not
        registered; that is a programming error, not a bad record.
        """
        schema = self.registry.lookup(record.stream, record.version)
        errors: list[RecordError] = []

        # Common fields
        if not record.observed_time:
            errors.append(MissingRequiredFieldError("observed_time"))
        elif not is_compact_timestamp(record.observed_time):
            errors.append(
                TypeMismatchError("observed_time", FieldType.TIMESTAMP, record.observed_time)
            )
        for name in CONTEXT_FIELD_NAMES:
            value = getattr(record, name)
            if value is not None and not isinstance(value, str):
                errors.append(TypeMismatchError(name, FieldType.STRING, value))

        # Stream fields: declared, owned, typed
        for key, value in record.fields.items():
            spec = schema.field_by_key(key)
            if spec is None:
                errors.append(NamespaceViolationError(key, record.stream))
            elif value is not None and not matches_type(spec.type, value):
                errors.append(TypeMismatchError(key, spec.type, value))

        for spec in schema.fields:
            if not spec.required:
                continue
            if record.fields.get(spec.key) is None and record.enrichment.get(spec.key) is None:
                errors.append(MissingRequiredFieldError(spec.key))

        # Open bag: only the stream's own prefix, inner keys unchecked
        if record.attributes:
            prefix = record.open_bag or ""
            if schema.open_bag is None or prefix != schema.open_bag:
                for inner in record.attributes:
                    errors.append(NamespaceViolationError(f"{prefix}{inner}", record.stream))

        # Enrichment values are flat primitives by construction
        for key, value in record.enrichment.items():
            if not isinstance(value, (str, int, bool)):
                errors.append(TypeMismatchError(key, "string|integer|boolean", value))

        return ValidationResult(errors=errors)
