"""Error taxonomy for record construction.

Two families. StartupError subclasses signal a broken startup phase
(unregistered discriminator, enrichment configured out of order) and
must abort initialization. RecordError subclasses are per-record: the
offending record is rejected and reported, the process keeps running.
"""

from __future__ import annotations

from typing import Any, Sequence


class StreamRecordError(Exception):
    """Base class for every error raised by streamrecord."""


# ---------------------------------------------------------------------------
# Startup-fatal
# ---------------------------------------------------------------------------


class StartupError(StreamRecordError):
    """Startup-phase contract violated. Fatal."""


class SchemaNotFoundError(StartupError):
    """No schema registered for the (stream, version) discriminator."""

    def __init__(self, stream: Any, version: Any):
        self.stream = str(getattr(stream, "value", stream))
        self.version = str(version)
        super().__init__(
            f"no schema registered for stream={self.stream!r} version={self.version!r}"
        )


class SchemaRegistrationError(StartupError):
    """A schema could not be registered (duplicate, frozen registry, malformed)."""


class EnrichmentError(StartupError):
    """Base class for enrichment layer lifecycle errors."""


class EnrichmentNotInitializedError(EnrichmentError):
    """Enrichment fields read before configure(), or configure() misused."""


class EnrichmentAlreadyConfiguredError(EnrichmentNotInitializedError):
    """configure() called a second time."""


class EnrichmentConfigurationError(EnrichmentError):
    """Enrichment field set is malformed (reserved key, non-primitive value)."""


# ---------------------------------------------------------------------------
# Per-record, recoverable
# ---------------------------------------------------------------------------


class RecordError(StreamRecordError):
    """A single record is invalid. The caller decides what to do with it."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.args == other.args and self.field_name == other.field_name

    def __hash__(self) -> int:
        return hash((type(self), self.field_name, self.args))


class NamespaceViolationError(RecordError):
    """Field belongs to a namespace the record's stream does not own."""

    def __init__(self, field_name: str, stream: Any = ""):
        self.stream = str(getattr(stream, "value", stream))
        msg = f"field {field_name!r} is outside the namespaces of stream {self.stream!r}"
        super().__init__(field_name, msg)


class MissingRequiredFieldError(RecordError):
    """Required field absent or null."""

    def __init__(self, field_name: str):
        super().__init__(field_name, f"required field {field_name!r} is missing")


class TypeMismatchError(RecordError):
    """Field value does not match its declared semantic type."""

    def __init__(self, field_name: str, expected: Any, value: Any):
        self.expected = str(getattr(expected, "value", expected))
        self.actual = type(value).__name__
        super().__init__(
            field_name,
            f"field {field_name!r} expected {self.expected}, got {self.actual}",
        )


class EncodingError(RecordError):
    """Field value could not be serialized to a flat primitive."""

    def __init__(self, field_name: str, reason: str):
        self.reason = reason
        super().__init__(field_name, f"cannot encode field {field_name!r}: {reason}")


class DecodingError(RecordError):
    """Flat pairs could not be turned back into a record."""

    def __init__(self, field_name: str, reason: str):
        self.reason = reason
        super().__init__(field_name, f"cannot decode field {field_name!r}: {reason}")


class RecordRejectedError(RecordError):
    """Aggregate of every violation found in one record."""

    def __init__(self, errors: Sequence[RecordError]):
        self.errors = list(errors)
        names = ", ".join(e.field_name for e in self.errors)
        super().__init__(
            self.errors[0].field_name if self.errors else "",
            f"record rejected with {len(self.errors)} error(s): {names}",
        )
