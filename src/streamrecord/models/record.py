"""Record data model.

A Record is built once per event occurrence, validated, encoded and
handed to the sink. It is never mutated after construction.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from streamrecord.models.streams import StreamKind


class RecordContext(BaseModel):
    """Common identifying fields available to every stream.

    Absent fields are omitted from the record, never defaulted.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    instance_id: Optional[str] = None
    org_id: Optional[str] = None
    user_id: Optional[str] = None

    def present(self) -> dict[str, str]:
        """Return only the fields that are set, in canonical order."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


class Record(BaseModel):
    """One normalized telemetry record.

    Stream fields are stored qualified (e.g. 'request_http_status') in
    schema declaration order. Open-bag attributes are stored by their
    inner key; `open_bag` holds the prefix they are emitted under.
    """
    model_config = ConfigDict(frozen=True)

    stream: StreamKind
    version: str
    observed_time: str = Field(description="Compact UTC timestamp, set once at build")
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    instance_id: Optional[str] = None
    org_id: Optional[str] = None
    user_id: Optional[str] = None

    fields: dict[str, Any] = Field(default_factory=dict)
    open_bag: Optional[str] = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    enrichment: dict[str, Any] = Field(default_factory=dict)

    def common(self) -> dict[str, Any]:
        """Common fields that are present, in canonical order."""
        out: dict[str, Any] = {
            "stream": self.stream.value,
            "version": self.version,
            "observed_time": self.observed_time,
        }
        for name in ("trace_id", "span_id", "instance_id", "org_id", "user_id"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out

    def items(self) -> Iterator[tuple[str, Any]]:
        """Flat logical view: common, stream, open bag, enrichment."""
        yield from self.common().items()
        yield from self.fields.items()
        prefix = self.open_bag or ""
        for key in sorted(self.attributes):
            yield f"{prefix}{key}", self.attributes[key]
        yield from self.enrichment.items()

    def field_names(self) -> list[str]:
        return [k for k, _ in self.items()]

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.items():
            if k == key:
                return v
        return default
