"""Startup bootstrap and the build -> validate -> encode chain.

bootstrap() is the one-time startup phase: it loads and freezes the
schema registry and configures the enrichment layer. Any failure there
is fatal. The returned RecordPipeline is then shared by every producer;
per-record failures surface as RecordError subclasses to the caller,
who decides whether to drop the record or report it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from streamrecord import config
from streamrecord.config import Settings
from streamrecord.enrichment import EnrichmentLayer
from streamrecord.errors import RecordRejectedError, SchemaNotFoundError
from streamrecord.models.record import Record
from streamrecord.models.streams import StreamKind
from streamrecord.records.builder import (
    ContextLike,
    PayloadLike,
    RecordBuilder,
    UnknownFieldPolicy,
)
from streamrecord.records.encoder import FlatPairs, encode, to_json_line
from streamrecord.records.validator import RecordValidator
from streamrecord.schema.catalog import default_registry
from streamrecord.schema.registry import SchemaRegistry
from streamrecord.utils.logging import configure_logging

logger = logging.getLogger("streamrecord.pipeline")


class RecordPipeline:
    """Build, validate and encode records for one process."""

    def __init__(
        self,
        builder: RecordBuilder,
        validator: RecordValidator,
        default_version: str = "v1",
        service_name: str = "",
        service_version: str = "",
        service_process: str = "",
    ):
        self.builder = builder
        self.validator = validator
        self.default_version = default_version
        self.service_name = service_name
        self.service_version = service_version
        self.service_process = service_process

    @property
    def registry(self) -> SchemaRegistry:
        return self.builder.registry

    def record(
        self,
        stream: StreamKind | str,
        context: ContextLike = None,
        payload: PayloadLike = None,
        version: Optional[str] = None,
    ) -> Record:
        """Build and validate a record, raising RecordRejectedError if invalid."""
        record = self.builder.build(
            stream, version or self.default_version, context, payload
        )
        result = self.validator.validate(record)
        if not result.ok:
            logger.warning(
                "Rejected %s/%s record: %s",
                record.stream.value, record.version,
                "; ".join(str(e) for e in result.errors),
            )
            raise RecordRejectedError(result.errors)
        return record

    def emit(
        self,
        stream: StreamKind | str,
        context: ContextLike = None,
        payload: PayloadLike = None,
        version: Optional[str] = None,
    ) -> FlatPairs:
        """Run the full chain and return the flat pairs for the sink."""
        return encode(self.record(stream, context, payload, version))

    def emit_json(
        self,
        stream: StreamKind | str,
        context: ContextLike = None,
        payload: PayloadLike = None,
        version: Optional[str] = None,
    ) -> str:
        """Run the full chain and return one JSON line (no trailing newline)."""
        return to_json_line(self.emit(stream, context, payload, version))

    def service_record(self, context: ContextLike = None) -> FlatPairs:
        """Emit the runtime_service record describing this process.

        The record is meant to be written once per process lifetime;
        the host process decides when.
        """
        payload = {
            "severity": "info",
            "message": "service started",
            "name": self.service_name,
            "version": self.service_version or None,
            "process": self.service_process or None,
        }
        return self.emit(StreamKind.RUNTIME_SERVICE, context, payload)


def bootstrap(
    settings: Optional[Settings] = None,
    registry: Optional[SchemaRegistry] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> RecordPipeline:
    """Run the startup phase and return a ready pipeline.

    Uses the module-level settings when none are given, and installs the
    JSON log handler at settings.log_level before anything is logged.

    Raises StartupError subclasses (unregistered default version,
    malformed enrichment) which must abort process startup.
    """
    if settings is None:
        settings = config.settings
    configure_logging(settings.log_level)

    logger.info("streamrecord v%s starting", settings.version)

    if registry is None:
        registry = default_registry()
    elif not registry.frozen:
        registry.freeze()

    # Fail at startup, not on the first record, if the default version is unknown
    for kind in StreamKind:
        if (kind, settings.schema_version) in registry:
            break
    else:
        raise SchemaNotFoundError("*", settings.schema_version)

    enrichment = EnrichmentLayer()
    enrichment.configure(settings.enrichment)

    builder = RecordBuilder(
        registry,
        enrichment,
        unknown_fields=UnknownFieldPolicy(settings.unknown_fields),
        clock=clock,
    )
    pipeline = RecordPipeline(
        builder,
        RecordValidator(registry),
        default_version=settings.schema_version,
        service_name=settings.service_name,
        service_version=settings.service_version,
        service_process=settings.service_process,
    )

    logger.info(
        "Pipeline ready: %d schemas, default version %s, unknown fields %s, "
        "%d enrichment fields",
        len(registry), settings.schema_version, settings.unknown_fields,
        len(settings.enrichment),
    )
    return pipeline
