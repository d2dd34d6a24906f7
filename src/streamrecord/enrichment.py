"""Process-wide enrichment fields.

Static deployment facts (region, service version, ...) merged into
every record. Configured exactly once during startup; afterwards the
field set is a read-only mapping that any number of threads can read
without locking.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from streamrecord.errors import (
    EnrichmentAlreadyConfiguredError,
    EnrichmentConfigurationError,
    EnrichmentNotInitializedError,
)
from streamrecord.models.streams import COMMON_FIELD_NAMES

logger = logging.getLogger("streamrecord.enrichment")

# Enrichment may override stream fields but never a common field.
RESERVED_KEYS = frozenset(COMMON_FIELD_NAMES)


class EnrichmentLayer:
    """Write-once holder for the enrichment field set.

    Inject one instance into every RecordBuilder. configure() is the
    only mutation and must complete before record traffic begins.
    """

    def __init__(self) -> None:
        self._fields: Optional[Mapping[str, Any]] = None

    @property
    def configured(self) -> bool:
        return self._fields is not None

    def configure(self, static_fields: Mapping[str, Any]) -> Mapping[str, Any]:
        """Freeze the enrichment set. Keys are stored sorted.

        Raises EnrichmentAlreadyConfiguredError on a second call and
        EnrichmentConfigurationError for common-field keys or values that
        are not str/int/bool.
        """
        if self._fields is not None:
            raise EnrichmentAlreadyConfiguredError(
                "enrichment fields are already configured"
            )

        frozen: dict[str, Any] = {}
        for key, value in static_fields.items():
            if not isinstance(key, str) or not key:
                raise EnrichmentConfigurationError(
                    f"enrichment key must be a non-empty string, got {key!r}"
                )
            if key in RESERVED_KEYS:
                raise EnrichmentConfigurationError(
                    f"enrichment key {key!r} names a common field"
                )
            if not isinstance(value, (str, int, bool)):
                raise EnrichmentConfigurationError(
                    f"enrichment value for {key!r} must be str, int or bool, "
                    f"got {type(value).__name__}"
                )
            frozen[key] = value

        frozen = dict(sorted(frozen.items()))
        self._fields = MappingProxyType(frozen)
        logger.info(
            "Enrichment configured with %d fields: %s",
            len(frozen), ", ".join(frozen) or "-",
        )
        return self._fields

    def fields(self) -> Mapping[str, Any]:
        """Return the frozen field set. Raises if configure() has not run."""
        if self._fields is None:
            raise EnrichmentNotInitializedError(
                "enrichment fields read before configure()"
            )
        return self._fields
