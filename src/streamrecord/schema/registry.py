"""Schema registry.

The single gate for record shapes: every (stream, version) pair must be
registered at startup before a record of that shape can be built.
Registration is a one-time startup phase; after freeze() the registry
is read-only and safe to share between any number of threads.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from streamrecord.errors import SchemaNotFoundError, SchemaRegistrationError
from streamrecord.models.streams import FieldSpec, StreamKind, StreamSchema

logger = logging.getLogger("streamrecord.schema.registry")


class SchemaRegistry:
    """Static catalog of StreamSchemas keyed by (stream, version)."""

    def __init__(self) -> None:
        self._schemas: dict[tuple[StreamKind, str], StreamSchema] = {}
        self._namespaces: tuple[str, ...] = ()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        stream: StreamKind | str,
        version: str,
        fields: Iterable[FieldSpec],
        open_bag: Optional[str] = None,
    ) -> StreamSchema:
        """Register the field set for one discriminator.

        Raises SchemaRegistrationError if the registry is frozen, the
        pair is already registered, or the field set is malformed.
        """
        if self._frozen:
            raise SchemaRegistrationError(
                f"registry is frozen, cannot register {stream}/{version}"
            )
        kind = StreamKind.parse(stream)
        if kind is None:
            raise SchemaRegistrationError(f"unknown stream kind {stream!r}")
        if (kind, version) in self._schemas:
            raise SchemaRegistrationError(
                f"schema {kind.value}/{version} already registered"
            )
        try:
            schema = StreamSchema(
                stream=kind, version=version, fields=tuple(fields), open_bag=open_bag
            )
        except ValueError as exc:
            raise SchemaRegistrationError(
                f"invalid schema {kind.value}/{version}: {exc}"
            ) from exc

        self._schemas[(kind, version)] = schema
        # Longest prefix first so ownership resolution can stop at the first hit
        owned = set(self._namespaces) | set(schema.namespaces)
        self._namespaces = tuple(sorted(owned, key=lambda ns: (-len(ns), ns)))

        logger.info(
            "Registered schema %s/%s: %d fields, open bag=%s",
            kind.value, version, len(schema.fields), open_bag or "-",
        )
        return schema

    def freeze(self) -> None:
        """End the registration phase. Further register() calls fail."""
        self._frozen = True
        logger.info("Schema registry frozen with %d schemas", len(self._schemas))

    def lookup(self, stream: StreamKind | str, version: str) -> StreamSchema:
        """Return the schema for a discriminator or raise SchemaNotFoundError.

        schema.fields holds only the stream's own fields and may be empty;
        schema.all_fields() is the complete FieldSpec set, common fields
        included.
        """
        kind = StreamKind.parse(stream)
        schema = self._schemas.get((kind, version)) if kind is not None else None
        if schema is None:
            raise SchemaNotFoundError(stream, version)
        return schema

    def namespace_of(self, key: str) -> Optional[str]:
        """Return the longest registered namespace prefixing key, if any."""
        for ns in self._namespaces:
            if key.startswith(ns) and len(key) > len(ns):
                return ns
        return None

    def discriminators(self) -> list[tuple[StreamKind, str]]:
        return list(self._schemas)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        kind = StreamKind.parse(item[0])
        return (kind, item[1]) in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
