"""streamrecord configuration via environment variables.

Enrichment fields are discovered dynamically from STREAMRECORD_ENRICH_*
environment variables. Adding a deployment-wide field to every record
requires only adding a variable -- no code changes.
"""

import os
import logging

logger = logging.getLogger("streamrecord.config")

ENRICH_PREFIX = "STREAMRECORD_ENRICH_"
UNKNOWN_FIELD_POLICIES = ("drop", "reject")


class Settings:
    """All configuration sourced from environment."""

    def __init__(self):
        # Core
        self.version = "0.1.0"
        self.log_level = os.environ.get("STREAMRECORD_LOG_LEVEL", "info")

        # Record shape
        self.schema_version = os.environ.get("STREAMRECORD_SCHEMA_VERSION", "v1")
        self.unknown_fields = self._unknown_field_policy()

        # Service identity for the runtime_service record
        self.service_name = os.environ.get("STREAMRECORD_SERVICE_NAME", "")
        self.service_version = os.environ.get("STREAMRECORD_SERVICE_VERSION", "")
        self.service_process = os.environ.get("STREAMRECORD_SERVICE_PROCESS", "")

        # Enrichment fields (discovered dynamically)
        self.enrichment = self._discover_enrichment()

    def _unknown_field_policy(self) -> str:
        raw = os.environ.get("STREAMRECORD_UNKNOWN_FIELDS", "drop").strip().lower()
        if raw not in UNKNOWN_FIELD_POLICIES:
            logger.warning(
                "Unknown STREAMRECORD_UNKNOWN_FIELDS=%r, falling back to 'drop'", raw
            )
            return "drop"
        return raw

    def _discover_enrichment(self) -> dict[str, str]:
        """Discover enrichment fields from STREAMRECORD_ENRICH_<KEY> variables.

        The suffix is lower-cased to form the record key, so
        STREAMRECORD_ENRICH_REGION=US1 yields region=US1 in every record.
        Variables with an empty suffix are skipped.
        """
        fields: dict[str, str] = {}
        for key in sorted(os.environ):
            if not key.startswith(ENRICH_PREFIX):
                continue
            # Strip prefix and lowercase the suffix
            name = key[len(ENRICH_PREFIX):].lower()
            if not name:
                logger.warning("Enrichment variable %s has no key, skipping", key)
                continue
            fields[name] = os.environ[key]
            logger.info("Discovered enrichment field [%s]", name)
        return fields


settings = Settings()
