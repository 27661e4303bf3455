"""SQLAlchemy TypeDecorator for schema-validated, versioned JSON record lists."""

import logging

from pydantic import TypeAdapter
from sqlalchemy import JSON, TypeDecorator

log = logging.getLogger(__name__)


class VersionedRecords(TypeDecorator):
    """Stores a list of pydantic records as {"schema_version": N, "records": [...]}.

    Values are validated on write and on load. Bare lists written before
    versioning are read as version 0 and upgraded on the next write.
    """
    impl = JSON
    cache_ok = True

    def __init__(self, record_type, schema_version: int = 1):
        super().__init__()
        self.record_type = record_type
        self.schema_version = schema_version
        self._adapter = TypeAdapter(list[record_type])

    def process_bind_param(self, value, dialect):
        if value is None:
            value = []
        records = self._adapter.validate_python(list(value))
        return {
            "schema_version": self.schema_version,
            "records": self._adapter.dump_python(records, mode="json"),
        }

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        if isinstance(value, list):
            log.debug("Reading unversioned %s records", self.record_type.__name__)
            raw = value
        elif isinstance(value, dict):
            version = value.get("schema_version")
            if not isinstance(version, int) or version > self.schema_version:
                raise ValueError(
                    f"Unsupported {self.record_type.__name__} schema version: {version!r}"
                )
            raw = value.get("records", [])
        else:
            raise ValueError(f"Malformed {self.record_type.__name__} payload")
        return self._adapter.validate_python(raw)
