"""In-memory record store: an arena of records indexed by domain and key."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Protocol

from quorumvault.errors import duplicate_record
from quorumvault.types import RecordKey, RecordPayload

LOGGER = logging.getLogger(__name__)


class Record(Protocol):
    """Anything the store can hold."""

    @property
    def record_key(self) -> RecordKey:
        """Key the record is indexed under within its domain."""

    def to_payload(self) -> RecordPayload:
        """Return a JSON-safe representation."""


class RecordStore:
    """Addressable record storage keyed by ``(domain, key)``.

    Records are frozen dataclasses; an update replaces the stored object
    wholesale, so no reader ever observes a half-written record.
    """

    def __init__(self) -> None:
        """Initialise an empty store."""
        self._records: Dict[str, Dict[RecordKey, Any]] = defaultdict(dict)

    def insert(self, domain: str, record: Record) -> Record:
        """Create a record. Existing keys are never overwritten."""
        key = record.record_key
        table = self._records[domain]
        if key in table:
            raise duplicate_record(domain, key)
        table[key] = record
        LOGGER.debug("Inserted %s record %r", domain, key)
        return record

    def update(self, domain: str, record: Record) -> Record:
        """Replace an existing record."""
        key = record.record_key
        table = self._records[domain]
        if key not in table:
            raise KeyError(f"Cannot update unknown {domain} record {key!r}")
        table[key] = record
        return record

    def upsert(self, domain: str, record: Record) -> Record:
        """Create or replace a record."""
        self._records[domain][record.record_key] = record
        return record

    def get(self, domain: str, key: RecordKey) -> Any:
        """Return the record under ``key`` or raise :class:`KeyError`."""
        try:
            return self._records[domain][key]
        except KeyError:
            raise KeyError(f"Unknown {domain} record {key!r}") from None

    def find(self, domain: str, key: RecordKey) -> Optional[Any]:
        """Return the record under ``key`` if present."""
        return self._records[domain].get(key)

    def contains(self, domain: str, key: RecordKey) -> bool:
        return key in self._records[domain]

    def values(self, domain: str) -> List[Any]:
        """Return all records of a domain ordered by key."""
        table = self._records[domain]
        return [table[key] for key in sorted(table, key=_sort_key)]

    def count(self, domain: str) -> int:
        return len(self._records[domain])

    def domains(self) -> List[str]:
        return sorted(domain for domain, table in self._records.items() if table)


def _sort_key(key: RecordKey) -> tuple:
    # Integer keys first in numeric order, then string keys.
    if isinstance(key, int):
        return (0, key, "")
    return (1, 0, str(key))


__all__ = ["Record", "RecordStore"]
