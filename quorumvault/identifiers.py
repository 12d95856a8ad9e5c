"""Identifier allocation.

Each domain owns a monotonic counter persisted as an :class:`AllocatorRecord`
in the record store. Ids are never reused, even after the record they named
has been removed, so an id doubles as the external lookup key of its record.
"""

from __future__ import annotations

from dataclasses import replace

from quorumvault.config import U64_MAX
from quorumvault.errors import identifier_exhausted
from quorumvault.storage import ALLOCATORS, RecordStore
from quorumvault.types import AllocatorRecord

PROPOSAL_DOMAIN = "proposal"
SIGNATURE_DOMAIN = "signature"
MEMBER_DOMAIN = "member"
LEDGER_DOMAIN = "ledger"


class IdentifierAllocator:
    """Issue strictly increasing ids per domain."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def _record(self, domain: str) -> AllocatorRecord:
        record = self._store.find(ALLOCATORS, domain)
        if record is None:
            record = AllocatorRecord(domain=domain, next_value=0)
        return record

    def next_id(self, domain: str) -> int:
        """Advance the counter of ``domain`` and return the new value.

        The counter starts at 0, so the first id of every domain is 1.
        """
        record = self._record(domain)
        if record.next_value >= U64_MAX:
            raise identifier_exhausted(domain)
        record = replace(record, next_value=record.next_value + 1)
        self._store.upsert(ALLOCATORS, record)
        return record.next_value

    def peek(self, domain: str) -> int:
        """Return the last id issued in ``domain`` (0 if none)."""
        return self._record(domain).next_value


__all__ = [
    "IdentifierAllocator",
    "PROPOSAL_DOMAIN",
    "SIGNATURE_DOMAIN",
    "MEMBER_DOMAIN",
    "LEDGER_DOMAIN",
]
