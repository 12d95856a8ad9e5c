"""Member registry.

This module provides the MemberRegistry class that holds the current
authorized-member set. The whole set lives in a single embedded
:class:`RegistryRecord`; it is mutated only as the side effect of an
approved membership proposal.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from quorumvault.config import Settings, get_settings
from quorumvault.errors import member_limit_reached
from quorumvault.storage import REGISTRY, RecordStore
from quorumvault.types import IdentityKey, Member, RegistryRecord

LOGGER = logging.getLogger(__name__)


class MemberRegistry:
    """Pure storage for the authorized-member set.

    Callers check uniqueness and existence before mutating; the registry
    only refuses to grow past the configured member limit.
    """

    def __init__(self, store: RecordStore, settings: Optional[Settings] = None) -> None:
        """Initialise the registry over ``store``.

        Args:
            store: Record store holding the registry record.
            settings: Settings providing ``max_members``.
        """
        self._store = store
        self._settings = settings or get_settings()
        if not store.contains(REGISTRY, RegistryRecord.KEY):
            store.insert(REGISTRY, RegistryRecord())

    @property
    def max_members(self) -> int:
        return self._settings.max_members

    def _record(self) -> RegistryRecord:
        return self._store.get(REGISTRY, RegistryRecord.KEY)

    def list(self) -> List[Member]:
        """Return the current members in registration order."""
        return list(self._record().members)

    def identity_keys(self) -> Tuple[IdentityKey, ...]:
        """Return a copy of the current identity keys."""
        return tuple(member.identity_key for member in self._record().members)

    def find(self, identity_key: IdentityKey) -> Optional[Member]:
        """Return the member registered under ``identity_key``, if any."""
        for member in self._record().members:
            if member.identity_key == identity_key:
                return member
        return None

    def __contains__(self, identity_key: object) -> bool:
        return isinstance(identity_key, str) and self.find(identity_key) is not None

    def __len__(self) -> int:
        return len(self._record().members)

    def is_full(self) -> bool:
        return len(self) >= self.max_members

    def apply_register(self, member: Member) -> None:
        """Append ``member`` to the registry."""
        record = self._record()
        if len(record.members) >= self.max_members:
            raise member_limit_reached(self.max_members)
        self._store.update(REGISTRY, RegistryRecord(members=record.members + (member,)))
        LOGGER.info("Registered member %s (%s)", member.identity_key, member.name)

    def apply_remove(self, identity_key: IdentityKey) -> None:
        """Delete every member whose key matches ``identity_key``."""
        record = self._record()
        remaining = tuple(m for m in record.members if m.identity_key != identity_key)
        self._store.update(REGISTRY, RegistryRecord(members=remaining))
        LOGGER.info("Removed member %s", identity_key)


__all__ = ["MemberRegistry"]
