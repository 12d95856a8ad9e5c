"""Unit tests for the member registry."""

from __future__ import annotations

import pytest

from quorumvault.config import Settings
from quorumvault.errors import ValidationError
from quorumvault.registry import MemberRegistry
from quorumvault.storage import REGISTRY, RecordStore
from quorumvault.types import Member, RegistryRecord


def create_member(key: str, name: str = "", member_id: int = 0) -> Member:
    """Create a test member.

    Args:
        key: Identity key.
        name: Display name, defaults to the key.
        member_id: Allocated member id.

    Returns:
        Member instance for testing.
    """
    return Member(identity_key=key, name=name or key, member_id=member_id)


def test_new_registry_is_empty(settings: Settings) -> None:
    """A fresh registry creates its record and holds no members."""
    store = RecordStore()
    registry = MemberRegistry(store, settings)

    assert registry.list() == []
    assert len(registry) == 0
    assert store.get(REGISTRY, RegistryRecord.KEY) == RegistryRecord()


def test_register_find_and_list(settings: Settings) -> None:
    """Registered members can be found and are listed in order."""
    registry = MemberRegistry(RecordStore(), settings)
    registry.apply_register(create_member("K1", "Alice", 1))
    registry.apply_register(create_member("K2", "Bob", 2))

    assert [m.identity_key for m in registry.list()] == ["K1", "K2"]
    assert registry.identity_keys() == ("K1", "K2")
    assert registry.find("K2") == create_member("K2", "Bob", 2)
    assert registry.find("K3") is None
    assert "K1" in registry
    assert "K3" not in registry


def test_remove_by_key(settings: Settings) -> None:
    """Removal deletes the matching record and leaves the others."""
    registry = MemberRegistry(RecordStore(), settings)
    for key in ("K1", "K2", "K3"):
        registry.apply_register(create_member(key))

    registry.apply_remove("K2")

    assert registry.find("K2") is None
    assert sorted(registry.identity_keys()) == ["K1", "K3"]


def test_registry_does_not_check_uniqueness(settings: Settings) -> None:
    """Duplicate checks are the caller's job; the registry is pure storage."""
    registry = MemberRegistry(RecordStore(), settings)
    registry.apply_register(create_member("K1"))
    registry.apply_register(create_member("K1"))

    assert len(registry) == 2

    registry.apply_remove("K1")
    assert len(registry) == 0


def test_registry_refuses_to_grow_past_limit() -> None:
    """The writer enforces ``max_members`` even if the caller does not."""
    settings = Settings(_env_file=None, max_members=2, max_signers=2)
    registry = MemberRegistry(RecordStore(), settings)
    registry.apply_register(create_member("K1"))
    registry.apply_register(create_member("K2"))

    assert registry.is_full()
    with pytest.raises(ValidationError) as excinfo:
        registry.apply_register(create_member("K3"))

    assert excinfo.value.code == "MemberLimitReached"
    assert registry.identity_keys() == ("K1", "K2")


def test_identity_keys_is_a_copy(settings: Settings) -> None:
    """Snapshots taken from the registry are unaffected by later changes."""
    registry = MemberRegistry(RecordStore(), settings)
    registry.apply_register(create_member("K1"))

    snapshot = registry.identity_keys()
    registry.apply_register(create_member("K2"))

    assert snapshot == ("K1",)
