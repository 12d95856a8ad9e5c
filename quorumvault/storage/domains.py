"""Record domains and the record type stored in each."""

from __future__ import annotations

from typing import Any, Dict

from quorumvault.types import (
    AllocatorRecord,
    BalanceRecord,
    LedgerEntry,
    Proposal,
    RegistryRecord,
    SignatureRecord,
)

REGISTRY = "registry"
PROPOSALS = "proposals"
SIGNATURES = "signatures"
LEDGER = "ledger"
ALLOCATORS = "allocators"
BALANCES = "balances"

RECORD_TYPES: Dict[str, Any] = {
    REGISTRY: RegistryRecord,
    PROPOSALS: Proposal,
    SIGNATURES: SignatureRecord,
    LEDGER: LedgerEntry,
    ALLOCATORS: AllocatorRecord,
    BALANCES: BalanceRecord,
}

__all__ = [
    "REGISTRY",
    "PROPOSALS",
    "SIGNATURES",
    "LEDGER",
    "ALLOCATORS",
    "BALANCES",
    "RECORD_TYPES",
]
