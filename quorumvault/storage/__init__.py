"""Record storage for the governance engine."""

from __future__ import annotations

from .domains import (
    ALLOCATORS,
    BALANCES,
    LEDGER,
    PROPOSALS,
    RECORD_TYPES,
    REGISTRY,
    SIGNATURES,
)
from .json_store import JsonFileStore
from .store import Record, RecordStore

__all__ = [
    "Record",
    "RecordStore",
    "JsonFileStore",
    "REGISTRY",
    "PROPOSALS",
    "SIGNATURES",
    "LEDGER",
    "ALLOCATORS",
    "BALANCES",
    "RECORD_TYPES",
]
