"""Consensus package: the quorum predicate and the signature ledger."""

from __future__ import annotations

from .gate import is_satisfied, missing_signers
from .signatures import SignatureLedger

__all__ = ["is_satisfied", "missing_signers", "SignatureLedger"]
