"""Consensus gate.

Small, pure functions deciding whether a proposal's required-signer
snapshot is fully covered by its collected signatures. The scheme is
unanimity over the snapshot: every required signer counts once and
equally, and an empty snapshot is satisfied vacuously.
"""

from __future__ import annotations

from typing import Iterable, Set


def missing_signers(required: Iterable[str], collected: Iterable[str]) -> Set[str]:
    """Return the required signers that have not signed yet.

    Args:
        required: Required-signer snapshot.
        collected: Identities that have signed.

    Returns:
        The set difference ``required - collected``.
    """
    return set(required) - set(collected)


def is_satisfied(required: Iterable[str], collected: Iterable[str]) -> bool:
    """Return True iff ``required`` is a subset of ``collected``."""
    return not missing_signers(required, collected)


__all__ = ["is_satisfied", "missing_signers"]
