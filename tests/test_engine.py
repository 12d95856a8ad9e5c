"""End-to-end tests for the governance engine facade."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

import pytest

from quorumvault.engine import GovernanceEngine
from quorumvault.errors import GovernanceError, QuorumError
from quorumvault.types import AssetKind, ProposalAction, ProposalKind, ProposalStatus

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from _pytest.logging import LogCaptureFixture

Register = Callable[[GovernanceEngine, str, str], int]


def test_components_share_one_store(engine: GovernanceEngine) -> None:
    assert engine.vault.ledger() == []
    assert engine.registry.max_members == engine.settings.max_members
    assert engine.bank.balance_of(engine.settings.vault_address, AssetKind.NATIVE) == 0


def test_full_lifecycle(engine: GovernanceEngine, register: Register) -> None:
    """Bootstrap, grow to three members, fund the vault, pay out, shrink."""
    register(engine, "K1", "Alice")
    register(engine, "K2", "Bob")
    register(engine, "K3", "Carol")
    assert [m.identity_key for m in engine.members()] == ["K1", "K2", "K3"]

    engine.bank.credit("donor", AssetKind.NATIVE, 900)
    engine.deposit("donor", 900)
    transfer_id = engine.create_transfer_proposal("K3", "supplier", 250)
    for signer in ("K3", "K1", "K2"):
        engine.sign_transfer_proposal(signer, transfer_id)
    engine.execute_transfer_proposal("anyone", transfer_id)

    removal_id = engine.create_membership_proposal("K1", ProposalAction.UNREGISTER, "K2")
    for signer in ("K1", "K2", "K3"):
        engine.sign_membership_proposal(signer, removal_id)
    engine.approve_membership_proposal("K3", removal_id)

    assert [m.identity_key for m in engine.members()] == ["K1", "K3"]
    assert engine.vault_balance() == 650
    assert [p.proposal_id for p in engine.proposals(kind=ProposalKind.TRANSFER)] == [transfer_id]
    assert all(p.status is ProposalStatus.APPROVED for p in engine.proposals())
    assert [s.signer for s in engine.signatures(transfer_id)] == ["K3", "K1", "K2"]


def test_rejections_are_logged_and_reraised(
    engine: GovernanceEngine, register: Register, caplog: LogCaptureFixture
) -> None:
    register(engine, "K1", "Alice")
    proposal_id = engine.create_membership_proposal("K1", ProposalAction.REGISTER, "K2", "Bob")

    with caplog.at_level(logging.DEBUG, logger="quorumvault"):
        with pytest.raises(QuorumError):
            engine.approve_membership_proposal("K9", proposal_id)

    assert "approve_membership_proposal by K9 rejected: IncompleteSignatures" in caplog.text


def test_error_payload_names_missing_signers(engine: GovernanceEngine, register: Register) -> None:
    register(engine, "K1", "Alice")
    register(engine, "K2", "Bob")
    proposal_id = engine.create_membership_proposal("K1", ProposalAction.REGISTER, "K3", "Carol")
    engine.sign_membership_proposal("K2", proposal_id)

    with pytest.raises(GovernanceError) as excinfo:
        engine.approve_membership_proposal("K1", proposal_id)

    payload = excinfo.value.to_payload()
    assert payload["code"] == "IncompleteSignatures"
    assert payload["kind"] == "quorum"
    assert excinfo.value.details["missing"] == ["K1"]
