"""Shared fixtures for the QuorumVault test-suite."""

from __future__ import annotations

from typing import Callable, List

import pytest

from quorumvault.config import Settings
from quorumvault.engine import GovernanceEngine
from quorumvault.types import ProposalAction


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any ``.env`` file."""
    return Settings(_env_file=None, max_members=5, max_signers=5)


@pytest.fixture
def engine(settings: Settings) -> GovernanceEngine:
    """A fresh engine over an in-memory store and local bank."""
    return GovernanceEngine(settings=settings)


@pytest.fixture
def register() -> Callable[[GovernanceEngine, str, str], int]:
    """Return a helper that registers a member through the full lifecycle."""

    def _register(engine: GovernanceEngine, key: str, name: str) -> int:
        signers: List[str] = [m.identity_key for m in engine.members()]
        proposer = signers[0] if signers else key
        proposal_id = engine.create_membership_proposal(proposer, ProposalAction.REGISTER, key, name)
        for signer in signers:
            engine.sign_membership_proposal(signer, proposal_id)
        engine.approve_membership_proposal(proposer, proposal_id)
        return proposal_id

    return _register
