"""Governance engine: the operations exposed to the hosting environment.

The host authenticates callers and linearizes calls; each method here runs
to completion against the shared record store, and a raised
:class:`~quorumvault.errors.GovernanceError` means nothing was written.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from quorumvault.assets import AssetBank, LocalAssetBank
from quorumvault.config import Settings, get_settings
from quorumvault.consensus import SignatureLedger
from quorumvault.errors import GovernanceError
from quorumvault.identifiers import IdentifierAllocator
from quorumvault.proposals import ProposalStore
from quorumvault.registry import MemberRegistry
from quorumvault.storage import RecordStore
from quorumvault.types import (
    AssetKind,
    IdentityKey,
    LedgerEntry,
    Member,
    Proposal,
    ProposalAction,
    ProposalKind,
    ProposalStatus,
    SignatureRecord,
)
from quorumvault.vault import VaultGovernor

LOGGER = logging.getLogger(__name__)


class GovernanceEngine:
    """Wire the registry, proposal store and vault governor together."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[RecordStore] = None,
        bank: Optional[AssetBank] = None,
    ) -> None:
        """Build every component over one record store.

        Args:
            settings: Engine settings; defaults to :func:`get_settings`.
            store: Record store; a fresh in-memory store when omitted.
            bank: Transfer primitive; a :class:`LocalAssetBank` over ``store``
                when omitted.
        """
        self.settings = settings or get_settings()
        self.store = store if store is not None else RecordStore()
        self.bank = bank if bank is not None else LocalAssetBank(self.store)

        self.allocator = IdentifierAllocator(self.store)
        self.registry = MemberRegistry(self.store, self.settings)
        self.signature_ledger = SignatureLedger(self.store, self.allocator, self.settings)
        self.proposal_store = ProposalStore(
            self.store, self.allocator, self.registry, self.signature_ledger, self.settings
        )
        self.vault = VaultGovernor(self.proposal_store, self.store, self.allocator, self.bank, self.settings)

    def _rejected(self, operation: str, caller: Optional[str], exc: GovernanceError) -> None:
        LOGGER.debug("%s by %s rejected: %s (%s)", operation, caller, exc.code, exc.message)

    # Membership -----------------------------------------------------------

    def create_membership_proposal(
        self,
        caller: IdentityKey,
        action: ProposalAction,
        target: IdentityKey,
        name: Optional[str] = None,
    ) -> int:
        """Propose registering or unregistering ``target``; return the id."""
        try:
            return self.proposal_store.create_proposal(action, target, name=name, proposer=caller)
        except GovernanceError as exc:
            self._rejected("create_membership_proposal", caller, exc)
            raise

    def sign_membership_proposal(self, caller: IdentityKey, proposal_id: int) -> Proposal:
        try:
            return self.proposal_store.sign_proposal(caller, proposal_id)
        except GovernanceError as exc:
            self._rejected("sign_membership_proposal", caller, exc)
            raise

    def approve_membership_proposal(self, caller: IdentityKey, proposal_id: int) -> Proposal:
        """Approve a fully signed membership proposal. Any caller may trigger it."""
        try:
            return self.proposal_store.approve_proposal(proposal_id)
        except GovernanceError as exc:
            self._rejected("approve_membership_proposal", caller, exc)
            raise

    # Vault ----------------------------------------------------------------

    def create_transfer_proposal(
        self,
        caller: IdentityKey,
        recipient: str,
        amount: int,
        asset: AssetKind = AssetKind.NATIVE,
    ) -> int:
        try:
            return self.vault.create_transfer_proposal(recipient, amount, asset=asset, proposer=caller)
        except GovernanceError as exc:
            self._rejected("create_transfer_proposal", caller, exc)
            raise

    def sign_transfer_proposal(self, caller: IdentityKey, proposal_id: int) -> Proposal:
        try:
            return self.vault.sign_transfer_proposal(caller, proposal_id)
        except GovernanceError as exc:
            self._rejected("sign_transfer_proposal", caller, exc)
            raise

    def execute_transfer_proposal(self, caller: IdentityKey, proposal_id: int) -> LedgerEntry:
        """Execute a fully signed transfer proposal. Any caller may trigger it."""
        try:
            return self.vault.execute_transfer_proposal(proposal_id)
        except GovernanceError as exc:
            self._rejected("execute_transfer_proposal", caller, exc)
            raise

    def deposit(
        self,
        caller: IdentityKey,
        amount: int,
        asset: AssetKind = AssetKind.NATIVE,
        tx_ref: Optional[str] = None,
    ) -> LedgerEntry:
        try:
            return self.vault.deposit(caller, amount, asset=asset, tx_ref=tx_ref)
        except GovernanceError as exc:
            self._rejected("deposit", caller, exc)
            raise

    # Queries --------------------------------------------------------------

    def members(self) -> List[Member]:
        return self.registry.list()

    def proposal(self, proposal_id: int) -> Proposal:
        return self.proposal_store.get(proposal_id)

    def proposals(
        self,
        kind: Optional[ProposalKind] = None,
        status: Optional[ProposalStatus] = None,
    ) -> List[Proposal]:
        return self.proposal_store.list(kind=kind, status=status)

    def signatures(self, proposal_id: int) -> List[SignatureRecord]:
        return self.signature_ledger.signatures_for(proposal_id)

    def ledger(self) -> List[LedgerEntry]:
        return self.vault.ledger()

    def vault_balance(self, asset: AssetKind = AssetKind.NATIVE) -> int:
        return self.vault.balance(asset)


__all__ = ["GovernanceEngine"]
