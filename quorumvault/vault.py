"""Vault transfer governor.

Money in is free, money out needs unanimous consent: anyone may ``deposit``
into the vault without a proposal, while every debit goes through a
transfer proposal that reuses the membership pipeline's snapshot, signature
ledger and consensus gate.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from quorumvault.assets import AssetBank
from quorumvault.config import U64_MAX, Settings, get_settings
from quorumvault.errors import (
    duplicate_deposit,
    insufficient_balance,
    invalid_amount,
    invalid_counterparty,
    proposal_not_found,
)
from quorumvault.identifiers import LEDGER_DOMAIN, IdentifierAllocator
from quorumvault.proposals import ProposalStore
from quorumvault.storage import LEDGER, RecordStore
from quorumvault.types import (
    AssetKind,
    IdentityKey,
    LedgerDirection,
    LedgerEntry,
    Proposal,
    ProposalKind,
    TransferAsset,
)

LOGGER = logging.getLogger(__name__)


def _check_amount(amount: int) -> None:
    # bool is an int subclass; reject it explicitly.
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= U64_MAX:
        raise invalid_amount(amount)


class VaultGovernor:
    """Authorize debits from the custodied balance."""

    def __init__(
        self,
        proposals: ProposalStore,
        store: RecordStore,
        allocator: IdentifierAllocator,
        bank: AssetBank,
        settings: Optional[Settings] = None,
    ) -> None:
        """Initialise the governor.

        Args:
            proposals: Shared proposal machinery.
            store: Record store holding the ledger.
            allocator: Identifier allocator for ledger entries.
            bank: Transfer primitive that actually moves value.
            settings: Settings providing ``vault_address`` and ``deposit_fee``.
        """
        self._proposals = proposals
        self._store = store
        self._allocator = allocator
        self._bank = bank
        self._settings = settings or get_settings()

    @property
    def address(self) -> str:
        return self._settings.vault_address

    def _counterparty(self, account: str) -> str:
        """Return ``account`` canonicalised by the bank; the vault itself is refused."""
        account = self._bank.validate_account(account)
        if account == self._bank.validate_account(self.address):
            raise invalid_counterparty(account)
        return account

    def balance(self, asset: AssetKind = AssetKind.NATIVE) -> int:
        """Return the vault balance in ``asset``."""
        return self._bank.balance_of(self.address, asset)

    # ------------------------------------------------------------------
    # Transfer proposals
    # ------------------------------------------------------------------

    def create_transfer_proposal(
        self,
        recipient: str,
        amount: int,
        asset: AssetKind = AssetKind.NATIVE,
        proposer: Optional[IdentityKey] = None,
    ) -> int:
        """Create a pending transfer proposal and return its id."""
        _check_amount(amount)
        recipient = self._counterparty(recipient)
        action = TransferAsset(recipient=recipient, amount=amount, asset=asset)
        return self._proposals.open_proposal(action, proposer).proposal_id

    def sign_transfer_proposal(self, signer: IdentityKey, proposal_id: int) -> Proposal:
        """Sign a pending transfer proposal."""
        return self._proposals.sign(signer, proposal_id, ProposalKind.TRANSFER)

    def execute_transfer_proposal(self, proposal_id: int) -> LedgerEntry:
        """Release the proposed amount to the recipient.

        Checks, in order: the proposal is pending, every required signer has
        signed, and the vault holds at least the amount. Only then is the bank
        asked to move value; the ledger entry and status flip follow.

        Returns:
            The negative-amount ledger entry written for the debit.
        """
        proposal = self._proposals.get(proposal_id, ProposalKind.TRANSFER)
        self._proposals.require_quorum(proposal)

        action = proposal.action
        if not isinstance(action, TransferAsset):
            raise proposal_not_found(proposal_id)
        available = self.balance(action.asset)
        if available < action.amount:
            raise insufficient_balance(available, action.amount)

        self._bank.transfer(self.address, action.recipient, action.asset, action.amount)
        entry = self._append_entry(
            counterparty=action.recipient,
            amount=-action.amount,
            direction=LedgerDirection.TRANSFER,
            asset=action.asset,
            proposal_id=proposal.proposal_id,
        )
        self._proposals.mark_approved(proposal)
        LOGGER.info(
            "Executed transfer proposal %s: %s %s to %s",
            proposal_id,
            action.amount,
            action.asset.value,
            action.recipient,
        )
        return entry

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    def deposit(
        self,
        caller: IdentityKey,
        amount: int,
        asset: AssetKind = AssetKind.NATIVE,
        tx_ref: Optional[str] = None,
    ) -> LedgerEntry:
        """Move ``amount`` plus the deposit fee from ``caller`` into the vault.

        No proposal, signature or membership is required. ``tx_ref`` names
        the caller's own payment when the bank settles deposits on chain;
        each payment is credited once.
        """
        _check_amount(amount)
        caller = self._counterparty(caller)
        if tx_ref is not None and any(e.tx_ref == tx_ref for e in self.ledger()):
            raise duplicate_deposit(tx_ref)
        fee = self._settings.deposit_fee
        if amount + fee > U64_MAX:
            raise invalid_amount(amount)

        self._bank.receive(caller, self.address, asset, amount + fee, tx_ref=tx_ref)
        entry = self._append_entry(
            counterparty=caller,
            amount=amount,
            direction=LedgerDirection.DEPOSIT,
            asset=asset,
            fee=fee,
            tx_ref=tx_ref,
        )
        LOGGER.info("Deposit of %s %s from %s (fee %s)", amount, asset.value, caller, fee)
        return entry

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def _append_entry(self, **fields) -> LedgerEntry:
        entry = LedgerEntry(entry_id=self._allocator.next_id(LEDGER_DOMAIN), **fields)
        self._store.insert(LEDGER, entry)
        return entry

    def ledger(self) -> List[LedgerEntry]:
        """Return every ledger entry ordered by id."""
        return self._store.values(LEDGER)

    def entry(self, entry_id: int) -> Optional[LedgerEntry]:
        return self._store.find(LEDGER, entry_id)


__all__ = ["VaultGovernor"]
