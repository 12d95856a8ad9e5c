"""Asset-transfer primitives consumed by the vault.

The vault never moves value itself; it asks an :class:`AssetBank` to do it.
:class:`LocalAssetBank` keeps balances in the record store and is what the
CLI and tests use. :class:`quorumvault.services.blockchain.Web3AssetBank`
moves real coins and ERC-20 tokens on an EVM chain.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

from quorumvault.config import U64_MAX
from quorumvault.errors import insufficient_funds, invalid_account, invalid_amount
from quorumvault.storage import BALANCES, RecordStore
from quorumvault.types import AssetKind, BalanceRecord, balance_key

LOGGER = logging.getLogger(__name__)


class AssetBank(Protocol):
    """Native-asset and fungible-token transfer primitive."""

    def validate_account(self, account: str) -> str:
        """Return ``account`` in canonical form, or raise ``InvalidAccount``."""

    def balance_of(self, account: str, asset: AssetKind) -> int:
        """Return the balance ``account`` holds in ``asset``."""

    def transfer(self, source: str, destination: str, asset: AssetKind, amount: int) -> None:
        """Move ``amount`` of ``asset`` atomically, or raise and move nothing."""

    def receive(
        self,
        source: str,
        destination: str,
        asset: AssetKind,
        amount: int,
        tx_ref: Optional[str] = None,
    ) -> None:
        """Settle an inbound payment that ``source`` initiated.

        ``tx_ref`` names the payment where the bank cannot move value on the
        payer's behalf.
        """


class LocalAssetBank:
    """Asset bank backed by :class:`BalanceRecord` entries in the store."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def validate_account(self, account: str) -> str:
        if not isinstance(account, str) or not account.strip():
            raise invalid_account(account)
        return account

    def balance_of(self, account: str, asset: AssetKind) -> int:
        record = self._store.find(BALANCES, balance_key(account, asset))
        return record.amount if record is not None else 0

    def balances(self) -> Dict[str, int]:
        """Return every non-empty balance keyed by ``asset:account``."""
        return {r.record_key: r.amount for r in self._store.values(BALANCES) if r.amount}

    def _set(self, account: str, asset: AssetKind, amount: int) -> None:
        self._store.upsert(BALANCES, BalanceRecord(account=account, asset=asset, amount=amount))

    def credit(self, account: str, asset: AssetKind, amount: int) -> int:
        """Mint ``amount`` into ``account`` and return the new balance."""
        if not isinstance(amount, int) or amount <= 0:
            raise invalid_amount(amount)
        balance = self.balance_of(account, asset) + amount
        if balance > U64_MAX:
            raise invalid_amount(amount)
        self._set(account, asset, balance)
        LOGGER.info("Credited %s %s to %s", amount, asset.value, account)
        return balance

    def transfer(self, source: str, destination: str, asset: AssetKind, amount: int) -> None:
        if not isinstance(amount, int) or amount <= 0:
            raise invalid_amount(amount)
        available = self.balance_of(source, asset)
        if available < amount:
            raise insufficient_funds(source, available, amount)
        if source == destination:
            return
        self._set(source, asset, available - amount)
        self._set(destination, asset, self.balance_of(destination, asset) + amount)
        LOGGER.debug("Moved %s %s from %s to %s", amount, asset.value, source, destination)

    def receive(
        self,
        source: str,
        destination: str,
        asset: AssetKind,
        amount: int,
        tx_ref: Optional[str] = None,
    ) -> None:
        """Debit ``source`` directly; local balances need no payment reference."""
        self.transfer(source, destination, asset, amount)


__all__ = ["AssetBank", "LocalAssetBank"]
