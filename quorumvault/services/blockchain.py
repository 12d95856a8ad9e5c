"""
Asset bank that moves native coin and ERC-20 tokens on an EVM chain.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TransactionNotFound
from web3.middleware import ExtraDataToPOAMiddleware

from quorumvault.config import Settings, get_settings
from quorumvault.errors import (
    AuthorizationError,
    ValidationError,
    asset_transfer_failed,
    deposit_mismatch,
    invalid_account,
    invalid_amount,
)
from quorumvault.types import AssetKind

_ABI_DIR: Path = Path(__file__).resolve().parent / "abis"

NATIVE_TRANSFER_GAS = 21000

logger = logging.getLogger(__name__)


def _load_abi(filename: str) -> List[Dict[str, Any]]:
    """Return ABI list from the given JSON file.

    The JSON may either be a raw list (standard Hardhat export) or an object
    with an ``abi`` field (solidity-coverage & Foundry style). The helper
    normalises both cases and always returns the ABI array.
    """

    with open(_ABI_DIR / filename, "r", encoding="utf-8") as fp:
        data = json.load(fp)

    if isinstance(data, list):
        return data

    if "abi" in data and isinstance(data["abi"], list):
        return data["abi"]

    raise ValueError(f"Unsupported ABI format in {_ABI_DIR / filename}")


ERC20ABI: List[Dict[str, Any]] = _load_abi("ERC20.json")


class Web3AssetBank:
    """Transfer primitive backed by a JSON-RPC node.

    The bank can only move value out of accounts whose private keys it holds,
    which normally means the vault account configured through
    ``vault_private_key``.
    """

    def __init__(self, settings: Optional[Settings] = None, w3: Optional[Web3] = None) -> None:
        """Connect to the configured RPC endpoint.

        Args:
            settings: Settings with ``rpc_url``, ``chain_id`` and key material.
            w3: Pre-built Web3 instance, used as-is when given.
        """
        self.settings = settings or get_settings()
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(self.settings.rpc_url))
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = w3
        self._signers: Dict[str, LocalAccount] = {}
        self.token_contract = None

        if self.settings.token_contract_address:
            self.token_contract = self.w3.eth.contract(
                address=Web3.to_checksum_address(self.settings.token_contract_address),
                abi=ERC20ABI,
            )
            logger.info(f"Token contract initialized at {self.settings.token_contract_address}")

        if self.settings.vault_private_key:
            address = self.add_signer(self.settings.vault_private_key)
            logger.info(f"Vault account initialized: {address}")

    def add_signer(self, private_key: str) -> str:
        """Hold ``private_key`` so transfers from its address can be signed."""
        account = Account.from_key(private_key)
        self._signers[account.address] = account
        return account.address

    def validate_account(self, account: str) -> str:
        """Return the checksummed form of ``account``."""
        if not isinstance(account, str) or not Web3.is_address(account):
            raise invalid_account(account)
        return Web3.to_checksum_address(account)

    def is_connected(self) -> bool:
        return bool(self.w3.is_connected())

    def _require_token(self):
        if self.token_contract is None:
            raise ValidationError("AssetUnavailable", "no token contract address configured")
        return self.token_contract

    def balance_of(self, account: str, asset: AssetKind) -> int:
        address = self.validate_account(account)
        if asset is AssetKind.NATIVE:
            return int(self.w3.eth.get_balance(address))
        return int(self._require_token().functions.balanceOf(address).call())

    def transfer(self, source: str, destination: str, asset: AssetKind, amount: int) -> str:
        """Sign and submit a transfer, wait for its receipt.

        Returns:
            The transaction hash as a hex string.
        """
        if not isinstance(amount, int) or amount <= 0:
            raise invalid_amount(amount)

        sender = self.validate_account(source)
        recipient = self.validate_account(destination)
        signer = self._signers.get(sender)
        if signer is None:
            raise AuthorizationError("UnknownSigner", f"no key held for {sender}", account=sender)

        base_tx = {
            "chainId": self.settings.chain_id,
            "nonce": self.w3.eth.get_transaction_count(sender),
            "gasPrice": self.w3.eth.gas_price,
        }
        if asset is AssetKind.NATIVE:
            tx = dict(base_tx, to=recipient, value=amount, gas=NATIVE_TRANSFER_GAS)
        else:
            tx = self._require_token().functions.transfer(recipient, amount).build_transaction(
                dict(base_tx, **{"from": sender})
            )

        signed = signer.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.settings.transaction_timeout)
        tx_hex = Web3.to_hex(tx_hash)
        if receipt["status"] != 1:
            logger.error(f"Transfer {tx_hex} reverted")
            raise asset_transfer_failed(f"transaction {tx_hex} reverted")

        logger.info(f"Transferred {amount} {asset.value} from {sender} to {recipient}: {tx_hex}")
        return tx_hex

    def receive(
        self,
        source: str,
        destination: str,
        asset: AssetKind,
        amount: int,
        tx_ref: Optional[str] = None,
    ) -> None:
        """Confirm a payment the depositor submitted from their own key.

        The bank cannot sign for depositors, so a deposit is settled by
        checking the mined transaction named by ``tx_ref``: it must have
        succeeded, come from ``source``, and pay exactly ``amount`` of
        ``asset`` to ``destination``.
        """
        if not tx_ref:
            raise deposit_mismatch(tx_ref, "a transaction hash is required")
        sender = self.validate_account(source)
        recipient = self.validate_account(destination)

        try:
            tx = self.w3.eth.get_transaction(tx_ref)
            receipt = self.w3.eth.get_transaction_receipt(tx_ref)
        except TransactionNotFound as exc:
            raise asset_transfer_failed(f"transaction {tx_ref} is not mined") from exc

        if receipt["status"] != 1:
            raise asset_transfer_failed(f"transaction {tx_ref} reverted")
        if Web3.to_checksum_address(tx["from"]) != sender:
            raise deposit_mismatch(tx_ref, f"sent by {tx['from']}")

        if asset is AssetKind.NATIVE:
            paid_to, value = tx["to"], tx["value"]
        else:
            contract = self._require_token()
            if not tx["to"] or Web3.to_checksum_address(tx["to"]) != contract.address:
                raise deposit_mismatch(tx_ref, "not a call to the token contract")
            func, params = contract.decode_function_input(tx["input"])
            if func.fn_name != "transfer":
                raise deposit_mismatch(tx_ref, f"calls {func.fn_name}, not transfer")
            paid_to, value = params["to"], params["amount"]

        if not paid_to or Web3.to_checksum_address(paid_to) != recipient:
            raise deposit_mismatch(tx_ref, f"pays {paid_to}")
        if int(value) != amount:
            raise deposit_mismatch(tx_ref, f"pays {value}, expected {amount}")

        logger.info(f"Received {amount} {asset.value} from {sender} in {tx_ref}")


__all__ = ["ERC20ABI", "Web3AssetBank"]
