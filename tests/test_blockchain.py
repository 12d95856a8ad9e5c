"""Tests for the Web3-backed asset bank using a mocked node."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from eth_account import Account
from web3 import Web3
from web3.exceptions import TransactionNotFound

from quorumvault.config import Settings
from quorumvault.engine import GovernanceEngine
from quorumvault.errors import AuthorizationError, ConflictError, ResourceError, ValidationError
from quorumvault.services import ERC20ABI, Web3AssetBank
from quorumvault.types import AssetKind, ProposalAction

TOKEN_ADDRESS = "0x" + "ab" * 20
TX_HASH = b"\x12" * 32


@pytest.fixture
def vault_account():
    return Account.create()


@pytest.fixture
def w3() -> MagicMock:
    """A node stand-in that accepts every transaction."""
    node = MagicMock()
    node.eth.get_transaction_count.return_value = 0
    node.eth.gas_price = 1_000_000_000
    node.eth.send_raw_transaction.return_value = TX_HASH
    node.eth.wait_for_transaction_receipt.return_value = {"status": 1}
    node.eth.get_balance.return_value = 5000
    return node


@pytest.fixture
def bank(vault_account, w3: MagicMock) -> Web3AssetBank:
    settings = Settings(
        _env_file=None,
        vault_address=vault_account.address,
        vault_private_key=vault_account.key.hex(),
        token_contract_address=TOKEN_ADDRESS,
    )
    return Web3AssetBank(settings=settings, w3=w3)


def test_erc20_abi_is_loaded() -> None:
    names = {item.get("name") for item in ERC20ABI}

    assert {"balanceOf", "transfer"} <= names


def test_native_transfer_is_signed_and_sent(bank: Web3AssetBank, vault_account, w3: MagicMock) -> None:
    """A native transfer signs a plain value transaction from the vault key."""
    recipient = Account.create().address

    tx_hex = bank.transfer(vault_account.address, recipient, AssetKind.NATIVE, 250)

    assert tx_hex == "0x" + "12" * 32
    w3.eth.send_raw_transaction.assert_called_once()
    w3.eth.wait_for_transaction_receipt.assert_called_once()
    w3.eth.get_transaction_count.assert_called_once_with(vault_account.address)


def test_token_transfer_uses_contract(bank: Web3AssetBank, vault_account) -> None:
    recipient = Account.create().address
    build = bank.token_contract.functions.transfer.return_value.build_transaction
    build.return_value = {
        "chainId": 1337,
        "nonce": 0,
        "gasPrice": 1_000_000_000,
        "gas": 60000,
        "to": Web3.to_checksum_address(TOKEN_ADDRESS),
        "value": 0,
        "data": "0xa9059cbb",
    }

    bank.transfer(vault_account.address, recipient, AssetKind.TOKEN, 7)

    bank.token_contract.functions.transfer.assert_called_once_with(recipient, 7)
    assert build.call_args[0][0]["from"] == vault_account.address


def test_reverted_receipt_raises(bank: Web3AssetBank, vault_account, w3: MagicMock) -> None:
    w3.eth.wait_for_transaction_receipt.return_value = {"status": 0}

    with pytest.raises(ResourceError) as excinfo:
        bank.transfer(vault_account.address, Account.create().address, AssetKind.NATIVE, 1)

    assert excinfo.value.code == "AssetTransferFailed"


def test_unknown_source_is_refused(bank: Web3AssetBank, w3: MagicMock) -> None:
    """The bank only moves value out of accounts whose keys it holds."""
    with pytest.raises(AuthorizationError) as excinfo:
        bank.transfer(Account.create().address, Account.create().address, AssetKind.NATIVE, 1)

    assert excinfo.value.code == "UnknownSigner"
    w3.eth.send_raw_transaction.assert_not_called()


def test_token_requires_contract(vault_account, w3: MagicMock) -> None:
    bank = Web3AssetBank(settings=Settings(_env_file=None), w3=w3)

    with pytest.raises(ValidationError) as excinfo:
        bank.balance_of(vault_account.address, AssetKind.TOKEN)

    assert excinfo.value.code == "AssetUnavailable"


def test_engine_executes_through_chain_bank(bank: Web3AssetBank, vault_account, w3: MagicMock) -> None:
    """The engine checks the on-chain balance before releasing a transfer."""
    engine = GovernanceEngine(settings=bank.settings, bank=bank)
    engine.create_membership_proposal("K1", ProposalAction.REGISTER, "K1", "Alice")
    engine.approve_membership_proposal("K1", 1)
    recipient = Account.create().address

    proposal_id = engine.create_transfer_proposal("K1", recipient, 1000)
    engine.sign_transfer_proposal("K1", proposal_id)
    entry = engine.execute_transfer_proposal("K1", proposal_id)

    assert entry.amount == -1000
    w3.eth.get_balance.assert_called_with(vault_account.address)
    w3.eth.send_raw_transaction.assert_called_once()


@pytest.fixture
def chain_engine(bank: Web3AssetBank) -> GovernanceEngine:
    """Engine over the chain bank with K1 as its only member."""
    engine = GovernanceEngine(settings=bank.settings, bank=bank)
    engine.create_membership_proposal("K1", ProposalAction.REGISTER, "K1", "Alice")
    engine.approve_membership_proposal("K1", 1)
    return engine


def mined_payment(w3: MagicMock, sender: str, to: str, value: int, **fields) -> str:
    """Make the node report one successful transaction and return its hash."""
    tx_ref = "0x" + "34" * 32
    w3.eth.get_transaction.return_value = dict({"from": sender, "to": to, "value": value}, **fields)
    w3.eth.get_transaction_receipt.return_value = {"status": 1}
    return tx_ref


def test_non_address_recipient_is_refused(chain_engine: GovernanceEngine) -> None:
    """A recipient the chain cannot pay never becomes a pending proposal."""
    with pytest.raises(ValidationError) as excinfo:
        chain_engine.create_transfer_proposal("K1", "R", 10)

    assert excinfo.value.code == "InvalidAccount"
    assert len(chain_engine.proposals()) == 1


def test_recipient_is_checksummed(chain_engine: GovernanceEngine) -> None:
    recipient = Account.create().address

    proposal_id = chain_engine.create_transfer_proposal("K1", recipient.lower(), 10)

    assert chain_engine.proposal(proposal_id).action.recipient == recipient


def test_vault_address_in_any_case_is_refused(chain_engine: GovernanceEngine, vault_account) -> None:
    with pytest.raises(ValidationError) as excinfo:
        chain_engine.create_transfer_proposal("K1", vault_account.address.lower(), 10)

    assert excinfo.value.code == "InvalidCounterparty"


def test_deposit_from_unheld_key(chain_engine: GovernanceEngine, vault_account, w3: MagicMock) -> None:
    """Anyone may deposit by paying the vault from their own key."""
    depositor = Account.create().address
    tx_ref = mined_payment(w3, depositor, vault_account.address, 10)

    entry = chain_engine.deposit(depositor, 10, tx_ref=tx_ref)

    assert entry.amount == 10
    assert entry.counterparty == depositor
    assert entry.tx_ref == tx_ref
    w3.eth.send_raw_transaction.assert_not_called()

    with pytest.raises(ConflictError) as excinfo:
        chain_engine.deposit(depositor, 10, tx_ref=tx_ref)
    assert excinfo.value.code == "DuplicateDeposit"


def test_token_deposit_checks_transfer_call(
    chain_engine: GovernanceEngine, bank: Web3AssetBank, vault_account, w3: MagicMock
) -> None:
    depositor = Account.create().address
    token = Web3.to_checksum_address(TOKEN_ADDRESS)
    bank.token_contract.address = token
    bank.token_contract.decode_function_input.return_value = (
        MagicMock(fn_name="transfer"),
        {"to": vault_account.address, "amount": 25},
    )
    tx_ref = mined_payment(w3, depositor, token, 0, input="0xa9059cbb")

    entry = chain_engine.deposit(depositor, 25, AssetKind.TOKEN, tx_ref=tx_ref)

    assert entry.asset is AssetKind.TOKEN
    assert entry.amount == 25


@pytest.mark.parametrize(
    "sender_is_depositor, pays_vault, value",
    [(False, True, 10), (True, False, 10), (True, True, 9)],
)
def test_deposit_must_match_payment(
    chain_engine: GovernanceEngine,
    vault_account,
    w3: MagicMock,
    sender_is_depositor: bool,
    pays_vault: bool,
    value: int,
) -> None:
    """Wrong sender, wrong payee or wrong value credits nothing."""
    depositor = Account.create().address
    sender = depositor if sender_is_depositor else Account.create().address
    payee = vault_account.address if pays_vault else Account.create().address
    tx_ref = mined_payment(w3, sender, payee, value)

    with pytest.raises(ValidationError) as excinfo:
        chain_engine.deposit(depositor, 10, tx_ref=tx_ref)

    assert excinfo.value.code == "DepositMismatch"
    assert chain_engine.ledger() == []


def test_deposit_needs_payment_reference(chain_engine: GovernanceEngine) -> None:
    with pytest.raises(ValidationError) as excinfo:
        chain_engine.deposit(Account.create().address, 10)

    assert excinfo.value.code == "DepositMismatch"


def test_unmined_payment_is_not_credited(chain_engine: GovernanceEngine, w3: MagicMock) -> None:
    w3.eth.get_transaction.side_effect = TransactionNotFound("unknown transaction")

    with pytest.raises(ResourceError) as excinfo:
        chain_engine.deposit(Account.create().address, 10, tx_ref="0x" + "56" * 32)

    assert excinfo.value.code == "AssetTransferFailed"
    assert chain_engine.ledger() == []
