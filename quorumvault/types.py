"""Base types and records for the QuorumVault governance engine."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

IdentityKey = str
RecordKey = Union[int, str]
RecordPayload = Dict[str, Any]


class ProposalKind(Enum):
    """Pipeline a proposal belongs to."""

    MEMBERSHIP = "membership"
    TRANSFER = "transfer"


class ProposalAction(Enum):
    """Actions a proposal can carry."""

    REGISTER = "register"
    UNREGISTER = "unregister"
    TRANSFER_ASSET = "transfer_asset"


class ProposalStatus(Enum):
    """Status of a proposal. There is no rejected or expired state."""

    PENDING = "pending"
    APPROVED = "approved"


class AssetKind(Enum):
    """Assets the vault custodies."""

    NATIVE = "native"
    TOKEN = "token"


class LedgerDirection(Enum):
    """Direction tag of a ledger entry."""

    DEPOSIT = "deposit"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class Member:
    """A registered member."""

    identity_key: IdentityKey
    name: str
    member_id: int = 0

    def to_payload(self) -> RecordPayload:
        return {"identity_key": self.identity_key, "name": self.name, "member_id": self.member_id}

    @staticmethod
    def from_payload(payload: RecordPayload) -> "Member":
        return Member(
            identity_key=str(payload["identity_key"]),
            name=str(payload["name"]),
            member_id=int(payload.get("member_id", 0)),
        )


@dataclass(frozen=True)
class RegistryRecord:
    """The whole member set, stored as one embedded collection."""

    KEY: ClassVar[int] = 0

    members: Tuple[Member, ...] = ()

    @property
    def record_key(self) -> int:
        return self.KEY

    def to_payload(self) -> RecordPayload:
        return {"members": [member.to_payload() for member in self.members]}

    @staticmethod
    def from_payload(payload: RecordPayload) -> "RegistryRecord":
        return RegistryRecord(members=tuple(Member.from_payload(m) for m in payload.get("members", [])))


# Actions --------------------------------------------------------------------


@dataclass(frozen=True)
class RegisterMember:
    """Add ``member`` to the registry once approved."""

    kind: ClassVar[ProposalAction] = ProposalAction.REGISTER

    member: Member

    @property
    def target(self) -> IdentityKey:
        return self.member.identity_key


@dataclass(frozen=True)
class UnregisterMember:
    """Remove ``identity_key`` from the registry once approved."""

    kind: ClassVar[ProposalAction] = ProposalAction.UNREGISTER

    identity_key: IdentityKey

    @property
    def target(self) -> IdentityKey:
        return self.identity_key


@dataclass(frozen=True)
class TransferAsset:
    """Release ``amount`` of ``asset`` from the vault to ``recipient``."""

    kind: ClassVar[ProposalAction] = ProposalAction.TRANSFER_ASSET

    recipient: str
    amount: int
    asset: AssetKind = AssetKind.NATIVE

    @property
    def target(self) -> str:
        return self.recipient


Action = Union[RegisterMember, UnregisterMember, TransferAsset]


def action_to_payload(action: Action) -> RecordPayload:
    """Return a JSON-safe payload tagged with the action kind."""
    if isinstance(action, RegisterMember):
        return {"kind": action.kind.value, "member": action.member.to_payload()}
    if isinstance(action, UnregisterMember):
        return {"kind": action.kind.value, "identity_key": action.identity_key}
    return {
        "kind": action.kind.value,
        "recipient": action.recipient,
        "amount": action.amount,
        "asset": action.asset.value,
    }


def action_from_payload(payload: RecordPayload) -> Action:
    """Inverse of :func:`action_to_payload`."""
    kind = ProposalAction(payload["kind"])
    if kind is ProposalAction.REGISTER:
        return RegisterMember(member=Member.from_payload(payload["member"]))
    if kind is ProposalAction.UNREGISTER:
        return UnregisterMember(identity_key=str(payload["identity_key"]))
    return TransferAsset(
        recipient=str(payload["recipient"]),
        amount=int(payload["amount"]),
        asset=AssetKind(payload.get("asset", AssetKind.NATIVE.value)),
    )


# Records --------------------------------------------------------------------


@dataclass(frozen=True)
class Proposal:
    """A proposal and its signature state.

    ``required_signers`` is the registry snapshot taken at creation and is
    never touched afterwards. ``collected_signatures`` only ever grows.
    """

    proposal_id: int
    action: Action
    required_signers: Tuple[IdentityKey, ...] = ()
    collected_signatures: Tuple[IdentityKey, ...] = ()
    status: ProposalStatus = ProposalStatus.PENDING
    proposer: Optional[IdentityKey] = None
    reference: str = ""
    created_at: float = field(default_factory=time.time)

    @property
    def record_key(self) -> int:
        return self.proposal_id

    @property
    def kind(self) -> ProposalKind:
        if isinstance(self.action, TransferAsset):
            return ProposalKind.TRANSFER
        return ProposalKind.MEMBERSHIP

    @property
    def is_pending(self) -> bool:
        return self.status is ProposalStatus.PENDING

    def to_payload(self) -> RecordPayload:
        return {
            "proposal_id": self.proposal_id,
            "action": action_to_payload(self.action),
            "required_signers": list(self.required_signers),
            "collected_signatures": list(self.collected_signatures),
            "status": self.status.value,
            "proposer": self.proposer,
            "reference": self.reference,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_payload(payload: RecordPayload) -> "Proposal":
        proposer = payload.get("proposer")
        return Proposal(
            proposal_id=int(payload["proposal_id"]),
            action=action_from_payload(payload["action"]),
            required_signers=tuple(str(k) for k in payload.get("required_signers", [])),
            collected_signatures=tuple(str(k) for k in payload.get("collected_signatures", [])),
            status=ProposalStatus(payload["status"]),
            proposer=str(proposer) if proposer is not None else None,
            reference=str(payload.get("reference", "")),
            created_at=float(payload["created_at"]),
        )


@dataclass(frozen=True)
class SignatureRecord:
    """One accepted signature on a proposal."""

    signature_id: int
    proposal_id: int
    signer: IdentityKey
    signed_at: float = field(default_factory=time.time)

    @property
    def record_key(self) -> int:
        return self.signature_id

    def to_payload(self) -> RecordPayload:
        return {
            "signature_id": self.signature_id,
            "proposal_id": self.proposal_id,
            "signer": self.signer,
            "signed_at": self.signed_at,
        }

    @staticmethod
    def from_payload(payload: RecordPayload) -> "SignatureRecord":
        return SignatureRecord(
            signature_id=int(payload["signature_id"]),
            proposal_id=int(payload["proposal_id"]),
            signer=str(payload["signer"]),
            signed_at=float(payload["signed_at"]),
        )


@dataclass(frozen=True)
class LedgerEntry:
    """Immutable record of one asset movement into or out of the vault."""

    entry_id: int
    counterparty: str
    amount: int
    direction: LedgerDirection
    asset: AssetKind = AssetKind.NATIVE
    fee: int = 0
    proposal_id: Optional[int] = None
    tx_ref: Optional[str] = None
    created_at: float = field(default_factory=time.time)

    @property
    def record_key(self) -> int:
        return self.entry_id

    def to_payload(self) -> RecordPayload:
        return {
            "entry_id": self.entry_id,
            "counterparty": self.counterparty,
            "amount": self.amount,
            "direction": self.direction.value,
            "asset": self.asset.value,
            "fee": self.fee,
            "proposal_id": self.proposal_id,
            "tx_ref": self.tx_ref,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_payload(payload: RecordPayload) -> "LedgerEntry":
        proposal_id = payload.get("proposal_id")
        return LedgerEntry(
            entry_id=int(payload["entry_id"]),
            counterparty=str(payload["counterparty"]),
            amount=int(payload["amount"]),
            direction=LedgerDirection(payload["direction"]),
            asset=AssetKind(payload.get("asset", AssetKind.NATIVE.value)),
            fee=int(payload.get("fee", 0)),
            proposal_id=int(proposal_id) if proposal_id is not None else None,
            tx_ref=payload.get("tx_ref"),
            created_at=float(payload["created_at"]),
        )


@dataclass(frozen=True)
class AllocatorRecord:
    """Counter state of one identifier domain."""

    domain: str
    next_value: int = 0

    @property
    def record_key(self) -> str:
        return self.domain

    def to_payload(self) -> RecordPayload:
        return {"domain": self.domain, "next_value": self.next_value}

    @staticmethod
    def from_payload(payload: RecordPayload) -> "AllocatorRecord":
        return AllocatorRecord(domain=str(payload["domain"]), next_value=int(payload["next_value"]))


@dataclass(frozen=True)
class BalanceRecord:
    """Balance of one account in one asset, as held by the local bank."""

    account: str
    asset: AssetKind
    amount: int = 0

    @property
    def record_key(self) -> str:
        return balance_key(self.account, self.asset)

    def to_payload(self) -> RecordPayload:
        return {"account": self.account, "asset": self.asset.value, "amount": self.amount}

    @staticmethod
    def from_payload(payload: RecordPayload) -> "BalanceRecord":
        return BalanceRecord(
            account=str(payload["account"]),
            asset=AssetKind(payload["asset"]),
            amount=int(payload["amount"]),
        )


def balance_key(account: str, asset: AssetKind) -> str:
    """Store key of a :class:`BalanceRecord`."""
    return f"{asset.value}:{account}"


__all__ = [
    "IdentityKey",
    "RecordKey",
    "RecordPayload",
    "ProposalKind",
    "ProposalAction",
    "ProposalStatus",
    "AssetKind",
    "LedgerDirection",
    "Member",
    "RegistryRecord",
    "RegisterMember",
    "UnregisterMember",
    "TransferAsset",
    "Action",
    "action_to_payload",
    "action_from_payload",
    "Proposal",
    "SignatureRecord",
    "LedgerEntry",
    "AllocatorRecord",
    "BalanceRecord",
    "balance_key",
]
