"""Error taxonomy for the governance engine.

Every failure surfaces as a :class:`GovernanceError` subclass carrying a
stable ``kind`` and ``code`` so callers can branch on it programmatically.
A raised error always means nothing was written.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Stable, programmatically distinguishable error categories."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STATE = "state"
    CONFLICT = "conflict"
    QUORUM = "quorum"
    RESOURCE = "resource"


class GovernanceError(Exception):
    """Base exception for all engine errors."""

    kind: ErrorKind = ErrorKind.STATE

    def __init__(self, code: str, message: str = "", **details: Any) -> None:
        """Initialise the error.

        Args:
            code: Stable error code, e.g. ``"AlreadySigned"``.
            message: Human-readable description.
            **details: Extra context (proposal id, signer, ...).
        """
        super().__init__(message or code)
        self.code = code
        self.message = message or code
        self.details: Dict[str, Any] = details

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-safe description of the error."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }


class ValidationError(GovernanceError):
    """Input size or shape is outside the configured bounds."""

    kind = ErrorKind.VALIDATION


class AuthorizationError(GovernanceError):
    """Caller is not a member or not a required signer."""

    kind = ErrorKind.AUTHORIZATION


class StateError(GovernanceError):
    """Operation is invalid for the current state of a record."""

    kind = ErrorKind.STATE


class ConflictError(GovernanceError):
    """Operation duplicates something that already exists."""

    kind = ErrorKind.CONFLICT


class QuorumError(GovernanceError):
    """Approval attempted before every required signer has signed."""

    kind = ErrorKind.QUORUM


class ResourceError(GovernanceError):
    """A balance or identifier space is exhausted."""

    kind = ErrorKind.RESOURCE


# Constructors for the stable codes -----------------------------------------


def member_limit_reached(limit: int) -> ValidationError:
    return ValidationError("MemberLimitReached", f"registry is limited to {limit} members", limit=limit)


def signer_limit_reached(limit: int) -> ValidationError:
    return ValidationError("SignerLimitReached", f"a proposal holds at most {limit} signers", limit=limit)


def name_too_long(name: str, limit: int) -> ValidationError:
    return ValidationError("NameTooLong", f"member name exceeds {limit} characters", name=name, limit=limit)


def invalid_amount(amount: Any) -> ValidationError:
    return ValidationError("InvalidAmount", f"amount must be a positive 64-bit integer, got {amount!r}", amount=amount)


def not_a_member(identity_key: Optional[str]) -> AuthorizationError:
    return AuthorizationError("NotAMember", f"{identity_key!r} is not a registered member", identity_key=identity_key)


def not_a_required_signer(identity_key: str, proposal_id: int) -> AuthorizationError:
    return AuthorizationError(
        "NotARequiredSigner",
        f"{identity_key!r} is not a required signer of proposal {proposal_id}",
        identity_key=identity_key,
        proposal_id=proposal_id,
    )


def already_processed(proposal_id: int) -> StateError:
    return StateError("AlreadyProcessed", f"proposal {proposal_id} is no longer pending", proposal_id=proposal_id)


def proposal_not_found(proposal_id: Any) -> StateError:
    return StateError("ProposalNotFound", f"proposal {proposal_id} does not exist", proposal_id=proposal_id)


def not_registered(identity_key: str) -> StateError:
    return StateError("NotRegistered", f"{identity_key!r} is not a registered member", identity_key=identity_key)


def already_signed(identity_key: str, proposal_id: int) -> ConflictError:
    return ConflictError(
        "AlreadySigned",
        f"{identity_key!r} already signed proposal {proposal_id}",
        identity_key=identity_key,
        proposal_id=proposal_id,
    )


def already_registered(identity_key: str) -> ConflictError:
    return ConflictError("AlreadyRegistered", f"{identity_key!r} is already a member", identity_key=identity_key)


def duplicate_record(domain: str, key: Any) -> ConflictError:
    return ConflictError("DuplicateRecord", f"{domain} record {key!r} already exists", domain=domain, key=key)


def incomplete_signatures(proposal_id: int, missing: Any) -> QuorumError:
    return QuorumError(
        "IncompleteSignatures",
        f"proposal {proposal_id} is missing signatures from {sorted(missing)}",
        proposal_id=proposal_id,
        missing=sorted(missing),
    )


def insufficient_balance(available: int, requested: int) -> ResourceError:
    return ResourceError(
        "InsufficientBalance",
        f"vault holds {available}, transfer needs {requested}",
        available=available,
        requested=requested,
    )


def insufficient_funds(account: str, available: int, requested: int) -> ResourceError:
    return ResourceError(
        "InsufficientFunds",
        f"{account!r} holds {available}, needs {requested}",
        account=account,
        available=available,
        requested=requested,
    )


def identifier_exhausted(domain: str) -> ResourceError:
    return ResourceError("IdentifierExhausted", f"identifier domain {domain!r} is exhausted", domain=domain)


def invalid_account(account: Any) -> ValidationError:
    return ValidationError("InvalidAccount", f"{account!r} is not a valid account for this bank", account=account)


def invalid_counterparty(account: str) -> ValidationError:
    return ValidationError("InvalidCounterparty", f"the vault cannot deal with itself ({account!r})", account=account)


def deposit_mismatch(tx_ref: Optional[str], reason: str) -> ValidationError:
    return ValidationError("DepositMismatch", f"transaction {tx_ref} does not match the deposit: {reason}", tx_ref=tx_ref)


def duplicate_deposit(tx_ref: str) -> ConflictError:
    return ConflictError("DuplicateDeposit", f"transaction {tx_ref} was already credited", tx_ref=tx_ref)


def asset_transfer_failed(reason: str) -> ResourceError:
    return ResourceError("AssetTransferFailed", reason)


__all__ = [
    "ErrorKind",
    "GovernanceError",
    "ValidationError",
    "AuthorizationError",
    "StateError",
    "ConflictError",
    "QuorumError",
    "ResourceError",
]
