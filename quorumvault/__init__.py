"""QuorumVault: threshold-signed membership and treasury governance.

A bounded set of registered members must jointly authorize membership
changes and asset releases through proposals before any such change takes
effect:

  - quorumvault.registry      member registry
  - quorumvault.proposals     proposal store and membership lifecycle
  - quorumvault.consensus     consensus gate and signature ledger
  - quorumvault.vault         governed vault transfers and deposits
  - quorumvault.engine        the operations exposed to a host
"""

from __future__ import annotations

# Domain types
from .types import (  # noqa: F401
    Action,
    AssetKind,
    IdentityKey,
    LedgerDirection,
    LedgerEntry,
    Member,
    Proposal,
    ProposalAction,
    ProposalKind,
    ProposalStatus,
    RegisterMember,
    SignatureRecord,
    TransferAsset,
    UnregisterMember,
)

# Errors
from .errors import (  # noqa: F401
    AuthorizationError,
    ConflictError,
    ErrorKind,
    GovernanceError,
    QuorumError,
    ResourceError,
    StateError,
    ValidationError,
)

# Components
from .config import Settings, get_settings  # noqa: F401
from .storage import JsonFileStore, RecordStore  # noqa: F401
from .identifiers import IdentifierAllocator  # noqa: F401
from .registry import MemberRegistry  # noqa: F401
from .consensus import SignatureLedger, is_satisfied  # noqa: F401
from .proposals import ProposalStore  # noqa: F401
from .assets import AssetBank, LocalAssetBank  # noqa: F401
from .vault import VaultGovernor  # noqa: F401
from .engine import GovernanceEngine  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    # types
    "Action",
    "AssetKind",
    "IdentityKey",
    "LedgerDirection",
    "LedgerEntry",
    "Member",
    "Proposal",
    "ProposalAction",
    "ProposalKind",
    "ProposalStatus",
    "RegisterMember",
    "SignatureRecord",
    "TransferAsset",
    "UnregisterMember",
    # errors
    "ErrorKind",
    "GovernanceError",
    "ValidationError",
    "AuthorizationError",
    "StateError",
    "ConflictError",
    "QuorumError",
    "ResourceError",
    # components
    "Settings",
    "get_settings",
    "RecordStore",
    "JsonFileStore",
    "IdentifierAllocator",
    "MemberRegistry",
    "SignatureLedger",
    "is_satisfied",
    "ProposalStore",
    "AssetBank",
    "LocalAssetBank",
    "VaultGovernor",
    "GovernanceEngine",
]
