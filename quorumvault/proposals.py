"""Proposal store and membership-proposal lifecycle.

A proposal moves through exactly two states::

    PENDING --approve--> APPROVED

It is created with a snapshot of the registry's identity keys as its
required signers, collects signatures while pending, and is approved exactly
once when the consensus gate holds. Approval applies the action and flips the
status in the same call; nothing is written until every precondition passed.

The generic machinery (open, sign, quorum check, approval) is shared with the
vault transfer pipeline in :mod:`quorumvault.vault`.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import replace
from typing import List, Optional

from quorumvault.config import Settings, get_settings
from quorumvault.consensus import SignatureLedger, is_satisfied, missing_signers
from quorumvault.errors import (
    ValidationError,
    already_processed,
    already_registered,
    incomplete_signatures,
    member_limit_reached,
    name_too_long,
    not_a_member,
    not_registered,
    proposal_not_found,
    signer_limit_reached,
)
from quorumvault.identifiers import MEMBER_DOMAIN, PROPOSAL_DOMAIN, IdentifierAllocator
from quorumvault.registry import MemberRegistry
from quorumvault.storage import PROPOSALS, RecordStore
from quorumvault.types import (
    Action,
    IdentityKey,
    Member,
    Proposal,
    ProposalAction,
    ProposalKind,
    ProposalStatus,
    RegisterMember,
    UnregisterMember,
)

LOGGER = logging.getLogger(__name__)


def proposal_reference(
    proposer: Optional[IdentityKey],
    created_at: float,
    action: ProposalAction,
    proposal_counter: int,
    member_counter: int,
) -> str:
    """Return a 32-hex-digit content reference for a new proposal."""
    digest = hashlib.sha3_256()
    digest.update((proposer or "").encode("utf-8"))
    digest.update(int(created_at * 1000).to_bytes(8, "little", signed=True))
    digest.update(proposal_counter.to_bytes(8, "little"))
    digest.update(member_counter.to_bytes(8, "little"))
    digest.update(action.value.encode("utf-8"))
    return digest.hexdigest()[:32]


class ProposalStore:
    """Create, sign and approve proposals."""

    def __init__(
        self,
        store: RecordStore,
        allocator: IdentifierAllocator,
        registry: MemberRegistry,
        signatures: SignatureLedger,
        settings: Optional[Settings] = None,
    ) -> None:
        self._store = store
        self._allocator = allocator
        self._settings = settings or get_settings()
        self.registry = registry
        self.signatures = signatures

    # ------------------------------------------------------------------
    # Shared machinery
    # ------------------------------------------------------------------

    def check_proposer(self, proposer: Optional[IdentityKey]) -> None:
        """Enforce ``require_member_to_propose`` when the registry is non-empty."""
        if not self._settings.require_member_to_propose or len(self.registry) == 0:
            return
        if proposer is None or proposer not in self.registry:
            raise not_a_member(proposer)

    def open_proposal(self, action: Action, proposer: Optional[IdentityKey] = None) -> Proposal:
        """Snapshot the required signers and store a new pending proposal.

        Args:
            action: What the proposal does once approved.
            proposer: Authenticated identity of the caller, if known.

        Returns:
            The stored proposal.
        """
        self.check_proposer(proposer)

        required = self.registry.identity_keys()
        if len(required) > self._settings.max_signers:
            raise signer_limit_reached(self._settings.max_signers)

        created_at = time.time()
        reference = proposal_reference(
            proposer,
            created_at,
            action.kind,
            self._allocator.peek(PROPOSAL_DOMAIN),
            len(required),
        )
        proposal = Proposal(
            proposal_id=self._allocator.next_id(PROPOSAL_DOMAIN),
            action=action,
            required_signers=required,
            proposer=proposer,
            reference=reference,
            created_at=created_at,
        )
        self._store.insert(PROPOSALS, proposal)
        LOGGER.info(
            "Created %s proposal %s (%s %s), %d required signers",
            proposal.kind.value,
            proposal.proposal_id,
            action.kind.value,
            action.target,
            len(required),
        )
        return proposal

    def get(self, proposal_id: int, kind: Optional[ProposalKind] = None) -> Proposal:
        """Return a proposal, optionally requiring it to be of ``kind``."""
        proposal = self._store.find(PROPOSALS, proposal_id)
        if proposal is None or (kind is not None and proposal.kind is not kind):
            raise proposal_not_found(proposal_id)
        return proposal

    def list(
        self,
        kind: Optional[ProposalKind] = None,
        status: Optional[ProposalStatus] = None,
    ) -> List[Proposal]:
        """Return proposals ordered by id, filtered by kind and status."""
        return [
            p
            for p in self._store.values(PROPOSALS)
            if (kind is None or p.kind is kind) and (status is None or p.status is status)
        ]

    def find_by_reference(self, reference: str) -> Optional[Proposal]:
        for proposal in self._store.values(PROPOSALS):
            if proposal.reference == reference:
                return proposal
        return None

    def sign(self, signer: IdentityKey, proposal_id: int, kind: ProposalKind) -> Proposal:
        """Record ``signer``'s signature on a pending proposal."""
        return self.signatures.record(self.get(proposal_id, kind), signer)

    def require_quorum(self, proposal: Proposal) -> None:
        """Raise unless ``proposal`` is pending and fully signed."""
        if not proposal.is_pending:
            raise already_processed(proposal.proposal_id)
        if not is_satisfied(proposal.required_signers, proposal.collected_signatures):
            raise incomplete_signatures(
                proposal.proposal_id,
                missing_signers(proposal.required_signers, proposal.collected_signatures),
            )

    def mark_approved(self, proposal: Proposal) -> Proposal:
        """Flip a pending proposal to APPROVED."""
        approved = replace(proposal, status=ProposalStatus.APPROVED)
        self._store.update(PROPOSALS, approved)
        return approved

    # ------------------------------------------------------------------
    # Membership lifecycle
    # ------------------------------------------------------------------

    def create_proposal(
        self,
        action: ProposalAction,
        target: IdentityKey,
        name: Optional[str] = None,
        proposer: Optional[IdentityKey] = None,
    ) -> int:
        """Create a Register or Unregister proposal and return its id."""
        if action is ProposalAction.REGISTER:
            name = name or ""
            if len(name) > self._settings.max_name_length:
                raise name_too_long(name, self._settings.max_name_length)
            if target in self.registry:
                raise already_registered(target)
            payload: Action = RegisterMember(member=Member(identity_key=target, name=name))
        elif action is ProposalAction.UNREGISTER:
            if target not in self.registry:
                raise not_registered(target)
            payload = UnregisterMember(identity_key=target)
        else:
            raise ValidationError("InvalidAction", f"{action.value} is not a membership action")

        return self.open_proposal(payload, proposer).proposal_id

    def sign_proposal(self, signer: IdentityKey, proposal_id: int) -> Proposal:
        """Sign a pending membership proposal."""
        return self.sign(signer, proposal_id, ProposalKind.MEMBERSHIP)

    def approve_proposal(self, proposal_id: int) -> Proposal:
        """Apply a fully signed membership proposal to the registry.

        Raises:
            StateError: The proposal is unknown or no longer pending, or the
                Unregister target has left the registry meanwhile.
            QuorumError: A required signer has not signed.
            ConflictError: The Register target joined meanwhile.
            ValidationError: The registry is full.
        """
        proposal = self.get(proposal_id, ProposalKind.MEMBERSHIP)
        self.require_quorum(proposal)

        action = proposal.action
        if isinstance(action, RegisterMember):
            if action.target in self.registry:
                raise already_registered(action.target)
            if self.registry.is_full():
                raise member_limit_reached(self.registry.max_members)
            member = replace(action.member, member_id=self._allocator.next_id(MEMBER_DOMAIN))
            self.registry.apply_register(member)
        elif isinstance(action, UnregisterMember):
            if action.target not in self.registry:
                raise not_registered(action.target)
            self.registry.apply_remove(action.target)

        approved = self.mark_approved(proposal)
        LOGGER.info("Approved membership proposal %s (%s %s)", proposal_id, action.kind.value, action.target)
        return approved


__all__ = ["ProposalStore", "proposal_reference"]
