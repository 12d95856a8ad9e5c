"""Signature ledger: the append-only record of who signed which proposal."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional

from quorumvault.config import Settings, get_settings
from quorumvault.errors import (
    already_processed,
    already_signed,
    not_a_required_signer,
    signer_limit_reached,
)
from quorumvault.identifiers import SIGNATURE_DOMAIN, IdentifierAllocator
from quorumvault.storage import PROPOSALS, SIGNATURES, RecordStore
from quorumvault.types import IdentityKey, Proposal, SignatureRecord

LOGGER = logging.getLogger(__name__)


class SignatureLedger:
    """Append signatures to proposals.

    Uniqueness of a signer within ``collected_signatures`` is enforced by the
    ``AlreadySigned`` precondition rather than by a set; signatures can never
    be retracted.
    """

    def __init__(
        self,
        store: RecordStore,
        allocator: IdentifierAllocator,
        settings: Optional[Settings] = None,
    ) -> None:
        self._store = store
        self._allocator = allocator
        self._settings = settings or get_settings()

    def check(self, proposal: Proposal, signer: IdentityKey) -> None:
        """Raise if ``signer`` may not sign ``proposal`` right now."""
        if not proposal.is_pending:
            raise already_processed(proposal.proposal_id)
        # Bootstrap: an empty snapshot means no member existed at creation.
        if proposal.required_signers and signer not in proposal.required_signers:
            raise not_a_required_signer(signer, proposal.proposal_id)
        if signer in proposal.collected_signatures:
            raise already_signed(signer, proposal.proposal_id)
        if len(proposal.collected_signatures) >= self._settings.max_signers:
            raise signer_limit_reached(self._settings.max_signers)

    def record(self, proposal: Proposal, signer: IdentityKey) -> Proposal:
        """Append ``signer`` to ``proposal`` and store a signature record.

        Args:
            proposal: The proposal as currently stored.
            signer: Authenticated identity of the caller.

        Returns:
            The updated proposal.
        """
        self.check(proposal, signer)

        signature_id = self._allocator.next_id(SIGNATURE_DOMAIN)
        updated = replace(proposal, collected_signatures=proposal.collected_signatures + (signer,))
        self._store.insert(
            SIGNATURES,
            SignatureRecord(signature_id=signature_id, proposal_id=proposal.proposal_id, signer=signer),
        )
        self._store.update(PROPOSALS, updated)
        LOGGER.info(
            "Proposal %s signed by %s (%d/%d)",
            proposal.proposal_id,
            signer,
            len(updated.collected_signatures),
            len(updated.required_signers),
        )
        return updated

    def signatures_for(self, proposal_id: int) -> List[SignatureRecord]:
        """Return the signature records of a proposal in signing order."""
        return [r for r in self._store.values(SIGNATURES) if r.proposal_id == proposal_id]


__all__ = ["SignatureLedger"]
