"""Command-line interface for a local QuorumVault state file.

Usage example:
    quorumvault --caller K1 propose-register K1 Alice
    quorumvault --caller K1 approve 1
    quorumvault --caller K1 fund K1 5000
    quorumvault --caller K1 deposit 1000

Every command loads the JSON state file, runs one engine operation, and
writes the file back if the operation succeeded. Value moves through a
:class:`~quorumvault.assets.LocalAssetBank`, so ``fund`` is the only way new
value enters the system.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from quorumvault.assets import LocalAssetBank
from quorumvault.config import Settings, get_settings
from quorumvault.engine import GovernanceEngine
from quorumvault.errors import GovernanceError
from quorumvault.logger import configure_logging
from quorumvault.storage import JsonFileStore
from quorumvault.types import AssetKind, ProposalAction, ProposalKind, ProposalStatus


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="quorumvault", description="Threshold-signed membership and vault governance.")
    parser.add_argument("--state", dest="state_file", default=None, help="State file (default: settings.state_file)")
    parser.add_argument("--caller", default="", help="Authenticated identity key of the caller")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Print results as JSON")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("members", help="List registered members")

    p = sub.add_parser("propose-register", help="Propose registering a member")
    p.add_argument("identity_key")
    p.add_argument("name")

    p = sub.add_parser("propose-unregister", help="Propose removing a member")
    p.add_argument("identity_key")

    p = sub.add_parser("sign", help="Sign a membership proposal")
    p.add_argument("proposal_id", type=int)

    p = sub.add_parser("approve", help="Approve a fully signed membership proposal")
    p.add_argument("proposal_id", type=int)

    p = sub.add_parser("propose-transfer", help="Propose a transfer out of the vault")
    p.add_argument("recipient")
    p.add_argument("amount", type=int)
    p.add_argument("--asset", choices=[a.value for a in AssetKind], default=AssetKind.NATIVE.value)

    p = sub.add_parser("sign-transfer", help="Sign a transfer proposal")
    p.add_argument("proposal_id", type=int)

    p = sub.add_parser("execute-transfer", help="Execute a fully signed transfer proposal")
    p.add_argument("proposal_id", type=int)

    p = sub.add_parser("deposit", help="Deposit into the vault (no approval needed)")
    p.add_argument("amount", type=int)
    p.add_argument("--asset", choices=[a.value for a in AssetKind], default=AssetKind.NATIVE.value)
    p.add_argument("--tx", dest="tx_ref", default=None, help="Hash of the payment, for banks that settle on chain")

    p = sub.add_parser("fund", help="Credit an account in the local bank")
    p.add_argument("account")
    p.add_argument("amount", type=int)
    p.add_argument("--asset", choices=[a.value for a in AssetKind], default=AssetKind.NATIVE.value)

    p = sub.add_parser("balance", help="Show the vault balance, or an account's")
    p.add_argument("account", nargs="?")
    p.add_argument("--asset", choices=[a.value for a in AssetKind], default=AssetKind.NATIVE.value)

    p = sub.add_parser("proposals", help="List proposals")
    p.add_argument("--kind", choices=[k.value for k in ProposalKind])
    p.add_argument("--status", choices=[s.value for s in ProposalStatus])

    sub.add_parser("ledger", help="List vault ledger entries")
    return parser


def _emit(args: argparse.Namespace, text: str, payload: object) -> None:
    if args.as_json:
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(text)


def run(args: argparse.Namespace, engine: GovernanceEngine, bank: LocalAssetBank) -> bool:
    """Execute one parsed command. Returns True if state changed."""
    command = args.command
    caller = args.caller
    asset = AssetKind(getattr(args, "asset", AssetKind.NATIVE.value))

    if command == "members":
        members = engine.members()
        lines = [f"• {m.identity_key} {m.name} (#{m.member_id})" for m in members] or ["(no members)"]
        _emit(args, "\n".join(lines), [m.to_payload() for m in members])
        return False

    if command in ("propose-register", "propose-unregister"):
        action = ProposalAction.REGISTER if command == "propose-register" else ProposalAction.UNREGISTER
        proposal_id = engine.create_membership_proposal(caller, action, args.identity_key, getattr(args, "name", None))
        proposal = engine.proposal(proposal_id)
        _emit(
            args,
            f"✅ Proposal {proposal_id} created, required signers: {list(proposal.required_signers) or 'none'}",
            proposal.to_payload(),
        )
        return True

    if command == "sign":
        proposal = engine.sign_membership_proposal(caller, args.proposal_id)
        _emit(args, f"✅ {caller} signed proposal {args.proposal_id}", proposal.to_payload())
        return True

    if command == "approve":
        proposal = engine.approve_membership_proposal(caller, args.proposal_id)
        _emit(args, f"✅ Proposal {args.proposal_id} approved", proposal.to_payload())
        return True

    if command == "propose-transfer":
        proposal_id = engine.create_transfer_proposal(caller, args.recipient, args.amount, asset)
        proposal = engine.proposal(proposal_id)
        _emit(args, f"✅ Transfer proposal {proposal_id} created", proposal.to_payload())
        return True

    if command == "sign-transfer":
        proposal = engine.sign_transfer_proposal(caller, args.proposal_id)
        _emit(args, f"✅ {caller} signed transfer proposal {args.proposal_id}", proposal.to_payload())
        return True

    if command == "execute-transfer":
        entry = engine.execute_transfer_proposal(caller, args.proposal_id)
        _emit(args, f"🚀 Released {-entry.amount} {entry.asset.value} to {entry.counterparty}", entry.to_payload())
        return True

    if command == "deposit":
        entry = engine.deposit(caller, args.amount, asset, tx_ref=args.tx_ref)
        _emit(args, f"💰 Deposited {entry.amount} {entry.asset.value} (fee {entry.fee})", entry.to_payload())
        return True

    if command == "fund":
        balance = bank.credit(args.account, asset, args.amount)
        _emit(args, f"💰 {args.account}: {balance} {asset.value}", {"account": args.account, "balance": balance})
        return True

    if command == "balance":
        account = args.account or engine.settings.vault_address
        balance = bank.balance_of(account, asset)
        _emit(args, f"💰 {account}: {balance} {asset.value}", {"account": account, "balance": balance})
        return False

    if command == "proposals":
        kind = ProposalKind(args.kind) if args.kind else None
        status = ProposalStatus(args.status) if args.status else None
        proposals = engine.proposals(kind=kind, status=status)
        lines = [
            f"#{p.proposal_id} {p.action.kind.value} {p.action.target} [{p.status.value}] "
            f"{len(p.collected_signatures)}/{len(p.required_signers)} signed"
            for p in proposals
        ] or ["(no proposals)"]
        _emit(args, "\n".join(lines), [p.to_payload() for p in proposals])
        return False

    if command == "ledger":
        entries = engine.ledger()
        lines = [
            f"#{e.entry_id} {e.direction.value} {e.amount:+d} {e.asset.value} {e.counterparty}" for e in entries
        ] or ["(empty ledger)"]
        _emit(args, "\n".join(lines), [e.to_payload() for e in entries])
        return False

    raise ValueError(f"Unknown command {command!r}")


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """Entrypoint for the ``quorumvault`` console script."""
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    configure_logging(settings)

    try:
        store = JsonFileStore.load(args.state_file or settings.state_file)
    except (OSError, KeyError, ValueError) as exc:
        print(f"❌ error: StateFileUnreadable: {exc}", file=sys.stderr)
        return 1
    bank = LocalAssetBank(store)
    engine = GovernanceEngine(settings=settings, store=store, bank=bank)

    try:
        changed = run(args, engine, bank)
    except GovernanceError as exc:
        print(f"❌ error: {exc.code}: {exc.message}", file=sys.stderr)
        return 1

    if changed:
        store.save()
    return 0


if __name__ == "__main__":
    sys.exit(main())
