"""
Collier CLI
===========
Command-line interface for metadata mining, holder resolution and creator rescue.

    collier [--db PATH] [--rpc URL] [--quiet] mine-metadata CREATOR_ADDRESS [--incremental]
    collier [--db PATH] [--rpc URL] [--quiet] mine-holders CREATOR_ADDRESS
    collier [--db PATH] [--rpc URL] [--quiet] list-metadata-uris
    collier [--db PATH] [--rpc URL] [--quiet] rescue UPDATE_AUTHORITY_KEYFILE [--live]
"""

import argparse
import sys

from collier.config.settings import Settings
from collier.modules.metaplex.context import CollierContext
from collier.modules.metaplex.holder_resolver import HolderResolver
from collier.modules.metaplex.layout import decode_metadata
from collier.modules.metaplex.metadata_miner import MetadataMiner
from collier.modules.metaplex.rescue import CreatorRescue, RescueStatus
from collier.shared.execution.wallet import load_keypair_file
from collier.shared.system.errors import CollierError, DecodeError, NetworkError
from collier.shared.system.logging import Logger


def cmd_mine_metadata(ctx: CollierContext, args) -> int:
    """Discover and store metadata for a creator."""
    Logger.section("MINE METADATA")
    summary = MetadataMiner(ctx).mine(args.creator_address, incremental=args.incremental)

    Logger.info("[CLI] Results:")
    Logger.info(f"[CLI]    Matched:  {summary.scanned}")
    Logger.info(f"[CLI]    Stored:   {summary.stored}")
    Logger.info(f"[CLI]    Skipped:  {summary.skipped}")
    return 0


def cmd_mine_holders(ctx: CollierContext, args) -> int:
    """Resolve the sole holder of every stored mint.

    The creator argument is accepted for command-line compatibility only;
    every mint in the store is resolved, whichever creator it was mined for.
    """
    Logger.section("MINE HOLDERS")
    summary = HolderResolver(ctx).resolve()

    Logger.info("[CLI] Results:")
    Logger.info(f"[CLI]    Mints:       {summary.mints}")
    Logger.info(f"[CLI]    Resolved:    {summary.committed}")
    Logger.info(f"[CLI]    Unresolved:  {summary.unresolved}")
    Logger.info(f"[CLI]    Failed:      {summary.failed}")
    return 0


def cmd_list_metadata_uris(ctx: CollierContext, args) -> int:
    """Print the URI of every stored metadata record, one per line."""
    for metadata_address in ctx.metadata_repo.list_metadata_addresses():
        try:
            account = ctx.ledger.fetch_account(metadata_address)
        except NetworkError as e:
            Logger.warning(f"[CLI] {metadata_address}: fetch failed, skipped: {e}")
            continue
        if account is None:
            Logger.warning(f"[CLI] {metadata_address}: account not found, skipped")
            continue
        try:
            record = decode_metadata(account.data, metadata_address=metadata_address)
        except DecodeError as e:
            Logger.warning(f"[CLI] {metadata_address}: undecodable, skipped: {e}")
            continue
        print(record.clean_uri)
    return 0


def cmd_rescue(ctx: CollierContext, args) -> int:
    """Rebuild and simulate creator corrections signed by the update authority."""
    Logger.section("CREATOR RESCUE")
    keypair = load_keypair_file(args.keyfile)
    summary = CreatorRescue(ctx, keypair).run(dry_run=not args.live)

    Logger.info("[CLI] Results:")
    Logger.info(f"[CLI]    Done:     {summary.done}")
    Logger.info(f"[CLI]    Skipped:  {summary.skipped}")
    Logger.info(f"[CLI]    Failed:   {summary.failed}")
    for result in summary.results:
        if result.status == RescueStatus.FAILED:
            Logger.info(f"[CLI]    ✗ {result.metadata_address} [{result.stage.value}] {result.reason}")

    if not args.live:
        Logger.warning("[CLI] DRY RUN MODE - transactions were simulated only")
    return 0


COMMANDS = {
    "mine-metadata": cmd_mine_metadata,
    "mine-holders": cmd_mine_holders,
    "list-metadata-uris": cmd_list_metadata_uris,
    "rescue": cmd_rescue,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collier",
        description="Metaplex metadata miner, holder resolver and creator rescue"
    )
    parser.add_argument(
        "--db",
        default=Settings.DB_PATH,
        help=f"SQLite db path (default: {Settings.DB_PATH})"
    )
    parser.add_argument(
        "--rpc",
        default=Settings.RPC_URL,
        help=f"RPC server (default: {Settings.RPC_URL})"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console logging (file log is still written)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    mine_metadata = subparsers.add_parser("mine-metadata", help="Discover metadata by creator")
    mine_metadata.add_argument("creator_address", help="creator address")
    mine_metadata.add_argument(
        "--incremental",
        action="store_true",
        help="Skip metadata accounts already in the database"
    )

    mine_holders = subparsers.add_parser("mine-holders", help="Resolve current holders of stored mints")
    mine_holders.add_argument("creator_address", help="creator address (unused, all stored mints are resolved)")

    subparsers.add_parser("list-metadata-uris", help="Print the URI of every stored metadata record")

    rescue = subparsers.add_parser("rescue", help="Correct creator lists (simulated by default)")
    rescue.add_argument("keyfile", metavar="update_authority_keyfile", help="update authority keypair file")
    rescue.add_argument(
        "--live",
        action="store_true",
        help="Send transactions after a successful simulation"
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entrypoint for Collier."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    if args.quiet:
        Logger.set_silent(True)

    try:
        ctx = CollierContext.open(
            db_path=args.db,
            rpc_url=args.rpc,
            fallback_urls=Settings.RPC_FALLBACK_URLS,
            timeout=Settings.RPC_TIMEOUT_S,
        )
        return COMMANDS[args.command](ctx, args)
    except CollierError as e:
        Logger.critical(f"[CLI] {args.command} aborted ({e.kind.value} error): {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
