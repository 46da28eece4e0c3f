"""
Metadata Miner - Discovery Engine
=================================
Discovers every metadata account whose first creator is a given address and
reconciles it into the local store.

Workflow:
1. One getProgramAccounts scan with a memcmp filter at CREATOR_FILTER_OFFSET
2. Decode each returned account
3. Upsert the metadata row and the creator link

A decode failure aborts the pass; nothing after the bad account is stored.
"""

from dataclasses import dataclass

from solders.pubkey import Pubkey

from collier.modules.metaplex.context import CollierContext
from collier.modules.metaplex.layout import CREATOR_FILTER_OFFSET, decode_metadata
from collier.shared.system.errors import DecodeError, ValidationError
from collier.shared.system.logging import Logger


@dataclass
class MineSummary:
    scanned: int = 0
    stored: int = 0
    skipped: int = 0


class MetadataMiner:
    """Bulk ingest of metadata accounts for one creator."""

    def __init__(self, context: CollierContext):
        self.ctx = context

    def mine(self, creator_address: str, incremental: bool = False) -> MineSummary:
        """
        Scan and store all metadata records for `creator_address`.

        Args:
            creator_address: base58 creator identity
            incremental: skip accounts whose metadata_address is already stored

        Returns:
            MineSummary with scanned/stored/skipped counts

        Raises:
            ValidationError: creator_address is not a valid public key
            DecodeError: any returned account fails to decode (whole pass aborts)
            NetworkError: the bulk scan failed after retries
        """
        try:
            Pubkey.from_string(creator_address)
        except ValueError as e:
            raise ValidationError(f"Invalid creator address {creator_address!r}: {e}") from e

        Logger.info(
            f"[MINER] Scanning {self.ctx.config.METADATA_PROGRAM_ID[:8]}... for creator "
            f"{creator_address} (offset {CREATOR_FILTER_OFFSET})"
        )
        accounts = self.ctx.ledger.fetch_accounts_by_filter(
            self.ctx.config.METADATA_PROGRAM_ID,
            CREATOR_FILTER_OFFSET,
            creator_address,
        )
        Logger.info(f"[MINER] {len(accounts)} matching account(s)")

        summary = MineSummary(scanned=len(accounts))
        for account in accounts:
            if incremental and self.ctx.metadata_repo.metadata_exists(account.address):
                summary.skipped += 1
                continue

            try:
                record = decode_metadata(account.data, metadata_address=account.address)
            except DecodeError as e:
                Logger.error(f"[MINER] Cannot decode {account.address}: {e}")
                raise

            if not record.shares_valid():
                Logger.warning(
                    f"[MINER] {account.address} creator shares sum to "
                    f"{sum(c.share for c in record.creators)}, not 100"
                )

            self.ctx.metadata_repo.upsert_metadata(account.address, record.mint_address)
            self.ctx.creator_repo.upsert_creator_link(creator_address, account.address)
            summary.stored += 1
            Logger.debug(
                f"[MINER] Stored {account.address} {record.clean_name} ({record.clean_symbol}), "
                f"mint {record.mint_address}"
            )

        Logger.success(
            f"[MINER] Done: {summary.stored} stored, {summary.skipped} skipped of {summary.scanned}"
        )
        return summary
