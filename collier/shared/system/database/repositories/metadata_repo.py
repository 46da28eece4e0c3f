"""
Metadata Repository
===================
One row per Metaplex metadata account discovered by the miner.

Keys: metadata_address (PRIMARY KEY), mint_address (UNIQUE, 1:1 with metadata).
Re-scans update the row in place (same rowid), so repeated passes leave the
table unchanged.
"""

from typing import List, Optional
from collier.shared.system.database.repositories.base import BaseRepository


class MetadataRepository(BaseRepository):
    """Repository for the metadata record set."""

    table = "metadata"

    def upsert_metadata(self, metadata_address: str, mint_address: str) -> None:
        """
        Insert, or update the existing row keyed by metadata_address.

        Note:
            A second metadata address claiming an already stored mint violates
            the mint uniqueness constraint and raises StoreError.
        """
        self._execute(
            """
            INSERT INTO metadata (metadata_address, mint_address) VALUES (?, ?)
            ON CONFLICT(metadata_address) DO UPDATE SET mint_address = excluded.mint_address
            """,
            (metadata_address, mint_address),
            commit=True,
        )

    def metadata_exists(self, metadata_address: str) -> bool:
        row = self._fetchone(
            "SELECT 1 AS hit FROM metadata WHERE metadata_address = ?",
            (metadata_address,),
        )
        return row is not None

    def get_mint(self, metadata_address: str) -> Optional[str]:
        row = self._fetchone(
            "SELECT mint_address FROM metadata WHERE metadata_address = ?",
            (metadata_address,),
        )
        return row["mint_address"] if row else None

    def list_metadata_addresses(self) -> List[str]:
        rows = self._fetchall("SELECT metadata_address FROM metadata ORDER BY rowid")
        return [row["metadata_address"] for row in rows]

    def list_mint_addresses(self) -> List[str]:
        """Every stored mint, in insertion order."""
        rows = self._fetchall("SELECT mint_address FROM metadata ORDER BY rowid")
        return [row["mint_address"] for row in rows]
