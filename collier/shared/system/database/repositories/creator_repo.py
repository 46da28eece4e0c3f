from collier.shared.system.database.repositories.base import BaseRepository


class CreatorRepository(BaseRepository):
    """
    Creator index: "creator X co-authored metadata Y".
    Append-only; the (creator_address, metadata_address) pair is unique.
    """

    table = "creators"

    def upsert_creator_link(self, creator_address: str, metadata_address: str) -> None:
        """Insert the pair if absent."""
        self._execute(
            "INSERT OR IGNORE INTO creators (creator_address, metadata_address) VALUES (?, ?)",
            (creator_address, metadata_address),
            commit=True,
        )

    def metadata_exists_for_creator(self, creator_address: str) -> bool:
        row = self._fetchone(
            "SELECT 1 AS hit FROM creators WHERE creator_address = ? LIMIT 1",
            (creator_address,),
        )
        return row is not None

    def list_metadata_for_creator(self, creator_address: str) -> list:
        rows = self._fetchall(
            "SELECT metadata_address FROM creators WHERE creator_address = ? ORDER BY rowid",
            (creator_address,),
        )
        return [row["metadata_address"] for row in rows]
