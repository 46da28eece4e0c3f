from typing import Optional
from collier.shared.system.database.repositories.base import BaseRepository


class HolderRepository(BaseRepository):
    """
    Holder snapshot: current sole owner of each supply-1 mint.
    Rows are replaced per mint, never merged.
    """

    table = "holders"

    def replace_holder(self, mint_address: str, holder_address: str) -> None:
        """Atomic delete-then-insert keyed by mint_address."""
        with self.db.transaction() as c:
            c.execute("DELETE FROM holders WHERE mint_address = ?", (mint_address,))
            c.execute(
                "INSERT INTO holders (mint_address, holder_address) VALUES (?, ?)",
                (mint_address, holder_address),
            )

    def get_holder(self, mint_address: str) -> Optional[str]:
        row = self._fetchone(
            "SELECT holder_address FROM holders WHERE mint_address = ?",
            (mint_address,),
        )
        return row["holder_address"] if row else None
