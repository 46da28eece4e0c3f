from typing import List, Optional
from collier.shared.system.database.core import DatabaseCore


class BaseRepository:
    """
    Base class for the record-set repositories.
    Provides access to the DB Core cursor and common helpers.
    """
    table: str = ""

    def __init__(self, db: DatabaseCore):
        self.db = db

    def _execute(self, query: str, params: tuple = (), commit: bool = False) -> None:
        """Helper for fire-and-forget queries."""
        with self.db.cursor(commit=commit) as c:
            c.execute(query, params)

    def _fetchone(self, query: str, params: tuple = ()) -> Optional[dict]:
        """Helper to fetch a single row as a dict."""
        with self.db.cursor() as c:
            c.execute(query, params)
            row = c.fetchone()
            return dict(row) if row else None

    def _fetchall(self, query: str, params: tuple = ()) -> List[dict]:
        """Helper to fetch multiple rows."""
        with self.db.cursor() as c:
            c.execute(query, params)
            return [dict(row) for row in c.fetchall()]

    def count(self) -> int:
        row = self._fetchone(f"SELECT COUNT(*) AS n FROM {self.table}")
        return row["n"] if row else 0
