import sqlite3
import os
from contextlib import contextmanager
from collier.shared.system.errors import StoreError
from collier.shared.system.logging import Logger


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS metadata (
        metadata_address TEXT PRIMARY KEY,
        mint_address     TEXT UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS creators (
        creator_address  TEXT,
        metadata_address TEXT,
        UNIQUE(creator_address, metadata_address)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS holders (
        mint_address   TEXT PRIMARY KEY,
        holder_address TEXT
    )
    """,
)


class DatabaseCore:
    """
    Core Database Connection Manager.
    Owns the SQLite file for one command invocation: WAL mode, schema
    bootstrap and cursor/transaction scoping. Every sqlite3 failure
    surfaces as a StoreError.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._ensure_data_dir()
        self._init_wal_mode()

    def _ensure_data_dir(self):
        directory = os.path.dirname(os.path.abspath(self.db_path))
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Failed to create data dir {directory}: {e}") from e

    def _init_wal_mode(self):
        """Enable Write-Ahead Logging."""
        with self.cursor(commit=True) as c:
            c.execute("PRAGMA journal_mode=WAL;")
            c.execute("PRAGMA synchronous=NORMAL;")

    def init_schema(self):
        """Create the metadata, creators and holders tables."""
        with self.cursor(commit=True) as c:
            for statement in SCHEMA:
                c.execute(statement)
        Logger.debug(f"[STORE] Schema ready at {self.db_path}")

    def get_connection(self):
        """Get a configured SQLite connection."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=10.0)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self, commit=False):
        """Context manager for database interaction."""
        conn = self.get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            if commit:
                conn.commit()
        except sqlite3.Error as e:
            if commit:
                conn.rollback()
            Logger.error(f"[STORE] DB Error: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Run several statements atomically (BEGIN IMMEDIATE ... COMMIT)."""
        conn = self.get_connection()
        conn.isolation_level = None
        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN IMMEDIATE")
            yield cursor
            cursor.execute("COMMIT")
        except sqlite3.Error as e:
            conn.rollback()
            Logger.error(f"[STORE] Transaction rolled back: {e}")
            raise StoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
