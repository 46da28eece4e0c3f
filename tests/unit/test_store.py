"""
Store Tests
===========
SQLite record sets: metadata, creator links and holder snapshots.

Run: pytest tests/unit/test_store.py -v
"""

import pytest

from collier.shared.system.database.core import DatabaseCore
from collier.shared.system.database.repositories.creator_repo import CreatorRepository
from collier.shared.system.database.repositories.holder_repo import HolderRepository
from collier.shared.system.database.repositories.metadata_repo import MetadataRepository
from collier.shared.system.errors import StoreError


@pytest.fixture
def metadata_repo(db):
    return MetadataRepository(db)


@pytest.fixture
def creator_repo(db):
    return CreatorRepository(db)


@pytest.fixture
def holder_repo(db):
    return HolderRepository(db)


class TestDatabaseCore:

    def test_schema_is_idempotent(self, db):
        db.init_schema()
        db.init_schema()
        with db.cursor() as c:
            c.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row["name"] for row in c.fetchall()}
        assert {"metadata", "creators", "holders"} <= tables

    def test_creates_missing_parent_dir(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "collier.db"
        DatabaseCore(str(path)).init_schema()
        assert path.exists()

    def test_unopenable_path_raises_store_error(self, tmp_path):
        with pytest.raises(StoreError):
            DatabaseCore(str(tmp_path))

    def test_bad_sql_raises_store_error(self, db):
        with pytest.raises(StoreError):
            with db.cursor() as c:
                c.execute("SELECT * FROM no_such_table")

    def test_transaction_rolls_back(self, db, holder_repo):
        holder_repo.replace_holder("mintA", "alice")
        with pytest.raises(StoreError):
            with db.transaction() as c:
                c.execute("DELETE FROM holders WHERE mint_address = ?", ("mintA",))
                c.execute("INSERT INTO no_such_table VALUES (1)")
        assert holder_repo.get_holder("mintA") == "alice"


class TestMetadataRepository:

    def test_upsert_is_idempotent(self, metadata_repo):
        metadata_repo.upsert_metadata("meta1", "mint1")
        metadata_repo.upsert_metadata("meta1", "mint1")

        assert metadata_repo.count() == 1
        assert metadata_repo.metadata_exists("meta1")
        assert metadata_repo.get_mint("meta1") == "mint1"

    def test_mint_is_unique(self, metadata_repo):
        metadata_repo.upsert_metadata("meta1", "mint1")

        with pytest.raises(StoreError):
            metadata_repo.upsert_metadata("meta2", "mint1")

        assert metadata_repo.count() == 1
        assert metadata_repo.list_metadata_addresses() == ["meta1"]

    def test_rescan_keeps_rowid(self, db, metadata_repo):
        metadata_repo.upsert_metadata("meta0", "mint0")
        metadata_repo.upsert_metadata("meta1", "mint1")
        with db.cursor() as c:
            c.execute("SELECT rowid, metadata_address, mint_address FROM metadata ORDER BY rowid")
            before = [tuple(row) for row in c.fetchall()]

        metadata_repo.upsert_metadata("meta0", "mint0")
        metadata_repo.upsert_metadata("meta1", "mint1")

        with db.cursor() as c:
            c.execute("SELECT rowid, metadata_address, mint_address FROM metadata ORDER BY rowid")
            after = [tuple(row) for row in c.fetchall()]
        assert after == before
        assert metadata_repo.list_metadata_addresses() == ["meta0", "meta1"]

    def test_unknown_metadata(self, metadata_repo):
        assert not metadata_repo.metadata_exists("nope")
        assert metadata_repo.get_mint("nope") is None

    def test_listing_keeps_insertion_order(self, metadata_repo):
        for i in range(3):
            metadata_repo.upsert_metadata(f"meta{i}", f"mint{i}")
        assert metadata_repo.list_metadata_addresses() == ["meta0", "meta1", "meta2"]
        assert metadata_repo.list_mint_addresses() == ["mint0", "mint1", "mint2"]

    def test_mints_listed_across_creators(self, metadata_repo, creator_repo):
        metadata_repo.upsert_metadata("meta1", "mint1")
        metadata_repo.upsert_metadata("meta2", "mint2")
        creator_repo.upsert_creator_link("alice", "meta1")
        creator_repo.upsert_creator_link("bob", "meta2")

        assert metadata_repo.list_mint_addresses() == ["mint1", "mint2"]


class TestCreatorRepository:

    def test_link_inserted_once(self, creator_repo):
        creator_repo.upsert_creator_link("alice", "meta1")
        creator_repo.upsert_creator_link("alice", "meta1")

        assert creator_repo.count() == 1
        assert creator_repo.metadata_exists_for_creator("alice")
        assert not creator_repo.metadata_exists_for_creator("bob")

    def test_list_for_creator(self, creator_repo):
        creator_repo.upsert_creator_link("alice", "meta1")
        creator_repo.upsert_creator_link("bob", "meta1")
        creator_repo.upsert_creator_link("alice", "meta2")

        assert creator_repo.list_metadata_for_creator("alice") == ["meta1", "meta2"]


class TestHolderRepository:

    def test_replace_keeps_one_row_per_mint(self, holder_repo):
        holder_repo.replace_holder("mint1", "alice")
        holder_repo.replace_holder("mint1", "bob")

        assert holder_repo.count() == 1
        assert holder_repo.get_holder("mint1") == "bob"

    def test_unknown_mint(self, holder_repo):
        assert holder_repo.get_holder("mint9") is None
