from dataclasses import dataclass, field
from typing import Iterable

from collier.modules.metaplex.config import CollierConfig
from collier.shared.infrastructure.ledger_client import LedgerClient
from collier.shared.infrastructure.rpc_manager import RpcConnectionManager
from collier.shared.system.database.core import DatabaseCore
from collier.shared.system.database.repositories.creator_repo import CreatorRepository
from collier.shared.system.database.repositories.holder_repo import HolderRepository
from collier.shared.system.database.repositories.metadata_repo import MetadataRepository


@dataclass
class CollierContext:
    """
    Everything one command invocation needs: ledger access, the store and
    its repositories, and configuration. Built once and passed explicitly.
    """
    ledger: LedgerClient
    db: DatabaseCore
    config: CollierConfig = field(default_factory=CollierConfig)

    def __post_init__(self):
        self.metadata_repo = MetadataRepository(self.db)
        self.creator_repo = CreatorRepository(self.db)
        self.holder_repo = HolderRepository(self.db)

    @classmethod
    def open(
        cls,
        db_path: str,
        rpc_url: str,
        fallback_urls: Iterable[str] = (),
        timeout: float = 500.0,
        config: CollierConfig = None,
    ) -> "CollierContext":
        config = config or CollierConfig()
        rpc = RpcConnectionManager([rpc_url, *fallback_urls], timeout=timeout)
        ledger = LedgerClient(rpc, config.retry_policy())
        db = DatabaseCore(db_path)
        db.init_schema()
        return cls(ledger=ledger, db=db, config=config)
