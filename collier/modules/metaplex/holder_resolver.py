"""
Holder Resolver
===============
Determines the current sole holder of every known supply-1 mint.

Per mint:
    SCANNING -> FETCHING (getTokenLargestAccounts)
             -> EVALUATING (amount == "1", decimals == 0)
             -> COMMITTING (fetch token account, decode owner, replace holder row)
             -> SCANNING

If more than one account qualifies (a transfer in flight), each is committed
in response order and the last one wins. Re-run once the chain settles when
strict consistency matters.
"""

import time
from dataclasses import dataclass
from enum import Enum

from collier.modules.metaplex.context import CollierContext
from collier.modules.metaplex.layout import decode_token_account
from collier.shared.infrastructure.ledger_client import LargestTokenAccount
from collier.shared.system.errors import DecodeError, NetworkError
from collier.shared.system.logging import Logger


class ResolverState(Enum):
    SCANNING = "SCANNING"
    FETCHING = "FETCHING"
    EVALUATING = "EVALUATING"
    COMMITTING = "COMMITTING"
    DONE = "DONE"


@dataclass
class HolderSummary:
    mints: int = 0
    committed: int = 0
    unresolved: int = 0
    failed: int = 0


def is_sole_unit(account: LargestTokenAccount) -> bool:
    """Exactly one indivisible unit."""
    return account.amount == "1" and account.decimals == 0


class HolderResolver:
    """Per-mint enrichment of the holders table."""

    def __init__(self, context: CollierContext):
        self.ctx = context
        self.state = ResolverState.SCANNING

    def resolve(self) -> HolderSummary:
        """
        Resolve holders for every mint already in the metadata store,
        whichever creator's scan stored it.

        Returns:
            HolderSummary

        Raises:
            StoreError: local persistence failed (fatal)
        """
        mints = self.ctx.metadata_repo.list_mint_addresses()
        Logger.info(f"[HOLDERS] Resolving {len(mints)} stored mint(s)")

        summary = HolderSummary(mints=len(mints))
        for i, mint in enumerate(mints):
            if i > 0 and self.ctx.config.RPC_DELAY_MS:
                time.sleep(self.ctx.config.RPC_DELAY_MS / 1000.0)

            try:
                committed = self._resolve_mint(mint)
            except NetworkError as e:
                Logger.warning(f"[HOLDERS] {mint}: network failure, skipped: {e}")
                summary.failed += 1
                continue
            except DecodeError as e:
                Logger.warning(f"[HOLDERS] {mint}: undecodable token account, skipped: {e}")
                summary.failed += 1
                continue
            finally:
                self.state = ResolverState.SCANNING

            if committed:
                summary.committed += 1
            else:
                summary.unresolved += 1

        self.state = ResolverState.DONE
        Logger.success(
            f"[HOLDERS] Done: {summary.committed} resolved, {summary.unresolved} without a sole holder, "
            f"{summary.failed} failed"
        )
        return summary

    def _resolve_mint(self, mint: str) -> int:
        """Returns how many holder rows were written for this mint."""
        self.state = ResolverState.FETCHING
        largest = self.ctx.ledger.fetch_largest_token_accounts(mint)

        self.state = ResolverState.EVALUATING
        qualifying = [acc for acc in largest if is_sole_unit(acc)]
        if len(qualifying) > 1:
            Logger.warning(
                f"[HOLDERS] {mint}: {len(qualifying)} accounts hold a full unit, last one wins"
            )

        written = 0
        for token_account in qualifying:
            self.state = ResolverState.FETCHING
            account = self.ctx.ledger.fetch_account(token_account.address)
            if account is None:
                Logger.warning(f"[HOLDERS] {mint}: token account {token_account.address} vanished")
                continue
            if account.owner != self.ctx.config.TOKEN_PROGRAM_ID:
                raise DecodeError(f"{token_account.address} is owned by {account.owner}, not the token program")
            decoded = decode_token_account(account.data)

            self.state = ResolverState.COMMITTING
            self.ctx.holder_repo.replace_holder(mint, decoded.owner)
            written += 1
            Logger.debug(f"[HOLDERS] {mint} -> {decoded.owner}")
        return written
