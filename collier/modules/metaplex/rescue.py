"""
Creator Rescue - Remediation Engine
===================================
Rewrites malformed creator lists on stored metadata records.

State machine per record:
    FETCHING -> VALIDATING -> BUILDING -> SIGNING -> SIMULATING -> DONE | SKIPPED | FAILED

- FETCHING: getAccountInfo with the bounded retry policy; exhaustion -> FAILED
- VALIDATING: decode; creators must have EXPECTED_CREATOR_COUNT entries and
  the first creator must hold a 0 share (so the rebuilt list still sums to
  100); otherwise -> SKIPPED. The update authority is not checked here: a
  record the operator does not control is signed anyway and its simulation
  reports the FAILED outcome.
- BUILDING: [first creator unchanged, operator verified with 100% share]
- SIGNING: UpdateMetadataAccount instruction over a fresh blockhash
- SIMULATING: dry-run only unless the run is live
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from collier.modules.metaplex.context import CollierContext
from collier.modules.metaplex.layout import (
    Creator,
    MetadataRecord,
    decode_metadata,
    encode_update_metadata_account,
)
from collier.shared.infrastructure.ledger_client import SimulationOutcome
from collier.shared.system.errors import DecodeError, NetworkError, ValidationError
from collier.shared.system.logging import Logger


class RescueStage(Enum):
    FETCHING = "FETCHING"
    VALIDATING = "VALIDATING"
    BUILDING = "BUILDING"
    SIGNING = "SIGNING"
    SIMULATING = "SIMULATING"


class RescueStatus(Enum):
    DONE = "DONE"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass
class RescueResult:
    metadata_address: str
    status: RescueStatus
    stage: RescueStage
    reason: str = ""
    outcome: Optional[SimulationOutcome] = None
    signature: Optional[str] = None


@dataclass
class RescueSummary:
    done: int = 0
    skipped: int = 0
    failed: int = 0
    results: List[RescueResult] = field(default_factory=list)

    def add(self, result: RescueResult) -> None:
        self.results.append(result)
        if result.status == RescueStatus.DONE:
            self.done += 1
        elif result.status == RescueStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


class CreatorRescue:
    """
    Signs creator-list corrections with the operator (update authority) key.

    The keypair is loaded by the caller; a missing key file is fatal before
    any record is touched.
    """

    def __init__(self, context: CollierContext, keypair: Keypair):
        self.ctx = context
        self.config = context.config
        self.keypair = keypair
        self.operator = keypair.pubkey()
        self.program_id = Pubkey.from_string(self.config.METADATA_PROGRAM_ID)

    def run(self, dry_run: Optional[bool] = None) -> RescueSummary:
        """Process every stored metadata record."""
        if dry_run is None:
            dry_run = self.config.DRY_RUN_DEFAULT
        addresses = self.ctx.metadata_repo.list_metadata_addresses()
        Logger.info(
            f"[RESCUE] {len(addresses)} record(s), operator {self.operator}, "
            f"{'simulation only' if dry_run else 'LIVE'}"
        )

        summary = RescueSummary()
        for i, metadata_address in enumerate(addresses):
            if i > 0 and self.config.RPC_DELAY_MS:
                time.sleep(self.config.RPC_DELAY_MS / 1000.0)
            result = self.rescue_one(metadata_address, dry_run=dry_run)
            summary.add(result)

        Logger.success(
            f"[RESCUE] Done: {summary.done} ok, {summary.skipped} skipped, {summary.failed} failed"
        )
        return summary

    def rescue_one(self, metadata_address: str, dry_run: bool = True) -> RescueResult:
        def fail(stage, reason, **kw):
            Logger.error(f"[RESCUE] {metadata_address}: {reason}")
            return RescueResult(metadata_address, RescueStatus.FAILED, stage, reason, **kw)

        def skip(reason):
            Logger.warning(f"[RESCUE] {metadata_address}: skipped, {reason}")
            return RescueResult(metadata_address, RescueStatus.SKIPPED, RescueStage.VALIDATING, reason)

        # FETCHING
        try:
            account = self.ctx.ledger.fetch_account(
                metadata_address, on_failure=self._progress(metadata_address)
            )
        except NetworkError as e:
            return fail(RescueStage.FETCHING, f"fetch failed after retries: {e}")
        if account is None:
            return fail(RescueStage.FETCHING, "account not found")

        # VALIDATING
        try:
            record = decode_metadata(account.data, metadata_address=metadata_address)
            creators = self.build_corrected_creators(record)
        except (DecodeError, ValidationError) as e:
            return skip(str(e))
        if record.update_authority != str(self.operator):
            Logger.warning(
                f"[RESCUE] {metadata_address}: update authority is {record.update_authority}, "
                f"not the operator; simulation is expected to fail"
            )

        # BUILDING + SIGNING
        try:
            blockhash = self.ctx.ledger.fetch_recent_blockhash()
        except NetworkError as e:
            return fail(RescueStage.SIGNING, f"no recent blockhash: {e}")
        tx = self.build_transaction(metadata_address, record, creators, blockhash)

        # SIMULATING
        try:
            outcome = self.ctx.ledger.simulate_transaction(tx)
        except NetworkError as e:
            return fail(RescueStage.SIMULATING, f"simulation request failed: {e}")

        if not outcome.success:
            for line in outcome.logs[-5:]:
                Logger.debug(f"[RESCUE]    {line}")
            return fail(RescueStage.SIMULATING, f"simulation error: {outcome.err}", outcome=outcome)

        Logger.success(
            f"[RESCUE] {metadata_address} ({record.clean_name}): simulation ok ({outcome.units_consumed} CU)"
        )
        signature = None
        if not dry_run:
            try:
                signature = self.ctx.ledger.send_transaction(tx)
            except NetworkError as e:
                return fail(RescueStage.SIMULATING, f"send failed: {e}", outcome=outcome)
            Logger.success(f"[RESCUE] {metadata_address}: sent {signature}")

        return RescueResult(
            metadata_address, RescueStatus.DONE, RescueStage.SIMULATING,
            outcome=outcome, signature=signature,
        )

    def _progress(self, metadata_address: str):
        max_attempts = self.ctx.ledger.retry.max_attempts

        def on_failure(attempt: int, error: NetworkError) -> None:
            Logger.warning(
                f"[RESCUE] {metadata_address}: fetch attempt {attempt}/{max_attempts} failed ({error})"
            )
        return on_failure

    def build_corrected_creators(self, record: MetadataRecord) -> List[Creator]:
        """
        Keep creators[0], replace the rest with the operator at 100%.

        Raises:
            ValidationError: the record does not have the expected shape
        """
        expected = self.config.EXPECTED_CREATOR_COUNT
        count = len(record.creators) if record.creators is not None else 0
        if record.creators is None or count != expected:
            raise ValidationError(f"has {count} creator(s), expected {expected}")

        first = record.creators[0]
        if first.share + self.config.OPERATOR_SHARE != 100:
            raise ValidationError(
                f"first creator holds {first.share}% so the corrected shares would not sum to 100"
            )

        return [
            Creator(address=first.address, verified=first.verified, share=first.share),
            Creator(address=str(self.operator), verified=True, share=self.config.OPERATOR_SHARE),
        ]

    def build_transaction(
        self,
        metadata_address: str,
        record: MetadataRecord,
        creators: List[Creator],
        blockhash,
    ) -> VersionedTransaction:
        """Signed UpdateMetadataAccount transaction; raw padded strings are written back as-is."""
        data = encode_update_metadata_account(
            record.name,
            record.symbol,
            record.uri,
            record.seller_fee_basis_points,
            creators,
        )
        ix = Instruction(
            program_id=self.program_id,
            data=data,
            accounts=[
                AccountMeta(Pubkey.from_string(metadata_address), is_signer=False, is_writable=True),
                AccountMeta(self.operator, is_signer=True, is_writable=False),
            ],
        )
        msg = MessageV0.try_compile(
            payer=self.operator,
            instructions=[ix],
            address_lookup_table_accounts=[],
            recent_blockhash=blockhash,
        )
        return VersionedTransaction(msg, [self.keypair])
