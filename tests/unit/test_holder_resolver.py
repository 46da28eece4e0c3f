"""
Test Suite: Holder Resolver
===========================
Sole-holder snapshot per supply-1 mint.

Run: pytest tests/unit/test_holder_resolver.py -v
"""

import pytest
from solders.pubkey import Pubkey

from collier.modules.metaplex.holder_resolver import HolderResolver, ResolverState, is_sole_unit
from collier.shared.infrastructure.ledger_client import LargestTokenAccount
from tests.mocks import build_token_account_bytes


def _pk() -> str:
    return str(Pubkey.new_unique())


@pytest.fixture
def mint(ctx, creator_address):
    """A stored mint linked to creator_address."""
    metadata_address, mint_address = _pk(), _pk()
    ctx.metadata_repo.upsert_metadata(metadata_address, mint_address)
    ctx.creator_repo.upsert_creator_link(creator_address, metadata_address)
    return mint_address


@pytest.fixture
def token_account(ctx, mock_rpc):
    """Register an SPL token account holding `amount` of `mint` for `owner`."""
    def add(mint, owner, amount=1):
        address = _pk()
        mock_rpc.set_account_info(
            address,
            build_token_account_bytes(mint, owner, amount=amount),
            owner=ctx.config.TOKEN_PROGRAM_ID,
        )
        return address
    return add


def _entry(address, amount="1", decimals=0):
    return {"address": address, "amount": amount, "decimals": decimals, "uiAmountString": amount}


class TestIsSoleUnit:

    @pytest.mark.parametrize("amount,decimals,expected", [
        ("1", 0, True),
        ("0", 0, False),
        ("2", 0, False),
        ("1", 6, False),
        ("1000000", 6, False),
    ])
    def test_qualification(self, amount, decimals, expected):
        assert is_sole_unit(LargestTokenAccount("acc", amount, decimals)) is expected


class TestResolve:

    def test_single_holder(self, ctx, mock_rpc, mint, token_account, creator_address):
        owner = _pk()
        account = token_account(mint, owner)
        mock_rpc.set_largest_accounts(mint, [_entry(account), _entry(_pk(), amount="0")])
        resolver = HolderResolver(ctx)

        summary = resolver.resolve()

        assert summary.mints == 1
        assert summary.committed == 1
        assert ctx.holder_repo.get_holder(mint) == owner
        assert resolver.state == ResolverState.DONE

    def test_multiple_qualifying_last_wins(self, ctx, mock_rpc, mint, token_account, creator_address):
        first_owner, second_owner = _pk(), _pk()
        mock_rpc.set_largest_accounts(mint, [
            _entry(token_account(mint, first_owner)),
            _entry(token_account(mint, second_owner)),
        ])

        summary = HolderResolver(ctx).resolve()

        assert summary.committed == 1
        assert ctx.holder_repo.count() == 1
        assert ctx.holder_repo.get_holder(mint) == second_owner

    def test_no_qualifying_account(self, ctx, mock_rpc, mint, creator_address):
        mock_rpc.set_largest_accounts(mint, [_entry(_pk(), amount="0")])

        summary = HolderResolver(ctx).resolve()

        assert summary.unresolved == 1
        assert ctx.holder_repo.get_holder(mint) is None
        assert mock_rpc.calls_for("getAccountInfo") == []

    def test_fungible_amount_ignored(self, ctx, mock_rpc, mint, creator_address):
        mock_rpc.set_largest_accounts(mint, [_entry(_pk(), amount="1", decimals=6)])

        summary = HolderResolver(ctx).resolve()

        assert summary.unresolved == 1
        assert ctx.holder_repo.count() == 0

    def test_rerun_replaces_holder(self, ctx, mock_rpc, mint, token_account, creator_address):
        old_owner, new_owner = _pk(), _pk()
        mock_rpc.set_largest_accounts(mint, [_entry(token_account(mint, old_owner))])
        HolderResolver(ctx).resolve()

        mock_rpc.set_largest_accounts(mint, [_entry(token_account(mint, new_owner))])
        HolderResolver(ctx).resolve()

        assert ctx.holder_repo.count() == 1
        assert ctx.holder_repo.get_holder(mint) == new_owner

    def test_covers_mints_of_every_creator(self, ctx, mock_rpc, mint, token_account):
        other_metadata, other_mint = _pk(), _pk()
        ctx.metadata_repo.upsert_metadata(other_metadata, other_mint)
        ctx.creator_repo.upsert_creator_link(_pk(), other_metadata)
        owner, other_owner = _pk(), _pk()
        mock_rpc.set_largest_accounts(mint, [_entry(token_account(mint, owner))])
        mock_rpc.set_largest_accounts(other_mint, [_entry(token_account(other_mint, other_owner))])

        summary = HolderResolver(ctx).resolve()

        assert summary.mints == 2
        assert summary.committed == 2
        assert ctx.holder_repo.get_holder(mint) == owner
        assert ctx.holder_repo.get_holder(other_mint) == other_owner

    def test_mint_without_creator_link_is_resolved(self, ctx, mock_rpc, token_account):
        mint_address = _pk()
        ctx.metadata_repo.upsert_metadata(_pk(), mint_address)
        owner = _pk()
        mock_rpc.set_largest_accounts(mint_address, [_entry(token_account(mint_address, owner))])

        summary = HolderResolver(ctx).resolve()

        assert summary.committed == 1
        assert ctx.holder_repo.get_holder(mint_address) == owner


class TestFailures:

    def test_network_failure_skips_mint(self, ctx, mock_rpc, token_account, creator_address):
        failing, working = _pk(), _pk()
        for mint_address in (failing, working):
            metadata_address = _pk()
            ctx.metadata_repo.upsert_metadata(metadata_address, mint_address)
            ctx.creator_repo.upsert_creator_link(creator_address, metadata_address)
        owner = _pk()
        mock_rpc.set_largest_accounts(working, [_entry(token_account(working, owner))])
        mock_rpc.fail("getTokenLargestAccounts", only_for=failing)

        summary = HolderResolver(ctx).resolve()

        assert summary.failed == 1
        assert summary.committed == 1
        assert len(mock_rpc.calls_for("getTokenLargestAccounts")) == 5 + 1
        assert ctx.holder_repo.get_holder(failing) is None
        assert ctx.holder_repo.get_holder(working) == owner

    def test_vanished_token_account(self, ctx, mock_rpc, mint, creator_address):
        mock_rpc.set_largest_accounts(mint, [_entry(_pk())])

        summary = HolderResolver(ctx).resolve()

        assert summary.unresolved == 1
        assert ctx.holder_repo.count() == 0

    def test_foreign_owner_program_is_skipped(self, ctx, mock_rpc, mint, creator_address):
        address = _pk()
        mock_rpc.set_account_info(address, build_token_account_bytes(mint, _pk()))
        mock_rpc.set_largest_accounts(mint, [_entry(address)])

        summary = HolderResolver(ctx).resolve()

        assert summary.failed == 1
        assert ctx.holder_repo.count() == 0
