"""Read-side queries: account view, feeds and the low balance report."""

import pytest

from creditledger.modules.directory import AccountDirectoryError
from creditledger.modules.ledger import TransactionType, ValidationError
from creditledger.modules.ledger.queries import LedgerQueryService


async def _seed(adjustments, balances: dict):
    for account_id, amount in balances.items():
        await adjustments.adjust(account_id, amount)


async def test_low_balance_is_strictly_ascending(adjustments, queries):
    await _seed(adjustments, {"alice": 90, "bob": 10, "carol": 150, "dave": 100, "erin": 55})

    page = await queries.list_low_balance(100)

    assert [e.balance.account_id for e in page.items] == ["bob", "erin", "alice"]
    assert all(e.balance.balance < 100 for e in page.items)
    assert page.total == 3


async def test_low_balance_pages_and_profiles(adjustments, queries):
    await _seed(adjustments, {"alice": 1, "bob": 2, "carol": 3})

    first = await queries.list_low_balance(page=1, page_size=2)
    second = await queries.list_low_balance(page=2, page_size=2)

    assert [e.balance.account_id for e in first.items] == ["alice", "bob"]
    assert first.has_more
    assert [e.balance.account_id for e in second.items] == ["carol"]
    assert not second.has_more
    assert first.items[0].profile.email == "alice@example.com"
    assert second.items[0].profile is None


async def test_low_balance_survives_directory_failure(adjustments, container):
    class BrokenDirectory:
        async def validate(self, account_id):
            return None

        async def describe(self, account_ids):
            raise AccountDirectoryError("directory offline")

    await _seed(adjustments, {"alice": 1})
    service = LedgerQueryService.with_database(
        container.database, container.settings.ledger, directory=BrokenDirectory()
    )

    page = await service.list_low_balance()

    assert [e.balance.account_id for e in page.items] == ["alice"]
    assert page.items[0].profile is None


async def test_account_view_limits_recent_transactions(adjustments, queries):
    for _ in range(5):
        await adjustments.adjust("alice", 2)

    view = await queries.get_account_view("alice", recent=3)
    empty = await queries.get_account_view("nobody")

    assert view.balance.balance == 10
    assert [r.resulting_balance for r in view.recent_transactions] == [10, 8, 6]
    assert empty.balance.balance == 0
    assert empty.recent_transactions == []


async def test_feed_filters_by_account_and_type(adjustments, queries):
    await adjustments.adjust("alice", 5, TransactionType.PURCHASE)
    await adjustments.adjust("alice", -1, TransactionType.CONSUMPTION)
    await adjustments.adjust("bob", 5, TransactionType.PURCHASE)

    purchases = await queries.list_transactions(None, type="purchase")
    alice = await queries.list_transactions("alice")

    assert purchases.total == 2
    assert {r.account_id for r in purchases.items} == {"alice", "bob"}
    assert [r.type for r in alice.items] == [TransactionType.CONSUMPTION, TransactionType.PURCHASE]


@pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (1, 10_000)])
async def test_bad_paging_is_rejected(queries, page, page_size):
    with pytest.raises(ValidationError):
        await queries.list_transactions(None, page=page, page_size=page_size)
