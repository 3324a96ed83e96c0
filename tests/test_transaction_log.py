"""Transaction log ordering, cursors and totals."""

from creditledger.infrastructure.database.repositories import SqlTransactionLog
from creditledger.modules.ledger import NewTransaction, TransactionType


def _txn(account_id: str, delta: int, resulting: int, type=TransactionType.ADMIN_ADJUSTMENT, key=None):
    return NewTransaction(
        account_id=account_id,
        delta=delta,
        requested_delta=delta,
        resulting_balance=resulting,
        type=type,
        description="test",
        idempotency_key=key,
    )


async def test_history_is_newest_first_with_cursor(database):
    async with database.session_factory() as session:
        log = SqlTransactionLog(session)
        ids = []
        balance = 0
        for delta in (10, 20, -5, 7):
            balance += delta
            ids.append((await log.append(_txn("alice", delta, balance))).id)
        await log.append(_txn("bob", 1, 1))
        await session.commit()

    async with database.session_factory() as session:
        log = SqlTransactionLog(session)
        newest = await log.get_history("alice", 2)
        older = await log.get_history("alice", 10, before=newest[-1].id)
        foreign = await log.get_history("bob", 10, before=ids[0])

    assert [r.id for r in newest] == [ids[3], ids[2]]
    assert [r.id for r in older] == [ids[1], ids[0]]
    assert foreign == []


async def test_totals_split_credits_and_debits(database):
    async with database.session_factory() as session:
        log = SqlTransactionLog(session)
        await log.append(_txn("alice", 100, 100))
        await log.append(_txn("alice", -30, 70))
        await log.append(_txn("alice", -80, -10))
        await session.commit()
        totals = await log.totals("alice")
        empty = await log.totals("nobody")

    assert (totals.net, totals.earned, totals.spent, totals.count) == (-10, 100, 110, 3)
    assert (empty.net, empty.count) == (0, 0)


async def test_find_by_idempotency_key_is_scoped_to_account(database):
    async with database.session_factory() as session:
        log = SqlTransactionLog(session)
        stored = await log.append(_txn("alice", 5, 5, key="k1"))
        await log.append(_txn("bob", 5, 5, key="k1"))
        await session.commit()
        found = await log.find_by_idempotency_key("alice", "k1")
        by_id = await log.get(stored.id)
        missing = await log.find_by_idempotency_key("carol", "k1")

    assert found is not None and found.id == stored.id
    assert missing is None
    assert by_id.idempotency_key == "k1"


async def test_list_page_filters_by_type(database):
    async with database.session_factory() as session:
        log = SqlTransactionLog(session)
        await log.append(_txn("alice", 5, 5))
        await log.append(_txn("alice", 5, 10, type=TransactionType.PURCHASE))
        await log.append(_txn("bob", 5, 5, type=TransactionType.PURCHASE))
        await session.commit()
        purchases = await log.list_page(None, 10, 0, TransactionType.PURCHASE)
        alice_total = await log.count("alice")

    assert {r.account_id for r in purchases} == {"alice", "bob"}
    assert all(r.type is TransactionType.PURCHASE for r in purchases)
    assert alice_total == 2
