"""Balance repository behaviour against a real SQLite database."""

import pytest

from creditledger.infrastructure.database.repositories import SqlBalanceRepository
from creditledger.modules.ledger import ConcurrentModification, InsufficientBalance, ValidationError


async def test_unknown_account_reads_as_zero(database):
    async with database.session_factory() as session:
        balance = await SqlBalanceRepository(session).get_balance("ghost")

    assert balance.balance == 0
    assert balance.lifetime_earned == 0
    assert balance.lifetime_spent == 0
    assert not balance.exists


async def test_apply_delta_creates_then_versions_the_row(database):
    async with database.session_factory() as session:
        repo = SqlBalanceRepository(session)
        created = await repo.apply_delta("alice", 50)
        updated = await repo.apply_delta("alice", -20)
        await session.commit()

    assert created.version == 1
    assert updated.version == 2
    assert updated.balance == 30
    assert updated.lifetime_earned == 50
    assert updated.lifetime_spent == 20

    async with database.session_factory() as session:
        stored = await SqlBalanceRepository(session).get_balance("alice")
    assert (stored.balance, stored.version) == (30, 2)


async def test_stale_snapshot_is_rejected(database):
    async with database.session_factory() as session:
        await SqlBalanceRepository(session).apply_delta("alice", 10)
        await session.commit()

    async with database.session_factory() as session:
        repo = SqlBalanceRepository(session)
        snapshot = await repo.get_balance("alice")
        await repo.apply_delta("alice", 5, expected=snapshot)
        with pytest.raises(ConcurrentModification):
            await repo.apply_delta("alice", 5, expected=snapshot)


async def test_negative_result_requires_permission(database):
    async with database.session_factory() as session:
        repo = SqlBalanceRepository(session)
        await repo.apply_delta("alice", 10)
        with pytest.raises(InsufficientBalance):
            await repo.apply_delta("alice", -11)
        allowed = await repo.apply_delta("alice", -11, allow_negative=True)

    assert allowed.balance == -1


async def test_list_below_orders_by_balance_then_id(database):
    async with database.session_factory() as session:
        repo = SqlBalanceRepository(session)
        for account_id, amount in [("c", 5), ("a", 5), ("b", 1), ("rich", 500)]:
            await repo.apply_delta(account_id, amount)
        await session.commit()

    async with database.session_factory() as session:
        repo = SqlBalanceRepository(session)
        rows = await repo.list_below(100, limit=10, offset=0)
        total = await repo.count_below(100)

    assert [row.account_id for row in rows] == ["b", "a", "c"]
    assert total == 3


async def test_totals_outside_64_bit_range_are_rejected(database):
    async with database.session_factory() as session:
        repo = SqlBalanceRepository(session)
        await repo.apply_delta("alice", 2**63 - 1)
        with pytest.raises(ValidationError):
            await repo.apply_delta("alice", 1)
