"""Command line reconciliation."""

import asyncio

from sqlalchemy import update

from creditledger import cli
from creditledger.db.models import CreditBalance


async def _run(argv, settings) -> int:
    # the command drives its own event loop
    return await asyncio.to_thread(cli.main, argv, settings)


async def test_reconcile_command_repairs_skew(settings, adjustments, database, capsys):
    await adjustments.adjust("alice", 12)
    async with database.session_factory() as session:
        await session.execute(update(CreditBalance).values(balance=1))
        await session.commit()

    report_only = await _run(["reconcile"], settings)
    repaired = await _run(["reconcile", "--repair"], settings)
    clean = await _run(["reconcile", "--account", "alice"], settings)

    output = capsys.readouterr().out
    assert (report_only, repaired, clean) == (1, 0, 0)
    assert "skew -11" in output
    assert "repaired" in output


async def test_reconcile_rejects_bad_account(settings, container):
    assert await _run(["reconcile", "--account", "x" * 80], settings) == 2
