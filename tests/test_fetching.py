import asyncio
from datetime import date

import pytest

from tracker.errors import ConnectionFailed, MalformedResponse
from tracker.fetching import RequestSequencer, load_dashboard, load_investments


@pytest.mark.asyncio
async def test_dashboard_batch_fetches_everything(backend):
    data = await load_dashboard(backend, date(2025, 3, 1), date(2025, 3, 31))
    assert len(data.transactions) == 2
    assert len(data.categories) == 3
    assert data.stats.net == 700_000
    assert set(backend.calls) == {"list_transactions", "list_categories", "stats_summary"}


@pytest.mark.asyncio
async def test_dashboard_batch_fails_as_a_whole(backend):
    def broken():
        raise ConnectionFailed("refused")

    backend.list_categories = broken
    with pytest.raises(ConnectionFailed):
        await load_dashboard(backend, date(2025, 3, 1), date(2025, 3, 31))


@pytest.mark.asyncio
async def test_investment_batch(backend):
    snapshot = await load_investments(backend)
    assert len(snapshot.holdings) == 5
    assert snapshot.config.monthly_budget == 5_000_000
    assert snapshot.config.start_date is None
    # newest first
    assert [c.date for c in snapshot.contributions] == [date(2025, 2, 5), date(2025, 1, 5)]


@pytest.mark.asyncio
async def test_missing_budget_defaults_to_zero(backend):
    backend.contribution_plan = lambda: {}
    snapshot = await load_investments(backend)
    assert snapshot.config.monthly_budget == 0


@pytest.mark.asyncio
async def test_non_numeric_budget_is_malformed(backend):
    backend.contribution_plan = lambda: {"monthlyBudget": "lots"}
    with pytest.raises(MalformedResponse):
        await load_investments(backend)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [-100, "-1", "NaN", "inf", float("nan")])
async def test_negative_or_non_finite_budget_is_malformed(backend, raw):
    backend.contribution_plan = lambda: {"monthlyBudget": raw}
    with pytest.raises(MalformedResponse):
        await load_investments(backend)


@pytest.mark.asyncio
async def test_sequencer_drops_superseded_results():
    seq = RequestSequencer()
    release = asyncio.Event()

    async def slow():
        await release.wait()
        return "old"

    async def fast():
        return "new"

    old_task = asyncio.create_task(seq.run(slow()))
    await asyncio.sleep(0)
    new_result = await seq.run(fast())
    release.set()
    old_result = await old_task

    assert new_result == "new"
    assert old_result is None


@pytest.mark.asyncio
async def test_sequencer_keeps_single_result():
    seq = RequestSequencer()

    async def only():
        return 42

    assert await seq.run(only()) == 42
    assert seq.is_latest(1)
    assert not seq.is_latest(0)
