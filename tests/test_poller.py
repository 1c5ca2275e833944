import asyncio

import pytest

from app.workers.poller import VisibilityPoller


def run(coro):
    return asyncio.run(coro)


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        VisibilityPoller(lambda: None, 0)


def test_runs_immediately_then_on_interval():
    calls = []

    async def callback():
        calls.append(1)

    async def scenario():
        poller = VisibilityPoller(callback, interval_seconds=0.1)
        assert poller.start() is True
        assert poller.start() is False
        await asyncio.sleep(0.25)
        await poller.shutdown()
        return poller

    poller = run(scenario())

    assert len(calls) == 3
    assert poller.is_active is False


def test_skips_ticks_while_previous_run_in_progress():
    started = []

    async def slow_callback():
        started.append(1)
        await asyncio.sleep(0.3)

    async def scenario():
        poller = VisibilityPoller(slow_callback, interval_seconds=0.05)
        poller.start()
        await asyncio.sleep(0.2)
        assert poller.is_running_callback
        await poller.shutdown()

    run(scenario())

    assert len(started) == 1


def test_hidden_or_offline_stops_and_restart_runs_immediately():
    calls = []

    async def callback():
        calls.append(1)

    async def scenario():
        poller = VisibilityPoller(callback, interval_seconds=10)
        poller.start()
        await asyncio.sleep(0)

        poller.set_visible(False)
        assert poller.is_active is False
        assert poller.start() is False

        poller.set_visible(True)
        await asyncio.sleep(0)
        poller.set_online(False)
        assert poller.is_active is False
        poller.set_online(True)
        await asyncio.sleep(0)
        await poller.shutdown()

    run(scenario())

    assert len(calls) == 3


def test_callback_errors_are_logged_not_raised(caplog):
    async def broken():
        raise RuntimeError("upstream down")

    async def scenario():
        poller = VisibilityPoller(broken, interval_seconds=10, name="test poller")
        poller.start()
        await poller.shutdown()

    run(scenario())

    assert "test poller callback failed: upstream down" in caplog.text
