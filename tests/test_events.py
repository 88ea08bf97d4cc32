"""ExecutionEventBroker: backlog replay and cleanup of finished runs."""
import pytest

from testchat.api.events import RUN_FINISHED, ExecutionEventBroker
from testchat.api.sse import format_event


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_late_subscriber_gets_backlog_then_it_is_dropped():
    broker = ExecutionEventBroker(retention_seconds=60)
    await broker.publish("r1", {"runId": "r1", "type": "step_started", "index": 0})
    await broker.publish("r1", {"runId": "r1", "type": RUN_FINISHED, "report": None})

    queue = await broker.connect("r1")
    assert queue.get_nowait()["type"] == "step_started"
    assert queue.get_nowait()["type"] == RUN_FINISHED

    await broker.disconnect("r1", queue)
    assert broker.retained_runs() == []


@pytest.mark.asyncio
async def test_finished_run_without_listeners_expires():
    clock = FakeClock()
    broker = ExecutionEventBroker(retention_seconds=60, clock=clock)
    for index in range(50):
        await broker.publish(f"run-{index}", {"type": RUN_FINISHED, "report": None})
    assert len(broker.retained_runs()) == 50

    clock.now += 61
    await broker.publish("live", {"type": "step_started", "index": 0})

    assert broker.retained_runs() == ["live"]


@pytest.mark.asyncio
async def test_zero_retention_drops_unwatched_run_immediately():
    broker = ExecutionEventBroker(retention_seconds=0)

    await broker.publish("r1", {"type": RUN_FINISHED, "report": None})

    assert broker.retained_runs() == []


@pytest.mark.asyncio
async def test_running_and_watched_runs_are_kept():
    broker = ExecutionEventBroker(retention_seconds=0)
    queue = await broker.connect("watched")

    await broker.publish("watched", {"type": RUN_FINISHED, "report": None})
    await broker.publish("running", {"type": "step_started", "index": 0})

    assert sorted(broker.retained_runs()) == ["running", "watched"]
    assert queue.get_nowait()["type"] == RUN_FINISHED
    await broker.disconnect("watched", queue)
    assert broker.retained_runs() == ["running"]


def test_format_event():
    frame = format_event({"runId": "r1", "type": RUN_FINISHED, "report": None})
    assert frame == b'data: {"runId": "r1", "type": "run_finished", "report": null}\n\n'
