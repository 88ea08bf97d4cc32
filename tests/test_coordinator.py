"""ExecutionCoordinator: ordered execution, per-step failures and the single in-flight run."""
import asyncio

import pytest

from conftest import ScriptedExecutor
from testchat.core.coordinator import (
    STATUS_FAILURE,
    STATUS_SUCCESS,
    CommandResult,
    ExecutionCoordinator,
    ExecutionOptions,
)
from testchat.core.planner import CommandPlanner


@pytest.mark.asyncio
async def test_runs_every_step_in_order_despite_failure(sample_catalog):
    executor = ScriptedExecutor({
        "JobTests#createJob": CommandResult(
            exit_code=1,
            stdout="[INFO] Running JobTests",
            stderr="Tests run: 1, Failures: 1\nAssertionError: job was not created\n",
        ),
    })
    sequence = ["CustomerTests#createCustomer", "JobTests#createJob", "JobTests#completeJob"]

    report = await ExecutionCoordinator(executor).execute(sequence, sample_catalog)

    assert executor.calls == sequence
    assert [outcome.reference for outcome in report.outcomes] == sequence
    assert [outcome.status for outcome in report.outcomes] == [STATUS_SUCCESS, STATUS_FAILURE, STATUS_SUCCESS]
    assert report.outcomes[1].error == "AssertionError: job was not created"
    assert report.outcomes[0].error is None
    assert report.outcomes[0].name == "Create Customer"
    assert (report.passed, report.failed, report.total) == (2, 1, 3)
    assert report.success_rate == 67
    assert not report.all_passed


@pytest.mark.asyncio
async def test_accepts_plan_and_passes_options(two_method_catalog):
    executor = ScriptedExecutor()
    plan = CommandPlanner().plan("create customer and then create job", two_method_catalog)
    options = ExecutionOptions(headless=False, extra_flags="-Denv=qa")

    report = await ExecutionCoordinator(executor).execute(plan, two_method_catalog, options)

    assert report.all_passed
    assert executor.options == [options, options]


@pytest.mark.asyncio
async def test_missing_catalog_entry_is_recorded_and_skipped(sample_catalog):
    executor = ScriptedExecutor()
    sequence = ["Ghost#missing", "CustomerTests#createCustomer"]

    report = await ExecutionCoordinator(executor).execute(sequence, sample_catalog)

    assert executor.calls == ["CustomerTests#createCustomer"]
    assert report.outcomes[0].status == STATUS_FAILURE
    assert report.outcomes[0].error == "Test method not found in catalog: Ghost#missing"
    assert report.outcomes[1].succeeded


@pytest.mark.asyncio
async def test_executor_exception_becomes_step_failure(sample_catalog):
    executor = ScriptedExecutor({"CustomerTests#createCustomer": RuntimeError("browser crashed")})
    sequence = ["CustomerTests#createCustomer", "CustomerTests#editCustomer"]

    report = await ExecutionCoordinator(executor).execute(sequence, sample_catalog)

    assert report.outcomes[0].status == STATUS_FAILURE
    assert report.outcomes[0].error == "browser crashed"
    assert report.outcomes[1].succeeded


@pytest.mark.asyncio
async def test_silent_failure_reports_exit_code(sample_catalog):
    executor = ScriptedExecutor({"CustomerTests#createCustomer": CommandResult(exit_code=3)})

    report = await ExecutionCoordinator(executor).execute(["CustomerTests#createCustomer"], sample_catalog)

    assert report.outcomes[0].error == "Process exited with code 3"


@pytest.mark.asyncio
async def test_empty_sequence_produces_empty_report(sample_catalog):
    report = await ExecutionCoordinator(ScriptedExecutor()).execute([], sample_catalog)

    assert report.total == 0
    assert report.success_rate == 0
    assert not report.all_passed


@pytest.mark.asyncio
async def test_progress_events(sample_catalog):
    events = []

    async def on_event(event):
        events.append(event)

    await ExecutionCoordinator(ScriptedExecutor()).execute(
        ["CustomerTests#createCustomer", "JobTests#createJob"], sample_catalog, on_event=on_event
    )

    assert [event["type"] for event in events] == [
        "step_started",
        "step_finished",
        "step_started",
        "step_finished",
        "run_finished",
    ]
    assert events[1]["outcome"]["status"] == STATUS_SUCCESS
    assert events[-1]["report"]["total"] == 2


@pytest.mark.asyncio
async def test_executor_override_is_used_for_one_call(sample_catalog):
    default = ScriptedExecutor()
    override = ScriptedExecutor()
    coordinator = ExecutionCoordinator(default)

    await coordinator.execute(["CustomerTests#createCustomer"], sample_catalog, executor=override)

    assert default.calls == []
    assert override.calls == ["CustomerTests#createCustomer"]


@pytest.mark.asyncio
async def test_concurrent_commands_never_overlap(sample_catalog):
    executor = ScriptedExecutor(delay=0.05)
    coordinator = ExecutionCoordinator(executor)
    sequence = ["CustomerTests#createCustomer", "JobTests#createJob"]

    await asyncio.gather(
        coordinator.execute(sequence, sample_catalog),
        coordinator.execute(sequence, sample_catalog),
    )

    assert len(executor.calls) == 4
    assert executor.max_in_flight == 1


def test_report_rows_shape():
    from testchat.core.coordinator import ExecutionReport, StepOutcome

    report = ExecutionReport([
        StepOutcome(
            reference="A#a",
            class_name="A",
            method_name="a",
            name="A",
            status=STATUS_FAILURE,
            error="boom",
            duration_ms=12.5,
        )
    ])
    assert report.rows() == [{"name": "A", "status": STATUS_FAILURE, "error": "boom", "duration": 12.5}]
    assert report.to_dict()["successRate"] == 0
