"""Chat transcript messages."""
from testchat.core.coordinator import STATUS_FAILURE, STATUS_SUCCESS, ExecutionReport, StepOutcome
from testchat.core.planner import CommandPlanner
from testchat.services import chat_service


def _outcome(reference, status, error=None):
    class_name, _, method_name = reference.partition("#")
    return StepOutcome(reference, class_name, method_name, method_name, status, error=error)


def test_no_match_lists_first_five_methods(sample_catalog):
    content = chat_service.no_match_message("fly moon", sample_catalog)["content"]

    assert content.startswith('❌ I couldn\'t identify any test methods from your command: "fly moon"')
    assert "• Create Customer" in content
    assert "• Complete Job" in content
    assert "• Create Invoice" not in content
    assert content.endswith("... and 1 more")


def test_analysis_message_includes_plan(two_method_catalog):
    plan = CommandPlanner().plan("create customer and then create job", two_method_catalog)

    msg = chat_service.analysis_message(plan)

    assert msg["role"] == "bot"
    assert "1. CustomerTests#createCustomer\n2. JobTests#createJob" in msg["content"]
    assert "`mvn test -Dtest=CustomerTests#createCustomer,JobTests#createJob`" in msg["content"]
    assert msg["plan"]["confidence"] == 0.85


def test_results_message():
    report = ExecutionReport([
        _outcome("A#a", STATUS_SUCCESS),
        _outcome("B#b", STATUS_FAILURE, error="boom"),
    ])

    msg = chat_service.results_message(report)

    assert msg["role"] == "system"
    assert "A#a: ✅ PASSED" in msg["content"]
    assert "B#b: ❌ FAILED\n  Error: boom" in msg["content"]
    assert "**Summary:** 1/2 tests passed" in msg["content"]
    assert msg["executionResult"] == {"success": False, "passed": 1, "total": 2}


def test_transcript_starts_with_user_command():
    messages = chat_service.transcript("create job", chat_service.empty_catalog_message())

    assert [m["role"] for m in messages] == ["user", "bot"]
    assert messages[0]["content"] == "create job"
    assert "upload your Java TestNG project" in messages[1]["content"]
