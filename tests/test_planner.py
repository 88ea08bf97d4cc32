"""CommandPlanner: end-to-end planning over a catalog snapshot."""
from testchat.core.catalog import MethodCatalog
from testchat.core.planner import (
    CONFIDENCE_MATCHED,
    CONFIDENCE_UNMATCHED,
    CommandPlanner,
    ExecutionPlan,
    maven_selector,
)


def test_create_customer_then_create_job(two_method_catalog):
    plan = CommandPlanner().plan("create customer and then create job", two_method_catalog)

    assert plan.sequence == ("CustomerTests#createCustomer", "JobTests#createJob")
    assert plan.confidence == 0.85
    assert plan.reasoning == "Identified 2 test steps: create customer → create job"
    assert plan.steps == ("create customer", "create job")


def test_sample_catalog_three_step_command(sample_catalog):
    plan = CommandPlanner().plan("Create customer then create job then complete job", sample_catalog)

    assert plan.sequence == (
        "CustomerTests#createCustomer",
        "JobTests#createJob",
        "JobTests#completeJob",
    )
    assert plan.command == "Create customer then create job then complete job"


def test_unmatched_steps_are_skipped(two_method_catalog):
    plan = CommandPlanner().plan("create customer and then fly moon and then create job", two_method_catalog)

    assert plan.sequence == ("CustomerTests#createCustomer", "JobTests#createJob")
    assert plan.steps == ("create customer", "fly moon", "create job")
    assert plan.reasoning == "Identified 2 test steps: create customer → fly moon → create job"


def test_no_match_yields_empty_plan(two_method_catalog):
    plan = CommandPlanner().plan("fly moon", two_method_catalog)

    assert plan.is_empty
    assert plan.sequence == ()
    assert plan.confidence == CONFIDENCE_UNMATCHED
    assert plan.reasoning == 'Could not identify test methods from: "fly moon"'


def test_empty_command_and_empty_catalog(two_method_catalog):
    assert CommandPlanner().plan("", two_method_catalog).reasoning == 'Could not identify test methods from: ""'
    assert CommandPlanner().plan("create customer", MethodCatalog()).is_empty


def test_planning_is_idempotent(sample_catalog):
    planner = CommandPlanner()
    first = planner.plan("create customer, edit customer and delete customer", sample_catalog)
    second = planner.plan("create customer, edit customer and delete customer", sample_catalog)

    assert first == second
    assert first.confidence == CONFIDENCE_MATCHED


def test_same_method_may_repeat_in_sequence(two_method_catalog):
    plan = CommandPlanner().plan("create job then create job", two_method_catalog)
    assert plan.sequence == ("JobTests#createJob", "JobTests#createJob")


def test_to_dict_and_maven_selector(two_method_catalog):
    plan = CommandPlanner().plan("create customer and then create job", two_method_catalog)

    payload = plan.to_dict()
    assert payload["sequence"] == ["CustomerTests#createCustomer", "JobTests#createJob"]
    assert payload["command"] == "create customer and then create job"
    assert maven_selector(plan) == "mvn test -Dtest=CustomerTests#createCustomer,JobTests#createJob"


def test_empty_plan_value():
    plan = ExecutionPlan(sequence=(), confidence=CONFIDENCE_UNMATCHED, reasoning="")
    assert plan.is_empty
    assert plan.to_dict()["steps"] == []
