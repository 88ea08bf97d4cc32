"""Step splitting: separator priority, ordering and empty-fragment handling."""
from testchat.core.splitter import SEQUENCE_SEPARATORS, split_steps


def test_and_then_splits_before_and():
    assert split_steps("create customer and then create job") == ["create customer", "create job"]


def test_steps_keep_command_order_across_separators():
    assert split_steps("a then b and c, d") == ["a", "b", "c", "d"]


def test_every_separator_splits():
    for separator in SEQUENCE_SEPARATORS:
        assert split_steps(f"create job {separator} complete job") == ["create job", "complete job"], separator


def test_command_is_lower_cased_and_trimmed():
    assert split_steps("  Create Customer THEN Create Job  ") == ["create customer", "create job"]


def test_single_step_without_separator_is_identity():
    assert split_steps("create customer") == ["create customer"]


def test_empty_and_blank_commands_produce_no_steps():
    assert split_steps("") == []
    assert split_steps("   ") == []
    assert split_steps(None) == []


def test_empty_fragments_are_dropped():
    assert split_steps("and then create job,, then") == ["create job"]


def test_separators_match_inside_words():
    # "brand" contains "and"; separators are plain substrings, not whole words
    assert split_steps("brand new customer") == ["br", "new customer"]


def test_comma_and_and_then_keep_step_order():
    assert split_steps("create customer, edit job and then raise invoice") == [
        "create customer",
        "edit job",
        "raise invoice",
    ]
