import pytest

from ustask.errors import SchedulerPanic, check


@pytest.mark.parametrize("falsy", [False, 0, "", None, []])
def test_check_raises_on_false_condition(falsy):
    with pytest.raises(SchedulerPanic) as info:
        check(falsy, "value == 1")
    assert info.value.condition == "value == 1"


def test_panic_records_caller_location():
    with pytest.raises(SchedulerPanic) as info:
        check(False, "x > 0")
    panic = info.value
    assert panic.function == "test_panic_records_caller_location"
    assert panic.filename == __file__
    assert isinstance(panic.line, int) and panic.line > 0


def test_true_condition_passes_through():
    results = []
    for value in (True, 1, "a", [0]):
        check(value, "never")
        results.append(value)
    assert results == [True, 1, "a", [0]]


def test_message_mentions_condition():
    panic = SchedulerPanic("queue not empty", function="drain")
    assert "queue not empty" in str(panic)
    assert "drain" in str(panic)
    assert isinstance(panic, RuntimeError)