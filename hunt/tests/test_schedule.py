import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from hunt.schedule import (
    is_due,
    iter_schedule,
    next_withdrawal_time,
    project_schedule,
    withdrawal_amount,
)

DAY = 86_400


@pytest.mark.parametrize(
    "pot, percent, expected",
    [
        (1_000_000, 50, 500_000),
        (500_000, 50, 250_000),
        (3, 50, 1),
        (1, 50, 1),  # floors to 0 -> sweep
        (1, 99, 1),
        (0, 50, 0),
        (7, 100, 7),
        (199, 1, 1),
        (99, 1, 99),  # floors to 0 -> sweep the dust
    ],
)
def test_withdrawal_amount(pot, percent, expected):
    assert withdrawal_amount(pot, percent) == expected


@pytest.mark.parametrize("percent", [0, 101, -1, True, 50.0])
def test_bad_percent(percent):
    with pytest.raises(ValueError):
        withdrawal_amount(10, percent)


def test_negative_pot():
    with pytest.raises(ValueError):
        withdrawal_amount(-1, 50)


def test_timing_helpers():
    assert next_withdrawal_time(0, DAY) == 0
    assert next_withdrawal_time(1_000, DAY) == 1_000 + DAY
    assert is_due(0, 5, DAY)
    assert not is_due(1_000, 1_000 + DAY - 1, DAY)
    assert is_due(1_000, 1_000 + DAY, DAY)


def test_project_schedule_halving():
    rows = project_schedule(1_000_000, 50, 100, DAY)
    assert rows[:3] == [(100, 500_000), (100 + DAY, 250_000), (100 + 2 * DAY, 125_000)]
    assert sum(a for _, a in rows) == 1_000_000
    assert rows[-1][1] == 1
    assert project_schedule(0, 50, 0, DAY) == []


@settings(max_examples=200, deadline=None)
@given(pot=st.integers(min_value=0, max_value=10**24), percent=st.integers(min_value=1, max_value=100))
def test_schedule_drains_exactly(pot, percent):
    rows = list(iter_schedule(pot, percent, 0, DAY))
    assert sum(a for _, a in rows) == pot
    assert all(a > 0 for _, a in rows)
    assert [t for t, _ in rows] == [i * DAY for i in range(len(rows))]


@given(pot=st.integers(min_value=1, max_value=10**30), percent=st.integers(min_value=1, max_value=100))
def test_single_withdrawal_bounds(pot, percent):
    amount = withdrawal_amount(pot, percent)
    assert 0 < amount <= pot
    floor = pot * percent // 100
    assert amount == (floor if floor else pot)
