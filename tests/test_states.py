"""Tests for plan status transitions."""

import pytest

from marketing_plan.errors import ConflictError, IllegalTransitionError
from marketing_plan.plans.states import (
    PROGRESS,
    PlanStatus,
    can_transition,
    is_terminal_state,
    transition,
)

S = PlanStatus

LEGAL = [
    (S.IN_PROGRESS, S.ANALYZING),
    (S.ANALYZING, S.GENERATING),
    (S.GENERATING, S.COMPLETED),
    (S.IN_PROGRESS, S.FAILED),
    (S.ANALYZING, S.FAILED),
    (S.GENERATING, S.FAILED),
    (S.FAILED, S.ANALYZING),
]


@pytest.mark.parametrize("from_status,to_status", LEGAL)
def test_legal_transitions(from_status, to_status):
    assert can_transition(from_status, to_status)
    assert transition(from_status, to_status) == to_status


@pytest.mark.parametrize(
    "from_status,to_status",
    [
        (S.IN_PROGRESS, S.COMPLETED),
        (S.IN_PROGRESS, S.GENERATING),
        (S.ANALYZING, S.COMPLETED),
        (S.COMPLETED, S.ANALYZING),
        (S.COMPLETED, S.FAILED),
        (S.FAILED, S.COMPLETED),
    ],
)
def test_illegal_transitions_raise(from_status, to_status):
    assert not can_transition(from_status, to_status)
    with pytest.raises(IllegalTransitionError) as exc_info:
        transition(from_status, to_status)
    assert exc_info.value.from_status == from_status.value
    assert isinstance(exc_info.value, ConflictError)


def test_completed_has_no_outgoing_moves():
    assert not any(can_transition(S.COMPLETED, s) for s in S)


def test_terminal_states():
    assert is_terminal_state(S.COMPLETED)
    assert is_terminal_state(S.FAILED)
    assert not is_terminal_state(S.ANALYZING)


def test_progress_is_monotonic_along_the_happy_path():
    path = [S.IN_PROGRESS, S.ANALYZING, S.GENERATING, S.COMPLETED]
    values = [PROGRESS[s] for s in path]
    assert values == [0, 20, 50, 100]
