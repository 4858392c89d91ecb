"""Plan status definitions and transitions."""

from enum import Enum

from marketing_plan.errors import IllegalTransitionError


class PlanStatus(str, Enum):
    """States a plan moves through during generation."""

    IN_PROGRESS = "in_progress"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


# Valid status transitions
TRANSITIONS = {
    PlanStatus.IN_PROGRESS: {PlanStatus.ANALYZING, PlanStatus.FAILED},
    PlanStatus.ANALYZING: {PlanStatus.GENERATING, PlanStatus.FAILED},
    PlanStatus.GENERATING: {PlanStatus.COMPLETED, PlanStatus.FAILED},
    PlanStatus.COMPLETED: set(),  # Terminal
    PlanStatus.FAILED: {PlanStatus.ANALYZING},  # Retry from scratch
}

TERMINAL_STATES = {PlanStatus.COMPLETED, PlanStatus.FAILED}

# Statuses a generation run may start from
STARTABLE_STATES = {PlanStatus.IN_PROGRESS, PlanStatus.FAILED}

# Completion percentage recorded on entering each status
PROGRESS = {
    PlanStatus.IN_PROGRESS: 0,
    PlanStatus.ANALYZING: 20,
    PlanStatus.GENERATING: 50,
    PlanStatus.COMPLETED: 100,
}


def can_transition(from_status: PlanStatus, to_status: PlanStatus) -> bool:
    """Check if a status transition is valid."""
    return to_status in TRANSITIONS.get(from_status, set())


def transition(from_status: PlanStatus, to_status: PlanStatus) -> PlanStatus:
    """Validate a transition and return the new status.

    Raises:
        IllegalTransitionError: If the move is not in TRANSITIONS.
    """
    if not can_transition(from_status, to_status):
        raise IllegalTransitionError(from_status.value, to_status.value)
    return to_status


def is_terminal_state(status: PlanStatus) -> bool:
    """Check if a status is terminal for a single generation run."""
    return status in TERMINAL_STATES
