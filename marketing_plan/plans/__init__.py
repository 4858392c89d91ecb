"""Plan lifecycle: schemas, state machine, persistence, retry and orchestration."""

from marketing_plan.plans.orchestrator import GenerationResult, PlanOrchestrator
from marketing_plan.plans.retry import RetryPolicy
from marketing_plan.plans.schemas import ClaudeInteraction, Plan, User
from marketing_plan.plans.states import PlanStatus
from marketing_plan.plans.store import PlanStore

__all__ = [
    "ClaudeInteraction",
    "GenerationResult",
    "Plan",
    "PlanOrchestrator",
    "PlanStatus",
    "PlanStore",
    "RetryPolicy",
    "User",
]
