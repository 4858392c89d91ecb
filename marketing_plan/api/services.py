"""Process-wide service wiring for the API routes.

The app lifespan builds every collaborator once and registers them here
with init_services(); tests register fakes the same way.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException

from marketing_plan.config import Settings
from marketing_plan.errors import AuthenticationError, NotFoundError
from marketing_plan.industries.registry import IndustryRegistry
from marketing_plan.notifications.email import EmailNotifier
from marketing_plan.plans.orchestrator import PlanOrchestrator
from marketing_plan.plans.schemas import Plan, User
from marketing_plan.plans.store import PlanStore
from marketing_plan.rendering.pdf import DocumentRenderer


@dataclass
class Services:
    settings: Settings
    store: PlanStore
    orchestrator: PlanOrchestrator
    renderer: DocumentRenderer
    notifier: EmailNotifier
    industries: IndustryRegistry


_services: Services | None = None


def init_services(services: Optional[Services]) -> None:
    global _services
    _services = services


def get_services() -> Services:
    if _services is None:
        raise HTTPException(status_code=503, detail="Services not initialized")
    return _services


async def current_user(x_user_id: Optional[str] = Header(None)) -> Optional[User]:
    """Resolve the optional X-User-Id header to a user.

    No header means an anonymous caller. A header naming an unknown user
    is rejected rather than silently treated as anonymous.
    """
    if not x_user_id:
        return None
    user = await get_services().store.get_user(x_user_id)
    if user is None:
        raise AuthenticationError("Unknown user", details=f"No user with id {x_user_id}")
    return user


def guard_plan(plan: Optional[Plan], plan_id: str, user: Optional[User]) -> Plan:
    """Return plan if the caller may see it, else raise NotFoundError.

    Plans without an owner are open to everyone. An owned plan is only
    visible to its owner; others get the same 404 as for a missing id.
    """
    if plan is None:
        raise NotFoundError("Plan not found", details=f"No plan with id {plan_id}")
    if plan.user_id and (user is None or user.id != plan.user_id):
        raise NotFoundError("Plan not found", details=f"No plan with id {plan_id}")
    return plan
