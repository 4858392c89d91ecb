"""API routes for user registration."""

import logging

from fastapi import APIRouter

from marketing_plan.api.services import get_services
from marketing_plan.errors import ValidationError
from marketing_plan.plans.schemas import RegisterRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register")
async def register(body: RegisterRequest):
    """Create a user. The returned id is what clients send as X-User-Id."""
    email = (body.email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required")
    if "@" not in email:
        raise ValidationError("Email address is invalid", details=email)

    user = await get_services().store.create_user(
        email=email,
        business_name=body.business_name,
        industry=body.industry,
    )
    return {"success": True, "user": user.to_wire()}
