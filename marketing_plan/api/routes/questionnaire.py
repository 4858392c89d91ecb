"""API routes for questionnaire helpers."""

from fastapi import APIRouter

from marketing_plan.api.services import get_services
from marketing_plan.plans.schemas import ValidateResponsesRequest

router = APIRouter(prefix="/questionnaire", tags=["questionnaire"])


@router.post("/validate")
async def validate_responses(body: ValidateResponsesRequest):
    """Model feedback on questionnaire answers. Always 200; failures score 0."""
    feedback = await get_services().orchestrator.validate_responses(body.responses)
    return feedback.to_wire()
