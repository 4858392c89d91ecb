"""Plan-side schemas: stored records, request bodies, and wire shapes.

Field names are snake_case in Python and camelCase on the wire
(businessContext, claudeAnalysis, completionPercentage, ...).
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from marketing_plan.plans.states import PlanStatus


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Plan(CamelModel):
    """A persisted marketing-plan generation request and its output."""

    id: str
    user_id: Optional[str] = None
    business_context: dict[str, Any] = Field(default_factory=dict)
    questionnaire_responses: dict[str, Any] = Field(default_factory=dict)
    claude_analysis: Optional[Any] = None
    generated_content: Optional[Any] = None
    status: PlanStatus = PlanStatus.IN_PROGRESS
    completion_percentage: int = Field(default=0, ge=0, le=100)
    plan_metadata: Optional[Any] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None


class ClaudeInteraction(CamelModel):
    """Append-only audit record of a remote call or notable action on a plan."""

    id: str
    plan_id: str
    interaction_type: str
    prompt_data: Optional[Any] = None
    claude_response: Optional[Any] = None
    processing_time_ms: Optional[int] = None
    created_at: Optional[str] = None


class User(CamelModel):
    id: str
    email: str
    business_name: Optional[str] = None
    industry: Optional[str] = None
    created_at: Optional[str] = None


# --- Request bodies ---


class CreatePlanRequest(CamelModel):
    """Questionnaire submission."""

    business_context: Optional[dict[str, Any]] = None
    questionnaire_responses: Optional[dict[str, Any]] = None


class UpdatePlanRequest(CamelModel):
    """Partial update. Any provided field overwrites the stored value."""

    business_context: Optional[dict[str, Any]] = None
    questionnaire_responses: Optional[dict[str, Any]] = None
    claude_analysis: Optional[Any] = None
    generated_content: Optional[Any] = None
    plan_metadata: Optional[Any] = None
    status: Optional[PlanStatus] = None
    completion_percentage: Optional[int] = Field(default=None, ge=0, le=100)


class EmailRequest(CamelModel):
    action: Optional[str] = None
    recipient_email: Optional[str] = None
    message: Optional[str] = None
    sender_email: Optional[str] = None


class SendEmailRequest(CamelModel):
    email: Optional[str] = None


class ValidateResponsesRequest(CamelModel):
    responses: dict[str, Any] = Field(default_factory=dict)


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    business_name: Optional[str] = None
    industry: Optional[str] = None


# --- Responses ---


class ValidationFeedback(CamelModel):
    suggestions: list[str] = Field(default_factory=list)
    completion_score: int = Field(default=0, ge=0, le=100)
