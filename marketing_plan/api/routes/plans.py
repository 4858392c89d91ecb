"""API routes for marketing plans."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from marketing_plan.api.services import current_user, get_services, guard_plan
from marketing_plan.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    NotificationError,
    PlanServiceError,
    RenderError,
    ValidationError,
)
from marketing_plan.llm.prompts import MARKETING_SQUARES
from marketing_plan.plans.schemas import (
    CreatePlanRequest,
    EmailRequest,
    Plan,
    SendEmailRequest,
    UpdatePlanRequest,
    User,
)
from marketing_plan.plans.states import PlanStatus
from marketing_plan.plans.store import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["plans"])

EMAIL_ACTIONS = ("send_completion", "share")


async def _load_plan(plan_id: str, user: Optional[User]) -> Plan:
    plan = await get_services().store.get_plan(plan_id)
    return guard_plan(plan, plan_id, user)


def _require_ready(plan: Plan, purpose: str) -> None:
    if plan.generated_content is None or plan.status != PlanStatus.COMPLETED:
        raise ValidationError(
            f"Plan not ready for {purpose}. Please ensure the plan generation is completed.",
            details=f"Plan status is {plan.status.value}",
        )


async def _log_best_effort(plan_id: str, interaction_type: str, **kwargs) -> None:
    """Record an interaction without letting a logging failure fail the request."""
    try:
        await get_services().store.log_interaction(plan_id, interaction_type, **kwargs)
    except Exception as e:
        logger.error(f"Failed to log {interaction_type} for plan {plan_id}: {e}")


# ── Collection ───────────────────────────────────────────


@router.post("")
async def create_plan(
    body: CreatePlanRequest,
    user: Optional[User] = Depends(current_user),
):
    """Create a plan from a questionnaire submission (status in_progress, 0%)."""
    plan = await get_services().store.create_plan(
        business_context=body.business_context,
        questionnaire_responses=body.questionnaire_responses,
        user_id=user.id if user else None,
    )
    return plan.to_wire()


@router.get("")
async def list_plans(user: Optional[User] = Depends(current_user)):
    """List the current user's plans, newest first."""
    if user is None:
        raise AuthenticationError("Authentication required", details="Send an X-User-Id header")
    plans = await get_services().store.list_plans(user.id)
    return [p.to_wire() for p in plans]


# ── Single plan ──────────────────────────────────────────


@router.get("/{plan_id}")
async def get_plan(plan_id: str, user: Optional[User] = Depends(current_user)):
    """Get a plan with its 10 most recent interactions.

    Stored fields that fail to decode come back as null.
    """
    plan = await _load_plan(plan_id, user)
    interactions = await get_services().store.list_interactions(plan_id, limit=10)
    result = plan.to_wire()
    result["claudeInteractions"] = [i.to_wire() for i in interactions]
    return result


@router.put("/{plan_id}")
async def update_plan(
    plan_id: str,
    body: UpdatePlanRequest,
    user: Optional[User] = Depends(current_user),
):
    """Overwrite the provided fields. Does not go through the state machine."""
    await _load_plan(plan_id, user)
    fields = body.model_dump(exclude_unset=True)
    # NOT NULL columns: an explicit null leaves the stored value alone
    for key in ("business_context", "questionnaire_responses", "status", "completion_percentage"):
        if key in fields and fields[key] is None:
            del fields[key]
    updated = await get_services().store.update_plan(plan_id, **fields)
    if updated is None:
        raise NotFoundError("Plan not found", details=f"No plan with id {plan_id}")
    return updated.to_wire()


@router.delete("/{plan_id}")
async def delete_plan(plan_id: str, user: Optional[User] = Depends(current_user)):
    """Delete a plan and its interaction log. Irreversible."""
    await _load_plan(plan_id, user)
    await get_services().store.delete_plan(plan_id)
    return {"success": True}


# ── Generation ───────────────────────────────────────────


@router.post("/{plan_id}/generate")
async def generate_plan(plan_id: str, user: Optional[User] = Depends(current_user)):
    """Run analysis and strategy generation for a plan.

    A completed plan is returned as-is without calling the model.
    """
    services = get_services()
    await _load_plan(plan_id, user)

    try:
        result = await services.orchestrator.generate(plan_id, user=user)
    except (NotFoundError, ConflictError):
        raise
    except PlanServiceError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": "Failed to generate plan", "details": e.message},
        )
    except Exception as e:
        logger.exception(f"Unexpected error generating plan {plan_id}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate plan", "details": str(e)},
        )

    if result.already_completed:
        return {"message": "Plan already generated", "plan": result.plan.to_wire()}

    return {
        "success": True,
        "plan": result.plan.to_wire(),
        "processingTime": result.processing_time_ms,
    }


@router.post("/{plan_id}/squares/{square}")
async def generate_square(
    plan_id: str,
    square: int,
    user: Optional[User] = Depends(current_user),
):
    """Generate detailed content for one square (1-9) of the plan."""
    await _load_plan(plan_id, user)
    content = await get_services().orchestrator.generate_square_content(plan_id, square)
    return {
        "square": square,
        "squareName": MARKETING_SQUARES[square],
        "content": content,
    }


# ── Delivery ─────────────────────────────────────────────


@router.get("/{plan_id}/download")
async def download_plan(plan_id: str, user: Optional[User] = Depends(current_user)):
    """Render the plan to PDF and return it as an attachment."""
    services = get_services()
    plan = await _load_plan(plan_id, user)
    _require_ready(plan, "download")

    try:
        document = await asyncio.to_thread(services.renderer.render, plan)
    except Exception as e:
        logger.error(f"Error generating PDF for plan {plan_id}: {e}")
        await _log_best_effort(
            plan_id,
            "pdf_download_error",
            prompt_data={"error": str(e)},
            claude_response={"success": False, "errorAt": utc_now()},
        )
        if isinstance(e, RenderError):
            raise
        raise RenderError("Failed to generate PDF", details=str(e)) from e

    await _log_best_effort(
        plan_id,
        "pdf_download",
        prompt_data={"filename": document.filename, "fileSize": len(document.content)},
        claude_response={"success": True, "downloadedAt": utc_now()},
    )

    return Response(
        content=document.content,
        media_type=document.content_type,
        headers={
            "Content-Disposition": document.disposition,
            "Content-Length": str(len(document.content)),
            "Cache-Control": "private, max-age=0",
        },
    )


@router.post("/{plan_id}/email")
async def email_plan(
    plan_id: str,
    body: EmailRequest,
    user: Optional[User] = Depends(current_user),
):
    """Send the completion email, or share the plan with someone else.

    Actions: send_completion (recipientEmail) or share (recipientEmail,
    optional message and senderEmail).
    """
    notifier = get_services().notifier
    plan = await _load_plan(plan_id, user)
    _require_ready(plan, "email")

    if body.action not in EMAIL_ACTIONS:
        raise ValidationError('Invalid action. Use "send_completion" or "share"')
    if not body.recipient_email:
        raise ValidationError(
            "Recipient email is required"
            + (" for sharing" if body.action == "share" else "")
        )

    email_type = "completion" if body.action == "send_completion" else "share"
    try:
        if email_type == "completion":
            success = await notifier.send_completion(plan, body.recipient_email)
        else:
            sender_name = body.sender_email.split("@")[0] if body.sender_email else "A colleague"
            success = await notifier.send_share(
                plan,
                body.recipient_email,
                sender_name,
                body.message,
            )
    except Exception as e:
        logger.error(f"Error sending {email_type} email for plan {plan_id}: {e}")
        await _log_best_effort(
            plan_id,
            "email_error",
            prompt_data={"error": str(e)},
            claude_response={"success": False, "errorAt": utc_now()},
        )
        raise NotificationError("Failed to send email", details=str(e)) from e

    await _log_best_effort(
        plan_id,
        f"email_{email_type}",
        prompt_data={
            "action": body.action,
            "recipientEmail": body.recipient_email,
            "success": success,
            "message": body.message,
        },
        claude_response={"success": success, "sentAt": utc_now(), "emailType": email_type},
    )

    if not success:
        raise NotificationError(f"Failed to send {email_type} email")
    return {
        "success": True,
        "message": f"Email {'sent' if email_type == 'completion' else 'shared'} successfully",
    }


@router.post("/{plan_id}/send-email")
async def send_plan_pdf(
    plan_id: str,
    body: SendEmailRequest,
    user: Optional[User] = Depends(current_user),
):
    """Email the rendered PDF to an address as an attachment."""
    services = get_services()
    if not body.email:
        raise ValidationError("Email address is required")
    if not services.notifier.enabled:
        raise NotificationError("Email service not configured. Please set RESEND_API_KEY.")

    plan = await _load_plan(plan_id, user)
    _require_ready(plan, "email")

    try:
        document = await asyncio.to_thread(services.renderer.render, plan)
        success = await services.notifier.send_completion(plan, body.email, attachment=document)
    except Exception as e:
        logger.error(f"Error sending PDF email for plan {plan_id}: {e}")
        await _log_best_effort(
            plan_id,
            "email_error",
            prompt_data={"error": str(e)},
            claude_response={"success": False, "errorAt": utc_now()},
        )
        if isinstance(e, PlanServiceError):
            raise
        raise NotificationError("Failed to send email", details=str(e)) from e

    await _log_best_effort(
        plan_id,
        "email_send_with_pdf",
        prompt_data={
            "recipientEmail": body.email,
            "success": success,
            "pdfSize": len(document.content),
        },
        claude_response={"success": success, "sentAt": utc_now()},
    )

    if not success:
        raise NotificationError("Failed to send email")
    return {"success": True, "message": "Email sent successfully with PDF attachment"}
