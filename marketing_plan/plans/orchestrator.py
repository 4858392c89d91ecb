"""Plan generation orchestrator.

Drives a plan through its generation state machine:

    in_progress -> analyzing -> generating -> completed
                        \\            \\
                         `-> failed <-'

Each transition is persisted before the next step starts, and each LLM
step is logged to the interaction log. Any failure inside the two-step
chain marks the plan failed (with a diagnostic payload) and re-raises the
original error. Failures while recording a failure, and failures of the
post-completion notification, are logged and swallowed: they never mask
the primary error or change the plan's terminal state.

Steps within one run are strictly sequential. Duplicate generate calls
for the same plan are rejected while a run holds that plan's lock in this
process. The plan is re-read under the lock, so a run that completed in
the meantime is returned, not repeated. A plan found mid-run with no lock
here belongs to another worker unless it has not been written for
stale_run_after, in which case the run is treated as interrupted and
restarted.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from marketing_plan.errors import (
    ConflictError,
    NotFoundError,
    PlanServiceError,
    ValidationError,
)
from marketing_plan.llm.client import CallPurpose, LLMClient
from marketing_plan.llm.extractor import parse_llm_json_object
from marketing_plan.llm.prompts import (
    MARKETING_SQUARES,
    build_analysis_prompt,
    build_square_prompt,
    build_strategy_prompt,
    build_validation_prompt,
)
from marketing_plan.notifications.email import Notifier
from marketing_plan.plans.retry import RetryPolicy
from marketing_plan.plans.schemas import Plan, User, ValidationFeedback
from marketing_plan.plans.states import (
    PROGRESS,
    STARTABLE_STATES,
    PlanStatus,
    transition,
)
from marketing_plan.plans.store import PlanStore, utc_now

logger = logging.getLogger(__name__)

PLAN_VERSION = "1.0"
PLAN_SECTIONS = ("onePagePlan", "implementationGuide", "strategicInsights")

# Longer than one step can take: 1 + retry budget attempts at the 600s read timeout
STALE_RUN_AFTER = timedelta(hours=1)


@dataclass
class GenerationResult:
    plan: Plan
    processing_time_ms: int
    already_completed: bool = False


def _error_message(error: BaseException) -> str:
    if isinstance(error, PlanServiceError):
        return error.message
    return str(error) or type(error).__name__


class PlanOrchestrator:
    """Runs analysis and strategy generation for plans."""

    def __init__(
        self,
        store: PlanStore,
        llm: LLMClient,
        retry_policy: RetryPolicy,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], float] = time.monotonic,
        stale_run_after: timedelta = STALE_RUN_AFTER,
    ):
        self.store = store
        self.llm = llm
        self.retry_policy = retry_policy
        self.notifier = notifier
        self._clock = clock
        self.stale_run_after = stale_run_after
        self._locks: dict[str, asyncio.Lock] = {}

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    async def generate(self, plan_id: str, user: Optional[User] = None) -> GenerationResult:
        """Generate the marketing plan for plan_id.

        A plan that is already completed is returned unchanged without any
        upstream call.

        Raises:
            NotFoundError: Unknown plan id.
            ConflictError: A run for this plan is in flight here, or was
                written recently by another worker.
            UpstreamError, RetryExhaustedError: Step failures (plan is failed).
        """
        plan = await self._load(plan_id)
        if plan.status == PlanStatus.COMPLETED:
            return self._already_completed(plan)

        lock = self._locks.setdefault(plan_id, asyncio.Lock())
        if lock.locked():
            raise ConflictError(
                "Plan generation already in progress",
                details=f"Plan {plan_id} is {plan.status.value}",
            )

        async with lock:
            try:
                # A run that finished between the first read and the lock has moved the plan on
                plan = await self._load(plan_id)
                if plan.status == PlanStatus.COMPLETED:
                    return self._already_completed(plan)
                result = await self._run(plan, self._start_status(plan))
            finally:
                self._locks.pop(plan_id, None)

        await self._notify_completion(result.plan, user)
        return result

    async def _load(self, plan_id: str) -> Plan:
        plan = await self.store.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan not found: {plan_id}")
        return plan

    def _already_completed(self, plan: Plan) -> GenerationResult:
        logger.info(f"Plan {plan.id} already generated; returning existing content")
        return GenerationResult(plan=plan, processing_time_ms=0, already_completed=True)

    def _is_stale(self, plan: Plan) -> bool:
        """True when a mid-run plan has not been written for stale_run_after."""
        try:
            updated_at = datetime.fromisoformat(plan.updated_at)
        except (TypeError, ValueError):
            return True
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - updated_at >= self.stale_run_after

    def _start_status(self, plan: Plan) -> PlanStatus:
        """Validate the move into analyzing for a new run.

        Raises:
            ConflictError: The plan is mid-run and was written recently,
                so another worker may still own the run.
        """
        status = plan.status
        if status not in STARTABLE_STATES:
            if not self._is_stale(plan):
                raise ConflictError(
                    "Plan generation already in progress",
                    details=f"Plan {plan.id} is {status.value} (updated {plan.updated_at})",
                )
            logger.warning(
                f"Plan {plan.id} was left in '{status.value}' by an interrupted run; restarting"
            )
            status = transition(status, PlanStatus.FAILED)
        return transition(status, PlanStatus.ANALYZING)

    async def _run(self, plan: Plan, status: PlanStatus) -> GenerationResult:
        start = self._clock()
        step = "analysis"
        step_start = start

        try:
            await self.store.update_plan(
                plan.id,
                status=status,
                completion_percentage=PROGRESS[status],
            )

            # Step 1: analyze business responses
            logger.info(f"Plan {plan.id}: starting Claude analysis")
            analysis = await self.retry_policy.run(
                lambda: self._analyze(plan),
                label=f"{plan.id} analysis",
            )
            await self.store.log_interaction(
                plan.id,
                "analysis",
                prompt_data={
                    "businessContext": plan.business_context,
                    "responses": plan.questionnaire_responses,
                },
                claude_response=analysis,
                processing_time_ms=self._elapsed_ms(step_start),
            )

            status = transition(status, PlanStatus.GENERATING)
            await self.store.update_plan(
                plan.id,
                claude_analysis=analysis,
                status=status,
                completion_percentage=PROGRESS[status],
            )

            # Step 2: generate the marketing plan from the analysis
            step = "generation"
            step_start = self._clock()
            logger.info(f"Plan {plan.id}: generating marketing plan")
            content = await self.retry_policy.run(
                lambda: self._generate_content(plan, analysis),
                label=f"{plan.id} generation",
            )
            await self.store.log_interaction(
                plan.id,
                "generation",
                prompt_data={
                    "businessContext": plan.business_context,
                    "responses": plan.questionnaire_responses,
                    "analysis": analysis,
                },
                claude_response=content,
                processing_time_ms=self._elapsed_ms(step_start),
            )

            status = transition(status, PlanStatus.COMPLETED)
            total_ms = self._elapsed_ms(start)
            updated = await self.store.update_plan(
                plan.id,
                generated_content=content,
                claude_analysis=analysis,
                status=status,
                completion_percentage=PROGRESS[status],
                completed_at=utc_now(),
                plan_metadata={
                    "totalProcessingTime": total_ms,
                    "generatedAt": utc_now(),
                    "version": PLAN_VERSION,
                    "model": self.llm.model_id,
                },
            )
        except Exception as e:
            await self._record_failure(plan.id, step, e, self._elapsed_ms(step_start))
            raise

        if updated is None:
            # Deleted by another request while the run was in flight
            raise NotFoundError(f"Plan not found: {plan.id}")

        logger.info(f"Plan {plan.id}: generation completed in {total_ms}ms")
        return GenerationResult(plan=updated, processing_time_ms=total_ms)

    async def _analyze(self, plan: Plan) -> dict:
        prompt = build_analysis_prompt(plan.business_context, plan.questionnaire_responses)
        raw_text = await self.llm.complete(prompt, CallPurpose.ANALYSIS, label=f"{plan.id} analysis")
        return parse_llm_json_object(raw_text)

    async def _generate_content(self, plan: Plan, analysis: Any) -> dict:
        prompt = build_strategy_prompt(
            plan.business_context,
            plan.questionnaire_responses,
            analysis,
        )
        raw_text = await self.llm.complete(prompt, CallPurpose.STRATEGY, label=f"{plan.id} generation")
        content = parse_llm_json_object(raw_text)

        missing = [s for s in PLAN_SECTIONS if s not in content]
        if missing:
            logger.warning(f"Plan {plan.id}: generated content is missing sections {missing}")
        return content

    async def _record_failure(
        self,
        plan_id: str,
        step: str,
        error: BaseException,
        processing_time_ms: int,
    ) -> None:
        """Mark the plan failed and log the failed step. Never raises."""
        message = _error_message(error)
        failed_at = utc_now()
        logger.error(f"Plan {plan_id}: {step} step failed: {message}")

        try:
            await self.store.update_plan(
                plan_id,
                status=PlanStatus.FAILED,
                plan_metadata={
                    "error": message,
                    "errorType": type(error).__name__,
                    "failedStep": step,
                    "failedAt": failed_at,
                },
            )
        except Exception as update_error:
            logger.error(f"Plan {plan_id}: error updating plan status to failed: {update_error}")

        try:
            await self.store.log_interaction(
                plan_id,
                f"{step}_error",
                prompt_data={"step": step},
                claude_response={
                    "success": False,
                    "error": message,
                    "errorType": type(error).__name__,
                    "errorAt": failed_at,
                },
                processing_time_ms=processing_time_ms,
            )
        except Exception as log_error:
            logger.error(f"Plan {plan_id}: failed to log {step} error: {log_error}")

    async def _notify_completion(self, plan: Plan, user: Optional[User]) -> None:
        """Best-effort completion email to the plan's owner."""
        if self.notifier is None or user is None or not user.email:
            return

        try:
            sent = await self.notifier.send_completion(plan, user.email)
            await self.store.log_interaction(
                plan.id,
                "email_completion",
                prompt_data={"recipientEmail": user.email, "trigger": "generation"},
                claude_response={"success": sent, "sentAt": utc_now()},
            )
        except Exception as e:
            logger.warning(f"Plan {plan.id}: completion notification failed: {e}")
            try:
                await self.store.log_interaction(
                    plan.id,
                    "email_completion_error",
                    prompt_data={"recipientEmail": user.email},
                    claude_response={"success": False, "error": str(e), "errorAt": utc_now()},
                )
            except Exception as log_error:
                logger.error(f"Plan {plan.id}: failed to log notification error: {log_error}")

    # --- Single-call helpers (do not change plan status) ---

    async def generate_square_content(self, plan_id: str, square: int) -> dict:
        """Generate detailed content for one square of the 9-square plan.

        Raises:
            ValidationError: square not in 1-9.
            NotFoundError: Unknown plan id.
        """
        if square not in MARKETING_SQUARES:
            raise ValidationError("Square must be between 1 and 9", details=f"Got {square}")

        plan = await self.store.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan not found: {plan_id}")

        label = f"{plan_id} square {square}"
        start = self._clock()

        async def step() -> dict:
            prompt = build_square_prompt(
                square,
                plan.business_context,
                plan.questionnaire_responses,
                plan.claude_analysis,
            )
            raw_text = await self.llm.complete(prompt, CallPurpose.SQUARE, label=label)
            return parse_llm_json_object(raw_text)

        try:
            content = await self.retry_policy.run(step, label=label)
        except Exception as e:
            try:
                await self.store.log_interaction(
                    plan_id,
                    f"square_{square}_error",
                    prompt_data={"square": square},
                    claude_response={"success": False, "error": _error_message(e)},
                    processing_time_ms=self._elapsed_ms(start),
                )
            except Exception as log_error:
                logger.error(f"Plan {plan_id}: failed to log square error: {log_error}")
            raise

        await self.store.log_interaction(
            plan_id,
            f"square_{square}",
            prompt_data={"square": square, "squareName": MARKETING_SQUARES[square]},
            claude_response=content,
            processing_time_ms=self._elapsed_ms(start),
        )
        return content

    async def validate_responses(self, responses: dict) -> ValidationFeedback:
        """Ask the model to review questionnaire responses.

        Never raises: any failure yields empty suggestions and a zero score.
        """

        async def step() -> dict:
            raw_text = await self.llm.complete(
                build_validation_prompt(responses),
                CallPurpose.VALIDATE,
                label="validate responses",
            )
            return parse_llm_json_object(raw_text)

        try:
            data = await self.retry_policy.run(step, label="validate responses")
            suggestions = [str(s) for s in data.get("suggestions") or [] if s]
            score = int(float(data.get("completionScore", 0)))
            return ValidationFeedback(
                suggestions=suggestions,
                completion_score=max(0, min(100, score)),
            )
        except Exception as e:
            logger.error(f"Error validating responses: {e}")
            return ValidationFeedback()
