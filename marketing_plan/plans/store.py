"""Persistence gateway for plans, their interaction log, and users.

Wraps the synchronous Database with an async facade: each call runs in a
worker thread so the request handler suspends instead of blocking the
event loop. Structured fields are serialized on write and decoded with
attempt-and-fallback on read (see db.safe_json_loads).

Each write is committed immediately; there is no batching and no
cross-call transaction. Concurrent writers to the same plan are
last-writer-wins.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from marketing_plan.db import Database, json_dumps, safe_json_loads
from marketing_plan.errors import ConflictError
from marketing_plan.plans.schemas import ClaudeInteraction, Plan, User
from marketing_plan.plans.states import PlanStatus

logger = logging.getLogger(__name__)

# Python field name -> column name, for fields update_plan may write
_PLAN_COLUMNS = {
    "user_id": "user_id",
    "business_context": "business_context",
    "questionnaire_responses": "questionnaire_responses",
    "claude_analysis": "claude_analysis",
    "generated_content": "generated_content",
    "status": "status",
    "completion_percentage": "completion_percentage",
    "plan_metadata": "plan_metadata",
    "completed_at": "completed_at",
}
_JSON_FIELDS = {
    "business_context",
    "questionnaire_responses",
    "claude_analysis",
    "generated_content",
    "plan_metadata",
}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_timestamps(row: dict, keys: tuple[str, ...]) -> dict:
    """Convert datetime objects to ISO strings (Postgres returns datetimes for TIMESTAMP columns)."""
    for key in keys:
        val = row.get(key)
        if val is not None and isinstance(val, datetime):
            row[key] = val.isoformat()
    return row


def _row_to_plan(row: dict) -> Plan:
    _normalize_timestamps(row, ("created_at", "updated_at", "completed_at"))
    return Plan(
        id=row["id"],
        user_id=row.get("user_id"),
        business_context=safe_json_loads(row.get("business_context")) or {},
        questionnaire_responses=safe_json_loads(row.get("questionnaire_responses")) or {},
        claude_analysis=safe_json_loads(row.get("claude_analysis")),
        generated_content=safe_json_loads(row.get("generated_content")),
        status=PlanStatus(row.get("status") or PlanStatus.IN_PROGRESS.value),
        completion_percentage=row.get("completion_percentage") or 0,
        plan_metadata=safe_json_loads(row.get("plan_metadata")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        completed_at=row.get("completed_at"),
    )


def _row_to_interaction(row: dict) -> ClaudeInteraction:
    _normalize_timestamps(row, ("created_at",))
    return ClaudeInteraction(
        id=row["id"],
        plan_id=row["plan_id"],
        interaction_type=row["interaction_type"],
        prompt_data=safe_json_loads(row.get("prompt_data")),
        claude_response=safe_json_loads(row.get("claude_response")),
        processing_time_ms=row.get("processing_time_ms"),
        created_at=row.get("created_at"),
    )


def _row_to_user(row: dict) -> User:
    _normalize_timestamps(row, ("created_at",))
    return User(
        id=row["id"],
        email=row["email"],
        business_name=row.get("business_name"),
        industry=row.get("industry"),
        created_at=row.get("created_at"),
    )


class PlanStore:
    """Async persistence gateway over a Database."""

    def __init__(self, db: Database):
        self.db = db

    async def _run(self, sql: str, params: tuple = (), fetch: str = "none") -> Any:
        return await asyncio.to_thread(self.db.execute, sql, params, fetch)

    # --- Plans ---

    async def create_plan(
        self,
        business_context: Optional[dict] = None,
        questionnaire_responses: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> Plan:
        """Create an empty plan in status in_progress at 0%."""
        plan_id = f"plan-{uuid.uuid4().hex[:12]}"
        now = utc_now()

        await self._run(
            """INSERT INTO plans
               (id, user_id, business_context, questionnaire_responses,
                status, completion_percentage, created_at, updated_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s, %s)""",
            (
                plan_id,
                user_id,
                json_dumps(business_context or {}),
                json_dumps(questionnaire_responses or {}),
                PlanStatus.IN_PROGRESS.value,
                0,
                now,
                now,
            ),
        )
        logger.info(f"Created plan {plan_id}" + (f" for user {user_id}" if user_id else ""))

        return Plan(
            id=plan_id,
            user_id=user_id,
            business_context=business_context or {},
            questionnaire_responses=questionnaire_responses or {},
            created_at=now,
            updated_at=now,
        )

    async def get_plan(self, plan_id: str) -> Optional[Plan]:
        row = await self._run("SELECT * FROM plans WHERE id = %s", (plan_id,), fetch="one")
        if row is None:
            return None
        return _row_to_plan(row)

    async def list_plans(self, user_id: str, limit: int = 50) -> list[Plan]:
        rows = await self._run(
            """SELECT * FROM plans WHERE user_id = %s
               ORDER BY created_at DESC LIMIT %s""",
            (user_id, limit),
            fetch="all",
        )
        return [_row_to_plan(row) for row in rows]

    async def update_plan(self, plan_id: str, **fields: Any) -> Optional[Plan]:
        """Overwrite the given fields unconditionally and bump updated_at.

        Returns the re-read plan, or None if it does not exist.
        """
        unknown = set(fields) - set(_PLAN_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown plan fields: {sorted(unknown)}")

        assignments = []
        params: list = []
        for name, value in fields.items():
            if name in _JSON_FIELDS:
                value = json_dumps(value)
            elif isinstance(value, PlanStatus):
                value = value.value
            assignments.append(f"{_PLAN_COLUMNS[name]} = %s")
            params.append(value)

        assignments.append("updated_at = %s")
        params.append(utc_now())
        params.append(plan_id)

        await self._run(
            f"UPDATE plans SET {', '.join(assignments)} WHERE id = %s",
            tuple(params),
        )
        if "status" in fields:
            status = fields["status"]
            logger.info(f"Plan {plan_id} status -> {getattr(status, 'value', status)}")
        return await self.get_plan(plan_id)

    async def delete_plan(self, plan_id: str) -> bool:
        """Delete a plan and its interaction log. Irreversible."""
        existing = await self._run("SELECT id FROM plans WHERE id = %s", (plan_id,), fetch="one")
        if existing is None:
            return False

        # Interactions first, for databases created without ON DELETE CASCADE
        await self._run("DELETE FROM claude_interactions WHERE plan_id = %s", (plan_id,))
        await self._run("DELETE FROM plans WHERE id = %s", (plan_id,))
        logger.info(f"Deleted plan {plan_id}")
        return True

    # --- Interaction log ---

    async def log_interaction(
        self,
        plan_id: str,
        interaction_type: str,
        prompt_data: Any = None,
        claude_response: Any = None,
        processing_time_ms: Optional[int] = None,
    ) -> ClaudeInteraction:
        """Append an interaction record. Records are never updated."""
        interaction_id = f"ci-{uuid.uuid4().hex[:12]}"
        now = utc_now()

        await self._run(
            """INSERT INTO claude_interactions
               (id, plan_id, interaction_type, prompt_data, claude_response,
                processing_time_ms, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)""",
            (
                interaction_id,
                plan_id,
                interaction_type,
                json_dumps(prompt_data),
                json_dumps(claude_response),
                processing_time_ms,
                now,
            ),
        )
        logger.info(
            f"Logged interaction {interaction_id}: plan={plan_id}, type={interaction_type}"
            + (f", {processing_time_ms}ms" if processing_time_ms is not None else "")
        )

        return ClaudeInteraction(
            id=interaction_id,
            plan_id=plan_id,
            interaction_type=interaction_type,
            prompt_data=prompt_data,
            claude_response=claude_response,
            processing_time_ms=processing_time_ms,
            created_at=now,
        )

    async def list_interactions(self, plan_id: str, limit: int = 10) -> list[ClaudeInteraction]:
        """Newest first."""
        rows = await self._run(
            """SELECT * FROM claude_interactions WHERE plan_id = %s
               ORDER BY created_at DESC LIMIT %s""",
            (plan_id, limit),
            fetch="all",
        )
        return [_row_to_interaction(row) for row in rows]

    # --- Users ---

    async def create_user(
        self,
        email: str,
        business_name: Optional[str] = None,
        industry: Optional[str] = None,
    ) -> User:
        if await self.get_user_by_email(email) is not None:
            raise ConflictError("User already exists with this email")

        user_id = f"user-{uuid.uuid4().hex[:12]}"
        now = utc_now()
        await self._run(
            """INSERT INTO users
               (id, email, business_name, industry, profile_data, created_at)
               VALUES (%s, %s, %s, %s, %s, %s)""",
            (
                user_id,
                email,
                business_name,
                industry,
                json_dumps({"registrationDate": now, "source": "web_signup"}),
                now,
            ),
        )
        logger.info(f"Registered user {user_id}")
        return User(
            id=user_id,
            email=email,
            business_name=business_name,
            industry=industry,
            created_at=now,
        )

    async def get_user(self, user_id: str) -> Optional[User]:
        row = await self._run("SELECT * FROM users WHERE id = %s", (user_id,), fetch="one")
        return _row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        row = await self._run("SELECT * FROM users WHERE email = %s", (email,), fetch="one")
        return _row_to_user(row) if row else None
