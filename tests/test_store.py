"""Tests for the plan store over SQLite."""

import pytest

from marketing_plan.errors import ConflictError
from marketing_plan.plans.states import PlanStatus


async def test_create_plan_defaults(store):
    plan = await store.create_plan({"industry": "ecommerce"}, {})
    assert plan.id.startswith("plan-")
    assert plan.status == PlanStatus.IN_PROGRESS
    assert plan.completion_percentage == 0
    assert plan.generated_content is None

    loaded = await store.get_plan(plan.id)
    assert loaded.business_context == {"industry": "ecommerce"}
    assert loaded.questionnaire_responses == {}
    assert loaded.created_at is not None


async def test_create_plan_with_missing_inputs_stores_empty_records(store):
    plan = await store.create_plan()
    loaded = await store.get_plan(plan.id)
    assert loaded.business_context == {}
    assert loaded.questionnaire_responses == {}


async def test_get_unknown_plan_returns_none(store):
    assert await store.get_plan("plan-missing") is None


async def test_update_plan_overwrites_and_bumps_updated_at(store):
    plan = await store.create_plan({"industry": "fitness"}, {})
    updated = await store.update_plan(
        plan.id,
        status=PlanStatus.ANALYZING,
        completion_percentage=20,
        claude_analysis={"score": 7},
    )
    assert updated.status == PlanStatus.ANALYZING
    assert updated.completion_percentage == 20
    assert updated.claude_analysis == {"score": 7}
    assert updated.updated_at >= plan.updated_at


async def test_update_plan_rejects_unknown_fields(store):
    plan = await store.create_plan()
    with pytest.raises(ValueError, match="Unknown plan fields"):
        await store.update_plan(plan.id, colour="blue")


async def test_update_missing_plan_returns_none(store):
    assert await store.update_plan("plan-missing", completion_percentage=5) is None


async def test_corrupted_text_field_decodes_to_none(store, db):
    plan = await store.create_plan({"industry": "ecommerce"}, {})
    db.execute(
        "UPDATE plans SET claude_analysis = %s WHERE id = %s",
        ("{not valid json", plan.id),
    )
    loaded = await store.get_plan(plan.id)
    assert loaded.claude_analysis is None
    assert loaded.business_context == {"industry": "ecommerce"}


async def test_interactions_newest_first_and_limited(store):
    plan = await store.create_plan()
    for i in range(12):
        await store.log_interaction(plan.id, f"step_{i}", prompt_data={"i": i}, processing_time_ms=i)

    recent = await store.list_interactions(plan.id, limit=10)
    assert len(recent) == 10
    assert recent[0].interaction_type == "step_11"
    assert recent[0].prompt_data == {"i": 11}
    assert recent[-1].interaction_type == "step_2"


async def test_delete_plan_removes_interactions(store):
    plan = await store.create_plan()
    await store.log_interaction(plan.id, "analysis", claude_response={"ok": True})

    assert await store.delete_plan(plan.id) is True
    assert await store.get_plan(plan.id) is None
    assert await store.list_interactions(plan.id) == []
    assert await store.delete_plan(plan.id) is False


async def test_users(store):
    user = await store.create_user("owner@example.com", business_name="Acme")
    assert user.id.startswith("user-")
    assert (await store.get_user(user.id)).email == "owner@example.com"
    assert (await store.get_user_by_email("owner@example.com")).id == user.id

    with pytest.raises(ConflictError):
        await store.create_user("owner@example.com")


async def test_list_plans_only_returns_users_plans(store):
    user = await store.create_user("a@example.com")
    mine = await store.create_plan({"n": 1}, {}, user_id=user.id)
    await store.create_plan({"n": 2}, {})

    plans = await store.list_plans(user.id)
    assert [p.id for p in plans] == [mine.id]
