"""Shared fixtures and test doubles."""

import asyncio
import json
from typing import Optional

import pytest

from marketing_plan.db import Database
from marketing_plan.llm.backends import LLMCallResult
from marketing_plan.llm.client import LLMClient
from marketing_plan.plans.orchestrator import PlanOrchestrator
from marketing_plan.plans.retry import RetryPolicy
from marketing_plan.plans.store import PlanStore
from marketing_plan.rendering.pdf import RenderedDocument

ANALYSIS = {
    "businessModelAssessment": "Solid recurring revenue",
    "marketOpportunity": "Growing niche",
    "strategicRecommendations": ["Focus on retention"],
}

GENERATED_PLAN = {
    "onePagePlan": {
        "before": {
            "targetMarket": "Busy **urban** professionals",
            "message": "Fresh meals, zero effort",
            "media": ["Instagram", "Google Ads", "Referrals"],
        },
        "during": {
            "leadCapture": "Free first box",
            "leadNurture": "Weekly recipe emails",
            "salesConversion": "Limited-time discount",
        },
        "after": {
            "deliverExperience": "Same-day delivery",
            "lifetimeValue": "Subscription tiers",
            "referrals": "Give $10, get $10",
        },
    },
    "implementationGuide": {
        "executiveSummary": "Grow subscriptions through referrals.",
        "actionPlans": {"phase1": "Launch", "phase2": "Optimize", "phase3": "Scale"},
        "kpis": "CAC, churn, LTV",
    },
    "strategicInsights": {
        "strengths": ["Brand"],
        "positioning": "Premium convenience",
    },
}


class FakeBackend:
    """Completion backend that replays scripted outputs.

    Each item in outputs is either a string (returned as model text) or an
    exception instance (raised). The last item repeats once exhausted.
    """

    def __init__(self, outputs=None, model_id: str = "test-model"):
        self.outputs = list(outputs or [])
        self.calls: list[dict] = []
        self._model_id = model_id
        self.gate: Optional[asyncio.Event] = None
        self.entered: Optional[asyncio.Event] = None

    @property
    def model_id(self) -> str:
        return self._model_id

    async def complete(self, prompt, *, max_tokens, temperature, label=""):
        self.calls.append(
            {"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature, "label": label}
        )
        if self.entered is not None:
            self.entered.set()
        if self.gate is not None:
            await self.gate.wait()

        index = min(len(self.calls) - 1, len(self.outputs) - 1)
        output = self.outputs[index]
        if isinstance(output, Exception):
            raise output
        return LLMCallResult(
            content=output,
            model_id=self._model_id,
            input_tokens=len(prompt) // 4,
            output_tokens=len(output) // 4,
            duration_ms=1,
        )


class FakeNotifier:
    def __init__(self, enabled: bool = True, succeed: bool = True, error: Optional[Exception] = None):
        self.enabled = enabled
        self.succeed = succeed
        self.error = error
        self.completions: list[tuple] = []
        self.shares: list[tuple] = []

    async def send_completion(self, plan, recipient, attachment=None):
        if self.error is not None:
            raise self.error
        self.completions.append((plan.id, recipient, attachment))
        return self.succeed

    async def send_share(self, plan, recipient, sender_name, message=None):
        if self.error is not None:
            raise self.error
        self.shares.append((plan.id, recipient, sender_name, message))
        return self.succeed


class FakeRenderer:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.rendered: list[str] = []

    def render(self, plan):
        if self.error is not None:
            raise self.error
        self.rendered.append(plan.id)
        return RenderedDocument(
            content=b"%PDF-1.4 test document",
            content_type="application/pdf",
            filename="marketing-plan-test-2025-01-01.pdf",
        )


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def as_json(data) -> str:
    return json.dumps(data)


@pytest.fixture
def db(tmp_path):
    database = Database(sqlite_path=tmp_path / "test.db")
    database.init()
    yield database
    database.close()


@pytest.fixture
def store(db):
    return PlanStore(db)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def retry_policy(sleep):
    return RetryPolicy(retry_budget=2, base_delay_ms=1000, sleep=sleep)


@pytest.fixture
def backend():
    return FakeBackend([as_json(ANALYSIS), as_json(GENERATED_PLAN)])


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def orchestrator(store, backend, retry_policy, notifier):
    return PlanOrchestrator(
        store=store,
        llm=LLMClient(backend),
        retry_policy=retry_policy,
        notifier=notifier,
    )
