"""Tests for the bounded parse-retry policy."""

import json

import pytest

from marketing_plan.errors import ExtractionError, ParseError, RetryExhaustedError, UpstreamError
from marketing_plan.plans.retry import RetryPolicy, is_parse_error


class Step:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


async def test_success_first_attempt_does_not_sleep(retry_policy, sleep):
    step = Step(["ok"])
    assert await retry_policy.run(step, label="t") == "ok"
    assert step.calls == 1
    assert sleep.delays == []


async def test_parse_failures_then_success_with_linear_backoff(retry_policy, sleep):
    step = Step([ParseError("bad"), ExtractionError(raw_length=5), {"a": 1}])
    assert await retry_policy.run(step) == {"a": 1}
    assert step.calls == 3
    assert sleep.delays == [1.0, 2.0]


async def test_exhaustion_makes_one_plus_budget_attempts(retry_policy):
    step = Step([ParseError("still bad")])
    with pytest.raises(RetryExhaustedError) as exc_info:
        await retry_policy.run(step)
    assert step.calls == 3
    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.last_error, ParseError)


async def test_upstream_error_is_not_retried(retry_policy, sleep):
    step = Step([UpstreamError("auth failed"), "never"])
    with pytest.raises(UpstreamError):
        await retry_policy.run(step)
    assert step.calls == 1
    assert sleep.delays == []


async def test_zero_budget_means_single_attempt(sleep):
    policy = RetryPolicy(retry_budget=0, base_delay_ms=10, sleep=sleep)
    step = Step([ParseError("bad")])
    with pytest.raises(RetryExhaustedError):
        await policy.run(step)
    assert step.calls == 1


def test_is_parse_error():
    assert is_parse_error(ParseError("x"))
    assert is_parse_error(ExtractionError(raw_length=0))
    assert is_parse_error(json.JSONDecodeError("msg", "doc", 0))
    assert not is_parse_error(UpstreamError("x"))
    assert not is_parse_error(ValueError("x"))
