"""Bounded retry for LLM steps whose output fails to parse.

Only parse-class failures (no JSON found, invalid JSON) are retried:
re-asking the model usually fixes them. Provider errors, auth failures
and everything else propagate on the first occurrence.

Backoff is linear: attempt n waits base_delay_ms * n before running.
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from marketing_plan.errors import ParseError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_parse_error(error: BaseException) -> bool:
    return isinstance(error, (ParseError, json.JSONDecodeError))


class RetryPolicy:
    """Re-invokes an async step on parse-class failures."""

    def __init__(
        self,
        retry_budget: int = 2,
        base_delay_ms: int = 1000,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.retry_budget = retry_budget
        self.base_delay_ms = base_delay_ms
        self._sleep = sleep or asyncio.sleep

    async def run(self, step: Callable[[], Awaitable[T]], label: str = "") -> T:
        """Run step, retrying up to retry_budget extra times on parse errors.

        Raises:
            RetryExhaustedError: After 1 + retry_budget parse failures.
            Exception: Any non-parse error from step, unchanged.
        """
        max_attempts = 1 + self.retry_budget
        last_error: Optional[Exception] = None

        for attempt in range(max_attempts):
            if attempt > 0:
                delay_ms = self.base_delay_ms * attempt
                logger.warning(
                    f"[{label}] Retry {attempt}/{self.retry_budget} after {delay_ms}ms "
                    f"(previous error: {last_error})"
                )
                await self._sleep(delay_ms / 1000)

            try:
                return await step()
            except Exception as e:
                if not is_parse_error(e):
                    raise
                last_error = e
                logger.error(f"[{label}] Attempt {attempt + 1} failed to parse: {e}")

        raise RetryExhaustedError(last_error, attempts=max_attempts)
