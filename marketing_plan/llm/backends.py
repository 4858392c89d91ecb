"""Anthropic transport for completion calls.

Handles provider-specific concerns:
- Client creation and timeout configuration
- Response shape checks (first content part must be text)
- Token counting
- Mapping provider/transport failures to UpstreamError

Retry is NOT handled here. The caller's RetryPolicy decides what to retry,
and provider failures are never retried.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

import anthropic
import httpx

from marketing_plan.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class LLMCallResult:
    """Normalized response from a completion call."""

    content: str
    model_id: str
    input_tokens: int
    output_tokens: int
    duration_ms: int


@runtime_checkable
class CompletionBackend(Protocol):
    """Protocol for completion transports (real or test double)."""

    @property
    def model_id(self) -> str: ...

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        label: str = "",
    ) -> LLMCallResult: ...


class AnthropicBackend:
    """Anthropic Claude backend using the async messages API."""

    def __init__(
        self,
        api_key: Optional[str],
        model_id: str,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self._model_id = model_id
        if client is not None:
            self._client = client
        elif api_key:
            self._client = anthropic.AsyncAnthropic(
                api_key=api_key,
                timeout=httpx.Timeout(
                    connect=60.0,
                    read=600.0,  # 8K-token outputs can take several minutes
                    write=60.0,
                    pool=60.0,
                ),
                max_retries=0,
            )
        else:
            self._client = None
            logger.warning("ANTHROPIC_API_KEY not set; LLM calls will fail until configured")

    @property
    def model_id(self) -> str:
        return self._model_id

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        label: str = "",
    ) -> LLMCallResult:
        """Send a single user message and return the text of the reply.

        Raises:
            UpstreamError: On missing credentials, transport or API errors,
                or a reply whose first content part is not text.
        """
        if self._client is None:
            raise UpstreamError(
                "LLM service unavailable. Set ANTHROPIC_API_KEY environment variable."
            )

        start_time = time.time()
        logger.info(
            f"[{label}] Anthropic call: model={self._model_id}, ~{len(prompt) // 4:,} input tokens, "
            f"max_tokens={max_tokens}, temperature={temperature}"
        )

        try:
            response = await self._client.messages.create(
                model=self._model_id,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AuthenticationError as e:
            raise UpstreamError(f"[{label}] Authentication error from LLM provider", details=str(e)) from e
        except anthropic.APIStatusError as e:
            raise UpstreamError(
                f"[{label}] LLM provider returned HTTP {e.status_code}", details=str(e)
            ) from e
        except anthropic.APIError as e:
            raise UpstreamError(f"[{label}] LLM provider request failed", details=str(e)) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"[{label}] LLM transport error", details=str(e)) from e

        duration_ms = int((time.time() - start_time) * 1000)

        if not response.content:
            raise UpstreamError(f"[{label}] Empty response from {self._model_id}")
        block = response.content[0]
        if getattr(block, "type", None) != "text":
            raise UpstreamError(
                f"[{label}] Unexpected response format from Claude API "
                f"(content type: {getattr(block, 'type', 'unknown')})"
            )

        raw_text = block.text
        input_tokens = getattr(response.usage, "input_tokens", 0) if response.usage else 0
        output_tokens = getattr(response.usage, "output_tokens", 0) if response.usage else 0

        logger.info(
            f"[{label}] Completed: {input_tokens}+{output_tokens} tokens, "
            f"{duration_ms}ms, {len(raw_text):,} chars"
        )

        return LLMCallResult(
            content=raw_text,
            model_id=self._model_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            duration_ms=duration_ms,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
