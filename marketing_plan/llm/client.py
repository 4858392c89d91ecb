"""Purpose-configured LLM client.

Every completion call names a purpose; the purpose fixes the output
token budget and temperature. The model identifier comes from settings
and is shared by all purposes.
"""

import logging
from enum import Enum

from marketing_plan.llm.backends import CompletionBackend

logger = logging.getLogger(__name__)


class CallPurpose(str, Enum):
    ANALYSIS = "analysis"
    STRATEGY = "strategy"
    SQUARE = "square"
    VALIDATE = "validate"


PURPOSE_CONFIGS = {
    CallPurpose.ANALYSIS: {"max_tokens": 8000, "temperature": 0.3},
    CallPurpose.STRATEGY: {"max_tokens": 8000, "temperature": 0.2},
    CallPurpose.SQUARE: {"max_tokens": 4000, "temperature": 0.3},
    CallPurpose.VALIDATE: {"max_tokens": 2000, "temperature": 0.3},
}


class LLMClient:
    """Thin adapter: prompt + purpose -> raw text. Does not retry."""

    def __init__(self, backend: CompletionBackend):
        self.backend = backend

    @property
    def model_id(self) -> str:
        return self.backend.model_id

    async def complete(self, prompt: str, purpose: CallPurpose, label: str = "") -> str:
        """Return the raw text output for a prompt.

        Raises:
            UpstreamError: From the backend on any provider failure.
        """
        purpose = CallPurpose(purpose)
        config = PURPOSE_CONFIGS[purpose]
        result = await self.backend.complete(
            prompt,
            max_tokens=config["max_tokens"],
            temperature=config["temperature"],
            label=label or purpose.value,
        )
        return result.content
