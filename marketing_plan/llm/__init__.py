"""LLM access for plan generation.

- prompts: prompt templates and builders
- backends: Anthropic transport (timeouts, response-shape checks, error mapping)
- client: purpose-configured completion calls
- extractor: locate and decode JSON inside model output
"""

from marketing_plan.llm.backends import AnthropicBackend, CompletionBackend, LLMCallResult
from marketing_plan.llm.client import CallPurpose, LLMClient
from marketing_plan.llm.extractor import parse_llm_json_object, parse_llm_json_response

__all__ = [
    "AnthropicBackend",
    "CallPurpose",
    "CompletionBackend",
    "LLMCallResult",
    "LLMClient",
    "parse_llm_json_object",
    "parse_llm_json_response",
]
