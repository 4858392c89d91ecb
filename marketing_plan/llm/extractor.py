"""Locate and decode a JSON payload inside free-form model output.

Models sometimes wrap JSON in ```json ... ``` fences or add a sentence
before it, despite being told not to. This is a heuristic, not a JSON
scanner: the fallback search is a greedy brace/bracket span and does not
balance nesting, so a stray brace in surrounding prose can widen or cut
the match. Downstream json.loads is what decides validity.
"""

import json
import logging
import re
from typing import Any

from marketing_plan.errors import ExtractionError, ParseError

logger = logging.getLogger(__name__)

# Opening fence with optional language tag, or a closing fence
_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?")
# First {...} or [...] span, greedy
_JSON_SPAN_RE = re.compile(r"\{[\s\S]*\}|\[[\s\S]*\]")


def strip_code_fences(raw_text: str) -> str:
    """Remove code-fence markers wherever they bracket content, then trim."""
    return _FENCE_RE.sub("", raw_text).strip()


def extract_json_text(raw_text: str) -> str:
    """Return the candidate JSON string within raw model output.

    Raises:
        ExtractionError: If no brace- or bracket-delimited span exists.
    """
    content = strip_code_fences(raw_text)

    if content.startswith("{") or content.startswith("["):
        if content.count('"') % 2 == 1:
            logger.warning(
                f"Model output has an odd number of quotes ({len(content):,} chars); "
                f"response may be truncated"
            )
        return content

    match = _JSON_SPAN_RE.search(content)
    if match is None:
        raise ExtractionError(raw_length=len(raw_text))
    return match.group(0)


def parse_llm_json_response(raw_text: str) -> Any:
    """Extract and decode JSON from model output.

    Raises:
        ExtractionError: If no JSON candidate is found.
        ParseError: If the candidate is not valid JSON.
    """
    candidate = extract_json_text(raw_text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Model output is not valid JSON (length={len(raw_text)})",
            details=str(e),
        ) from e


def parse_llm_json_object(raw_text: str) -> dict:
    """Like parse_llm_json_response, but the payload must be a JSON object."""
    data = parse_llm_json_response(raw_text)
    if not isinstance(data, dict):
        raise ParseError(
            f"Expected a JSON object, got {type(data).__name__} (length={len(raw_text)})",
        )
    return data
