import json
import logging
from typing import Any

from llm.base_llm import LLMError

log = logging.getLogger("crossroads.llm.parser")


class ParseError(LLMError):
    pass


def _strip_fences(text: str) -> str:
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_ai_response(response_text: str) -> Any:
    """
    Parse JSON out of an LLM reply.

    Models wrap JSON in markdown fences or surround it with prose even when told
    not to, so this strips fences first and, failing that, parses whatever lies
    between the first '{' and the last '}'.
    """
    text = response_text.strip()
    try:
        return json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        log.debug(f"[parse] Strict parse failed ({e}), falling back to brace extraction")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ParseError(f"No JSON object found in AI response: {text[:200]!r}")
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse AI response as JSON: {e}") from e
