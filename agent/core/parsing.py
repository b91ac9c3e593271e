from __future__ import annotations

import json
import re
from typing import Any, Optional

from agent.core.errors import MalformedModelOutput


_OPENING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\s*```$")


def _strip_code_fences(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = _OPENING_FENCE.sub("", stripped, count=1)
        stripped = _CLOSING_FENCE.sub("", stripped, count=1)
    return stripped


def extract_json_object(raw: Optional[str]) -> Any:
    """Recover the JSON object Gemini was asked to return.

    Takes the span from the first ``{`` to the *last* ``}`` of the text, so a
    single top-level object with nested braces works, but prose containing a
    ``}`` after the object is swallowed into the slice and fails to parse.
    """
    text = _strip_code_fences(raw or "")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        raise MalformedModelOutput("No JSON object found in Gemini response")

    segment = text[start: end + 1]
    try:
        return json.loads(segment)
    except json.JSONDecodeError as exc:
        raise MalformedModelOutput(str(exc)) from exc
