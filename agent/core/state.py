from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping


class Intent(str, Enum):
    SESSION_START = "SESSION_START"
    SUBJECT_SELECTED = "SUBJECT_SELECTED"
    TOPIC_SELECTED = "TOPIC_SELECTED"
    USER_MESSAGE = "USER_MESSAGE"


class LearningState(str, Enum):
    IDLE = "IDLE"
    CHOOSING_SUBJECT = "CHOOSING_SUBJECT"
    CHOOSING_TOPIC = "CHOOSING_TOPIC"
    IN_LESSON = "IN_LESSON"


# Frontend key -> value used when the key is missing or null.
STATE_DEFAULTS: Dict[str, str] = {
    "name": "Unknown name",
    "grade": "Unknown grade",
    "subject": "Unknown subject",
    "topic": "Unknown topic",
    "intent": Intent.SESSION_START.value,
    "learningState": LearningState.IDLE.value,
}


def resolve_state(state: Any) -> Dict[str, Any]:
    """Return a copy of the caller's state with every prompt slot filled.

    Only missing or ``None`` values are replaced; empty strings and any other
    value the frontend sent are kept as-is. The caller's object is never
    modified. Anything that is not a mapping is treated as an empty state.
    """
    source: Mapping[str, Any] = state if isinstance(state, Mapping) else {}
    resolved: Dict[str, Any] = {}
    for key, default in STATE_DEFAULTS.items():
        value = source.get(key)
        resolved[key] = default if value is None else value
    return resolved
