import logging
import math
from typing import Optional

from sanitizer import parse_json, sanitize

logger = logging.getLogger(__name__)

TIMERS = {"easy": 20, "medium": 60, "hard": 120}

FALLBACK_QUESTIONS = (
    {"q": "Explain event delegation in JavaScript.", "difficulty": "easy", "time": 20},
    {"q": "What are React hooks?", "difficulty": "easy", "time": 20},
    {"q": "How does Node.js handle asynchronous operations?", "difficulty": "medium", "time": 60},
    {"q": "Explain middleware in Express.", "difficulty": "medium", "time": 60},
    {"q": "Design a scalable folder structure for a MERN project.", "difficulty": "hard", "time": 120},
    {"q": "How would you optimize a React app for performance?", "difficulty": "hard", "time": 120},
)


def build_questions_prompt(role: str) -> str:
    return f"""You are an AI interview assistant.
Generate 6 technical questions for a {role} role (2 Easy -> 2 Medium -> 2 Hard).
Timers per question: Easy {TIMERS['easy']}s, Medium {TIMERS['medium']}s, Hard {TIMERS['hard']}s.
ONLY RETURN A JSON ARRAY OF OBJECTS. DO NOT ADD ANY TEXT OUTSIDE JSON.

Example format:
[
  {{ "q": "Question text", "difficulty": "easy", "time": 20 }},
  {{ "q": "Question text", "difficulty": "easy", "time": 20 }},
  {{ "q": "Question text", "difficulty": "medium", "time": 60 }},
  {{ "q": "Question text", "difficulty": "medium", "time": 60 }},
  {{ "q": "Question text", "difficulty": "hard", "time": 120 }},
  {{ "q": "Question text", "difficulty": "hard", "time": 120 }}
]"""


def fallback_questions() -> list[dict]:
    return [dict(q) for q in FALLBACK_QUESTIONS]


def coerce_time(value) -> int | float:
    """Numeric view of a question timer, 0 when it has none."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _invalid_reason(items) -> Optional[str]:
    if not isinstance(items, list):
        return f"expected a JSON array, got {type(items).__name__}"
    if not items:
        return "empty question list"
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            return f"question {i} is not an object"
        text = item.get("q")
        if not isinstance(text, str) or not text.strip():
            return f"question {i} has no text"
    return None


def normalize(model_text: Optional[str]) -> list[dict]:
    """Validate Gemini's question list or substitute the built-in set.

    Either the whole generated set is accepted or the whole fallback set is
    returned; individual questions are never patched.
    """
    result = parse_json(sanitize(model_text))
    reason = result.reason if not result.ok else _invalid_reason(result.value)
    if reason:
        logger.warning("[QUESTIONS] Using fallback question set: %s", reason)
        logger.debug("[QUESTIONS] Raw model text: %r", model_text)
        return fallback_questions()

    return [{**item, "time": coerce_time(item.get("time"))} for item in result.value]
