import logging
import math
from typing import Optional

from pydantic import BaseModel

from sanitizer import ParseResult, extract_json_block, parse_json, sanitize

logger = logging.getLogger(__name__)

NO_FEEDBACK = "No feedback generated."
MIN_SCORE = 0
MAX_SCORE = 10
VAGUE_MARKERS = ("blah", "not sure", "don't know")

FEEDBACK_NO_UNDERSTANDING = (
    "Answer appears to be incomplete, vague, or shows no understanding of the question."
)
FEEDBACK_TOO_BRIEF = (
    "Answer is too brief and lacks sufficient detail to demonstrate understanding."
)
FEEDBACK_LACKS_DEPTH = "Answer is somewhat relevant but lacks depth and technical detail."
FEEDBACK_NOT_EVALUATED = "Answer shows some understanding but could not be fully evaluated."


class EvaluationResult(BaseModel):
    score: int | float
    feedback: str


def build_evaluation_prompt(
    question: str,
    answer: Optional[str],
    resume_context: Optional[str],
    role: str,
) -> str:
    return f"""You are a STRICT interview evaluator for a {role} role.
Grade the candidate's answer VERY STRICTLY out of 10. Be harsh with scoring.

STRICT EVALUATION CRITERIA:
- Technical correctness (40% weight): Must be technically accurate and demonstrate proper knowledge
- Depth of explanation (25% weight): Must show deep understanding, not surface-level answers
- Relevance to the question (20% weight): Must directly address the question asked
- Clarity and completeness (15% weight): Must be well-structured and complete

SCORING GUIDELINES:
- 9-10: Exceptional answer with deep technical insight, perfect understanding
- 7-8: Good answer with solid technical knowledge, minor gaps
- 5-6: Average answer with basic understanding, some technical errors
- 3-4: Poor answer with significant gaps or errors, minimal understanding
- 1-2: Very poor answer with major errors or irrelevant content
- 0: No answer, completely irrelevant, or shows no understanding

PENALTY FOR:
- Vague or generic answers ("blah blah blah", "I don't know", "not sure")
- Answers that don't address the specific question
- Technical inaccuracies or misconceptions
- Incomplete or rushed responses
- Copy-paste or template-like answers

Return ONLY valid JSON in this format:
{{
  "score": number (0-10),
  "feedback": "constructive feedback explaining the score (2-3 sentences)"
}}

Question: "{question}"
Answer: "{answer or 'No Answer'}"
Candidate Resume Context: {resume_context or 'Not provided'}"""


def _is_real_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _bounded(data: dict) -> EvaluationResult:
    score = data.get("score")
    if not _is_real_number(score) or score < MIN_SCORE or score > MAX_SCORE:
        score = 0
    feedback = data.get("feedback")
    if not isinstance(feedback, str) or not feedback.strip():
        feedback = NO_FEEDBACK
    return EvaluationResult(score=score, feedback=feedback)


def heuristic_score(answer: Optional[str]) -> EvaluationResult:
    """Length/keyword based score used when the model output is unusable."""
    text = (answer or "").lower()
    if not text or len(text) < 10 or any(marker in text for marker in VAGUE_MARKERS):
        return EvaluationResult(score=0, feedback=FEEDBACK_NO_UNDERSTANDING)
    if len(text) < 50:
        return EvaluationResult(score=2, feedback=FEEDBACK_TOO_BRIEF)
    if len(text) < 100:
        return EvaluationResult(score=4, feedback=FEEDBACK_LACKS_DEPTH)
    return EvaluationResult(score=5, feedback=FEEDBACK_NOT_EVALUATED)


def _parse_evaluation(text: str) -> ParseResult:
    result = parse_json(text)
    if not result.ok and text:
        result = extract_json_block(text, "{")
    return result


def evaluate(
    question: str,
    answer: Optional[str],
    resume_context: Optional[str],
    model_text: Optional[str],
) -> EvaluationResult:
    """Turn Gemini's evaluation text into a bounded score and feedback.

    ``model_text`` is empty when the model call itself failed. Anything that
    is not a JSON object carrying a ``score`` key falls through to
    :func:`heuristic_score`, so this never raises.
    """
    cleaned = sanitize(model_text)
    result = _parse_evaluation(cleaned)

    if result.ok and isinstance(result.value, dict) and "score" in result.value:
        return _bounded(result.value)

    reason = result.reason if not result.ok else "no score field in model output"
    logger.warning(
        "[EVAL] Gemini output unusable (%s), fallback used for question %r",
        reason,
        (question or "")[:80],
    )
    logger.debug("[EVAL] Raw model text: %r", model_text)
    return heuristic_score(answer)
