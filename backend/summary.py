import logging
from typing import Iterable, Optional

from errors import ModelCallError, SummaryGenerationError
from sanitizer import extract_string_field, parse_json, sanitize

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = (
    "Candidate completed the interview. Performance details available in individual feedbacks."
)


def build_summary_prompt(
    answers: Iterable[dict],
    resume_context: Optional[str],
    role: str,
) -> str:
    lines = "\n".join(
        f"{i}. Q: {a.get('question', '')} A: {a.get('answer') or ''} "
        f"Score: {a.get('score')} Feedback: {a.get('feedback', '')}"
        for i, a in enumerate(answers, start=1)
    )
    context = f"\nCandidate Resume Context: {resume_context}\n" if resume_context else ""
    return f"""You are an AI interview evaluator.

The candidate answered the following questions:
{lines}
{context}
Provide a concise 3-4 line professional summary of the candidate's performance, strengths, weaknesses, and overall readiness for a {role} role.
Return ONLY the summary text directly, no JSON formatting, no quotes, no brackets."""


def normalize_summary(text: Optional[str]) -> str:
    """Unwrap fenced or JSON-wrapped summaries down to plain prose."""
    cleaned = sanitize(text)
    if cleaned.startswith("{") and '"summary"' in cleaned:
        result = parse_json(cleaned)
        if result.ok:
            value = result.value.get("summary") if isinstance(result.value, dict) else None
            if isinstance(value, str) and value.strip():
                cleaned = value.strip()
        else:
            extracted = extract_string_field(cleaned, "summary")
            if extracted:
                cleaned = extracted.strip()
    return cleaned or FALLBACK_SUMMARY


async def compose(
    answers: list[dict],
    resume_context: Optional[str],
    client,
    role: str = "Full Stack (React/Node.js)",
) -> str:
    prompt = build_summary_prompt(answers, resume_context, role)
    try:
        text = await client.generate(prompt)
    except ModelCallError as e:
        raise SummaryGenerationError("Failed to generate AI summary") from e
    if not text or not text.strip():
        raise SummaryGenerationError("Gemini returned an empty summary")

    logger.debug("[SUMMARY] Raw model text: %r", text)
    summary = normalize_summary(text)
    logger.info("[SUMMARY] Summary generated (%d chars)", len(summary))
    return summary
