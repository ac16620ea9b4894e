"""Cleanup and parsing helpers for raw model text.

Gemini is asked for bare JSON but regularly wraps it in markdown fences or
surrounds it with prose. Nothing in here raises: parse helpers return either
``Parsed`` or ``ParseFailure`` and the caller picks the fallback.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

FENCE = "```"
_LANG_TAG_RE = re.compile(r"[A-Za-z0-9_+.#-]+")


@dataclass(frozen=True)
class Parsed:
    value: Any
    ok: bool = True


@dataclass(frozen=True)
class ParseFailure:
    raw: str
    reason: str
    ok: bool = False


ParseResult = Union[Parsed, ParseFailure]


def _strip_opening_fence(text: str) -> str:
    rest = text[len(FENCE):]
    match = _LANG_TAG_RE.match(rest)
    if match and (match.end() == len(rest) or rest[match.end()] in "\r\n"):
        return rest[match.end():]
    # "```json{...}" with no newline after the tag
    if rest[:4].lower() == "json" and (len(rest) == 4 or not rest[4].isalnum()):
        return rest[4:]
    return rest


def sanitize(raw: Optional[str]) -> str:
    """Strip leading/trailing code fences and whitespace from model output."""
    text = (raw or "").strip()
    while True:
        stripped = text
        if stripped.startswith(FENCE):
            stripped = _strip_opening_fence(stripped).strip()
        if stripped.endswith(FENCE):
            stripped = stripped[: -len(FENCE)].strip()
        if stripped == text:
            return text
        text = stripped


def parse_json(text: str) -> ParseResult:
    if not text or not text.strip():
        return ParseFailure(raw=text or "", reason="empty response")
    try:
        return Parsed(json.loads(text))
    except json.JSONDecodeError as e:
        return ParseFailure(raw=text, reason=f"invalid JSON: {e.msg}")


def extract_json_block(text: str, opener: str = "{") -> ParseResult:
    """Parse the outermost ``{...}`` (or ``[...]``) span embedded in ``text``."""
    closer = "}" if opener == "{" else "]"
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        return ParseFailure(raw=text, reason=f"no {opener}{closer} block found")
    return parse_json(text[start:end + 1])


def extract_string_field(text: str, field: str) -> Optional[str]:
    """Pull ``"field": "..."`` out of text that does not parse as JSON."""
    pattern = rf'"{re.escape(field)}"\s*:\s*"((?:[^"\\]|\\.)+)"'
    match = re.search(pattern, text)
    if not match:
        return None
    value = match.group(1)
    try:
        return json.loads(f'"{value}"')
    except json.JSONDecodeError:
        return value
