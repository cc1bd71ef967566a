from __future__ import annotations

import json
import re
from dataclasses import dataclass

from warmwelcome.errors import ParsingError

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class GeneratedEmail:
    subject: str
    html: str
    text: str


def html_to_text(html: str) -> str:
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def parse_model_response(raw_text: str) -> GeneratedEmail:
    """Pull the ``{subject, html, text}`` object out of a model completion.

    Models sometimes wrap the JSON in prose or fences, so the span from the
    first ``{`` to the last ``}`` is parsed. That scan is not string-aware: a
    stray ``}`` after the real object (for example in trailing prose) makes
    the slice invalid and the response is rejected.
    """
    trimmed = (raw_text or "").strip()
    first_brace = trimmed.find("{")
    last_brace = trimmed.rfind("}")
    if first_brace == -1 or last_brace == -1 or last_brace < first_brace:
        raise ParsingError(message="no JSON object found")

    try:
        parsed = json.loads(trimmed[first_brace : last_brace + 1])
    except ValueError as exc:
        raise ParsingError(message=f"invalid JSON in model response: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ParsingError(message="missing subject or html")
    subject = parsed.get("subject")
    html = parsed.get("html")
    if not subject or not html or not isinstance(subject, str) or not isinstance(html, str):
        raise ParsingError(message="missing subject or html")

    text = parsed.get("text")
    if not isinstance(text, str) or not text:
        text = html_to_text(html)
    return GeneratedEmail(subject=subject, html=html, text=text)
