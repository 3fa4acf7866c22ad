"""Find the JSON object inside a model's free-form answer.

Models wrap JSON in markdown fences, chat around it, or stop halfway
through. Candidates are tried in a fixed order and the first one that
parses as an object wins:

1. the interior of the first fenced block
2. each balanced ``{...}`` span, in order
3. the whole trimmed text, if it looks like an object
4. a truncation candidate: text from the first ``{`` that never closes

If none parses directly, each candidate goes through ``repair`` in the
same order.
"""

import json
import re
from dataclasses import dataclass
from typing import Optional

from ..errors import CandidateNotFound, UnrecoverableOutput
from .repair import RepairStep, parse_json, repair

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)
_OPEN_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?")
_MAX_SPANS = 8


@dataclass(frozen=True)
class Extraction:
    """A parsed object plus how we got it."""

    data: dict
    source: str
    repair_steps: tuple[RepairStep, ...] = ()

    @property
    def repaired(self) -> bool:
        return bool(self.repair_steps)


def _span_from(text: str, start: int) -> Optional[str]:
    """Return the complete ``{...}`` span opened at ``start``, skipping braces inside strings."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _balanced_spans(text: str) -> list[str]:
    """Closed ``{...}`` spans in order of appearance, at most ``_MAX_SPANS``.

    Scanning stops at the first opener that never closes: every later
    opener is nested inside it.
    """
    spans = []
    start = text.find("{")
    while start != -1 and len(spans) < _MAX_SPANS:
        span = _span_from(text, start)
        if span is None:
            break
        spans.append(span)
        start = text.find("{", start + len(span))
    return spans


def _truncation_candidate(text: str) -> Optional[str]:
    """Text from the first ``{`` that never closes, unless it ends with ``}``."""
    body = text
    fence = _OPEN_FENCE_RE.search(body)
    if fence is not None and "```" not in body[fence.end() :]:
        body = body[fence.end() :]
    start = body.find("{")
    while start != -1:
        span = _span_from(body, start)
        if span is None:
            break
        start = body.find("{", start + len(span))
    if start == -1:
        return None
    body = body[start:].rstrip()
    if body.endswith("}"):
        return None
    return body


def find_candidates(raw_text: str) -> list[tuple[str, str]]:
    """List ``(source, text)`` candidates in priority order, without duplicates."""
    text = raw_text.strip()
    found: list[tuple[str, str]] = []

    fence = _FENCE_RE.search(text)
    if fence is not None:
        found.append(("fenced_block", fence.group(1).strip()))

    for span in _balanced_spans(text):
        found.append(("balanced_braces", span))

    if text.startswith("{") and text.endswith("}"):
        found.append(("whole_text", text))

    truncated = _truncation_candidate(text)
    if truncated is not None:
        found.append(("truncated", truncated))

    unique = []
    seen = set()
    for source, candidate in found:
        if candidate and candidate not in seen:
            seen.add(candidate)
            unique.append((source, candidate))
    return unique


def extract(raw_text: str) -> Extraction:
    """Extract a JSON object from raw model output.

    Raises:
        CandidateNotFound: If the text holds nothing that looks like an object
        UnrecoverableOutput: If candidates exist but none parses, even repaired
    """
    candidates = find_candidates(raw_text or "")
    if not candidates:
        raise CandidateNotFound("no JSON object in model output")

    for source, candidate in candidates:
        try:
            data = parse_json(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return Extraction(data=data, source=source)

    for source, candidate in candidates:
        try:
            result = repair(candidate)
        except UnrecoverableOutput:
            continue
        if isinstance(result.data, dict):
            return Extraction(data=result.data, source=source, repair_steps=result.steps)

    raise UnrecoverableOutput(f"none of {len(candidates)} candidate(s) could be parsed")
