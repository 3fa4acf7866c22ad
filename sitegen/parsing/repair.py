"""Structural repair of truncated JSON objects.

Models stop mid-answer when they hit their output budget. The repairs here
are small and ordered; each one only removes an incomplete trailing fragment
or closes open structure, it never invents a value:

1. ``close_string``          - text ends inside a string: append the quote
2. ``drop_dangling_field``   - strip a half-written trailing member
3. ``close_brackets``        - append closers for unmatched ``[`` / ``{``
4. ``strip_trailing_commas`` - remove commas directly before a closer

Parsing is retried after steps 1-3 combined, then after step 4. Text that
already parses is returned untouched with no steps, so repairing a repaired
text is a no-op.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..errors import UnrecoverableOutput

_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_LITERALS = ("true", "false", "null")
_LITERAL_END = " \t\r\n,:]}"


class RepairStep(str, Enum):
    CLOSE_STRING = "close_string"
    DROP_DANGLING_FIELD = "drop_dangling_field"
    CLOSE_BRACKETS = "close_brackets"
    STRIP_TRAILING_COMMAS = "strip_trailing_commas"


@dataclass(frozen=True)
class RepairResult:
    text: str
    data: Any
    steps: tuple[RepairStep, ...] = ()


@dataclass
class _Frame:
    """One open container. ``member_start`` is where its current member begins."""

    kind: str
    state: str
    member_start: int


@dataclass
class _Scan:
    stack: list[_Frame] = field(default_factory=list)
    in_string: bool = False
    string_role: Optional[str] = None
    escape_start: Optional[int] = None
    literal_start: Optional[int] = None


def parse_json(text: str) -> Any:
    """Parse JSON, tolerating raw control characters inside strings."""
    return json.loads(text, strict=False)


def _scan(text: str) -> _Scan:
    """Walk the text once, tracking open containers and string state."""
    scan = _Scan()
    i = 0
    n = len(text)

    def end_literal() -> None:
        if scan.literal_start is not None:
            scan.literal_start = None
            if scan.stack:
                scan.stack[-1].state = "after_value"

    while i < n:
        ch = text[i]

        if scan.in_string:
            if ch == "\\":
                if i + 1 >= n:
                    scan.escape_start = i
                    break
                if text[i + 1] == "u" and i + 6 > n:
                    scan.escape_start = i
                    break
                i += 6 if text[i + 1] == "u" else 2
                continue
            if ch == '"':
                scan.in_string = False
                if scan.stack:
                    top = scan.stack[-1]
                    top.state = "colon" if scan.string_role == "key" else "after_value"
            i += 1
            continue

        if ch in _LITERAL_END:
            end_literal()

        top = scan.stack[-1] if scan.stack else None
        if ch == '"':
            scan.in_string = True
            if top is not None and top.kind == "{" and top.state == "key":
                scan.string_role = "key"
            else:
                scan.string_role = "value"
        elif ch in "{[":
            scan.stack.append(
                _Frame(kind=ch, state="key" if ch == "{" else "value", member_start=i + 1)
            )
        elif ch in "}]":
            if top is not None and top.kind == ("{" if ch == "}" else "["):
                scan.stack.pop()
                if scan.stack:
                    scan.stack[-1].state = "after_value"
        elif ch == ",":
            if top is not None:
                top.state = "key" if top.kind == "{" else "value"
                top.member_start = i
        elif ch == ":":
            if top is not None:
                top.state = "value"
        elif not ch.isspace() and scan.literal_start is None:
            scan.literal_start = i
            if top is not None:
                top.state = "literal"
        i += 1

    return scan


def _literal_is_complete(token: str) -> bool:
    return token in _LITERALS or _NUMBER_RE.fullmatch(token) is not None


def _has_dangling_member(scan: _Scan, text: str) -> bool:
    top = scan.stack[-1]
    if scan.in_string:
        # An unterminated array element is kept once closed
        return scan.string_role == "key" or top.kind == "{"
    if top.kind == "{" and top.state in ("colon", "value"):
        return True
    if top.state == "literal" and scan.literal_start is not None:
        return not _literal_is_complete(text[scan.literal_start:].strip())
    return False


def strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede ``}`` or ``]`` outside strings."""
    out = []
    in_string = False
    escaped = False
    n = len(text)
    for i, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] in "}]":
                continue
        out.append(ch)
    return "".join(out)


def repair(text: str) -> RepairResult:
    """Repair a truncated JSON candidate.

    Raises:
        UnrecoverableOutput: If the text still fails to parse after all steps
    """
    try:
        return RepairResult(text=text, data=parse_json(text))
    except json.JSONDecodeError:
        pass

    scan = _scan(text)
    steps: list[RepairStep] = []
    fixed = text

    if scan.in_string:
        if scan.escape_start is not None:
            fixed = fixed[: scan.escape_start]
        fixed += '"'
        steps.append(RepairStep.CLOSE_STRING)

    if scan.stack and _has_dangling_member(scan, text):
        fixed = fixed[: scan.stack[-1].member_start].rstrip()
        steps.append(RepairStep.DROP_DANGLING_FIELD)

    closers = "".join("}" if frame.kind == "{" else "]" for frame in reversed(scan.stack))
    if closers:
        fixed += closers
        steps.append(RepairStep.CLOSE_BRACKETS)

    if steps:
        try:
            return RepairResult(text=fixed, data=parse_json(fixed), steps=tuple(steps))
        except json.JSONDecodeError:
            pass

    stripped = strip_trailing_commas(fixed)
    if stripped != fixed:
        steps.append(RepairStep.STRIP_TRAILING_COMMAS)
        try:
            return RepairResult(text=stripped, data=parse_json(stripped), steps=tuple(steps))
        except json.JSONDecodeError as e:
            raise UnrecoverableOutput(f"still invalid after repair: {e}") from e

    raise UnrecoverableOutput("no repair step produced valid JSON")
