"""One bounded correction pass over a candidate that failed validation.

Every fix only shortens, normalizes or removes what the model produced:

- unknown keys are dropped
- ``null`` / empty values of optional fields are dropped
- malformed hex colors are normalized (``f57`` -> ``#FF5577``)
- over-length strings are cut to ``max - 3`` characters plus ``...``
- arrays above their maximum are trimmed from the tail

Arrays below their minimum and missing required fields are left as they
are, so the re-validation reports them.
"""

import copy
import re
from typing import Any, Optional

from .schemas import HEX_COLOR_PATTERN, FieldRule, UnitSchema

TRUNCATION_MARKER = "..."

_HEX_RE = re.compile(HEX_COLOR_PATTERN)
_NON_HEX_RE = re.compile(r"[^0-9A-Fa-f]")


def truncate_text(value: str, max_length: int) -> str:
    """Cut ``value`` to ``max_length`` characters, marker included."""
    if len(value) <= max_length:
        return value
    if max_length <= len(TRUNCATION_MARKER):
        return value[:max_length]
    return value[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def normalize_hex_color(value: str) -> Optional[str]:
    """Return ``#RRGGBB`` for loosely written colors, or None if hopeless."""
    digits = _NON_HEX_RE.sub("", value.strip().lstrip("#"))
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    if len(digits) != 6:
        return None
    return f"#{digits.upper()}"


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _Recovery:
    def __init__(self, schema: UnitSchema):
        self.schema = schema
        self.fixes: list[str] = []

    def walk_object(self, obj: dict, rule_path: str, shown_path: str) -> None:
        rule = self.schema.rule(rule_path)
        allowed = rule.keys if rule is not None else ()

        for key in list(obj):
            child_rule_path = f"{rule_path}.{key}" if rule_path else key
            child_shown = f"{shown_path}.{key}" if shown_path else key

            if key not in allowed:
                del obj[key]
                self.fixes.append(f"dropped unknown field {child_shown}")
                continue

            child_rule = self.schema.rule(child_rule_path)
            if child_rule is None:
                continue
            if not child_rule.required and _is_empty(obj[key]):
                del obj[key]
                self.fixes.append(f"dropped empty optional field {child_shown}")
                continue

            obj[key] = self.walk_value(obj[key], child_rule, child_shown)

    def walk_value(self, value: Any, rule: FieldRule, shown_path: str) -> Any:
        if rule.kind == "object" and isinstance(value, dict):
            self.walk_object(value, rule.path, shown_path)
        elif rule.kind == "array" and isinstance(value, list):
            if rule.max_length is not None and len(value) > rule.max_length:
                self.fixes.append(
                    f"trimmed {shown_path} from {len(value)} to {rule.max_length} items"
                )
                value = value[: rule.max_length]
            item_rule = self.schema.rule(f"{rule.path}[]")
            if item_rule is not None:
                value = [
                    self.walk_value(item, item_rule, f"{shown_path}[{i}]")
                    for i, item in enumerate(value)
                ]
        elif rule.kind == "string" and isinstance(value, str):
            if rule.path.endswith("_color") and not _HEX_RE.match(value):
                normalized = normalize_hex_color(value)
                if normalized is not None:
                    self.fixes.append(f"normalized color {shown_path} {value!r} -> {normalized}")
                    value = normalized
            if rule.max_length is not None and len(value) > rule.max_length:
                self.fixes.append(
                    f"truncated {shown_path} from {len(value)} to {rule.max_length} chars"
                )
                value = truncate_text(value, rule.max_length)
        return value


def recover(data: dict, schema: UnitSchema) -> tuple[dict, list[str]]:
    """Apply one recovery pass. Returns a corrected copy and the fixes applied."""
    recovery = _Recovery(schema)
    fixed = copy.deepcopy(data)
    recovery.walk_object(fixed, "", "")
    return fixed, recovery.fixes
