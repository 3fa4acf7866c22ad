"""Validate a parsed candidate for a content unit, with one recovery attempt."""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError

from ..models import ContentUnitType
from .recovery import recover
from .schemas import SCHEMAS, UnitModel


@dataclass(frozen=True)
class FieldError:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of validation.

    ``unit`` is set when the candidate is usable. ``applied_fixes`` is
    non-empty only when recovery was needed to get there.
    """

    unit: Optional[UnitModel] = None
    applied_fixes: tuple[str, ...] = ()
    errors: tuple[FieldError, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return self.unit is not None

    @property
    def recovered(self) -> bool:
        return self.unit is not None and bool(self.applied_fixes)


def _format_loc(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def field_errors(exc: ValidationError) -> tuple[FieldError, ...]:
    return tuple(FieldError(_format_loc(err["loc"]), err["msg"]) for err in exc.errors())


def validate_unit(candidate: dict, unit_type: ContentUnitType) -> ValidationReport:
    """Strict validation first; on failure, one recovery pass and one re-validation."""
    schema = SCHEMAS[unit_type]
    try:
        return ValidationReport(unit=schema.model.model_validate(candidate))
    except ValidationError as e:
        first_errors = field_errors(e)

    fixed, fixes = recover(candidate, schema)
    if not fixes:
        return ValidationReport(errors=first_errors)

    try:
        unit = schema.model.model_validate(fixed)
    except ValidationError as e:
        return ValidationReport(applied_fixes=tuple(fixes), errors=field_errors(e))
    return ValidationReport(unit=unit, applied_fixes=tuple(fixes))
