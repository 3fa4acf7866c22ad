from .recovery import recover, truncate_text
from .schemas import SCHEMAS, Theme, UnitSchema
from .validator import FieldError, ValidationReport, validate_unit

__all__ = [
    "SCHEMAS",
    "FieldError",
    "Theme",
    "UnitSchema",
    "ValidationReport",
    "recover",
    "truncate_text",
    "validate_unit",
]
