"""Per-unit generation outcomes.

Every outcome carries the token usage and transport call count spent on
the unit, whether or not it succeeded.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from ..models import ContentUnitType, UsageRecord
from ..validation.schemas import UnitModel
from ..validation.validator import FieldError


class FailureReason(str, Enum):
    TRANSPORT_EXHAUSTED = "transport_exhausted"
    MALFORMED_OUTPUT = "malformed_output"
    SCHEMA_INVALID = "schema_invalid"


@dataclass(frozen=True)
class Success:
    """Validated on the first pass with no repair."""

    unit_type: ContentUnitType
    unit: UnitModel
    usage: UsageRecord = UsageRecord()
    calls: int = 0

    kind: ClassVar[str] = "success"
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Recovered:
    """Usable, but only after structural repair or a recovery pass."""

    unit_type: ContentUnitType
    unit: UnitModel
    applied_fixes: tuple[str, ...] = ()
    usage: UsageRecord = UsageRecord()
    calls: int = 0

    kind: ClassVar[str] = "recovered"
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Failed:
    unit_type: ContentUnitType
    reason: FailureReason
    detail: str = ""
    field_errors: tuple[FieldError, ...] = ()
    usage: UsageRecord = UsageRecord()
    calls: int = 0

    kind: ClassVar[str] = "failed"
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class NotApplicable:
    """An optional unit the model declined (answered ``null`` or ``{}``)."""

    unit_type: ContentUnitType
    usage: UsageRecord = UsageRecord()
    calls: int = 0

    kind: ClassVar[str] = "not_applicable"
    ok: ClassVar[bool] = False


UnitOutcome = Union[Success, Recovered, Failed, NotApplicable]
