"""Observation hooks for the pipeline.

The core calls these hooks instead of logging directly, so callers can
route events to logs, metrics or tests. ``PipelineObserver`` ignores
everything; ``LoggingObserver`` writes the events to the module logger.
Hooks are dispatched through ``notify``, so an observer that raises cannot
fail a unit or the job.
"""

import logging

from ..errors import TransportError
from ..models import ContentUnitType
from ..parsing.repair import RepairStep
from .outcomes import Failed, Recovered, UnitOutcome

logger = logging.getLogger(__name__)


class PipelineObserver:
    """No-op observer. Subclass and override what you need."""

    def on_stage(self, stage) -> None:
        pass

    def on_transport_retry(self, unit_type: ContentUnitType, attempt: int, error: TransportError) -> None:
        pass

    def on_repair_applied(self, unit_type: ContentUnitType, step: RepairStep) -> None:
        pass

    def on_unit_outcome(self, unit_type: ContentUnitType, outcome: UnitOutcome) -> None:
        pass


class LoggingObserver(PipelineObserver):
    """Writes pipeline events to the log."""

    def on_stage(self, stage) -> None:
        logger.info("[PIPELINE] Stage -> %s", getattr(stage, "value", stage))

    def on_transport_retry(self, unit_type: ContentUnitType, attempt: int, error: TransportError) -> None:
        logger.warning(
            "[UNIT] %s attempt %d failed (%s: %s), retrying",
            unit_type.value,
            attempt,
            type(error).__name__,
            error,
        )

    def on_repair_applied(self, unit_type: ContentUnitType, step: RepairStep) -> None:
        logger.info("[UNIT] %s output repaired: %s", unit_type.value, step.value)

    def on_unit_outcome(self, unit_type: ContentUnitType, outcome: UnitOutcome) -> None:
        if isinstance(outcome, Failed):
            logger.error(
                "[UNIT] %s failed (%s) after %d call(s): %s",
                unit_type.value,
                outcome.reason.value,
                outcome.calls,
                outcome.detail,
            )
            for err in outcome.field_errors[:5]:
                logger.error("[UNIT]   %s", err)
        elif isinstance(outcome, Recovered):
            logger.info(
                "[UNIT] %s recovered with %d fix(es): %s",
                unit_type.value,
                len(outcome.applied_fixes),
                "; ".join(outcome.applied_fixes),
            )
        else:
            logger.info("[UNIT] %s %s (%d call(s))", unit_type.value, outcome.kind, outcome.calls)


def notify(observer: PipelineObserver, hook: str, *args) -> None:
    """Call ``observer.<hook>(*args)``; a failing hook is logged, never raised."""
    try:
        getattr(observer, hook)(*args)
    except Exception:
        logger.exception("[UNIT] observer hook %s failed", hook)
