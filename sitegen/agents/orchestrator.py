"""Orchestrator for a full site generation job.

Manages the pipeline:
1. Generate the foundation (branding, hero, SEO); failure ends the job
2. Generate all sections concurrently with the foundation's theme
3. Join every section, then aggregate outcomes, usage and cost
4. Return the assembled result
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..config.profiles import UnitProfile, load_unit_profiles
from ..errors import FatalJobError
from ..models import SECTION_UNITS, ContentUnitType, GenerationRequest, UsageRecord
from ..utils.cost_tracker import PipelineCosts, RateTable
from ..utils.llm_client import Transport
from ..validation.schemas import (
    AboutSection,
    ContactSection,
    FeaturesSection,
    FoundationData,
    ServicesSection,
    TeamSection,
    TestimonialsSection,
    Theme,
    ValuesSection,
)
from .observer import PipelineObserver, notify
from .outcomes import Failed, NotApplicable, UnitOutcome
from .unit_generator import UnitGenerator

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    START = "start"
    FOUNDATION_PENDING = "foundation_pending"
    FOUNDATION_FAILED = "foundation_failed"
    SECTIONS_PENDING = "sections_pending"
    AGGREGATING = "aggregating"
    DONE = "done"


@dataclass(frozen=True)
class GenerationResult:
    """Full result from one generation job."""

    foundation: FoundationData
    about: AboutSection
    contact: ContactSection
    testimonials: TestimonialsSection
    values: Optional[ValuesSection] = None
    features: Optional[FeaturesSection] = None
    services: Optional[ServicesSection] = None
    team: Optional[TeamSection] = None
    failed_sections: tuple[str, ...] = ()
    skipped_sections: tuple[str, ...] = ()
    outcome_kinds: dict[str, str] = field(default_factory=dict)
    applied_fixes: dict[str, tuple[str, ...]] = field(default_factory=dict)
    usage: UsageRecord = UsageRecord()
    cost_cents: int = 0
    total_calls: int = 0
    costs: dict = field(default_factory=dict)
    run_timestamp: Optional[datetime] = None
    duration_seconds: float = 0.0

    @property
    def theme(self) -> Theme:
        return self.foundation.branding

    def section(self, unit_type: ContentUnitType):
        return getattr(self, unit_type.value)

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        sections = {}
        for unit_type in SECTION_UNITS:
            unit = self.section(unit_type)
            if unit is not None:
                sections[unit_type.value] = unit.model_dump(exclude_none=True)
        return {
            "foundation": self.foundation.model_dump(exclude_none=True),
            "sections": sections,
            "failed_sections": list(self.failed_sections),
            "skipped_sections": list(self.skipped_sections),
            "outcomes": dict(self.outcome_kinds),
            "applied_fixes": {k: list(v) for k, v in self.applied_fixes.items()},
            "usage": self.usage.to_dict(),
            "cost_cents": self.cost_cents,
            "total_calls": self.total_calls,
            "costs": self.costs,
            "run_timestamp": self.run_timestamp.isoformat() if self.run_timestamp else None,
            "duration_seconds": round(self.duration_seconds, 2),
        }


class SiteGenerationPipeline:
    """
    Runs the foundation-then-sections generation job.

    The foundation gates everything: no section call is made unless it
    succeeds. Sections run concurrently in a task group and are always
    joined in full; a failed optional section is reported, a failed
    required section ends the job.
    """

    def __init__(
        self,
        transport: Transport,
        profiles: Optional[dict[ContentUnitType, UnitProfile]] = None,
        observer: Optional[PipelineObserver] = None,
        rates: Optional[RateTable] = None,
        model: str = "",
    ):
        """
        Initialize pipeline.

        Args:
            transport: Model transport shared by all units
            profiles: Per-unit generation profiles (bundled units.yaml if omitted)
            observer: Event hooks; defaults to a no-op observer
            rates: Token prices for cost reporting (free if omitted)
            model: Model name recorded in the cost breakdown
        """
        self.observer = observer or PipelineObserver()
        self.generator = UnitGenerator(
            transport=transport,
            profiles=profiles or load_unit_profiles(),
            observer=self.observer,
        )
        self.rates = rates or RateTable()
        self.model = model or getattr(transport, "model", "")
        self.stage = PipelineStage.START

    def _enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        notify(self.observer, "on_stage", stage)

    async def run(self, request: GenerationRequest) -> GenerationResult:
        """
        Run the full generation job.

        Args:
            request: Business facts to generate the site from

        Returns:
            GenerationResult with every generated unit

        Raises:
            FatalJobError: If the foundation or a required section failed
        """
        run_start = datetime.now()
        t0 = time.time()
        costs = PipelineCosts(rates=self.rates)

        # Step 1: Foundation, alone
        self._enter(PipelineStage.FOUNDATION_PENDING)
        logger.info("[FOUNDATION] Generating foundation for %s", request.name or "unnamed business")
        foundation = await self.generator.generate(ContentUnitType.FOUNDATION, request)
        costs.add_usage(ContentUnitType.FOUNDATION.value, self.model, foundation.usage, foundation.calls)

        if not foundation.ok:
            self._enter(PipelineStage.FOUNDATION_FAILED)
            raise self._fatal(foundation, costs)

        theme = foundation.unit.branding
        logger.info("[FOUNDATION] Done (%s), theme primary %s", foundation.kind, theme.primary_color)

        # Step 2: Sections, concurrently
        self._enter(PipelineStage.SECTIONS_PENDING)
        logger.info("[SECTIONS] Generating %d sections in parallel", len(SECTION_UNITS))
        async with asyncio.TaskGroup() as group:
            tasks = {
                unit_type: group.create_task(self.generator.generate(unit_type, request, theme))
                for unit_type in SECTION_UNITS
            }
        outcomes: dict[ContentUnitType, UnitOutcome] = {
            unit_type: task.result() for unit_type, task in tasks.items()
        }

        # Step 3: Aggregate in fixed unit order
        self._enter(PipelineStage.AGGREGATING)
        for unit_type in SECTION_UNITS:
            outcome = outcomes[unit_type]
            costs.add_usage(unit_type.value, self.model, outcome.usage, outcome.calls)

        for unit_type in SECTION_UNITS:
            outcome = outcomes[unit_type]
            if unit_type.is_required and not outcome.ok:
                raise self._fatal(outcome, costs)

        units = {}
        failed_sections = []
        skipped_sections = []
        outcome_kinds = {}
        applied_fixes = {}
        for unit_type, outcome in [(ContentUnitType.FOUNDATION, foundation)] + [
            (u, outcomes[u]) for u in SECTION_UNITS
        ]:
            outcome_kinds[unit_type.value] = outcome.kind
            if outcome.ok:
                units[unit_type.value] = outcome.unit
                if getattr(outcome, "applied_fixes", ()):
                    applied_fixes[unit_type.value] = outcome.applied_fixes
            elif isinstance(outcome, NotApplicable):
                skipped_sections.append(unit_type.value)
            else:
                failed_sections.append(unit_type.value)

        if failed_sections:
            logger.warning("[SECTIONS] Optional sections failed: %s", ", ".join(failed_sections))
        if skipped_sections:
            logger.info("[SECTIONS] Not applicable: %s", ", ".join(skipped_sections))

        usage = costs.total_usage()
        result = GenerationResult(
            foundation=foundation.unit,
            about=units["about"],
            contact=units["contact"],
            testimonials=units["testimonials"],
            values=units.get("values"),
            features=units.get("features"),
            services=units.get("services"),
            team=units.get("team"),
            failed_sections=tuple(failed_sections),
            skipped_sections=tuple(skipped_sections),
            outcome_kinds=outcome_kinds,
            applied_fixes=applied_fixes,
            usage=usage,
            cost_cents=costs.total_cost_cents(),
            total_calls=costs.total_calls(),
            costs=costs.to_dict(),
            run_timestamp=run_start,
            duration_seconds=time.time() - t0,
        )
        self._enter(PipelineStage.DONE)
        logger.info(
            "[PIPELINE] Done in %.1fs: %d calls, %d tokens, %d cents",
            result.duration_seconds,
            result.total_calls,
            usage.total_tokens,
            result.cost_cents,
        )
        return result

    def _fatal(self, outcome: UnitOutcome, costs: PipelineCosts) -> FatalJobError:
        reason = outcome.reason if isinstance(outcome, Failed) else None
        detail = outcome.detail if isinstance(outcome, Failed) else outcome.kind
        field_errors = outcome.field_errors if isinstance(outcome, Failed) else ()
        logger.error("[PIPELINE] Job failed at %s: %s", outcome.unit_type.value, detail)
        return FatalJobError(
            unit_type=outcome.unit_type,
            reason=reason,
            detail=detail,
            stage=self.stage,
            usage=costs.total_usage(),
            total_calls=costs.total_calls(),
            field_errors=list(field_errors),
        )

    def run_sync(self, request: GenerationRequest) -> GenerationResult:
        """Synchronous wrapper for run."""
        return asyncio.run(self.run(request))
