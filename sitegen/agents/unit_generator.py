"""Generate one content unit: prompt, model call, extraction, validation.

``generate`` never raises for problems local to the unit. Transport
failures, unparseable output and schema violations all come back as a
``Failed`` outcome carrying the usage spent so far.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..config.profiles import UnitProfile, load_unit_profiles
from ..errors import MalformedOutputError, TransportError, TransportTimeout, UpstreamFailure
from ..models import ContentUnitType, GenerationRequest, RawModelResponse, Theme, UsageRecord
from ..parsing.extractor import extract
from ..prompts.builder import PromptPair, build_prompt
from ..utils.llm_client import Transport
from ..validation.validator import validate_unit
from .observer import PipelineObserver, notify
from .outcomes import Failed, FailureReason, NotApplicable, Recovered, Success, UnitOutcome

logger = logging.getLogger(__name__)

_FENCED_NULL_RE = re.compile(r"^```(?:json)?\s*null\s*```$", re.IGNORECASE)


@dataclass
class _Tally:
    """Usage and call count accumulated across attempts for one unit."""

    usage: UsageRecord = UsageRecord()
    calls: int = 0


def _declined(text: str) -> bool:
    bare = text.strip()
    return bare == "null" or _FENCED_NULL_RE.match(bare) is not None


class UnitGenerator:
    """Runs the full generate-and-validate sequence for a single unit."""

    def __init__(
        self,
        transport: Transport,
        profiles: Optional[dict[ContentUnitType, UnitProfile]] = None,
        observer: Optional[PipelineObserver] = None,
    ):
        self.transport = transport
        self.profiles = profiles or load_unit_profiles()
        self.observer = observer or PipelineObserver()

    async def generate(
        self,
        unit_type: ContentUnitType,
        request: GenerationRequest,
        theme: Optional[Theme] = None,
    ) -> UnitOutcome:
        """Generate and validate one unit.

        Args:
            unit_type: Unit to generate
            request: Business facts for the job
            theme: Foundation branding for section units (defaults to ``request.theme``)

        Returns:
            Success, Recovered, Failed or NotApplicable
        """
        profile = self.profiles[unit_type]
        prompt = build_prompt(unit_type, request, theme, profile)
        tally = _Tally()

        try:
            response = await self._call_with_retries(unit_type, prompt, profile, tally)
        except TransportError as e:
            outcome = Failed(
                unit_type=unit_type,
                reason=FailureReason.TRANSPORT_EXHAUSTED,
                detail=f"{type(e).__name__}: {e}",
                usage=tally.usage,
                calls=tally.calls,
            )
        else:
            if (
                response.finish_reason == "length"
                and unit_type is ContentUnitType.FOUNDATION
                and profile.length_retry_max_tokens
            ):
                response = await self._escalate(unit_type, prompt, profile, tally, response)
            outcome = self._interpret(unit_type, response.text, tally)

        notify(self.observer, "on_unit_outcome", unit_type, outcome)
        return outcome

    async def _attempt(self, prompt: PromptPair, profile: UnitProfile) -> RawModelResponse:
        """One transport call under the unit's deadline."""
        try:
            return await asyncio.wait_for(
                self.transport.call(prompt.system, prompt.user, profile),
                timeout=profile.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransportTimeout(f"no response within {profile.timeout_seconds}s") from e
        except TransportError:
            raise
        except Exception as e:
            logger.exception("[TRANSPORT] Unexpected error from transport")
            raise UpstreamFailure(str(e)) from e

    async def _call_with_retries(
        self,
        unit_type: ContentUnitType,
        prompt: PromptPair,
        profile: UnitProfile,
        tally: _Tally,
    ) -> RawModelResponse:
        attempts = profile.retries + 1
        last_error: Optional[TransportError] = None
        for attempt in range(1, attempts + 1):
            tally.calls += 1
            try:
                response = await self._attempt(prompt, profile)
            except TransportError as e:
                if not e.retryable:
                    raise
                last_error = e
                if attempt < attempts:
                    notify(self.observer, "on_transport_retry", unit_type, attempt, e)
                continue
            tally.usage += response.usage
            return response
        raise last_error

    async def _escalate(
        self,
        unit_type: ContentUnitType,
        prompt: PromptPair,
        profile: UnitProfile,
        tally: _Tally,
        truncated: RawModelResponse,
    ) -> RawModelResponse:
        """Retry once with a larger output budget after a length cut-off."""
        larger = profile.with_max_tokens(profile.length_retry_max_tokens)
        logger.info(
            "[UNIT] %s hit the output limit at %d tokens, retrying with %d",
            unit_type.value,
            profile.max_tokens,
            larger.max_tokens,
        )
        tally.calls += 1
        try:
            response = await self._attempt(prompt, larger)
        except TransportError as e:
            logger.warning(
                "[UNIT] %s length retry failed (%s), using the truncated response",
                unit_type.value,
                e,
            )
            return truncated
        tally.usage += response.usage
        return response

    def _interpret(self, unit_type: ContentUnitType, text: str, tally: _Tally) -> UnitOutcome:
        optional = not unit_type.is_required
        if optional and _declined(text):
            return NotApplicable(unit_type=unit_type, usage=tally.usage, calls=tally.calls)

        try:
            extraction = extract(text)
        except MalformedOutputError as e:
            return Failed(
                unit_type=unit_type,
                reason=FailureReason.MALFORMED_OUTPUT,
                detail=str(e),
                usage=tally.usage,
                calls=tally.calls,
            )

        if optional and extraction.data == {}:
            return NotApplicable(unit_type=unit_type, usage=tally.usage, calls=tally.calls)

        for step in extraction.repair_steps:
            notify(self.observer, "on_repair_applied", unit_type, step)

        report = validate_unit(extraction.data, unit_type)
        if not report.valid:
            return Failed(
                unit_type=unit_type,
                reason=FailureReason.SCHEMA_INVALID,
                detail=f"{len(report.errors)} field error(s)",
                field_errors=report.errors,
                usage=tally.usage,
                calls=tally.calls,
            )

        fixes = tuple(f"repair: {step.value}" for step in extraction.repair_steps)
        fixes += report.applied_fixes
        if fixes:
            return Recovered(
                unit_type=unit_type,
                unit=report.unit,
                applied_fixes=fixes,
                usage=tally.usage,
                calls=tally.calls,
            )
        return Success(unit_type=unit_type, unit=report.unit, usage=tally.usage, calls=tally.calls)
