"""Cost tracking utilities for model calls.

Tracks token usage per content unit and converts the job total to whole
cents, always rounding up.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import litellm

from ..models import UsageRecord

logger = logging.getLogger(__name__)

_MILLION = Decimal(1_000_000)
_USD_TO_CENTS = Decimal(100)


@dataclass(frozen=True)
class RateTable:
    """Per-million-token prices in cents."""

    prompt_cents_per_million: Decimal = Decimal(0)
    completion_cents_per_million: Decimal = Decimal(0)

    @classmethod
    def from_litellm(cls, model: str) -> "RateTable":
        """Look up prices in LiteLLM's model table. Unknown models cost nothing."""
        info = litellm.model_cost.get(model)
        if info is None and "/" in model:
            info = litellm.model_cost.get(model.split("/", 1)[1])
        if not info:
            logger.warning("No pricing for model %s, costs will be reported as 0", model)
            return cls()
        # LiteLLM stores USD per token
        per_token_in = Decimal(str(info.get("input_cost_per_token") or 0))
        per_token_out = Decimal(str(info.get("output_cost_per_token") or 0))
        return cls(
            prompt_cents_per_million=per_token_in * _MILLION * _USD_TO_CENTS,
            completion_cents_per_million=per_token_out * _MILLION * _USD_TO_CENTS,
        )

    @classmethod
    def from_settings(cls, settings) -> "RateTable":
        """Explicit rates from settings; anything unset comes from LiteLLM."""
        prompt_rate = settings.prompt_cents_per_million
        completion_rate = settings.completion_cents_per_million
        if prompt_rate is not None and completion_rate is not None:
            return cls(Decimal(str(prompt_rate)), Decimal(str(completion_rate)))

        looked_up = cls.from_litellm(settings.generation_model)
        return cls(
            prompt_cents_per_million=(
                Decimal(str(prompt_rate)) if prompt_rate is not None else looked_up.prompt_cents_per_million
            ),
            completion_cents_per_million=(
                Decimal(str(completion_rate))
                if completion_rate is not None
                else looked_up.completion_cents_per_million
            ),
        )


def calculate_cost_cents(usage: UsageRecord, rates: RateTable) -> int:
    """Exact cost in cents, rounded up to the next whole cent."""
    cost = (
        Decimal(usage.prompt_tokens) * rates.prompt_cents_per_million / _MILLION
        + Decimal(usage.completion_tokens) * rates.completion_cents_per_million / _MILLION
    )
    return math.ceil(cost)


@dataclass
class UnitCost:
    """Usage data for a single content unit."""

    unit_name: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    call_count: int = 0


@dataclass
class PipelineCosts:
    """Aggregate usage tracking for a whole generation job."""

    rates: RateTable = field(default_factory=RateTable)
    units: dict[str, UnitCost] = field(default_factory=dict)

    def add_usage(self, unit_name: str, model: str, usage: UsageRecord, calls: int) -> None:
        """Add usage from one unit's calls (retries included).

        Args:
            unit_name: Content unit the calls were made for
            model: Model identifier used for the calls
            usage: Summed token usage across those calls
            calls: Number of transport calls made
        """
        if unit_name not in self.units:
            self.units[unit_name] = UnitCost(unit_name=unit_name, model=model)

        unit = self.units[unit_name]
        unit.input_tokens += usage.prompt_tokens
        unit.output_tokens += usage.completion_tokens
        unit.call_count += calls

    def total_usage(self) -> UsageRecord:
        """Return total usage across all units."""
        return UsageRecord(
            prompt_tokens=sum(u.input_tokens for u in self.units.values()),
            completion_tokens=sum(u.output_tokens for u in self.units.values()),
        )

    def total_calls(self) -> int:
        return sum(u.call_count for u in self.units.values())

    def total_cost_cents(self) -> int:
        """Cost of the job total. Rounded once, not per unit."""
        return calculate_cost_cents(self.total_usage(), self.rates)

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        total = self.total_usage()
        return {
            "total_cost_cents": self.total_cost_cents(),
            "total_input_tokens": total.prompt_tokens,
            "total_output_tokens": total.completion_tokens,
            "total_calls": self.total_calls(),
            "units": {
                name: {
                    "model": unit.model,
                    "input_tokens": unit.input_tokens,
                    "output_tokens": unit.output_tokens,
                    "call_count": unit.call_count,
                    "cost_cents": calculate_cost_cents(
                        UsageRecord(unit.input_tokens, unit.output_tokens), self.rates
                    ),
                }
                for name, unit in self.units.items()
            },
        }
