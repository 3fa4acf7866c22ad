"""Model transports.

A transport sends one (system, user) prompt pair and returns the raw text
plus token usage, or raises a ``TransportError`` subclass. LiteLLM is the
default and covers OpenRouter, OpenAI, Gemini and Anthropic model ids;
the Anthropic SDK transport is available for direct Claude access.
"""

import logging
from typing import Any, Optional, Protocol

import anthropic
import litellm

from ..config.profiles import UnitProfile
from ..errors import (
    AuthenticationFailure,
    InvalidRequest,
    NetworkFailure,
    RateLimited,
    TransportError,
    TransportTimeout,
    UpstreamFailure,
)
from ..models import RawModelResponse, UsageRecord

logger = logging.getLogger(__name__)

# Suppress verbose LiteLLM logging
litellm.set_verbose = False
logging.getLogger("LiteLLM").setLevel(logging.WARNING)


class Transport(Protocol):
    """Anything that can turn a prompt pair into a raw model response."""

    async def call(self, system_text: str, user_text: str, profile: UnitProfile) -> RawModelResponse:
        ...


def _map_litellm_error(exc: Exception) -> TransportError:
    # Timeout subclasses APIConnectionError in litellm; check it first
    if isinstance(exc, litellm.Timeout):
        return TransportTimeout(str(exc))
    if isinstance(exc, litellm.RateLimitError):
        return RateLimited(str(exc))
    if isinstance(exc, litellm.AuthenticationError):
        return AuthenticationFailure(str(exc))
    if isinstance(exc, litellm.BadRequestError):
        return InvalidRequest(str(exc))
    if isinstance(exc, litellm.APIConnectionError):
        return NetworkFailure(str(exc))
    return UpstreamFailure(str(exc))


def _map_anthropic_error(exc: Exception) -> TransportError:
    if isinstance(exc, anthropic.APITimeoutError):
        return TransportTimeout(str(exc))
    if isinstance(exc, anthropic.APIConnectionError):
        return NetworkFailure(str(exc))
    if isinstance(exc, anthropic.RateLimitError):
        return RateLimited(str(exc))
    if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return AuthenticationFailure(str(exc))
    if isinstance(exc, anthropic.BadRequestError):
        return InvalidRequest(str(exc))
    return UpstreamFailure(str(exc))


class LiteLLMTransport:
    """Transport backed by ``litellm.acompletion``."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        json_mode: bool = True,
    ):
        self.model = model
        self.api_key = api_key or None
        self.api_base = api_base or None
        self.json_mode = json_mode

    async def call(self, system_text: str, user_text: str, profile: UnitProfile) -> RawModelResponse:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_text},
                {"role": "user", "content": user_text},
            ],
            "max_tokens": profile.max_tokens,
            "temperature": profile.temperature,
            "timeout": profile.timeout_seconds,
        }
        if self.json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            raise _map_litellm_error(e) from e

        choice = response.choices[0]
        usage = getattr(response, "usage", None)
        return RawModelResponse(
            text=choice.message.content or "",
            usage=UsageRecord(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
            model=getattr(response, "model", None) or self.model,
            finish_reason=getattr(choice, "finish_reason", None),
        )


class AnthropicTransport:
    """Transport backed by the Anthropic SDK."""

    def __init__(self, model: str, client: Optional[anthropic.AsyncAnthropic] = None, api_key: str = ""):
        self.model = model
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key or None, max_retries=0)

    async def call(self, system_text: str, user_text: str, profile: UnitProfile) -> RawModelResponse:
        try:
            response = await self.client.messages.create(
                model=self.model,
                system=system_text,
                messages=[{"role": "user", "content": user_text}],
                max_tokens=profile.max_tokens,
                temperature=min(profile.temperature, 1.0),
                timeout=profile.timeout_seconds,
            )
        except Exception as e:
            raise _map_anthropic_error(e) from e

        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        finish_reason = "length" if response.stop_reason == "max_tokens" else response.stop_reason
        return RawModelResponse(
            text=text,
            usage=UsageRecord(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
            ),
            model=response.model,
            finish_reason=finish_reason,
        )


def create_transport(settings) -> Transport:
    """Build the configured transport from settings."""
    provider = settings.llm_provider.lower()
    if provider == "anthropic":
        logger.info("[TRANSPORT] Using Anthropic SDK with %s", settings.generation_model)
        return AnthropicTransport(model=settings.generation_model, api_key=settings.anthropic_api_key)
    if provider == "litellm":
        logger.info("[TRANSPORT] Using LiteLLM with %s", settings.generation_model)
        api_key = settings.openrouter_api_key if settings.generation_model.startswith("openrouter/") else None
        return LiteLLMTransport(
            model=settings.generation_model,
            api_key=api_key,
            api_base=settings.llm_api_base,
            json_mode=settings.json_mode,
        )
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")
