"""Exception taxonomy for the generation pipeline.

Transport errors and malformed-output errors are unit-local: the unit
generator turns them into a ``Failed`` outcome. Only ``FatalJobError``
escapes the orchestrator.
"""

from typing import Optional


class SitegenError(Exception):
    """Base class for all pipeline errors."""


class TransportError(SitegenError):
    """A model call did not produce a response."""

    retryable = True


class TransportTimeout(TransportError):
    """The call exceeded its per-attempt deadline."""


class RateLimited(TransportError):
    """The upstream service throttled the request."""


class UpstreamFailure(TransportError):
    """The upstream service returned an error."""


class NetworkFailure(TransportError):
    """The connection to the upstream service failed."""


class AuthenticationFailure(TransportError):
    """Credentials were rejected. Retrying will not help."""

    retryable = False


class InvalidRequest(TransportError):
    """The service rejected the request itself. Retrying will not help."""

    retryable = False


class MalformedOutputError(SitegenError):
    """The model answered, but not with a usable JSON object."""


class CandidateNotFound(MalformedOutputError):
    """No JSON-looking span exists in the text."""


class UnrecoverableOutput(MalformedOutputError):
    """Candidates exist, but none parses even after repair."""


class FatalJobError(SitegenError):
    """The job cannot produce a result: foundation or a required section failed."""

    def __init__(
        self,
        unit_type,
        reason,
        detail: str = "",
        stage=None,
        usage=None,
        total_calls: int = 0,
        field_errors: Optional[list] = None,
    ):
        self.unit_type = unit_type
        self.reason = reason
        self.detail = detail
        self.stage = stage
        self.usage = usage
        self.total_calls = total_calls
        self.field_errors = list(field_errors or [])
        unit_name = getattr(unit_type, "value", unit_type)
        reason_name = getattr(reason, "value", reason)
        message = f"{unit_name} failed ({reason_name})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
