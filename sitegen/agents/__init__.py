from .observer import LoggingObserver, PipelineObserver
from .orchestrator import GenerationResult, PipelineStage, SiteGenerationPipeline
from .outcomes import Failed, FailureReason, NotApplicable, Recovered, Success, UnitOutcome
from .unit_generator import UnitGenerator

__all__ = [
    "Failed",
    "FailureReason",
    "GenerationResult",
    "LoggingObserver",
    "NotApplicable",
    "PipelineObserver",
    "PipelineStage",
    "Recovered",
    "SiteGenerationPipeline",
    "Success",
    "UnitGenerator",
    "UnitOutcome",
]
