from .extractor import Extraction, extract, find_candidates
from .repair import RepairResult, RepairStep, repair

__all__ = ["Extraction", "RepairResult", "RepairStep", "extract", "find_candidates", "repair"]
