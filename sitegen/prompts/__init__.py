from .builder import PromptPair, build_prompt, truncate_excerpt
from .loader import render

__all__ = ["PromptPair", "build_prompt", "render", "truncate_excerpt"]
