"""Prompt template loader.

Templates live in templates/ as ``<name>.txt`` and use string.Template
``$var`` placeholders, so JSON braces in the examples need no escaping.
Shared fragments (currently only the JSON output rules) are filled in
automatically when a template references them.

Per-section material (instruction, prior-site page keys, JSON shape) is
kept in templates/sections.yaml.
"""

from functools import lru_cache
from pathlib import Path
from string import Template

import yaml

_TEMPLATES_DIR = Path(__file__).parent / "templates"

# placeholder -> fragment file
_SHARED_FRAGMENTS = {"json_rules": "json_rules.txt"}


@lru_cache(maxsize=32)
def _read(filename: str) -> str:
    path = _TEMPLATES_DIR / filename
    if not path.is_file():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    return path.read_text(encoding="utf-8")


@lru_cache(maxsize=1)
def load_section_material() -> dict:
    """Section instructions, page keys and structures, keyed by unit name."""
    material = yaml.safe_load(_read("sections.yaml")) or {}
    for unit_name, entry in material.items():
        missing = {"instruction", "page_keys", "structure"} - set(entry)
        if missing:
            raise ValueError(f"sections.yaml: {unit_name} is missing {sorted(missing)}")
    return material


def render(name: str, **kwargs: str) -> str:
    """Render template ``name`` with ``kwargs``.

    Raises:
        FileNotFoundError: If the template doesn't exist
        KeyError: If a placeholder has no value
    """
    text = _read(f"{name}.txt")
    for placeholder, filename in _SHARED_FRAGMENTS.items():
        if f"${placeholder}" in text and placeholder not in kwargs:
            kwargs[placeholder] = _read(filename).strip()
    return Template(text).substitute(**kwargs)
