"""
Shared fixtures for sitegen tests.

Provides a scripted fake transport and valid payloads for every unit.
"""

import asyncio
import copy
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

TEST_DIR = Path(__file__).parent
if str(TEST_DIR) not in sys.path:
    sys.path.insert(0, str(TEST_DIR))

from sitegen.config.profiles import parse_unit_profiles
from sitegen.models import ContentUnitType, GenerationRequest, RawModelResponse, UsageRecord

U = ContentUnitType

CALL_USAGE = UsageRecord(prompt_tokens=100, completion_tokens=50)

VALID_PAYLOADS: dict[ContentUnitType, dict] = {
    U.FOUNDATION: {
        "site_name": "Greenleaf Garden Center",
        "tagline": "Grow with us, thrive together",
        "description": "Family-run nursery in Portland selling native perennials and fruit trees.",
        "hero": {
            "headline": "Where Every Garden Tells a Story",
            "subheadline": "Native plants and honest advice for Portland gardeners",
            "cta_text": "Visit Us",
        },
        "branding": {
            "primary_color": "#2D5F3F",
            "secondary_color": "#8B4513",
            "accent_color": "#FF6B9D",
            "font_family": "Montserrat, Open Sans",
        },
        "seo": {
            "title": "Greenleaf Garden Center | Portland Nursery",
            "description": "Family-run Portland nursery with native perennials, fruit trees and houseplants. Expert advice and weekly workshops.",
            "keywords": ["garden center", "portland nursery", "native plants"],
        },
    },
    U.ABOUT: {
        "title": "About Us",
        "content": ["We have grown plants in Portland since 1987.", "Three generations, one nursery."],
        "mission": "Help every neighbor grow something.",
    },
    U.VALUES: {
        "title": "Our Values",
        "values": [
            {"title": "Sustainability", "description": "We grow with native species.", "icon": "Leaf"},
            {"title": "Community", "description": "Free workshops every Saturday.", "icon": "Users"},
        ],
    },
    U.FEATURES: {
        "title": "Why Greenleaf",
        "features": [
            {"title": "Local stock", "description": "Everything is grown within 50 miles.", "icon": "MapPin"},
            {"title": "Expert staff", "description": "Certified horticulturists on the floor.", "icon": "Award"},
        ],
    },
    U.SERVICES: {
        "title": "Services",
        "services": [
            {"name": "Garden Design", "description": "Custom native garden plans.", "price": "$150"},
        ],
    },
    U.TEAM: {
        "title": "Our Team",
        "members": [
            {"name": "Rosa Martinez", "role": "Head Gardener", "bio": "Rosa has tended our beds for twenty years."},
        ],
    },
    U.TESTIMONIALS: {
        "title": "Reviews",
        "testimonials": [
            {"name": "Sam K.", "content": "Best selection of natives in town.", "rating": 5},
        ],
    },
    U.CONTACT: {
        "title": "Contact",
        "email": "hello@greenleaf.example",
        "phone": "555-0100",
        "hours": "Mon-Sat: 9am-6pm",
    },
}


def payload(unit_type: ContentUnitType, **overrides) -> dict:
    """A deep copy of the valid payload for ``unit_type`` with top-level overrides."""
    data = copy.deepcopy(VALID_PAYLOADS[unit_type])
    data.update(overrides)
    return data


@dataclass
class Delay:
    """Scripted step: wait, then produce ``then``."""

    seconds: float
    then: Any = None


class FakeTransport:
    """Transport that replays scripted responses per unit type.

    Script items may be a dict (sent as JSON), a str (sent verbatim), a
    RawModelResponse, an exception instance (raised) or a Delay. When a
    unit's script runs out, its valid payload is returned.
    """

    def __init__(self, script: dict | None = None, delay: float = 0.0):
        self.script = {unit: list(items) for unit, items in (script or {}).items()}
        self.delay = delay
        self.calls: list[tuple[ContentUnitType, str, str, Any]] = []
        self.model = "fake/model"
        self.in_flight = 0
        self.max_in_flight = 0

    def calls_for(self, unit_type: ContentUnitType) -> list:
        return [c for c in self.calls if c[0] is unit_type]

    async def call(self, system_text: str, user_text: str, profile) -> RawModelResponse:
        unit_type = profile.unit_type
        self.calls.append((unit_type, system_text, user_text, profile))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            queue = self.script.get(unit_type)
            item = queue.pop(0) if queue else VALID_PAYLOADS[unit_type]
            if self.delay:
                await asyncio.sleep(self.delay)
            if isinstance(item, Delay):
                await asyncio.sleep(item.seconds)
                item = item.then if item.then is not None else VALID_PAYLOADS[unit_type]
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, RawModelResponse):
                return item
            text = json.dumps(item) if isinstance(item, dict) else item
            return RawModelResponse(text=text, usage=CALL_USAGE, model=self.model, finish_reason="stop")
        finally:
            self.in_flight -= 1


@pytest.fixture
def request_info() -> GenerationRequest:
    return GenerationRequest(
        prompt="Build a warm website for our garden center",
        name="Greenleaf Garden Center",
        industry="Garden center",
        location="Portland, OR",
        description="Family-run nursery since 1987.",
        email="hello@greenleaf.example",
        phone="555-0100",
    )


@pytest.fixture
def fast_profiles():
    """Profiles with short deadlines so timeout tests run quickly."""
    return parse_unit_profiles(
        {
            "defaults": {
                "temperature": 0.7,
                "max_tokens": 1500,
                "timeout_seconds": 0.2,
                "retries": 2,
            },
            "units": {
                "foundation": {"max_tokens": 3000, "length_retry_max_tokens": 4000},
                "about": {},
                "values": {},
                "features": {},
                "services": {},
                "team": {},
                "contact": {"temperature": 0.5, "max_tokens": 1000},
                "testimonials": {"temperature": 0.8, "max_tokens": 2000},
            },
        }
    )
