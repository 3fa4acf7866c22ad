"""Core request and response types shared across the pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentUnitType(str, Enum):
    """One independently generated piece of site content."""

    FOUNDATION = "foundation"
    ABOUT = "about"
    VALUES = "values"
    FEATURES = "features"
    SERVICES = "services"
    TEAM = "team"
    TESTIMONIALS = "testimonials"
    CONTACT = "contact"

    @property
    def is_section(self) -> bool:
        return self is not ContentUnitType.FOUNDATION

    @property
    def is_required(self) -> bool:
        return self is ContentUnitType.FOUNDATION or self in REQUIRED_SECTIONS


REQUIRED_SECTIONS = (
    ContentUnitType.ABOUT,
    ContentUnitType.CONTACT,
    ContentUnitType.TESTIMONIALS,
)
OPTIONAL_SECTIONS = (
    ContentUnitType.VALUES,
    ContentUnitType.FEATURES,
    ContentUnitType.SERVICES,
    ContentUnitType.TEAM,
)
# Aggregation order for sections
SECTION_UNITS = REQUIRED_SECTIONS + OPTIONAL_SECTIONS


HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class UnitModel(BaseModel):
    """Base for validated units: immutable, no extra keys."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Theme(UnitModel):
    """Site branding produced by the foundation and shared with every section."""

    primary_color: str = Field(pattern=HEX_COLOR_PATTERN)
    secondary_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    accent_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    logo_description: Optional[str] = Field(default=None, max_length=500)
    font_family: Optional[str] = Field(default=None, max_length=100)


class PriorSiteContext(BaseModel):
    """Content scraped from the business's existing website."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    content_summary: str = ""
    page_contents: dict[str, str] = Field(default_factory=dict)
    site_title: str = ""
    site_description: str = ""
    hero_headline: str = ""
    emails: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    addresses: list[str] = Field(default_factory=list)
    brand_colors: list[str] = Field(default_factory=list)
    fonts: list[str] = Field(default_factory=list)
    business_hours: str = ""
    services: list[str] = Field(default_factory=list)
    testimonials: list[str] = Field(default_factory=list)
    social_links: dict[str, str] = Field(default_factory=dict)


class GenerationRequest(BaseModel):
    """Everything the user told us about the business. Immutable."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    prompt: str = Field(default="", description="Free-form user request")
    name: str = ""
    industry: str = ""
    location: str = ""
    description: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
    additional_details: str = ""
    prior_site: Optional[PriorSiteContext] = None
    # Branding from an earlier run; section prompts fall back to it
    theme: Optional[Theme] = None


@dataclass(frozen=True)
class UsageRecord:
    """Token counts for one or more model calls."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    def __add__(self, other: "UsageRecord") -> "UsageRecord":
        return UsageRecord(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
        )

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> dict:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class RawModelResponse:
    """Text returned by a transport plus what it cost."""

    text: str
    usage: UsageRecord
    model: str = ""
    finish_reason: Optional[str] = None
