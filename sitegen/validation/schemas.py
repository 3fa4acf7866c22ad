"""Pydantic schemas for every content unit, plus the rule table derived from them.

The models are strict: unknown keys are rejected and every string and list
carries explicit bounds. ``SCHEMAS`` flattens each model into path-addressed
rules (``seo.description``, ``values[].title``) that the recovery pass walks.
"""

import types
from dataclasses import dataclass, field
from typing import Annotated, Any, Optional, Union, get_args, get_origin

from pydantic import BaseModel, Field, StringConstraints

from ..models import HEX_COLOR_PATTERN, ContentUnitType, Theme, UnitModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# --- Foundation ---


class HeroSection(UnitModel):
    headline: str = Field(min_length=3, max_length=100)
    subheadline: str = Field(min_length=3, max_length=200)
    cta_text: str = Field(min_length=2, max_length=30)
    background_image: Optional[str] = Field(default=None, max_length=500)


class SeoMetadata(UnitModel):
    title: str = Field(min_length=10, max_length=60)
    description: str = Field(min_length=50, max_length=160)
    keywords: Optional[list[Annotated[str, StringConstraints(min_length=2, max_length=50)]]] = (
        Field(default=None, max_length=20)
    )
    og_image: Optional[str] = Field(default=None, max_length=500)


class FoundationData(UnitModel):
    site_name: str = Field(min_length=2, max_length=100)
    tagline: str = Field(min_length=5, max_length=200)
    description: str = Field(min_length=20, max_length=1000)
    hero: HeroSection
    branding: Theme
    seo: SeoMetadata


# --- Sections ---


class AboutSection(UnitModel):
    title: str = Field(min_length=2, max_length=100)
    content: list[Annotated[str, StringConstraints(min_length=10, max_length=1000)]] = Field(
        min_length=1, max_length=10
    )
    mission: Optional[str] = Field(default=None, min_length=10, max_length=500)
    vision: Optional[str] = Field(default=None, min_length=10, max_length=500)


class ValueItem(UnitModel):
    title: str = Field(min_length=2, max_length=50)
    description: str = Field(min_length=10, max_length=10000)
    icon: str = Field(min_length=2, max_length=50)


class ValuesSection(UnitModel):
    title: str = Field(min_length=2, max_length=100)
    subtitle: Optional[str] = Field(default=None, min_length=3, max_length=200)
    values: list[ValueItem] = Field(min_length=2, max_length=8)


class FeatureItem(UnitModel):
    title: str = Field(min_length=2, max_length=50)
    description: str = Field(min_length=10, max_length=300)
    icon: str = Field(min_length=2, max_length=50)


class FeaturesSection(UnitModel):
    title: str = Field(min_length=2, max_length=100)
    subtitle: Optional[str] = Field(default=None, min_length=3, max_length=200)
    features: list[FeatureItem] = Field(min_length=2, max_length=12)


class ServiceItem(UnitModel):
    name: str = Field(min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=500)
    price: Optional[str] = Field(default=None, max_length=50)
    duration: Optional[str] = Field(default=None, max_length=50)


class ServicesSection(UnitModel):
    title: str = Field(min_length=2, max_length=100)
    subtitle: Optional[str] = Field(default=None, min_length=3, max_length=200)
    services: list[ServiceItem] = Field(min_length=1, max_length=20)


class TeamMember(UnitModel):
    name: str = Field(min_length=2, max_length=100)
    role: str = Field(min_length=2, max_length=100)
    bio: str = Field(min_length=10, max_length=500)
    image: Optional[str] = Field(default=None, max_length=500)


class TeamSection(UnitModel):
    title: str = Field(min_length=2, max_length=100)
    subtitle: Optional[str] = Field(default=None, min_length=3, max_length=200)
    members: list[TeamMember] = Field(min_length=1, max_length=50)


class Testimonial(UnitModel):
    name: str = Field(min_length=2, max_length=100)
    role: Optional[str] = Field(default=None, max_length=100)
    content: str = Field(min_length=10, max_length=1000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class TestimonialsSection(UnitModel):
    title: str = Field(min_length=2, max_length=100)
    subtitle: Optional[str] = Field(default=None, min_length=3, max_length=200)
    testimonials: list[Testimonial] = Field(min_length=1, max_length=20)


class ContactSection(UnitModel):
    title: str = Field(min_length=2, max_length=100)
    email: Optional[str] = Field(default=None, max_length=200, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=300)
    hours: Optional[str] = Field(default=None, max_length=200)


UNIT_MODELS: dict[ContentUnitType, type[UnitModel]] = {
    ContentUnitType.FOUNDATION: FoundationData,
    ContentUnitType.ABOUT: AboutSection,
    ContentUnitType.VALUES: ValuesSection,
    ContentUnitType.FEATURES: FeaturesSection,
    ContentUnitType.SERVICES: ServicesSection,
    ContentUnitType.TEAM: TeamSection,
    ContentUnitType.TESTIMONIALS: TestimonialsSection,
    ContentUnitType.CONTACT: ContactSection,
}


# --- Rule table ---


@dataclass(frozen=True)
class FieldRule:
    """Constraints on one path. For arrays the lengths count items."""

    path: str
    kind: str  # "object" | "array" | "string" | "scalar"
    required: bool = True
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class UnitSchema:
    unit_type: ContentUnitType
    model: type[UnitModel]
    rules: dict[str, FieldRule] = field(default_factory=dict)

    def rule(self, path: str) -> Optional[FieldRule]:
        return self.rules.get(path)

    @property
    def required_fields(self) -> list[str]:
        return [r.path for r in self.rules.values() if r.path and r.required and "[]" not in r.path]

    @property
    def max_lengths(self) -> dict[str, int]:
        return {
            r.path: r.max_length
            for r in self.rules.values()
            if r.kind == "string" and r.max_length is not None
        }

    @property
    def array_bounds(self) -> dict[str, tuple[Optional[int], Optional[int]]]:
        return {r.path: (r.min_length, r.max_length) for r in self.rules.values() if r.kind == "array"}


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0], True
    return annotation, False


def _length_bounds(metadata: list) -> tuple[Optional[int], Optional[int]]:
    lo = hi = None
    for item in metadata:
        if getattr(item, "min_length", None) is not None:
            lo = item.min_length
        if getattr(item, "max_length", None) is not None:
            hi = item.max_length
    return lo, hi


def _rules_for_type(annotation: Any, path: str, required: bool, metadata: list, out: dict) -> None:
    annotation, _ = _unwrap_optional(annotation)
    if get_origin(annotation) is Annotated:
        base, *extra = get_args(annotation)
        _rules_for_type(base, path, required, list(metadata) + list(extra), out)
        return

    lo, hi = _length_bounds(metadata)
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        out[path] = FieldRule(path, "object", required, keys=tuple(annotation.model_fields))
        _rules_for_model(annotation, path, out)
    elif get_origin(annotation) is list:
        out[path] = FieldRule(path, "array", required, lo, hi)
        (item_type,) = get_args(annotation)
        _rules_for_type(item_type, f"{path}[]", True, [], out)
    elif annotation is str:
        out[path] = FieldRule(path, "string", required, lo, hi)
    else:
        out[path] = FieldRule(path, "scalar", required)


def _rules_for_model(model: type[BaseModel], prefix: str, out: dict) -> None:
    for name, info in model.model_fields.items():
        path = f"{prefix}.{name}" if prefix else name
        _, optional = _unwrap_optional(info.annotation)
        _rules_for_type(info.annotation, path, info.is_required() and not optional, info.metadata, out)


def build_unit_schema(unit_type: ContentUnitType, model: type[UnitModel]) -> UnitSchema:
    rules: dict[str, FieldRule] = {"": FieldRule("", "object", True, keys=tuple(model.model_fields))}
    _rules_for_model(model, "", rules)
    return UnitSchema(unit_type=unit_type, model=model, rules=rules)


SCHEMAS: dict[ContentUnitType, UnitSchema] = {
    unit_type: build_unit_schema(unit_type, model) for unit_type, model in UNIT_MODELS.items()
}
