"""Prompt construction for each content unit.

Pure functions: the same request and theme always give the same prompt
text. Conditional blocks are assembled here and dropped into the
templates under templates/.
"""

from dataclasses import dataclass
from typing import Optional

from ..config.profiles import UnitProfile, load_unit_profiles
from ..models import ContentUnitType, GenerationRequest, PriorSiteContext, Theme
from .loader import load_section_material, render

TRUNCATION_MARKER = "...[truncated]"


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str


def truncate_excerpt(text: str, budget: int) -> str:
    """Keep at most ``budget`` characters, marking the cut explicitly."""
    if len(text) <= budget:
        return text
    return text[:budget] + TRUNCATION_MARKER


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _business_lines(request: GenerationRequest) -> list[str]:
    lines = [f"Name: {request.name or 'Not provided'}"]
    if request.industry:
        lines.append(f"Industry: {request.industry}")
    if request.location:
        lines.append(f"Location: {request.location}")
    if request.description:
        lines.append(f"Description: {request.description}")
    return lines


def _contact_lines(request: GenerationRequest, join_all: bool) -> list[str]:
    """Contact channels, preferring what the existing site lists."""
    prior = request.prior_site or PriorSiteContext()
    lines = []

    def pick(scraped: list[str], given: str, sep: str) -> str:
        if scraped:
            return sep.join(scraped) if join_all else scraped[0]
        return given

    email = pick(prior.emails, request.email, ", ")
    if email:
        lines.append(f"Email: {email}")
    phone = pick(prior.phones, request.phone, ", ")
    if phone:
        lines.append(f"Phone: {phone}")
    if join_all and prior.addresses:
        lines.append(f"Address: {'; '.join(prior.addresses)}")
    return lines


def _foundation_prior_site(prior: PriorSiteContext, budget: int) -> str:
    parts = [
        "=== EXISTING WEBSITE ANALYSIS ===",
        "The business has an existing website. Preserve its core messaging while improving presentation.",
        "",
    ]
    if prior.hero_headline:
        parts.append(f'Existing Hero Headline: "{prior.hero_headline}"')
        parts.append("^ Use this as your hero headline, only making minor improvements if needed")
        parts.append("")
    if prior.brand_colors:
        parts.append("Existing Brand Colors (use these):")
        parts.append(_bullets(prior.brand_colors))
        parts.append("")
    if prior.fonts:
        parts.append("Existing Website Fonts (use exactly, as \"HeadingFont, BodyFont\"):")
        parts.append(_bullets(prior.fonts))
        parts.append("")
    if prior.site_title:
        parts.append(f'Original Site Title: "{prior.site_title}"')
    if prior.site_description:
        parts.append(f'Original Site Description: "{prior.site_description}"')
    if prior.site_title or prior.site_description:
        parts.append("^ Use these as the foundation for the SEO metadata")
        parts.append("")
    if prior.social_links:
        parts.append("Social Media Links:")
        parts.append(_bullets([f"{platform}: {url}" for platform, url in prior.social_links.items()]))
        parts.append("")
    if prior.addresses:
        parts.append("Business Address:")
        parts.append(_bullets(prior.addresses))
        parts.append("")
    if prior.business_hours:
        parts.append(f"Business Hours (use exactly): {prior.business_hours}")
        parts.append("")
    if prior.services:
        parts.append(f"Services Found ({len(prior.services)}):")
        parts.append(_bullets(prior.services[:10]))
        parts.append("")
    if prior.testimonials:
        parts.append(f"Real Testimonials Found ({len(prior.testimonials)}):")
        parts.append(_bullets([f'"{t}"' for t in prior.testimonials[:3]]))
        parts.append("")
    if prior.content_summary:
        parts.append("Content from Existing Website:")
        parts.append(truncate_excerpt(prior.content_summary, budget))
        parts.append("")
    return "\n".join(parts) + "\n"


def _section_structured(unit_type: ContentUnitType, prior: Optional[PriorSiteContext]) -> str:
    if prior is None:
        return ""
    parts = []
    if unit_type is ContentUnitType.CONTACT and prior.business_hours:
        parts.append("*** ACTUAL BUSINESS HOURS (USE EXACTLY AS PROVIDED) ***")
        parts.append(prior.business_hours)
    elif unit_type is ContentUnitType.SERVICES and prior.services:
        parts.append("*** ACTUAL SERVICES (USE THESE EXACT NAMES AND PRICES) ***")
        parts.append(_bullets(prior.services))
    elif unit_type is ContentUnitType.TESTIMONIALS and prior.testimonials:
        parts.append("*** REAL CUSTOMER TESTIMONIALS (USE VERBATIM, NEVER INVENT) ***")
        parts.append(_bullets([f'"{t}"' for t in prior.testimonials]))
    if not parts:
        return ""
    return "\n" + "\n".join(parts) + "\n"


def _section_prior_site(
    unit_type: ContentUnitType,
    prior: Optional[PriorSiteContext],
    page_keys: list[str],
    profile: UnitProfile,
) -> str:
    if prior is None:
        return ""
    parts = ["", "=== EXISTING WEBSITE CONTENT ==="]
    for key in page_keys:
        content = prior.page_contents.get(key)
        if content:
            parts.append(f'Content from existing "{key}" page:')
            parts.append(truncate_excerpt(content, profile.excerpt_budget))
            break
    else:
        if not prior.content_summary:
            return ""
        parts.append("Website Overview:")
        parts.append(truncate_excerpt(prior.content_summary, profile.summary_budget))

    if unit_type is ContentUnitType.CONTACT and prior.social_links:
        parts.append("Social Media Links (preserve these):")
        parts.append(_bullets([f"{platform}: {url}" for platform, url in prior.social_links.items()]))
    parts.append("Preserve the key messages, authentic voice and all factual information above.")
    return "\n".join(parts) + "\n"


def _theme_lines(theme: Theme) -> str:
    lines = [f"Primary Color: {theme.primary_color}"]
    if theme.secondary_color:
        lines.append(f"Secondary Color: {theme.secondary_color}")
    if theme.accent_color:
        lines.append(f"Accent Color: {theme.accent_color}")
    if theme.font_family:
        lines.append(f"Fonts: {theme.font_family}")
    return _bullets(lines)


def build_foundation_prompt(request: GenerationRequest, profile: UnitProfile) -> PromptPair:
    business = _business_lines(request) + _contact_lines(request, join_all=False)
    if request.website:
        business.append(f"Existing Website: {request.website}")

    prior_site_section = ""
    if request.prior_site is not None:
        prior_site_section = "\n" + _foundation_prior_site(request.prior_site, profile.excerpt_budget)

    additional = ""
    if request.additional_details:
        additional = f"\nAdditional Details:\n{request.additional_details}\n"

    user = render(
        "foundation_user",
        user_request=request.prompt or f"Create a website for {request.name or 'my business'}",
        business_info=_bullets(business),
        prior_site_section=prior_site_section,
        additional_details_section=additional,
    )
    return PromptPair(system=render("foundation_system"), user=user)


def build_section_prompt(
    unit_type: ContentUnitType,
    request: GenerationRequest,
    theme: Theme,
    profile: UnitProfile,
) -> PromptPair:
    material = load_section_material()[unit_type.value]

    business = _business_lines(request)
    if unit_type is ContentUnitType.CONTACT:
        business += _contact_lines(request, join_all=True)

    user = render(
        "section_user",
        section_title=unit_type.value.upper(),
        instruction=material["instruction"],
        business_info=_bullets(business),
        structured_section=_section_structured(unit_type, request.prior_site),
        prior_site_section=_section_prior_site(
            unit_type, request.prior_site, material["page_keys"], profile
        ),
        theme_info=_theme_lines(theme),
        json_structure=material["structure"].rstrip(),
    )
    return PromptPair(system=render("section_system"), user=user)


def build_prompt(
    unit_type: ContentUnitType,
    request: GenerationRequest,
    theme: Optional[Theme] = None,
    profile: Optional[UnitProfile] = None,
) -> PromptPair:
    """Build the (system, user) prompt pair for one unit.

    Args:
        unit_type: Unit to build the prompt for
        request: Business facts for the job
        theme: Foundation branding for section units; falls back to ``request.theme``
        profile: Generation profile supplying excerpt budgets (bundled default if omitted)

    Raises:
        ValueError: If a section prompt is requested and neither a theme nor
            ``request.theme`` is available
    """
    if profile is None:
        profile = load_unit_profiles()[unit_type]
    if unit_type is ContentUnitType.FOUNDATION:
        return build_foundation_prompt(request, profile)
    if theme is None:
        theme = request.theme
    if theme is None:
        raise ValueError(f"A theme is required to build the {unit_type.value} prompt")
    return build_section_prompt(unit_type, request, theme, profile)
