#!/usr/bin/env python3
"""
Website Content Generation Pipeline

Entry point for the site generator.
Reads a business description, generates the foundation and all sections,
writes the validated content as JSON.

Usage:
    sitegen business.yaml                       # Generate, print summary
    sitegen business.yaml --output site.json    # Also write the result
    sitegen business.json --model gpt-4o        # Override the model
    sitegen business.yaml --provider anthropic --model claude-sonnet-4-20250514
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml

from .agents.observer import LoggingObserver
from .agents.orchestrator import GenerationResult, SiteGenerationPipeline
from .config.profiles import load_unit_profiles
from .config.settings import settings
from .errors import FatalJobError
from .models import GenerationRequest
from .utils.cost_tracker import RateTable
from .utils.llm_client import create_transport


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Generate website content from a business description")

    parser.add_argument(
        "business_file",
        type=Path,
        help="YAML or JSON file describing the business",
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the generated site content to this JSON file",
    )

    parser.add_argument(
        "--model",
        default=settings.generation_model,
        help=f"Model identifier (default: {settings.generation_model})",
    )

    parser.add_argument(
        "--provider",
        choices=["litellm", "anthropic"],
        default=settings.llm_provider,
        help=f"Model provider (default: {settings.llm_provider})",
    )

    parser.add_argument(
        "--units-file",
        type=Path,
        default=settings.units_file,
        help="Per-unit generation profiles (YAML)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging",
    )

    return parser.parse_args(argv)


def load_request(path: Path) -> GenerationRequest:
    """Load a GenerationRequest from a YAML or JSON file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return GenerationRequest.model_validate(data)


def print_summary(result: GenerationResult) -> None:
    print("\n" + "=" * 60)
    print(f"✅ {result.foundation.site_name}: {result.foundation.tagline}")
    print("=" * 60)
    for unit_name, kind in result.outcome_kinds.items():
        print(f"   {unit_name:<14} {kind}")
    if result.failed_sections:
        print(f"\n   Failed (omitted): {', '.join(result.failed_sections)}")
    if result.skipped_sections:
        print(f"   Not applicable: {', '.join(result.skipped_sections)}")
    print(
        f"\n   Calls: {result.total_calls}  Tokens: {result.usage.total_tokens}"
        f"  Cost: {result.cost_cents}¢  Duration: {result.duration_seconds:.1f}s"
    )


async def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        request = load_request(args.business_file)
    except (OSError, yaml.YAMLError, ValueError) as e:
        print(f"❌ Could not read {args.business_file}: {e}")
        return 1

    run_settings = settings.model_copy(update={"generation_model": args.model, "llm_provider": args.provider})
    transport = create_transport(run_settings)
    pipeline = SiteGenerationPipeline(
        transport=transport,
        profiles=load_unit_profiles(args.units_file),
        observer=LoggingObserver(),
        rates=RateTable.from_settings(run_settings),
        model=args.model,
    )

    print(f"🚀 Generating site for {request.name or args.business_file.name} with {args.model}")

    try:
        result = await pipeline.run(request)
    except FatalJobError as e:
        print(f"\n❌ Generation failed: {e}")
        for err in e.field_errors[:10]:
            print(f"   {err}")
        return 1

    print_summary(result)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        print(f"\n📁 Output saved to: {args.output}")

    return 0


def cli() -> None:
    """CLI entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
