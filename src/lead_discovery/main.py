#!/usr/bin/env python3
"""CLI entry point for the lead discovery engine.

Two modes are available: a deterministic multi-strategy search against the
structured backend, and a model-directed orchestration run that chooses
tools on its own.

Usage:
    lead-discovery search "plumbers" --location "Santa Fe, New Mexico"
    lead-discovery search "burgers" -l "Los Angeles, CA" --min-rating 4.0 --no-website
    lead-discovery orchestrate "HVAC companies in San Diego with bad reviews"
    lead-discovery --check-env

Example:
    # Find dentists without a website and save them
    lead-discovery search dentists -l "Austin, TX" --no-website -o dentists.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from .config import ConfigError, config
from .integrations.openai_client import OpenAIReasoningClient
from .logging_utils import setup_logging
from .models.lead import Lead
from .models.requests import OrchestrationRequest, SearchRequest
from .orchestrator import AgentOrchestrator
from .ranking import rank
from .search.fanout import SearchBackendError
from .tools.context import ToolContext

REQUIRED_BACKENDS = {
    "search": ["google_maps"],
    "orchestrate": ["openai"],
}


def print_env_status(status: dict[str, bool], command: Optional[str] = None) -> bool:
    """Print which backends are configured.

    Args:
        status: Backend name -> configured.
        command: Subcommand whose requirements are checked, or None for all.

    Returns:
        True if every required backend for the command is configured.
    """
    required = set(REQUIRED_BACKENDS.get(command, [])) if command else {
        name for names in REQUIRED_BACKENDS.values() for name in names
    }

    print("\nBackend Status:")
    print("-" * 40)
    for name, available in status.items():
        symbol = "\u2713" if available else ("\u2717" if name in required else "-")
        suffix = " (required)" if name in required else ""
        print(f"  [{symbol}] {name}{suffix}")
    print("-" * 40)

    missing = sorted(name for name in required if not status.get(name))
    if missing:
        print(f"\nError: Missing required backends: {', '.join(missing)}")
        return False
    return True


def print_leads(leads: list[Lead], limit: int = 20) -> None:
    """Print a compact table of leads."""
    if not leads:
        print("\nNo leads found.")
        return

    print(f"\n{'#':>3}  {'Score':>5}  {'Rating':>6}  {'Reviews':>7}  Name")
    print("-" * 60)
    for index, lead in enumerate(leads[:limit], start=1):
        rating = f"{lead.rating:.1f}" if lead.rating is not None else "-"
        reviews = str(lead.review_count) if lead.review_count is not None else "-"
        print(f"{index:>3}  {lead.opportunity_score:>5}  {rating:>6}  {reviews:>7}  {lead.name}")
        details = [value for value in (lead.phone, lead.website, lead.location) if value]
        if details:
            print(f"{'':>27}{' | '.join(details)}")
    if len(leads) > limit:
        print(f"\n  ... and {len(leads) - limit} more")


def save_output(path: str, data: dict[str, Any]) -> None:
    output_path = Path(path)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)
    print(f"\nResults saved to: {output_path}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="lead-discovery",
        description="Multi-strategy business lead discovery and AI orchestration",
        epilog="""
Examples:
  %(prog)s search plumbers --location "Santa Fe, New Mexico"
  %(prog)s search burgers -l "Los Angeles, CA" --min-rating 4.0
  %(prog)s orchestrate "dentists without websites in Austin, TX" --max-iterations 3
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--check-env",
        action="store_true",
        help="Check configured backends and exit",
    )

    output = parser.add_argument_group("output options")
    output.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Save results to JSON file",
    )
    output.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    output.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )

    subparsers = parser.add_subparsers(dest="command")

    search = subparsers.add_parser("search", help="Deterministic multi-strategy search")
    search.add_argument("query", help='Business search, e.g. "plumbers"')
    search.add_argument("--location", "-l", default=None, help="City, region or address")
    search.add_argument(
        "--max-results",
        "-m",
        type=int,
        default=config.SEARCH_MAX_RESULTS,
        help=f"Per-strategy result cap (default: {config.SEARCH_MAX_RESULTS})",
    )
    search.add_argument("--min-rating", type=float, default=None, help="Minimum star rating")
    search.add_argument("--max-rating", type=float, default=None, help="Maximum star rating")
    search.add_argument("--min-reviews", type=int, default=None, help="Minimum review count")
    search.add_argument("--max-reviews", type=int, default=None, help="Maximum review count")
    website = search.add_mutually_exclusive_group()
    website.add_argument(
        "--has-website",
        dest="has_website",
        action="store_true",
        default=None,
        help="Only businesses with a website",
    )
    website.add_argument(
        "--no-website",
        dest="has_website",
        action="store_false",
        help="Only businesses without a website",
    )

    orchestrate = subparsers.add_parser("orchestrate", help="Model-directed discovery run")
    orchestrate.add_argument("query", help="Free-text discovery request")
    orchestrate.add_argument(
        "--max-iterations",
        type=int,
        default=config.ORCHESTRATOR_MAX_ITERATIONS,
        help=f"Reasoning turn budget (default: {config.ORCHESTRATOR_MAX_ITERATIONS})",
    )
    orchestrate.add_argument(
        "--skip-email",
        action="store_true",
        help="Do not offer email enrichment",
    )
    orchestrate.add_argument(
        "--skip-website-analysis",
        action="store_true",
        help="Do not offer website analysis",
    )

    return parser


async def run_search(request: SearchRequest, logger: logging.Logger) -> Optional[dict[str, Any]]:
    """Run one fan-out search.

    Returns:
        The response in wire shape, or None if the search failed.
    """
    reasoning_client = None
    if config.OPENAI_API_KEY:
        reasoning_client = OpenAIReasoningClient(
            api_key=config.OPENAI_API_KEY,
            model=config.OPENAI_MODEL,
            timeout_seconds=config.OPENAI_TIMEOUT_SECONDS,
        )
    context = ToolContext.from_config(config, reasoning_client=reasoning_client)
    try:
        response = await context.search_engine.search(
            request.query,
            location=request.location,
            max_results=request.max_results,
            min_rating=request.min_rating,
            filters=request.to_filters(),
        )
    except SearchBackendError as e:
        logger.error("Search failed: %s", e)
        print(f"\nError: Search failed: {e}")
        return None
    finally:
        context.close()
        if reasoning_client is not None:
            await reasoning_client.close()

    response.leads = rank(response.leads)
    print(f"\nSearch: {response.search_query}")
    print(f"Retrieved {response.total_found} unique businesses, {len(response.leads)} leads kept")
    for error in response.errors:
        print(f"  Warning: {error}")
    print_leads(response.leads)
    return response.to_dict()


async def run_orchestration(
    request: OrchestrationRequest, logger: logging.Logger
) -> Optional[dict[str, Any]]:
    """Run one orchestration.

    Returns:
        The result in wire shape, or None if the run failed.
    """
    orchestrator = AgentOrchestrator.from_config(config)
    try:
        result = await orchestrator.run(
            request.query,
            max_iterations=request.max_iterations,
            enable_email_enrichment=request.enable_email_enrichment,
            enable_website_analysis=request.enable_website_analysis,
        )
    except Exception as e:
        logger.exception("Orchestration failed")
        print(f"\nError: Orchestration failed: {e}")
        return None
    finally:
        await orchestrator.close()

    print("\n" + "=" * 60)
    print("ORCHESTRATION RESULTS")
    print("=" * 60)
    print(f"\n{result.reasoning}")
    print(f"\nTools used: {', '.join(result.tools_used) or 'none'}")
    print(f"Steps: {len(result.execution_steps)}")
    print(f"Confidence: {result.metadata.get('confidence', 0):.2f}")
    if result.metadata.get("budget_exhausted"):
        print("Note: iteration budget exhausted")
    if result.metadata.get("degraded"):
        print("Note: some sources unavailable, results are partial")
    print_leads(result.leads)
    return result.to_dict()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.debug else ("INFO" if args.verbose else "WARNING")
    logger = setup_logging(level=level, structured=False)

    status = config.available_backends()
    if args.check_env:
        return 0 if print_env_status(status) else 1

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "search":
            request = SearchRequest(
                query=args.query,
                location=args.location,
                max_results=args.max_results,
                min_rating=args.min_rating,
                max_rating=args.max_rating,
                has_website=args.has_website,
                min_reviews=args.min_reviews,
                max_reviews=args.max_reviews,
            )
        else:
            request = OrchestrationRequest(
                query=args.query,
                max_iterations=args.max_iterations,
                enable_email_enrichment=not args.skip_email,
                enable_website_analysis=not args.skip_website_analysis,
            )
    except ValidationError as e:
        print(f"Error: Invalid request: {e}")
        return 2

    try:
        if args.command == "search":
            config.validate_for_search()
        else:
            config.validate_for_orchestration()
    except ConfigError as e:
        print_env_status(status, args.command)
        print(f"Error: {e}")
        return 1

    runner = run_search if args.command == "search" else run_orchestration
    try:
        data = asyncio.run(runner(request, logger))
    except KeyboardInterrupt:
        print("\n\nCancelled by user.")
        return 130

    if data is None:
        return 1

    if args.output:
        save_output(args.output, data)

    return 0


if __name__ == "__main__":
    sys.exit(main())
