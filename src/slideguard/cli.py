"""Command-line interface for slideguard."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from . import __version__
from .logging_config import setup_logging
from .markdown import extract_image_urls
from .models.config import GuardConfig
from .models.events import EventType, ValidationEvent
from .models.verdict import ValidationVerdict
from .security.image_urls import ImageUrlValidator

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="slideguard",
        description="Check image URLs for SSRF risks before rendering slide decks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check individual URLs
  slideguard https://example.com/logo.png https://169.254.169.254/

  # Check every remote image referenced by a deck
  slideguard --markdown slides.md

  # Machine-readable output with a stricter redirect policy
  slideguard --markdown slides.md --max-redirects 1 --json
        """,
    )

    parser.add_argument(
        "urls",
        nargs="*",
        metavar="URL",
        help="Image URLs to validate",
    )
    parser.add_argument(
        "--markdown",
        "-m",
        type=Path,
        metavar="FILE",
        help="Validate every remote image referenced in this Markdown file",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        metavar="FILE",
        help="YAML configuration file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Validation policy
    policy_group = parser.add_argument_group("validation policy")
    policy_group.add_argument(
        "--max-redirects",
        type=int,
        default=None,
        metavar="N",
        help="Maximum redirects followed per URL (default: 3)",
    )
    policy_group.add_argument(
        "--probe-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Timeout for each redirect probe (default: 5)",
    )
    policy_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Overall deadline per URL (default: none)",
    )
    policy_group.add_argument(
        "--strict-probe",
        action="store_true",
        help="Reject URLs whose redirect probe fails instead of accepting them",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print verdicts as JSON",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output",
    )

    return parser


def build_config(args: argparse.Namespace) -> GuardConfig:
    """Merge the config file (if any) with command-line overrides."""
    base = GuardConfig.from_yaml_file(args.config) if args.config else GuardConfig()
    overrides: dict = {}
    if args.max_redirects is not None:
        overrides["max_redirects"] = args.max_redirects
    if args.probe_timeout is not None:
        overrides["probe_timeout"] = args.probe_timeout
    if args.timeout is not None:
        overrides["validation_timeout"] = args.timeout
    if args.strict_probe:
        overrides["reject_on_probe_failure"] = True
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    elif args.quiet:
        overrides["log_level"] = "ERROR"

    if not overrides:
        return base
    return GuardConfig.model_validate({**base.model_dump(), **overrides})


def render_table(urls: list[str], verdicts: list[ValidationVerdict]) -> Table:
    """Build a rich table of verdicts."""
    table = Table(title="Image URL validation")
    table.add_column("URL", overflow="fold")
    table.add_column("Verdict")
    table.add_column("Reason")

    for url, verdict in zip(urls, verdicts):
        if verdict.valid:
            table.add_row(url, "[green]allowed[/green]", "")
        else:
            reason = verdict.reason.value if verdict.reason else ""
            table.add_row(url, "[red]rejected[/red]", f"{reason}: {verdict.message}")
    return table


def run_validation(args: argparse.Namespace) -> int:
    """Run validation with given arguments."""
    console = Console()
    err_console = Console(stderr=True)

    urls: list[str] = list(args.urls)
    if args.markdown:
        try:
            urls.extend(extract_image_urls(args.markdown.read_text(encoding="utf-8")))
        except OSError as e:
            err_console.print(f"[red]Error:[/red] Cannot read {args.markdown}: {e}")
            return EXIT_USAGE

    try:
        config = build_config(args)
    except (ImportError, OSError, ValueError, ValidationError) as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        return EXIT_USAGE

    setup_logging(level=config.log_level, log_file=config.log_file, force=True)

    if not urls:
        if not args.quiet and not args.json:
            console.print("No image URLs to validate")
        return EXIT_OK

    def on_event(event: ValidationEvent) -> None:
        if args.verbose and event.type == EventType.REDIRECT_FOUND:
            err_console.print(f"[dim]redirect {event.hop}: {event.url} -> {event.redirect_target}[/dim]")

    async def run() -> tuple[list[ValidationVerdict], dict]:
        async with ImageUrlValidator(config, emit=on_event) as validator:
            verdicts = await validator.validate_many(urls)
            return verdicts, validator.stats.to_dict()

    verdicts, stats = asyncio.run(run())

    if args.json:
        payload = {
            "results": [{"url": url, **verdict.to_dict()} for url, verdict in zip(urls, verdicts)],
            "stats": stats,
        }
        print(json.dumps(payload, indent=2))
    elif not args.quiet:
        console.print(render_table(urls, verdicts))
        console.print(
            f"Checked {stats['urls_checked']}: "
            f"[green]{stats['urls_accepted']} allowed[/green], "
            f"[red]{stats['urls_rejected']} rejected[/red]"
        )

    return EXIT_OK if all(v.valid for v in verdicts) else EXIT_REJECTED


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.urls and not args.markdown:
        parser.print_usage(sys.stderr)
        print("slideguard: error: provide at least one URL or --markdown FILE", file=sys.stderr)
        return EXIT_USAGE

    try:
        return run_validation(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
