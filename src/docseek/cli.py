"""Command-line interface for docseek."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from rich.console import Console
from rich.table import Table

from . import __version__
from .core.spider import Spider
from .errors import DocseekError
from .logging_config import setup_logging
from .models.config import DocumentOptions, FetcherKind, ScrapeOptions, SpiderConfig, StrategyKind
from .models.results import DocumentResult, ScrapeResult


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by every subcommand."""
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML config file",
    )

    network_group = parser.add_argument_group("network settings")
    network_group.add_argument(
        "--user-agent",
        type=str,
        help="Custom User-Agent string",
    )
    network_group.add_argument(
        "--rate-limit",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Delay before each navigation (default: 1.0)",
    )

    cache_group = parser.add_argument_group("cache settings")
    cache_group.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Cache directory (default: .cache/docseek)",
    )
    cache_group.add_argument(
        "--memory-cache",
        action="store_true",
        help="Keep the cache in memory for this run only",
    )

    output_group = parser.add_argument_group("output control")
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


def _add_fetch_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--tree",
        action="store_true",
        help="Expand collapsible sections in a browser before collecting links",
    )
    parser.add_argument(
        "--fetcher",
        choices=[kind.value for kind in FetcherKind],
        default=None,
        help="Fetch client (default: static, browser with --tree)",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Neither read nor write the result cache",
    )
    parser.add_argument(
        "--cache-expiry",
        type=int,
        default=None,
        metavar="MS",
        help="Cache TTL in milliseconds (0 disables caching)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        metavar="MS",
        help="Bound on the whole fetch in milliseconds",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="docseek",
        description="Find the documents behind index pages and landing pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List links on a static page
  docseek scrape https://example.com/minutes

  # Expand collapsed folders in a browser first
  docseek scrape https://example.com/minutes --tree --max-iterations 5

  # Resolve a WordPress download page and save the PDF
  docseek resolve https://example.com/download/agenda --save agenda.pdf

  # Only document links
  docseek links https://example.com/minutes --ext .pdf --ext .docx
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    scrape = subparsers.add_parser("scrape", help="Collect the links on a page")
    scrape.add_argument("url", help="Page to scrape")
    _add_fetch_arguments(scrape)
    scrape.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        metavar="N",
        help="Expansion rounds for --tree (default: 10)",
    )
    scrape.add_argument(
        "--click-delay",
        type=int,
        default=None,
        metavar="MS",
        help="Settle delay after each click (default: 100)",
    )
    scrape.add_argument(
        "--selector",
        action="append",
        default=None,
        metavar="CSS",
        dest="selectors",
        help="Extra expandable-element selector (repeatable)",
    )
    _add_common_arguments(scrape)

    resolve = subparsers.add_parser("resolve", help="Resolve a URL to the document it stands for")
    resolve.add_argument("url", help="Document or landing page URL")
    _add_fetch_arguments(resolve)
    resolve.add_argument(
        "--save",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write the downloaded file here",
    )
    _add_common_arguments(resolve)

    links = subparsers.add_parser("links", help="List document links on a page")
    links.add_argument("url", help="Page to scan")
    links.add_argument(
        "--ext",
        action="append",
        default=None,
        metavar="EXT",
        dest="extensions",
        help="Document extension to accept (repeatable, default: .pdf .doc .docx .txt .md .rtf)",
    )
    _add_common_arguments(links)

    return parser


def build_config(args: argparse.Namespace) -> SpiderConfig:
    """Layer the config file, DOCSEEK_* variables and command-line flags."""
    base = SpiderConfig.from_yaml_file(args.config) if args.config else None
    config = SpiderConfig.from_env(base=base)
    data = config.model_dump()

    if args.user_agent:
        data["network"]["user_agent"] = args.user_agent
    if args.rate_limit is not None:
        data["network"]["rate_limit"] = args.rate_limit
    if args.cache_dir:
        data["cache"]["directory"] = args.cache_dir
    if args.memory_cache:
        data["cache"]["backend"] = "memory"

    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return SpiderConfig.model_validate(data)


def _fetch_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.tree:
        overrides["strategy"] = StrategyKind.TREE
    if args.fetcher:
        overrides["fetcher"] = FetcherKind(args.fetcher)
    if args.no_cache:
        overrides["cache"] = False
    if args.cache_expiry is not None:
        overrides["cache_expiry_ms"] = args.cache_expiry
    if args.timeout is not None:
        overrides["timeout_ms"] = args.timeout
    return overrides


def _print_scrape(console: Console, result: ScrapeResult) -> None:
    table = Table(title=result.url, show_lines=False)
    table.add_column("Link", overflow="fold")
    table.add_column("Text", overflow="fold")
    for link in result.links:
        table.add_row(link.href, link.text)
    console.print(table)

    source = "cache" if result.from_cache else result.fetcher.value
    console.print(
        f"[bold]{len(result.links)}[/bold] links, {result.metrics.interaction_count} clicks, "
        f"confidence {result.confidence:.1f} ({result.strategy.value} via {source})"
    )
    if result.download is not None:
        console.print(f"[yellow]Download:[/yellow] {result.download.filename or result.url} ({result.content_type})")
    if result.resolution is not None and result.resolution.is_provisional:
        console.print(f"[cyan]Landing page:[/cyan] {result.resolution.resolved_url}")


def _print_document(console: Console, doc: DocumentResult) -> None:
    kind = "PDF" if doc.is_pdf else doc.content_type
    console.print(f"[bold]{doc.url}[/bold]")
    console.print(f"  Type: {kind}")
    console.print(f"  Strategy: {doc.strategy}")
    console.print(f"  Complete: {'yes' if doc.complete else 'no'}")
    if doc.title:
        console.print(f"  Title: {doc.title}")
    if doc.file_bytes is not None:
        console.print(f"  Size: {len(doc.file_bytes)} bytes")


async def _run_command(args: argparse.Namespace, config: SpiderConfig, console: Console) -> int:
    async with Spider(config) as spider:
        if args.command == "scrape":
            overrides = _fetch_overrides(args)
            if args.max_iterations is not None:
                overrides["max_iterations"] = args.max_iterations
            if args.click_delay is not None:
                overrides["click_delay_ms"] = args.click_delay
            if args.selectors:
                overrides["custom_selectors"] = args.selectors

            result = await spider.scrape(args.url, ScrapeOptions(), **overrides)
            if args.json:
                console.print_json(data=result.to_dict())
            elif not args.quiet:
                _print_scrape(console, result)
            return 0

        if args.command == "resolve":
            doc = await spider.resolve_document(args.url, DocumentOptions(), **_fetch_overrides(args))
            if args.save is not None:
                if doc.file_bytes is None:
                    console.print(f"[red]Error:[/red] {doc.url} is not a downloadable file")
                    return 1
                args.save.write_bytes(doc.file_bytes)
                if not args.quiet:
                    console.print(f"[green]Saved[/green] {args.save}")
            if args.json:
                console.print_json(data=doc.to_dict())
            elif not args.quiet:
                _print_document(console, doc)
            return 0 if doc.complete else 1

        found = await spider.find_document_links(args.url, args.extensions)
        for url in found:
            console.print(url, soft_wrap=True, highlight=False)
        return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    console = Console()

    try:
        config = build_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(config.log_level, config.log_file)

    try:
        return asyncio.run(_run_command(args, config, console))
    except DocseekError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e}")
        if args.verbose:
            console.print_exception()
        return 1
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
