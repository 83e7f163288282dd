"""
Creator Content Engine - CLI Entry Point.
Developer CLI using Click and Rich.
"""

import sys
import asyncio
from pathlib import Path
from functools import wraps
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from content_engine import __version__
from content_engine.config.settings import get_settings
from content_engine.models.schemas import VideoInput, VideoProcessingResult
from content_engine.pipeline.orchestrator import create_pipeline
from content_engine.services.brand_directory import BrandDirectory
from content_engine.utils.logger import setup_logging

# Initialize Rich Console
console = Console()

# =============================================================================
# Helper Functions
# =============================================================================

def async_command(f):
    """Decorator to run async click commands."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))
    return wrapper


def setup_logger(verbose: bool):
    """Configure logging based on verbosity."""
    setup_logging(level="DEBUG" if verbose else "WARNING", json_format=False)


def _link(url: Optional[str]) -> str:
    return url if url else "[dim]-[/dim]"


def render_result(result: VideoProcessingResult) -> Table:
    table = Table(title=f"Products: {result.title or result.video_id}", show_lines=False)
    table.add_column("Brand", style="cyan")
    table.add_column("Product")
    table.add_column("Type", style="magenta")
    table.add_column("Affiliate link")
    table.add_column("Retail link")
    table.add_column("Price", justify="right")

    for product in result.products:
        table.add_row(
            product.brand,
            product.name,
            product.type.value,
            _link(product.shopmy_url),
            _link(product.amazon_url),
            product.amazon_price or "",
        )
    return table

# =============================================================================
# CLI Group
# =============================================================================

@click.group()
@click.version_option(version=__version__)
def cli():
    """Creator Content Engine"""
    pass

# =============================================================================
# Commands
# =============================================================================

@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--title', default='', help='Video title')
@click.option('--video-id', default=None, help='Video ID (defaults to the file name)')
@click.option('--analyze/--no-analyze', default=True, help='Run Claude analysis when configured')
@click.option('--enrich/--no-enrich', default=True, help='Look up retail links when configured')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.option('--verbose', is_flag=True, help='Detailed logging')
@async_command
async def extract(
    file_path: str,
    title: str,
    video_id: Optional[str],
    analyze: bool,
    enrich: bool,
    as_json: bool,
    verbose: bool,
):
    """
    Extract products from a video description.

    FILE_PATH: Text file holding the description.
    """
    setup_logger(verbose)

    path = Path(file_path)
    video = VideoInput(
        video_id=video_id or path.stem,
        title=title,
        description=path.read_text(encoding='utf-8'),
    )

    try:
        settings = get_settings()
        async with create_pipeline(settings, analyze=analyze, enrich=enrich) as pipeline:
            result = await pipeline.run(video)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        if verbose:
            console.print_exception()
        sys.exit(1)

    if as_json:
        console.print_json(result.to_json())
        return

    if result.products:
        console.print(render_result(result))
    else:
        console.print("[yellow]No products found.[/yellow]")

    summary = (
        f"Strategy: [cyan]{result.extraction_strategy}[/cyan]\n"
        f"Products: [cyan]{len(result.products)}[/cyan] "
        f"(affiliate {result.affiliate_link_count}, retail {result.retail_link_count})"
    )
    if result.analysis:
        summary += f"\nBlog title: {result.analysis.blog_title} [dim]({result.analysis.generated_by})[/dim]"
    console.print(Panel.fit(summary))

    for error in result.errors:
        console.print(f"[red]✗ {error}[/red]")


@cli.command()
@click.option('--verbose', is_flag=True, help='Detailed logging')
@async_command
async def brands(verbose: bool):
    """Show the active brand list size and where it came from."""
    setup_logger(verbose)

    directory = BrandDirectory.from_settings(get_settings())
    try:
        snapshot = await directory.get_snapshot()
    finally:
        await directory.close()

    table = Table(show_header=False)
    table.add_row("Source", snapshot.source)
    table.add_row("Brands", str(len(snapshot.entries)))
    table.add_row("Names and aliases", str(len(snapshot.names)))
    console.print(table)

    if verbose:
        console.print(", ".join(entry.canonical_name for entry in snapshot.entries))


@cli.command()
def validate_setup():
    """Show which optional integrations are configured."""
    console.print("[bold]Validating Setup...[/bold]")

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        sys.exit(1)

    def status(ok: bool) -> str:
        return "[green]Configured[/green]" if ok else "[yellow]Disabled[/yellow]"

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Integration")
    table.add_column("Status")
    table.add_column("Details")
    table.add_row("Claude analysis", status(settings.is_analysis_configured()), settings.claude_model)
    table.add_row(
        "Brand directory",
        status(settings.is_brand_directory_configured()),
        settings.sanity_project_id or "built-in list",
    )
    table.add_row(
        "Retail catalog",
        status(settings.is_retail_configured() and bool(settings.amazon_partner_tag)),
        settings.amazon_marketplace,
    )
    table.add_row("Environment", "[blue]Info[/blue]", settings.app_env)
    console.print(table)


if __name__ == "__main__":
    cli()
