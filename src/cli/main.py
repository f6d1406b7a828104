"""CLI entry point for browsing the storefront product listing.

Runs one acquisition against the configured stores, following a switch to
the fallback store when the primary store turns the request away, and prints
the resulting listing.
"""

import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from src.acquisition.session import ListingSession
from src.cli.output import JSONOutputFormatter
from src.models.config import ConfigManager, StorefrontConfig
from src.models.data_models import (
    AcquisitionFailure,
    ErrorCategory,
    FetchRequest,
    ListingSnapshot,
    SortKey,
)


console = Console()

ERROR_TITLES = {
    ErrorCategory.UNAUTHORIZED: "Authentication Required",
    ErrorCategory.NOT_FOUND: "Products Not Found",
    ErrorCategory.SERVER_FAULT: "Server Error",
    ErrorCategory.TIMEOUT: "Request Timed Out",
    ErrorCategory.NETWORK_FAULT: "Network Error",
    ErrorCategory.GENERIC_API_FAULT: "Request Failed",
}


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default="config/config.yaml",
    help="Path to configuration YAML file",
)
@click.option("--category", multiple=True, help="Category to include (repeatable)")
@click.option("--brand", multiple=True, help="Brand to include (repeatable)")
@click.option(
    "--sort",
    "-s",
    type=click.Choice([key.value for key in SortKey]),
    help="Sort order (overrides config)",
)
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True, help="Page to fetch")
@click.option("--page-size", type=click.IntRange(min=1), help="Records per page (overrides config)")
@click.option("--user-id", help="Signed-in user id sent to the primary store")
@click.option("--user-email", help="Signed-in user email sent to the primary store")
@click.option(
    "--timeout",
    "-t",
    type=float,
    help="Read timeout in seconds for both stores (overrides config)",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides config)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Write the final listing state as JSON to this path",
)
@click.option(
    "--no-fallback-refetch",
    is_flag=True,
    help="Do not re-issue the request after switching to the fallback store",
)
@click.option("--details", "details_id", help="Also fetch the details of this product id")
@click.version_option(version="1.0.0", prog_name="storefront-listing")
def main(
    config: Path,
    category: Tuple[str, ...],
    brand: Tuple[str, ...],
    sort: Optional[str],
    page: int,
    page_size: Optional[int],
    user_id: Optional[str],
    user_email: Optional[str],
    timeout: Optional[float],
    log_level: Optional[str],
    output: Optional[Path],
    no_fallback_refetch: bool,
    details_id: Optional[str],
) -> None:
    """
    Storefront Listing - fetch a filtered product listing.

    Reads from the primary store and moves to the fallback store when the
    primary store rejects the user or cannot find the catalog.

    Examples:

        # Listing for a signed-in user
        $ storefront-listing --user-id u1 --category men --sort price-hightolow

        # Anonymous listing, exported as JSON
        $ storefront-listing --category women -o out/listing.json
    """
    try:
        cli_overrides = {
            "read_timeout": timeout,
            "page_size": page_size,
            "default_sort": sort,
            "user_id": user_id,
            "user_email": user_email,
            "log_level": log_level.upper() if log_level else None,
        }

        config_manager = ConfigManager(config)
        storefront_config = config_manager.load_config(cli_overrides)

        request = FetchRequest.build(
            category=category,
            brand=brand,
            sort_key=storefront_config.sort_key,
            page=page,
            page_size=storefront_config.page_size
        )

        snapshot, details_failure = asyncio.run(
            _run_listing(storefront_config, request, not no_fallback_refetch, details_id)
        )

        if output:
            JSONOutputFormatter().save(snapshot, str(output))

        _display_snapshot(snapshot, output)

        if details_failure is not None:
            console.print(f"[yellow]Details unavailable:[/yellow] {details_failure.error.message}")

        sys.exit(1 if snapshot.current_error else 0)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)  # Standard exit code for SIGINT
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}", style="bold red")
        sys.exit(1)


async def _run_listing(
    config: StorefrontConfig,
    request: FetchRequest,
    refetch_on_switch: bool,
    details_id: Optional[str],
) -> Tuple[ListingSnapshot, Optional[AcquisitionFailure]]:
    """Run one browse (and optional details lookup) in a fresh session."""
    async with ListingSession(config) as session:
        snapshot = await session.browse(request, refetch_on_switch=refetch_on_switch)

        if session.controller.consume_switch_notice():
            console.print(
                "[yellow]Using Backup Database:[/yellow] primary database unavailable, "
                "using backup source"
            )

        details_failure = None
        if details_id:
            result = await session.details(details_id)
            if isinstance(result, AcquisitionFailure):
                details_failure = result
            else:
                snapshot = replace(snapshot, product_details=result.product)

        return snapshot, details_failure


def _display_snapshot(snapshot: ListingSnapshot, output_path: Optional[Path]) -> None:
    """Render the listing state."""
    summary_table = Table(title="Acquisition Summary", show_header=False)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("Source", snapshot.mode.value)
    summary_table.add_row("Switched", "yes" if snapshot.switched else "no")
    summary_table.add_row("Total Products", str(snapshot.total_count))
    if snapshot.page_info:
        summary_table.add_row(
            "Page",
            f"{snapshot.page_info.page} of {max(snapshot.page_info.total_pages, 1)}",
        )
    console.print(summary_table)
    console.print()

    error = snapshot.current_error
    if error is not None:
        title = ERROR_TITLES.get(error.category, "Request Failed")
        console.print(f"[bold red]{title}:[/bold red] {error.message} ({error.code})")
    elif snapshot.is_empty:
        console.print("[yellow]No products match the selected filters.[/yellow]")
    else:
        product_table = Table(title="Products")
        product_table.add_column("Title", style="cyan")
        product_table.add_column("Category")
        product_table.add_column("Brand")
        product_table.add_column("Price", justify="right", style="green")
        product_table.add_column("Sale", justify="right", style="magenta")
        product_table.add_column("Stock", justify="right")

        for product in snapshot.products:
            product_table.add_row(
                product.title,
                product.category,
                product.brand,
                f"${product.price:.2f}",
                f"${product.sale_price:.2f}" if product.on_sale else "-",
                str(product.total_stock),
            )
        console.print(product_table)

    if snapshot.product_details is not None:
        details = snapshot.product_details
        console.print(f"\n[bold]Details:[/bold] {details.title} ({details.id}) - ${details.price:.2f}")

    if output_path:
        console.print(f"\n[bold]Output saved to:[/bold] {output_path}")


if __name__ == "__main__":
    main()
