"""Operator CLI for the VerifiVUE lifecycle engine using Typer and Rich."""

import asyncio
import sys
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from verifivue.config.logging import get_logger
from verifivue.config.packages import DEFAULT_PACKAGES
from verifivue.config.settings import settings
from verifivue.data_management import RequestStore
from verifivue.data_management.schemas import GateDecision
from verifivue.lifecycle.analysis_gate import AnalysisGate
from verifivue.lifecycle.document_analyzer import DocumentAnalyzer
from verifivue.lifecycle.errors import AnalysisUnavailableError
from verifivue.lifecycle.timeline import TimelineBuilder

__version__ = "0.1.0"

app = typer.Typer(
    help="VerifiVUE CLI - academic credential verification lifecycle",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

STATUS_STYLES = {
    "VERIFIED": "green",
    "REJECTED": "red",
    "REVIEW_REQUIRED": "yellow",
    "PENDING_CLIENT_ACTION": "yellow",
    "INSTITUTION_OUTREACH": "cyan",
    "PROCESSING": "blue",
}


@app.command()
def status() -> None:
    """
    Display system status and configuration.

    Shows the analysis model, routing threshold, persistence and logging settings.
    """
    logger.info("Displaying system status")

    table = Table(title=f"{settings.app_name} Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)

    api_status = "✓ Configured" if settings.gemini_api_key else "⚠ Not Configured"
    api_details = f"{settings.gemini_model} (retries: {settings.gemini_max_retries})"
    table.add_row("Gemini API", api_status, api_details)

    table.add_row(
        "Analysis Gate",
        "✓ Active",
        f"Pass at confidence >= {settings.analysis_confidence_threshold} and no tampering",
    )

    if settings.data_dir:
        table.add_row("Persistence", "✓ JSON", settings.data_dir)
    else:
        table.add_row("Persistence", "⚠ Memory only", "Set DATA_DIR to persist records")

    log_details = f"Level: {settings.log_level}, Format: {settings.log_format}"
    table.add_row("Logging", "✓ Active", log_details)

    console.print(table)


@app.command()
def analyze(
    document: Path = typer.Argument(..., exists=True, dir_okay=False, help="Credential image or PDF"),
) -> None:
    """
    Run AI analysis on a credential document and show the routing decision.

    Args:
        document: Path to the document to analyze
    """
    logger.info(f"Analyzing document {document}")
    console.print(f"\n[bold cyan]Analyzing[/bold cyan] {document}\n")

    analyzer = DocumentAnalyzer()
    gate = AnalysisGate(settings.analysis_confidence_threshold)

    start_time = time.time()
    try:
        result = asyncio.run(analyzer.analyze(str(document)))
    except AnalysisUnavailableError as e:
        console.print(f"\n[red]✗[/red] Analysis unavailable: {e}")
        logger.error(f"Analysis failed: {e}")
        raise typer.Exit(1)
    elapsed = time.time() - start_time

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Name", result.extracted_name)
    table.add_row("Institution", result.extracted_institution)
    table.add_row("Degree", result.extracted_degree)
    table.add_row("Date", result.extracted_date)
    table.add_row("Confidence", f"{result.confidence_score:g}%")
    table.add_row("Tampered", "yes" if result.is_tampered else "no")
    table.add_row("Notes", result.authenticity_notes)
    console.print(table)

    decision = gate.evaluate(result)
    style = "green" if decision == GateDecision.PASS else "yellow"
    console.print(Panel(gate.describe(result), title=decision.value, border_style=style))
    console.print(f"\n[dim]Analysis completed in {elapsed:.2f}s[/dim]")


@app.command()
def requests(
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", help="Directory holding requests.json (defaults to DATA_DIR)"
    ),
) -> None:
    """List persisted verification requests with their status and active stage."""
    directory = data_dir or (Path(settings.data_dir) if settings.data_dir else None)
    if directory is None:
        console.print("[yellow]⚠[/yellow] No data directory configured (use --data-dir or DATA_DIR)")
        raise typer.Exit(1)

    path = directory / "requests.json"
    if not path.exists():
        console.print(f"[yellow]⚠[/yellow] No requests found at {path}")
        return

    store = RequestStore(str(path))
    builder = TimelineBuilder()
    records = asyncio.run(store.list_all())

    table = Table(title="Verification Requests", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Candidate")
    table.add_column("Institution")
    table.add_column("Client")
    table.add_column("Status")
    table.add_column("Stage")
    table.add_column("Updated", style="dim")

    for record in records:
        stage = builder.active_stage(record.timeline)
        style = STATUS_STYLES.get(record.status.value, "white")
        table.add_row(
            record.id,
            record.candidate_name,
            record.institution,
            record.client_name or record.client_id,
            f"[{style}]{record.status.value}[/{style}]",
            stage.value if stage else "closed",
            record.last_updated.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)
    logger.info(f"Listed {len(records)} requests from {path}")


@app.command()
def packages() -> None:
    """Display the purchasable package catalogue."""
    table = Table(title="Packages", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Credits", justify="right")
    table.add_column(f"Price ({settings.currency})", justify="right")
    table.add_column("Description", style="dim")

    for package in DEFAULT_PACKAGES.values():
        credits = "Unlimited (1 year)" if package.is_unlimited else str(package.credits)
        table.add_row(package.id, package.name, credits, f"{package.price:,.2f}", package.description)

    console.print(table)


@app.command()
def version() -> None:
    """Display version information."""
    console.print(f"[bold]{settings.app_name}[/bold]")
    console.print(f"Version: {__version__}")


if __name__ == "__main__":
    app()
