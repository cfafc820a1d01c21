"""CLI application for address intelligence."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(help="Address intelligence: wallet profiling, scoring and cohort analysis")
console = Console()

MessagesFile = typer.Argument(
    ...,
    help="JSON Lines file with one inbound message per line",
    exists=True,
    file_okay=True,
    dir_okay=False,
)


def _load_messages(path: Path) -> list[dict]:
    messages = []
    with path.open(encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                messages.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"{path.name}:{line_no}: {e.msg}") from e
    return messages


async def _replay(services, path: Path) -> None:
    from addrintel.bridge import InboundMessage

    messages = _load_messages(path)
    console.print(f"[bold blue]Replaying {len(messages):,} messages from {path.name}...[/bold blue]")
    for raw in messages:
        await services.bridge.handle_message(InboundMessage.from_dict(raw))
    console.print(f"  Profiles: {await services.store.count():,}")


@app.command()
def serve(
    host: str = "0.0.0.0",
    port: int = 9020,
    reload: bool = False,
) -> None:
    """Start the FastAPI server."""
    import uvicorn

    from addrintel.config import IntelConfig, configure_logging

    configure_logging(IntelConfig().log_level)
    console.print(f"[bold green]Starting Address Intelligence API on {host}:{port}[/bold green]")
    uvicorn.run(
        "addrintel.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from addrintel import __version__

    console.print(f"[bold]addrintel[/bold] version [green]{__version__}[/green]")


@app.command()
def templates() -> None:
    """List the built-in group analysis templates."""
    from addrintel.cohort import filter_templates

    table = Table(title="Group analysis templates")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Description")
    for template in filter_templates():
        table.add_row(template.slug, template.name, template.description)
    console.print(table)


@app.command()
def report(messages_file: Path = MessagesFile) -> None:
    """Replay messages and print the intelligence report."""
    from addrintel.config import IntelConfig, configure_logging
    from addrintel.services.container import IntelligenceServices

    async def _report() -> None:
        config = IntelConfig()
        configure_logging(config.log_level)
        async with IntelligenceServices(config) as services:
            await _replay(services, messages_file)
            summary = await services.bridge.intelligence_report()

        table = Table(title="Value tiers")
        table.add_column("Tier")
        table.add_column("Addresses", justify="right")
        for tier, count in summary["tier_distribution"].items():
            table.add_row(tier, str(count))

        console.print("\n[bold green]Intelligence Report:[/bold green]")
        console.print(f"  Total addresses: {summary['total_addresses']:,}")
        console.print(f"  Average engagement: {summary['average_engagement']:.1f}")
        console.print(table)
        for insight in summary["insights"]:
            console.print(f"  • {insight}")

    try:
        asyncio.run(_report())
    except KeyboardInterrupt:
        console.print("\n[bold red]Interrupted by user[/bold red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def analyze(
    messages_file: Path = MessagesFile,
    template: str = typer.Option(
        "flutterbye_users",
        "--template",
        help="Template slug (see `addrintel templates`)",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        help="Analysis name (defaults to the template name)",
    ),
) -> None:
    """Replay messages and run a group analysis from a template."""
    from addrintel.config import IntelConfig, configure_logging
    from addrintel.errors import EmptyCohortError, UnknownTemplateError
    from addrintel.services.container import IntelligenceServices

    async def _analyze() -> None:
        config = IntelConfig()
        configure_logging(config.log_level)
        async with IntelligenceServices(config) as services:
            await _replay(services, messages_file)
            _, result = await services.cohort.analyze_template(template, name)

        console.print(f"\n[bold green]✓ {result.analysis_name}[/bold green] ({result.id})")
        console.print(f"  Wallets: {result.wallet_count:,}")
        console.print(f"  Confidence: {result.confidence:.2f}")
        console.print(f"  Summary: {result.ai_analysis.summary}")
        for finding in result.ai_analysis.key_findings:
            console.print(f"  • {finding}")

    try:
        asyncio.run(_analyze())
    except (EmptyCohortError, UnknownTemplateError) as e:
        console.print(f"\n[bold yellow]{e.message}[/bold yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
