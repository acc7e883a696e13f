"""CLI entry point for CryoNexus."""

import asyncio
from pathlib import Path

import click
from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cryonexus.client.analysis_client import AnalysisClient
from cryonexus.client.state import AgentStatus, AnalysisState, AnalysisStateMachine, RunStatus
from cryonexus.config import get_settings
from cryonexus.logger import get_logger
from cryonexus.models.domain import Domain
from cryonexus.models.routing import EventCategory
from cryonexus.services.replay import RecordedAnalysis, replay_recording
from cryonexus.services.scoring import DomainSeverities, score_breakdown
from cryonexus.services.sse_codec import encode_event

console = Console()
logger = get_logger(__name__)

STATUS_STYLES = {
    AgentStatus.IDLE: "dim",
    AgentStatus.STREAMING: "yellow",
    AgentStatus.COMPLETE: "green",
    AgentStatus.ERROR: "red",
}

# Characters of streamed text shown per panel while live
PANEL_TAIL = 400


def _tail(text: str, limit: int = PANEL_TAIL) -> str:
    text = text.strip()
    return text if len(text) <= limit else "..." + text[-limit:]


def _score_style(score: int) -> str:
    if score >= 70:
        return "red"
    if score >= 40:
        return "yellow"
    return "green"


def _render_state(state: AnalysisState) -> Group:
    """Build the live view of one analysis run."""
    header = (
        f"[bold]Scenario:[/bold] {escape(state.scenario) or '-'}\n"
        f"[bold]Phase:[/bold] {state.pipeline_status.value}"
    )
    if state.pipeline_message:
        header += f" ({escape(state.pipeline_message)})"
    if state.routing is not None:
        header += (
            f"\n[bold]Regions:[/bold] {escape(', '.join(state.routing.primary_regions))}"
            f" / {escape(', '.join(state.routing.secondary_regions))}"
            f"\n[bold]Severity:[/bold] {state.routing.severity}/10"
        )
    renderables = [Panel(header, title="CryoNexus", border_style="blue")]

    errors_by_agent = {e.agent: e.message for e in state.errors if e.agent}
    for domain in Domain:
        status = state.agent_statuses[domain]
        body = escape(_tail(state.agent_texts[domain])) or "[dim]waiting...[/dim]"
        if status == AgentStatus.ERROR:
            body = f"[red]{escape(errors_by_agent.get(domain.value, 'Agent failed'))}[/red]"
        title = domain.value.replace("_", " ").title()
        result = state.agent_results.get(domain)
        if result is not None:
            title += f" (severity {result.severity()})"
        renderables.append(Panel(body, title=title, border_style=STATUS_STYLES[status]))

    synthesis_body = escape(_tail(state.synthesis_text)) or "[dim]waiting...[/dim]"
    if state.synthesis_output is not None:
        synthesis_body = (
            f"[bold]Cascade:[/bold] {escape(state.synthesis_output.cascading_risk_chain)}\n"
            f"[bold]Most affected:[/bold] {escape(state.synthesis_output.most_affected_population)}\n"
            f"[bold]Second-order:[/bold] {escape(state.synthesis_output.second_order_effect)}"
        )
    renderables.append(
        Panel(synthesis_body, title="Synthesis", border_style=STATUS_STYLES[state.synthesis_status])
    )

    if state.compound_risk_score is not None:
        style = _score_style(state.compound_risk_score)
        renderables.append(
            Panel(
                f"[bold {style}]{state.compound_risk_score}[/bold {style}] / 100",
                title="Compound Risk Score",
                border_style=style,
            )
        )
    if state.status == RunStatus.ERROR and state.failure_reason:
        renderables.append(
            Panel(f"[red]{escape(state.failure_reason)}[/red]", title="Analysis Failed", border_style="red")
        )
    return Group(*renderables)


@click.group()
@click.version_option(version="0.1.0", prog_name="cryonexus")
def cli():
    """CryoNexus: multi-agent catastrophic scenario analysis.

    Route a scenario to five specialist agents, stream their findings and
    compute a compound risk score.
    """
    pass


@cli.command()
@click.option("--host", type=str, default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
@click.option("--port", "-p", type=int, default=8000, help="Port to listen on (default: 8000)")
def serve(host: str, port: int):
    """Run the analysis API server."""
    import uvicorn

    from cryonexus.api.main import create_app

    try:
        settings = get_settings()
        logger.debug("Settings loaded successfully")
    except Exception as e:
        logger.error(f"Configuration error: {e}")
        console.print(f"[red]Configuration error:[/red] {e}")
        console.print("Make sure ANTHROPIC_API_KEY is set")
        raise SystemExit(1)

    logger.info(f"Serving CryoNexus API on {host}:{port}")
    console.print(f"[green]CryoNexus API[/green] listening on http://{host}:{port} (docs at /docs)")
    uvicorn.run(create_app(settings), host=host, port=port)


async def _run_analysis(
    scenario: str, url: str, flush_interval: float
) -> AnalysisState:
    async with AnalysisClient(url, flush_interval=flush_interval) as client:
        with Live(_render_state(client.state), console=console, refresh_per_second=8) as live:
            client.subscribe(lambda state: live.update(_render_state(state)))
            state = await client.analyze(scenario)
            live.update(_render_state(state))
        return state


@cli.command()
@click.option(
    "--scenario",
    "-s",
    type=str,
    default=None,
    help="Scenario to analyze (or enter interactively)",
)
@click.option(
    "--url",
    "-u",
    type=str,
    default="http://127.0.0.1:8000",
    help="Base URL of a running CryoNexus API",
)
@click.option(
    "--save",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the finished analysis as a replayable recording",
)
@click.option(
    "--flush-interval",
    type=float,
    default=0.08,
    help="Seconds between UI updates while text streams (0 = every chunk)",
)
def analyze(scenario: str | None, url: str, save: Path | None, flush_interval: float):
    """Analyze a scenario against a running API and show agents live."""
    logger.info("=" * 60)
    logger.info("CryoNexus analysis session started")

    if scenario is None:
        console.print(
            Panel(
                "Describe a catastrophic scenario to simulate.\n"
                "Be specific about where and what happens.",
                title="CryoNexus",
                border_style="blue",
            )
        )
        scenario = click.prompt("\nScenario")

    try:
        state = asyncio.run(_run_analysis(scenario, url, flush_interval))
    except KeyboardInterrupt:
        console.print("\n[yellow]Analysis aborted.[/yellow]")
        raise SystemExit(1)

    if state.status == RunStatus.ERROR:
        logger.error(f"Analysis failed: {state.failure_reason}")
        raise SystemExit(1)

    if save is not None:
        try:
            RecordedAnalysis.from_state(state).save(save)
        except ValueError as e:
            console.print(f"[red]Could not save recording:[/red] {e}")
            raise SystemExit(1)
        console.print(f"[green]✓[/green] Recording saved to {save}")

    logger.info("Session completed successfully")
    logger.info("=" * 60)


@cli.command()
@click.option("--geopolitics", "-g", type=click.FloatRange(0, 10), default=0.0, help="Geopolitics severity (0-10)")
@click.option("--economy", "-e", type=click.FloatRange(0, 10), default=0.0, help="Economy severity (0-10)")
@click.option("--food", "-f", type=click.FloatRange(0, 10), default=0.0, help="Food supply severity (0-10)")
@click.option("--infrastructure", "-i", type=click.FloatRange(0, 10), default=0.0, help="Infrastructure severity (0-10)")
@click.option("--civilian", "-c", type=click.FloatRange(0, 10), default=0.0, help="Civilian impact severity (0-10)")
@click.option(
    "--category",
    "categories",
    "-k",
    type=click.Choice([c.value for c in EventCategory]),
    multiple=True,
    required=True,
    help="Event category; repeat for several",
)
def score(
    geopolitics: float,
    economy: float,
    food: float,
    infrastructure: float,
    civilian: float,
    categories: tuple[str, ...],
):
    """Compute a compound risk score from domain severities."""
    severities = DomainSeverities(geopolitics, economy, food, infrastructure, civilian)
    breakdown = score_breakdown(severities, categories)

    table = Table(title="Compound Risk Score", show_header=True)
    table.add_column("Domain", style="bold")
    table.add_column("Severity", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Contribution", justify="right")

    for name, severity, weight in zip(DomainSeverities._fields, severities, breakdown.weights):
        table.add_row(name, f"{severity:g}", f"{weight:.3f}", f"{severity * weight:.3f}")

    console.print(table)
    console.print(f"[bold]Categories:[/bold] {', '.join(categories)}")
    console.print(f"[bold]Weighted average:[/bold] {breakdown.weighted_avg:.3f}")
    console.print(
        f"[bold]Cascade multiplier:[/bold] {breakdown.cascade_multiplier:.1f}x "
        f"({breakdown.high_severity_count} domains at 7+)"
    )
    console.print(f"[bold]Raw score:[/bold] {breakdown.raw_score:.2f}")
    style = _score_style(breakdown.score)
    console.print(f"[bold]Score:[/bold] [{style}]{breakdown.score}[/{style}] / 100")


async def _replay_to_console(recording: RecordedAnalysis, delay: float, raw: bool) -> None:
    events = replay_recording(recording, delay=delay, chunk_delay=delay / 5)
    if raw:
        async for event in events:
            click.echo(encode_event(event), nl=False)
        return

    machine = AnalysisStateMachine(coalesce=False)
    machine.begin(recording.scenario)
    with Live(_render_state(machine.state), console=console, refresh_per_second=8) as live:
        machine.subscribe(lambda state: live.update(_render_state(state)))
        async for event in events:
            machine.apply(event)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--raw", is_flag=True, help="Print the SSE wire text instead of the live view")
@click.option("--delay", type=float, default=0.1, help="Seconds between replayed events")
def replay(path: Path, raw: bool, delay: float):
    """Replay a recorded analysis through the event protocol."""
    try:
        recording = RecordedAnalysis.load(path)
    except ValueError as e:
        logger.error(f"Invalid recording {path}: {e}")
        console.print(f"[red]Invalid recording:[/red] {e}")
        raise SystemExit(1)

    logger.info(f"Replaying {path}")
    asyncio.run(_replay_to_console(recording, 0 if raw else delay, raw))


if __name__ == "__main__":
    cli()
