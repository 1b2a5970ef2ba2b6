"""Main CLI entry point for the Polymer-X committee engine."""

import asyncio
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console

from polymer_x.cli.display import (
    print_header,
    print_history_table,
    print_phase,
    print_response,
)
from polymer_x.committee.orchestrator import CommitteeOrchestrator
from polymer_x.contracts.schemas import CommitteeConfig, PlasticType
from polymer_x.contracts.validators import normalize_sample
from polymer_x.errors import ValidationError
from polymer_x.log import configure_logging

load_dotenv()

app = typer.Typer(
    name="polymer-x",
    help="Polymer-X - committee-reviewed enzyme designs for plastic bioremediation",
    add_completion=False,
)
console = Console()


@app.command()
def run(
    lat: float = typer.Option(32.0, "--lat", help="Latitude of the sample"),
    lng: float = typer.Option(-145.0, "--lng", help="Longitude of the sample"),
    salinity: float = typer.Option(35.5, "--salinity", "-s", help="Salinity in ppt"),
    plastic: PlasticType = typer.Option(PlasticType.PET, "--plastic", "-p", help="Plastic type"),
    stress: bool = typer.Option(True, "--stress/--no-stress", help="Environmental stress signal"),
    delay: Optional[float] = typer.Option(None, "--delay", "-d", help="Seconds to pause per phase"),
    offline: bool = typer.Option(False, "--offline", help="Skip the remote model"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response envelope"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Run one committee decision for a water sample.

    Example:
        polymer-x run --salinity 38 --plastic HDPE --no-stress
    """
    configure_logging(verbose, quiet=as_json)

    config = CommitteeConfig.from_env()
    updates: dict[str, object] = {}
    if delay is not None:
        updates["phase_delay"] = delay
    if offline:
        updates["enable_remote"] = False
    if updates:
        config = CommitteeConfig.model_validate({**config.model_dump(), **updates})

    try:
        sample = normalize_sample({
            "lat": lat,
            "lng": lng,
            "salinity": salinity,
            "plastic_type": plastic.value,
            "stress_signal_bool": stress,
        })
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    callbacks = {} if as_json else {"on_status_change": print_phase}
    orchestrator = CommitteeOrchestrator.from_config(config, callbacks=callbacks)

    if not as_json:
        print_header(sample, orchestrator.mode)

    try:
        response = asyncio.run(orchestrator.run_decision(sample))
    except KeyboardInterrupt:
        console.print("\n[yellow]Deployment interrupted by user[/yellow]")
        raise typer.Exit(0)

    if as_json:
        console.print_json(response.model_dump_json(exclude_none=True))
    else:
        print_response(response)

    if not response.success:
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Serve the committee HTTP API."""
    import uvicorn

    uvicorn.run("polymer_x.server:app", host=host, port=port)


@app.command()
def history(
    url: str = typer.Option("http://127.0.0.1:8000", "--url", help="Running server base URL"),
) -> None:
    """Show the deployment history of a running server."""
    import httpx
    from pydantic import TypeAdapter

    from polymer_x.contracts.schemas import CommitteeResponse

    try:
        resp = httpx.get(f"{url.rstrip('/')}/api/deployments", timeout=10.0)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        console.print(f"[red]Error:[/red] could not reach {url}: {e}")
        raise typer.Exit(1)

    deployments = TypeAdapter(list[CommitteeResponse]).validate_python(resp.json())
    if not deployments:
        console.print("[dim]No deployments yet.[/dim]")
        return
    print_history_table(deployments)


@app.command()
def version() -> None:
    """Show version information."""
    from polymer_x import __version__
    console.print(f"[bold]Polymer-X[/bold] v{__version__}")
    console.print("Committee Decision Engine")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
