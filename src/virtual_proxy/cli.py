from pathlib import Path
from typing import Optional
import json
import logging

import typer

from .config import Settings
from .logging import get_logger
from .scenario import ScenarioError, load_scenario, replay

app = typer.Typer(help="virtual-proxy – replay adversarial handler scenarios against an invariant-enforcing proxy", no_args_is_help=True)


@app.command()
def run(
    scenario_path: Path = typer.Argument(..., exists=True, readable=True, help="Path to the JSON scenario file"),
    json_out: Optional[Path] = typer.Option(None, "--json-out", "-o", help="Write the replay report as JSON"),
    trace: bool = typer.Option(False, "--trace/--no-trace", help="Log every intercepted operation"),
) -> None:
    """
    Replay a scenario and report how each operation ended.

    Exits with code 1 when the handler triggered an invariant violation,
    and with code 2 when the scenario file is invalid.
    """
    logger = get_logger(__name__)

    try:
        scenario = load_scenario(scenario_path)
    except ScenarioError as exc:
        logger.error(f"Invalid scenario: {exc}")
        raise typer.Exit(code=2) from exc

    if trace:
        get_logger("virtual_proxy.proxy").setLevel(logging.DEBUG)
        get_logger("virtual_proxy.scenario").setLevel(logging.DEBUG)

    logger.info(f"Replaying {len(scenario.steps)} steps from {scenario_path}")
    try:
        report = replay(scenario, Settings(trace_operations=trace))
    except ScenarioError as exc:
        logger.error(f"Invalid scenario: {exc}")
        raise typer.Exit(code=2) from exc

    for step in report.steps:
        typer.echo(step.summary())

    counts = report.counts()
    typer.echo(
        f"\n{len(report.steps)}/{len(scenario.steps)} steps run: "
        f"{counts['ok']} ok, {counts['refused']} refused, "
        f"{counts['error']} errors, {counts['violation']} violations"
    )

    if json_out is not None:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        with open(json_out, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2)
        logger.info(f"Wrote report to {json_out}")

    if report.violated:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
