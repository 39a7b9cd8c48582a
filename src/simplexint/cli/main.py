# src/simplexint/cli/main.py
import json
from pathlib import Path
from typing import List, Optional

import numpy as np
import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from simplexint.core.config import load_config
from simplexint.core.logging import set_console_level, setup_logfile
from simplexint.core.validators import asdict
from simplexint.geometry.expansion import intersect_simplices

console = Console()

app = typer.Typer(
    help="simplexint: boundary intersections of N-dimensional simplices",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
):
    """
    Compute where the faces of two simplices cross.

    Use 'simplexint COMMAND --help' to see options for specific commands.
    """
    if version:
        from simplexint import __version__
        typer.echo(f"simplexint version {__version__}")
        raise typer.Exit()

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _read_simplex(raw: dict, key: str) -> np.ndarray:
    if key not in raw:
        raise ValueError(f"Missing '{key}': expected a list of N+1 vertices with N coordinates each")
    rows = np.asarray(raw[key], dtype=np.float64)
    if rows.ndim != 2:
        raise ValueError(f"'{key}' must be a list of vertex coordinate lists")
    # One row per vertex in the file, one column per vertex internally.
    return rows.T


@app.command("intersect")
def intersect(
    ctx: typer.Context,
    config: Path = typer.Argument(..., help="YAML file with 'simplex1', 'simplex2' and optional 'settings'"),
    overrides: Optional[List[str]] = typer.Option(
        None, "--set", "-s", help="Override a config entry, e.g. settings.tolerance=1e-10"
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit points and coefficients as JSON"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """Intersect the boundaries of the two simplices described in CONFIG."""
    try:
        settings, raw = load_config(config, overrides)
        verbose = bool(ctx.obj and ctx.obj.get("verbose"))
        if verbose:
            set_console_level("DEBUG")
        if log_file is not None:
            setup_logfile(str(log_file), level=settings.log_level)

        s1 = _read_simplex(raw, "simplex1")
        s2 = _read_simplex(raw, "simplex2")
        result = intersect_simplices(s1, s2, settings)
    except (ValueError, ValidationError, FileNotFoundError, yaml.YAMLError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    coordinates, coefficients = result
    if as_json:
        typer.echo(json.dumps({
            "points": coordinates.tolist(),
            "coefficients": coefficients.tolist(),
            "outcomes": {k.value: v for k, v in result.outcomes.items()},
            "settings": asdict(settings),
        }))
        return

    n = coordinates.shape[1]
    table = Table(title=f"{len(result)} intersection point(s)")
    for k in range(n):
        table.add_column(f"x{k + 1}", style="cyan", justify="right")
    table.add_column("weights on simplex1", style="green")
    table.add_column("weights on simplex2", style="magenta")
    for point, z in zip(coordinates, coefficients):
        table.add_row(
            *(f"{x:.6g}" for x in point),
            " ".join(f"{w:.4g}" for w in z[:n + 1]),
            " ".join(f"{w:.4g}" for w in z[n + 1:]),
        )
    console.print(table)


if __name__ == "__main__":
    app()
