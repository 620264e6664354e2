"""Command line entrypoint for solarsavings.

Implements three commands:

* ``calculate``: size a system and project its economics from a request file.
* ``catalog``: list the equipment tables (optionally with file overrides).
* ``utility``: look up the electric utility serving an address.
"""
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Optional

import typer

from solarsavings.cli_utils import catalog_frames, financing_frame, projection_frame, write_result
from solarsavings.core.catalog import DEFAULT_CATALOG
from solarsavings.core.config import ConfigError, load_catalog, load_request
from solarsavings.core.debug import NullDebugCollector, build_debug_collector
from solarsavings.core.models import CalculationError
from solarsavings.engine.calculate import calculate_solar_system
from solarsavings.irradiance.base import IrradianceProvider
from solarsavings.irradiance.fallback import LatitudeIrradianceEstimate
from solarsavings.irradiance.nrel import NRELIrradianceProvider
from solarsavings.irradiance.pvgis import PVGISIrradianceProvider
from solarsavings.persistence.store import JsonlCalculationStore, persist_in_background
from solarsavings.utility import lookup_utility

__version__ = "0.1.0"

IRRADIANCE_SOURCES = ("fallback", "nrel", "pvgis")
PERSIST_JOIN_TIMEOUT_SEC = 10.0

app = typer.Typer(add_completion=False, help="Residential solar sizing and savings calculator")


def default_irradiance_provider(
    source: str,
    debug,
    api_key: Optional[str] = None,
    cache_dir: Optional[Path] = None,
) -> IrradianceProvider:
    """Factory separated for easy monkeypatching in tests."""

    if source == "nrel":
        return NRELIrradianceProvider(api_key=api_key, debug=debug)
    if source == "pvgis":
        return PVGISIrradianceProvider(debug=debug, cache_dir=cache_dir)
    return LatitudeIrradianceEstimate()


def _exit_with_error(msg: str) -> None:
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(code=1)


def _fmt_money(value: float) -> str:
    return f"${value:,.2f}"


@app.command()
def calculate(
    input: Path = typer.Option(..., "--input", "-i", help="Request YAML/JSON file"),
    output: Optional[Path] = typer.Option(None, help="Output file path; defaults to result.<format>"),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json or yaml"),
    irradiance_source: str = typer.Option(
        "fallback", "--irradiance-source", help="Irradiance source: fallback, nrel or pvgis"
    ),
    nrel_api_key: Optional[str] = typer.Option(None, envvar="NREL_API_KEY", help="NREL developer API key"),
    pvgis_cache_dir: Optional[Path] = typer.Option(None, help="Cache directory for PVGIS TMY responses"),
    monthly_kwh: Optional[float] = typer.Option(None, help="Override monthly consumption (kWh)"),
    electricity_rate: Optional[float] = typer.Option(None, help="Override electricity rate ($/kWh)"),
    net_metering: Optional[bool] = typer.Option(
        None, "--net-metering/--no-net-metering", help="Override net metering. Defaults to request file.", show_default=False
    ),
    store_path: Optional[Path] = typer.Option(None, help="Append a calculation summary to this JSONL file"),
    user_key: Optional[str] = typer.Option(None, help="User identifier stored with the summary"),
    debug: Optional[Path] = typer.Option(None, help="Write debug events to this path (.json or .jsonl)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable chatty logging"),
):
    """Size a system and project costs, savings and environmental impact."""

    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    try:
        inputs, catalog = load_request(input)
    except ConfigError as exc:
        _exit_with_error(str(exc))

    overrides = {}
    if monthly_kwh is not None:
        overrides["monthly_kwh"] = monthly_kwh
    if electricity_rate is not None:
        overrides["electricity_rate"] = electricity_rate
    if net_metering is not None:
        overrides["net_metering"] = net_metering
    if overrides:
        inputs = dataclasses.replace(inputs, **overrides)

    fmt = format.lower()
    if fmt not in {"json", "yaml"}:
        _exit_with_error("format must be json or yaml")

    source = irradiance_source.lower()
    if source not in IRRADIANCE_SOURCES:
        _exit_with_error(f"Unsupported irradiance source '{irradiance_source}'")

    if store_path is not None and not user_key:
        _exit_with_error("--user-key is required with --store-path")

    debug_collector = build_debug_collector(debug) if debug else NullDebugCollector()
    provider = default_irradiance_provider(source, debug=debug_collector, api_key=nrel_api_key, cache_dir=pvgis_cache_dir)

    try:
        result = calculate_solar_system(inputs, catalog=catalog, irradiance_provider=provider, debug=debug_collector)
    except CalculationError as exc:
        _exit_with_error(str(exc))

    if store_path is not None:
        # The CLI process would exit before a daemon thread finishes, so wait briefly.
        thread = persist_in_background(JsonlCalculationStore(store_path), result, user_key, debug_collector)
        thread.join(timeout=PERSIST_JOIN_TIMEOUT_SEC)

    output_path = output or Path(f"result.{fmt}")
    try:
        write_result(output_path, result, fmt)
    except ConfigError as exc:
        _exit_with_error(str(exc))

    system = result.system
    financial = result.financial
    typer.echo(f"Irradiance: {result.irradiance.annual:.2f} peak sun hours ({result.irradiance.source})")
    typer.echo(
        f"System: {system.actual_system_size_kw:.2f} kW, {system.panels_needed} panels "
        f"({system.system_size_kw:.2f} kW required)"
    )
    typer.echo(f"Annual production: {result.production.annual_production:,.0f} kWh")
    typer.echo(f"Total cost: {_fmt_money(financial.total_cost)}  Net cost: {_fmt_money(financial.net_cost)}")
    typer.echo(f"Annual savings: {_fmt_money(financial.annual_savings)}  Payback: {financial.roi_years:.1f} years")
    if result.utility is not None:
        typer.echo(f"Utility: {result.utility.name}")
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    typer.echo(financing_frame(result).to_string(index=False))
    typer.echo(projection_frame(result).to_string(index=False))
    typer.echo(f"Wrote results to {output_path}")
    if debug:
        debug_collector.close()
        typer.echo(f"Debug events -> {debug}")


@app.command("catalog")
def show_catalog(
    config: Optional[Path] = typer.Option(None, help="YAML/JSON file with a catalog section to overlay"),
):
    """List panels, inverters and batteries available to the calculator."""

    catalog = DEFAULT_CATALOG
    if config is not None:
        try:
            catalog = load_catalog(config)
        except ConfigError as exc:
            _exit_with_error(str(exc))

    for name, frame in catalog_frames(catalog).items():
        typer.echo(f"[{name}]")
        typer.echo(frame.to_string(index=False))


@app.command()
def utility(address: str = typer.Argument(..., help="Street address including ZIP or city")):
    """Look up the electric utility for a Texas address."""

    match = lookup_utility(address)
    if match is None:
        typer.echo("No utility found for address")
        raise typer.Exit(code=1)
    typer.echo(f"{match.name} (matched by {match.method})")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def version_callback(
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit"
    ),
):
    """Residential solar sizing and savings calculator."""


def main() -> None:  # pragma: no cover - thin wrapper for console_script
    app()


__all__ = ["app", "main", "default_irradiance_provider"]


if __name__ == "__main__":  # pragma: no cover
    main()
