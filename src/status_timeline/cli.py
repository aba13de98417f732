"""Command-line interface for the status timeline calculator."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from .attribution import attribute
from .config import AttributionSettings, SettingsFile, SettingsFileError, load_settings_file
from .parser import list_operators, parse
from .reporting import ReportPrinter
from .samples import DEMO_LOG
from .schemas import ReportPayload

logger = logging.getLogger(__name__)

app = typer.Typer(help="Attribute operator time to order statuses from a pasted log.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def report(
    source: Optional[Path] = typer.Argument(
        None,
        exists=True,
        dir_okay=False,
        allow_dash=True,
        help="File with the pasted log. Reads stdin when omitted or '-'.",
    ),
    operator: Optional[str] = typer.Option(
        None, "--operator", "-o", help="Only count events of this operator."
    ),
    start: Optional[str] = typer.Option(
        None, "--start", help="Window start (YYYY-MM-DD HH:MM:SS). Defaults to the first event."
    ),
    end: Optional[str] = typer.Option(
        None, "--end", help="Window end (YYYY-MM-DD HH:MM:SS). Defaults to the last event."
    ),
    min_gap: Optional[str] = typer.Option(
        None, "--min-gap", help="Drop intervals shorter than this many seconds."
    ),
    gap_warn: Optional[str] = typer.Option(
        None,
        "--gap-warn",
        help="Flag in-progress gaps before the next order longer than this many minutes.",
    ),
    mode_b: Optional[bool] = typer.Option(
        None,
        "--mode-b/--no-mode-b",
        help="Treat time after an order closes as in-progress until the next status.",
    ),
    dedupe: Optional[bool] = typer.Option(
        None, "--dedupe/--no-dedupe", help="Keep only the last event per timestamp."
    ),
    status_mode: Optional[str] = typer.Option(
        None, "--status-mode", help="'none' to track status, 'statusLinesOnly' to keep status rows only."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    show_intervals: bool = typer.Option(
        True, "--intervals/--no-intervals", help="Include the interval table."
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", path_type=Path, help="Settings file to use instead of the default."
    ),
) -> None:
    """Print time per status for the pasted log."""
    settings_file = _load_settings(config_path)
    settings = settings_file.attribution_settings(
        operator=operator,
        window_start=start,
        window_end=end,
        min_gap_seconds=min_gap,
        gap_warn_minutes=gap_warn,
        mode_b=mode_b,
        deduplicate=dedupe,
        status_mode=status_mode,
    )
    _run_report(
        _read_source(source),
        settings_file,
        settings,
        as_json=as_json,
        show_intervals=show_intervals,
    )


@app.command()
def operators(
    source: Optional[Path] = typer.Argument(
        None,
        exists=True,
        dir_okay=False,
        allow_dash=True,
        help="File with the pasted log. Reads stdin when omitted or '-'.",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", path_type=Path, help="Settings file to use instead of the default."
    ),
) -> None:
    """List the operators that appear in the pasted log."""
    settings_file = _load_settings(config_path)
    parsed = parse(_read_source(source), settings_file.parser_settings())
    for warning in parsed.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    for name in list_operators(parsed.events):
        typer.echo(name)


@app.command()
def demo(
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    gap_warn: Optional[str] = typer.Option(
        "15", "--gap-warn", help="Gap warning threshold in minutes."
    ),
) -> None:
    """Run the report over a bundled sample log."""
    settings = AttributionSettings.from_inputs(gap_warn_minutes=gap_warn)
    _run_report(DEMO_LOG, SettingsFile(), settings, as_json=as_json, show_intervals=True)


def _run_report(
    raw_text: str,
    settings_file: SettingsFile,
    settings: AttributionSettings,
    *,
    as_json: bool,
    show_intervals: bool,
) -> None:
    parsed = parse(raw_text, settings_file.parser_settings())
    for warning in parsed.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    result = attribute(parsed.events, settings)
    logger.debug(
        "Report for operator %s: %d events, %d intervals",
        settings.operator_filter,
        result.used_event_count,
        len(result.intervals),
    )
    if as_json:
        typer.echo(ReportPayload.from_result(result, parsed.warnings).model_dump_json(indent=2))
        return
    ReportPrinter(show_intervals=show_intervals).print_report(result)


def _load_settings(config_path: Optional[Path]) -> SettingsFile:
    try:
        return load_settings_file(config_path)
    except SettingsFileError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _read_source(source: Optional[Path]) -> str:
    if source is None or str(source) == "-":
        stream = getattr(sys.stdin, "buffer", None)
        if stream is None:
            return sys.stdin.read()
        return stream.read().decode("utf-8-sig", errors="replace")
    # Undecodable bytes become U+FFFD so noisy pastes still parse.
    return source.read_bytes().decode("utf-8-sig", errors="replace")
