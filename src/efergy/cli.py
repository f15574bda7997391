"""Command line interface for the efergy package."""
from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer

from .config import LINE_ENDINGS, PRESETS, EfergyConfig, load_config, preset_overrides
from .plotting import plot_readings
from .readings import load_readings_log, summarize_readings
from .runner import BANNER, DecoderSession, run_analysis

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    help="Efergy energy monitor decoder for rtl_fm sample streams.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_config(
    config_path: Optional[Path],
    preset: Optional[str],
    override: Optional[List[str]],
) -> EfergyConfig:
    preset_overrides_list: List[str] = []
    if preset:
        key = preset.lower()
        if key not in PRESETS:
            raise typer.BadParameter(f"Unknown preset '{preset}'. Expected one of {list(PRESETS)}")
        preset_overrides_list = preset_overrides(key)
    combined = preset_overrides_list + (override or [])
    try:
        cfg = load_config(config_path, combined or None)
    except (ValueError, OSError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    if preset:
        logger.info(
            "Applied preset %s (min_high_bit=%d, voltage=%.1f)",
            preset.lower(),
            cfg.decoder.min_high_bit,
            cfg.decoder.voltage,
        )
    return cfg


@contextmanager
def _open_input(input_path: Path) -> Iterator:
    if str(input_path) == "-":
        yield sys.stdin.buffer
        return
    try:
        fh = input_path.open("rb")
    except OSError as exc:
        raise typer.BadParameter(f"Failed to open input: {exc}", param_hint="--input") from exc
    with fh:
        yield fh


@app.command()
def decode(
    log_path: Optional[Path] = typer.Option(None, "--log", help="Append readings to this file."),
    line_ending: Optional[str] = typer.Option(
        None, "--line-ending", case_sensitive=False, help="Log file line ending: lf|crlf."
    ),
    input_path: Path = typer.Option(Path("-"), "--input", "-i", help="Sample source. '-' reads stdin."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON decoder config."),
    preset: Optional[str] = typer.Option(
        None, "--preset", "-P", help=f"Device preset ({'|'.join(PRESETS)}) applied before overrides."
    ),
    override: Optional[List[str]] = typer.Option(
        None, "--set", help="Override config keys, e.g. --set decoder.min_high_bit=9"
    ),
    log_level: str = typer.Option("info", "--log-level", help="Diagnostic log level."),
) -> None:
    """Decode power readings from signed 16-bit rtl_fm samples."""

    _configure_logging(log_level)
    cfg = _build_config(config_path, preset, override)
    if log_path is not None:
        cfg.output.log_path = log_path
    if line_ending is not None:
        if line_ending.lower() not in LINE_ENDINGS:
            raise typer.BadParameter(
                f"Unsupported line ending '{line_ending}'. Expected one of {list(LINE_ENDINGS)}",
                param_hint="--line-ending",
            )
        cfg.output.line_ending = line_ending.lower()
    try:
        cfg.validate()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        session = DecoderSession(cfg)
    except OSError as exc:
        raise typer.BadParameter(f"Failed to open log file: {exc}", param_hint="--log") from exc
    typer.echo(f"{BANNER}\n")
    with _open_input(input_path) as handle:
        session.run(handle)


@app.command()
def analyze(
    verbosity: Optional[int] = typer.Option(
        None, "--verbosity", "-v", min=0, max=3, help="Report detail level (0-3). Defaults to analysis.verbosity."
    ),
    input_path: Path = typer.Option(Path("-"), "--input", "-i", help="Sample source. '-' reads stdin."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON decoder config."),
    preset: Optional[str] = typer.Option(None, "--preset", "-P", help="Device preset."),
    override: Optional[List[str]] = typer.Option(None, "--set", help="Override config keys."),
    log_level: str = typer.Option("warning", "--log-level", help="Diagnostic log level."),
) -> None:
    """Capture frames behind a preamble and print tuning statistics."""

    _configure_logging(log_level)
    extra = list(override or [])
    if verbosity is not None:
        extra.append(f"analysis.verbosity={verbosity}")
    cfg = _build_config(config_path, preset, extra)
    typer.echo(
        "\nEfergy Power Monitor Decoder - Running in analysis mode "
        f"using verbosity level {cfg.analysis.verbosity}\n"
    )
    with _open_input(input_path) as handle:
        run_analysis(cfg, handle)


@app.command()
def summary(
    input_path: Path = typer.Option(..., "--in", help="Readings log file.", exists=True, readable=True),
) -> None:
    """Summarise a readings log."""

    try:
        result = summarize_readings(load_readings_log(input_path))
    except ValueError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc
    typer.echo(f"Readings: {result.count}")
    typer.echo(f"First: {result.first if result.first is not None else 'n/a'}")
    typer.echo(f"Last: {result.last if result.last is not None else 'n/a'}")
    typer.echo(f"Watts min/mean/max: {result.min_watts:.3f} / {result.mean_watts:.3f} / {result.max_watts:.3f}")


@app.command()
def plot(
    input_path: Path = typer.Option(..., "--in", help="Readings log file.", exists=True, readable=True),
    out_path: Path = typer.Option(Path("readings.png"), "--out", help="Output PNG."),
) -> None:
    """Plot power over time from a readings log."""

    df = load_readings_log(input_path)
    try:
        written = plot_readings(df, out_path)
    except RuntimeError as exc:
        typer.echo(f"[warning] plotting skipped: {exc}")
        raise typer.Exit(code=1) from exc
    typer.echo(f"Plot written to {written}")


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
