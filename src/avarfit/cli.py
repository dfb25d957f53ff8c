"""Command line interface for the avarfit package."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import load_config
from .data import load_series_csv
from .demo import DEFAULT_RATE, DEFAULT_SAMPLES, DEFAULT_STD, run_demo
from .errors import AnalysisError, InvalidInputError
from .models import NoiseModel
from .pipeline import analyze
from .reporting import render_report

app = typer.Typer(context_settings={"help_option_names": ["-h", "--help"]})


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_model(text: str) -> NoiseModel:
    try:
        return NoiseModel.parse(text)
    except InvalidInputError as exc:
        raise typer.BadParameter(str(exc), param_hint="--model") from exc


@app.command("analyze")
def analyze_cmd(
    input_path: Path = typer.Option(..., "--in", help="Input CSV with sensor samples.", exists=True, readable=True),
    column: Optional[str] = typer.Option(None, "--column", help="Sample column (default: first numeric column)."),
    time_column: Optional[str] = typer.Option(None, "--time-column", help="Timestamp column in seconds."),
    rate: Optional[float] = typer.Option(None, "--rate", help="Sample rate in Hz."),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        help="Noise terms as 5 flags (1,0,0,0,0) or names (quantization,rate_ramp).",
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, help="JSON analysis config."),
    override: Optional[List[str]] = typer.Option(
        None,
        "--set",
        help="Override config keys, e.g. --set zero_variance=raise",
    ),
    strict_zero_variance: bool = typer.Option(
        False, "--strict-zero-variance", help="Fail instead of skipping zero-variance taus."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Compute the Allan deviation of a recording and fit a noise model."""

    _configure_logging(verbose)
    try:
        cfg = load_config(config_path, override)
    except InvalidInputError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config / --set") from exc
    noise_model = _parse_model(model) if model else cfg.model

    try:
        series = load_series_csv(
            input_path,
            column=column or cfg.column,
            time_column=time_column or cfg.time_column,
        )
    except InvalidInputError as exc:
        raise typer.BadParameter(str(exc), param_hint="--in") from exc
    data_rate = rate or cfg.data_rate or series.data_rate
    if data_rate is None:
        raise typer.BadParameter("Provide --rate, data_rate in the config, or --time-column", param_hint="--rate")

    try:
        result = analyze(
            series.values,
            data_rate,
            noise_model,
            deduplicate_taus=cfg.deduplicate_taus,
            zero_variance="raise" if strict_zero_variance else cfg.zero_variance,
        )
    except AnalysisError as exc:
        typer.echo(f"[error] {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(
        render_report(result, input_path=input_path, data_rate=data_rate, samples=int(series.values.size))
    )


@app.command()
def demo(
    samples: int = typer.Option(DEFAULT_SAMPLES, "--samples", help="Number of white noise samples."),
    rate: float = typer.Option(DEFAULT_RATE, "--rate", help="Sample rate in Hz."),
    std: float = typer.Option(DEFAULT_STD, "--std", help="White noise standard deviation."),
    seed: int = typer.Option(42, "--seed", help="Random seed."),
    model: str = typer.Option("1,0,0,0,0", "--model", help="Noise terms to fit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Analyse synthetic white noise."""

    _configure_logging(verbose)
    noise_model = _parse_model(model)
    try:
        result = run_demo(noise_model, samples=samples, data_rate=rate, std=std, seed=seed)
    except AnalysisError as exc:
        typer.echo(f"[error] {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(render_report(result, data_rate=rate, samples=samples))


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
