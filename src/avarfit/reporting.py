"""Text rendering of analysis results."""
from __future__ import annotations

import math
from pathlib import Path

from .models import model_label
from .pipeline import AnalysisResult

PARAMETER_UNITS = {
    "quantization": "unit*s",
    "angle_random_walk": "unit/sqrt(Hz)",
    "bias_instability": "unit",
    "rate_random_walk": "unit*sqrt(Hz)",
    "rate_ramp": "unit/s",
}


def render_report(
    result: AnalysisResult,
    *,
    input_path: Path | None = None,
    data_rate: float | None = None,
    samples: int | None = None,
) -> str:
    """Return a markdown summary of *result*."""

    fit = result.fit
    lines: list[str] = []
    lines.append("# Allan Variance Report")
    if input_path is not None:
        lines.append(f"*Input file:* `{input_path}`  ")
    if samples is not None:
        lines.append(f"*Samples:* {samples}  ")
    if data_rate is not None:
        lines.append(f"*Sample rate:* {data_rate:.6g} Hz  ")
    lines.append(f"*Model:* `{model_label(fit.model)}`  ")
    lines.append("")

    lines.append("## Allan deviation")
    has_fit = "fitted_root_allan_variance" in result.table.columns
    if has_fit:
        lines.append("| tau [s] | block | blocks | adev | fit |")
        lines.append("| ---: | ---: | ---: | ---: | ---: |")
    else:
        lines.append("| tau [s] | block | blocks | adev |")
        lines.append("| ---: | ---: | ---: | ---: |")
    for row in result.table.itertuples(index=False):
        cells = [f"{row.tau:.4g}", str(row.block_size), str(row.blocks), f"{row.root_allan_variance:.6g}"]
        if has_fit:
            fitted = row.fitted_root_allan_variance
            cells.append("excluded" if math.isnan(fitted) else f"{fitted:.6g}")
        lines.append("| " + " | ".join(cells) + " |")
    lines.append("")

    lines.append("## Noise terms")
    lines.append("| Term | Coefficient | Parameter |")
    lines.append("| --- | ---: | ---: |")
    for term, value in zip(fit.model.terms, fit.coefficient_values):
        param = result.noise_parameters.get(term.name, float("nan"))
        lines.append(
            f"| {term.name} | {value:.6g} | {term.parameter} = {param:.6g} {PARAMETER_UNITS[term.name]} |"
        )
    lines.append("")

    lines.append("### Notes")
    lines.append(f"- Weighted squared error: {fit.weighted_sse():.6g} over {fit.tau.size} taus.")
    if result.curve.excluded:
        lines.append(f"- {len(result.curve.excluded)} tau(s) skipped for lack of data.")
    if fit.excluded:
        lines.append(f"- {len(fit.excluded)} tau(s) with zero variance left out of the fit.")
    return "\n".join(lines)
