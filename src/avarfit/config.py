from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import InvalidInputError
from .models import ZERO_VARIANCE_POLICIES, NoiseModel


@dataclass
class AnalysisConfig:
    data_rate: Optional[float] = None  # Hz; inferred from time_column when unset
    noise_model: List[int] = field(default_factory=lambda: [1, 0, 0, 0, 0])
    deduplicate_taus: bool = True
    zero_variance: str = "exclude"  # exclude | raise
    column: Optional[str] = None
    time_column: Optional[str] = None

    @property
    def model(self) -> NoiseModel:
        return NoiseModel.from_flags(self.noise_model)

    def validate(self) -> "AnalysisConfig":
        if self.data_rate is not None and self.data_rate <= 0:
            raise InvalidInputError(f"data_rate must be positive, got {self.data_rate!r}")
        if self.zero_variance not in ZERO_VARIANCE_POLICIES:
            raise InvalidInputError(
                f"Unsupported zero_variance '{self.zero_variance}'. "
                f"Expected one of {sorted(ZERO_VARIANCE_POLICIES)}"
            )
        NoiseModel.from_flags(self.noise_model)
        return self


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"Malformed JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path} must hold a JSON object")
    return data


def _check_keys(data: Dict[str, Any]) -> None:
    known = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise InvalidInputError(f"Unknown configuration key(s) {unknown}. Expected one of {sorted(known)}")


def load_config(path: Path | str | None = None, overrides: Sequence[str] | None = None) -> AnalysisConfig:
    """
    Load an analysis configuration from JSON and apply CLI-style overrides.

    Overrides are expressed as `key=value` pairs naming `AnalysisConfig` fields, e.g.:
        ["data_rate=200", "noise_model=[0,1,1,1,0]", "zero_variance=raise"]
    A missing *path* starts from the defaults.
    """
    data: Dict[str, Any] = _load_json(Path(path)) if path is not None else {}
    merged: Dict[str, Any] = {**data}
    for override in overrides or []:
        key, raw_value = _parse_override(override)
        merged[key] = raw_value
    _check_keys(merged)

    noise_model = merged.get("noise_model", [1, 0, 0, 0, 0])
    model = NoiseModel.from_flags(noise_model)
    deduplicate = merged.get("deduplicate_taus", True)
    if not isinstance(deduplicate, bool):
        raise InvalidInputError(f"deduplicate_taus must be true or false, got {deduplicate!r}")
    rate = merged.get("data_rate")
    try:
        cfg = AnalysisConfig(
            data_rate=float(rate) if rate is not None else None,
            noise_model=[int(flag) for flag in model.flags],
            deduplicate_taus=deduplicate,
            zero_variance=str(merged.get("zero_variance", "exclude")).lower(),
            column=merged.get("column"),
            time_column=merged.get("time_column"),
        )
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Invalid configuration: {exc}") from exc
    return cfg.validate()


def _parse_override(item: str) -> tuple[str, Any]:
    if "=" not in item:
        raise InvalidInputError(f"Override '{item}' must use key=value syntax")
    key, raw_value = item.split("=", 1)
    key = key.strip()
    if not key:
        raise InvalidInputError("Override key may not be empty")
    value = _coerce_value(raw_value.strip())
    return key, value


def _coerce_value(raw: str) -> Any:
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    if raw.lower() in {"none", "null"}:
        return None
    try:
        if "." in raw or "e" in raw.lower():
            return float(raw)
        return int(raw)
    except ValueError:
        pass
    if raw.startswith("[") and raw.endswith("]"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"Malformed list value {raw!r}: {exc}") from exc
    return raw

