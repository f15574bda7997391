from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

LINE_ENDINGS: Dict[str, str] = {"lf": "\n", "crlf": "\r\n"}


@dataclass
class DecoderConfig:
    """Pulse-width thresholds and frame geometry for the streaming decoder."""

    voltage: float = 240.0  # reference line voltage
    min_low_bit: int = 3  # high samples above this start a bit (logic 0)
    min_high_bit: int = 8  # high samples above this make it a logic 1
    preamble_count: int = 40  # high samples above this mark a preamble
    center_samples: int = 100  # warm-up samples averaged into the wave center
    frame_byte_count: int = 8
    frame_bit_count: int = 64  # excluding preamble


@dataclass
class AnalysisConfig:
    min_positive_preamble: int = 40
    min_negative_preamble: int = 40
    analyze_byte_count: int = 9
    samples_per_bit: int = 19
    watts_ceiling: float = 5000.0
    verbosity: int = 2

    @property
    def capture_size(self) -> int:
        return self.analyze_byte_count * 8 * self.samples_per_bit


@dataclass
class OutputConfig:
    log_path: Optional[Path] = None
    line_ending: str = "crlf"  # lf | crlf
    flush_every: int = 10

    @property
    def line_terminator(self) -> str:
        key = self.line_ending.lower()
        if key not in LINE_ENDINGS:
            raise ValueError(f"Unsupported line_ending '{self.line_ending}'")
        return LINE_ENDINGS[key]


@dataclass
class EfergyConfig:
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> "EfergyConfig":
        dec = self.decoder
        for name in ("min_low_bit", "min_high_bit", "preamble_count", "center_samples",
                     "frame_byte_count", "frame_bit_count"):
            if getattr(dec, name) <= 0:
                raise ValueError(f"decoder.{name} must be positive")
        if dec.min_high_bit < dec.min_low_bit:
            raise ValueError("decoder.min_high_bit must not be below decoder.min_low_bit")
        if dec.frame_byte_count < 8:
            raise ValueError("decoder.frame_byte_count must cover the 8 byte checksum layout")
        if dec.frame_bit_count < dec.frame_byte_count * 8:
            # a smaller budget resets every frame before it completes
            raise ValueError(
                f"decoder.frame_bit_count must be at least {dec.frame_byte_count * 8} "
                f"for {dec.frame_byte_count} byte frames"
            )
        ana = self.analysis
        if ana.analyze_byte_count <= 0 or ana.samples_per_bit <= 0:
            raise ValueError("analysis byte count and samples_per_bit must be positive")
        if not 0 <= ana.verbosity <= 3:
            raise ValueError("analysis.verbosity must be between 0 and 3")
        if self.output.flush_every <= 0:
            raise ValueError("output.flush_every must be positive")
        if self.output.line_ending.lower() not in LINE_ENDINGS:
            raise ValueError(f"Unsupported line_ending '{self.output.line_ending}'")
        return self


PRESETS: Dict[str, Dict[str, Any]] = {
    "e2-classic": {
        "decoder": {"min_low_bit": 3, "min_high_bit": 8, "voltage": 240.0, "frame_byte_count": 8},
        "analysis": {"analyze_byte_count": 8},
    },
    # Elite 3.0 TPM reports power directly, so the voltage multiplier is 1.
    "elite-3.0-tpm": {
        "decoder": {"min_low_bit": 3, "min_high_bit": 9, "voltage": 1.0, "frame_byte_count": 8},
        "analysis": {"analyze_byte_count": 9},
    },
}


def preset_overrides(preset: str) -> List[str]:
    data = PRESETS[preset]
    overrides: List[str] = []
    for section, values in data.items():
        for key, value in values.items():
            overrides.append(f"{section}.{key}={value}")
    return overrides


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {**base}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)  # type: ignore[index]
        else:
            merged[key] = value
    return merged


def load_config(path: Path | str | None = None, overrides: Sequence[str] | None = None) -> EfergyConfig:
    """
    Load a decoder configuration from JSON (optional) and apply CLI-style overrides.

    Overrides are expressed as dotted `key=value` pairs, e.g.:
        ["decoder.min_high_bit=9", "output.line_ending=lf"]
    """
    data: Dict[str, Any] = _load_json(Path(path)) if path is not None else {}
    override_data: Dict[str, Any] = {}
    for override in overrides or []:
        key, raw_value = _parse_override(override)
        _assign_nested(override_data, key, raw_value)
    merged = _merge(data, override_data)
    dec = merged.get("decoder") or {}
    ana = merged.get("analysis") or {}
    out = merged.get("output") or {}
    byte_count = int(dec.get("frame_byte_count", 8))
    config = EfergyConfig(
        decoder=DecoderConfig(
            voltage=float(dec.get("voltage", 240.0)),
            min_low_bit=int(dec.get("min_low_bit", 3)),
            min_high_bit=int(dec.get("min_high_bit", 8)),
            preamble_count=int(dec.get("preamble_count", 40)),
            center_samples=int(dec.get("center_samples", 100)),
            frame_byte_count=byte_count,
            frame_bit_count=int(dec.get("frame_bit_count", byte_count * 8)),
        ),
        analysis=AnalysisConfig(
            min_positive_preamble=int(ana.get("min_positive_preamble", 40)),
            min_negative_preamble=int(ana.get("min_negative_preamble", 40)),
            analyze_byte_count=int(ana.get("analyze_byte_count", 9)),
            samples_per_bit=int(ana.get("samples_per_bit", 19)),
            watts_ceiling=float(ana.get("watts_ceiling", 5000.0)),
            verbosity=int(ana.get("verbosity", 2)),
        ),
        output=OutputConfig(
            log_path=Path(out["log_path"]) if out.get("log_path") else None,
            line_ending=str(out.get("line_ending", "crlf")),
            flush_every=int(out.get("flush_every", 10)),
        ),
    )
    return config.validate()


def _parse_override(item: str) -> tuple[str, Any]:
    if "=" not in item:
        raise ValueError(f"Override '{item}' must use key=value syntax")
    key, raw_value = item.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError("Override key may not be empty")
    value = _coerce_value(raw_value.strip())
    return key, value


def _coerce_value(raw: str) -> Any:
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    try:
        if "." in raw or "e" in raw.lower():
            return float(raw)
        return int(raw)
    except ValueError:
        pass
    if raw.startswith("[") and raw.endswith("]"):
        return json.loads(raw)
    if raw.startswith("{") and raw.endswith("}"):
        return json.loads(raw)
    return raw


def _assign_nested(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    cursor = target
    parts = dotted_key.split(".")
    for part in parts[:-1]:
        cursor = cursor.setdefault(part, {})
    cursor[parts[-1]] = value
