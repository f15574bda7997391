"""Plotting helpers for readings logs."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd


def plot_readings(df: pd.DataFrame, out_path: Path) -> Path:
    """Plot watts against time and save the figure to *out_path*."""
    plt = _require_matplotlib()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    data = df.dropna(subset=["timestamp"])
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(data["timestamp"], data["watts"], label="power [W]", color="tab:orange")
    ax.set_xlabel("Time")
    ax.set_ylabel("Power [W]")
    ax.grid(True, alpha=0.3)
    fig.autofmt_xdate()
    fig.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path


def _require_matplotlib() -> Any:
    try:
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("matplotlib is required for plotting; install efergy-sdr[plot]") from exc
    except Exception as exc:  # pragma: no cover - environment issues
        raise RuntimeError(f"matplotlib initialisation failed: {exc}") from exc
    return plt
