"""Loading and summarising appended readings logs."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

# `%x,%X` as rendered in the C locale
LOG_TIMESTAMP_FORMAT = "%m/%d/%y %H:%M:%S"


@dataclass(frozen=True)
class ReadingsSummary:
    count: int
    first: Optional[pd.Timestamp]
    last: Optional[pd.Timestamp]
    min_watts: float
    mean_watts: float
    max_watts: float


def load_readings_log(path: str | Path) -> pd.DataFrame:
    """Load a readings log into a DataFrame with `timestamp` and `watts` columns.

    Parameters
    ----------
    path:
        File written by the decoder's log sink, one `date,time,watts` record per
        line with either line ending.

    Returns
    -------
    pandas.DataFrame
        Rows in file order. Timestamps that do not parse are left as NaT.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    try:
        df = pd.read_csv(path, header=None, names=["date", "time", "watts"], dtype={"date": str, "time": str})
    except pd.errors.EmptyDataError:
        return pd.DataFrame({"timestamp": pd.Series(dtype="datetime64[ns]"), "watts": pd.Series(dtype=float)})
    df["timestamp"] = pd.to_datetime(
        df["date"].str.strip() + " " + df["time"].str.strip(),
        format=LOG_TIMESTAMP_FORMAT,
        errors="coerce",
    )
    df["watts"] = pd.to_numeric(df["watts"], errors="coerce")
    df = df.dropna(subset=["watts"])
    df.reset_index(drop=True, inplace=True)
    return df[["timestamp", "watts"]]


def summarize_readings(df: pd.DataFrame) -> ReadingsSummary:
    if df.empty:
        raise ValueError("Readings log contains no records")
    stamps = df["timestamp"].dropna()
    watts = df["watts"].to_numpy(dtype=float)
    return ReadingsSummary(
        count=int(len(df)),
        first=stamps.min() if not stamps.empty else None,
        last=stamps.max() if not stamps.empty else None,
        min_watts=float(watts.min()),
        mean_watts=float(watts.mean()),
        max_watts=float(watts.max()),
    )
