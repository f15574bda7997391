"""
Analysis mode: capture raw samples behind a double preamble and report on them.

The report shows how well the signal is centered, the run lengths the decoder
would see, and a best-effort decode from either polarity. It is meant for tuning
the receiver frequency, not for logging readings.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator, List, Optional

import numpy as np

from .config import AnalysisConfig, DecoderConfig, EfergyConfig
from .frames import compute_watts, frame_checksum
from .pulses import PulseRuns, decode_pulse_counts, pulse_runs

logger = logging.getLogger(__name__)

WRAP = 16


class PreambleDetector:
    """Finds a long run on one side of center directly followed by one on the other."""

    def __init__(self, config: AnalysisConfig, center: int = 0):
        self.config = config
        self.center = center
        self.reset()

    def reset(self, center: Optional[int] = None) -> None:
        if center is not None:
            self.center = center
        self.prev = 0
        self.positive = 0
        self.negative = 0

    def _long_enough(self) -> bool:
        return (
            self.positive > self.config.min_positive_preamble
            and self.negative > self.config.min_negative_preamble
        )

    def feed(self, sample: int) -> bool:
        center = self.center
        prev, self.prev = self.prev, sample
        if prev >= center and sample >= center:
            self.positive += 1
        elif prev < center and sample < center:
            self.negative += 1
        elif prev >= center and sample < center:
            if self._long_enough():
                return True
            self.negative = 0
        else:
            if self._long_enough():
                return True
            self.positive = 0
        return False


class SampleRecorder:
    """Fixed-capacity capture buffer; samples beyond capacity are not stored."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._buffer = np.zeros(capacity, dtype=np.int32)
        self._index = 0

    @property
    def capacity(self) -> int:
        return int(self._buffer.size)

    @property
    def full(self) -> bool:
        return self._index >= self._buffer.size

    def append(self, sample: int) -> bool:
        if self.full:
            return False
        self._buffer[self._index] = sample
        self._index += 1
        return True

    def samples(self) -> np.ndarray:
        return self._buffer[: self._index].copy()

    def clear(self) -> None:
        self._index = 0


@dataclass
class AnalysisReport:
    samples: np.ndarray
    overflowed: bool
    previous_center: int
    avg_pos: float
    avg_neg: float
    derived_center: float
    center: int
    runs: PulseRuns
    polarity: str  # "positive" | "negative"
    decoded: bytes
    checksum: int
    watts: Optional[float]
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def sample_count(self) -> int:
        return int(self.samples.size)


def analyze_capture(
    samples: Iterable[int] | np.ndarray,
    center: int,
    config: AnalysisConfig,
    decoder: DecoderConfig | None = None,
    *,
    overflowed: bool = False,
    timestamp: Optional[datetime] = None,
) -> AnalysisReport:
    """Compute balance statistics and a best-effort decode for a captured buffer."""
    decoder = decoder or DecoderConfig()
    data = np.asarray(samples if isinstance(samples, np.ndarray) else list(samples), dtype=np.int64)
    positives = data[data >= center]
    negatives = data[data < center]
    avg_pos = float(positives.mean()) if positives.size else 0.0
    avg_neg = float(negatives.mean()) if negatives.size else 0.0
    derived = avg_neg + (avg_pos - avg_neg) / 2
    new_center = int(derived)

    runs = pulse_runs(data.tolist(), new_center)
    polarity_sample = data[2] if data.size > 2 else (data[-1] if data.size else new_center)
    if polarity_sample < new_center:
        polarity, counts = "positive", runs.positive
    else:
        polarity, counts = "negative", runs.negative
    decoded = decode_pulse_counts(
        counts, config.analyze_byte_count, decoder.min_low_bit, decoder.min_high_bit
    )
    checksum = frame_checksum(decoded[:-1])
    padded = decoded.ljust(max(config.analyze_byte_count, 7), b"\x00")
    watts: Optional[float] = compute_watts(padded, decoder.voltage)
    if not 0 < watts < config.watts_ceiling:
        watts = None

    return AnalysisReport(
        samples=data,
        overflowed=overflowed,
        previous_center=center,
        avg_pos=avg_pos,
        avg_neg=avg_neg,
        derived_center=derived,
        center=new_center,
        runs=runs,
        polarity=polarity,
        decoded=decoded,
        checksum=checksum,
        watts=watts,
        timestamp=timestamp or datetime.now(),
    )


def _wrap(items: List[str]) -> List[str]:
    return [" ".join(items[i : i + WRAP]) for i in range(0, len(items), WRAP)]


def format_decode_line(report: AnalysisReport) -> str:
    parts = [f"Decode from {report.polarity} pulses:"]
    parts.extend(f"{byte:02x}" for byte in report.decoded)
    parts.append(f"chk: {report.checksum:02x}")
    if report.watts is not None:
        parts.append(f" watts: {report.watts:4.3f}")
    else:
        parts.append(" watts: <out of range>")
    return " ".join(parts)


def format_report(report: AnalysisReport, verbosity: int) -> str:
    """Render a report; higher verbosity adds statistics, pulse listing and raw dump."""
    stamp = report.timestamp.strftime("%x,%X")
    lines: List[str] = []
    if verbosity > 0:
        lines.append("")
        lines.append(f"Analysis of rtl_fm sample data for frame received on {stamp}")
        lines.append(f"     Number of Samples: {report.sample_count:6d}")
        if report.overflowed:
            lines.append("                        (capture stopped at buffer capacity)")
        lines.append(
            f"    Avg. Sample Values: {report.avg_neg:6.0f} (negative)   {report.avg_pos:6.0f} (positive)"
        )
        lines.append(
            f"           Wave Center: {report.derived_center:6.0f} (this frame) "
            f"{report.previous_center:6d} (last frame)"
        )

    if verbosity == 3:
        lines.append("")
        lines.append("Showing raw rtl_fm sample data received between start of frame and end of frame")
        rebased = [f"{int(value) - report.center:6d}" for value in report.samples]
        lines.extend(_wrap(rebased))
        lines.append("")

    if verbosity >= 2:
        lines.append("")
        lines.append(
            "Pulse stream for this frame (P-Consecutive samples > center, N-Consecutive samples < center)"
        )
        listing = [f"{length:2d}{kind}" for kind, length in report.runs.sequence]
        lines.extend(_wrap(listing))
        lines.append("")

    decode_line = format_decode_line(report)
    if verbosity > 0:
        lines.append(decode_line)
        lines.append("")
    else:
        lines.append(f"{stamp} {decode_line}")
    return "\n".join(lines)


class AnalysisSession:
    """Alternates preamble search and capture over one sample stream."""

    def __init__(self, config: EfergyConfig, center: int = 0):
        self.config = config
        self.center = center
        self.detector = PreambleDetector(config.analysis, center)
        self.recorder = SampleRecorder(config.analysis.capture_size)

    def run(self, samples: Iterable[int]) -> Iterator[AnalysisReport]:
        stream = iter(samples)
        while True:
            self.detector.reset(self.center)
            if not any(self.detector.feed(sample) for sample in stream):
                return
            self.recorder.clear()
            for sample in stream:
                self.recorder.append(sample)
                if self.recorder.full:
                    break
            captured = self.recorder.samples()
            if captured.size == 0:
                return
            report = analyze_capture(
                captured,
                self.center,
                self.config.analysis,
                self.config.decoder,
                overflowed=self.recorder.full,
            )
            logger.debug(
                "Captured %d samples, center %d -> %d", report.sample_count, self.center, report.center
            )
            self.center = report.center
            yield report
            if not self.recorder.full:
                return
