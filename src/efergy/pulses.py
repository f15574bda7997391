"""Pulse-run extraction and the pulse-width bit decoder shared by both modes."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple


def classify_pulse(length: int, min_low_bit: int, min_high_bit: int) -> int | None:
    """Return the bit encoded by a high run of *length* samples, or None for noise."""
    if length <= min_low_bit:
        return None
    return 1 if length > min_high_bit else 0


def decode_pulse_counts(
    counts: Iterable[int],
    max_bytes: int,
    min_low_bit: int = 3,
    min_high_bit: int = 8,
) -> bytes:
    """
    Assemble bytes MSB-first from pulse-run lengths.

    Runs of `min_low_bit` samples or fewer are skipped. Decoding stops once
    `max_bytes` bytes are complete; a partially filled trailing byte is dropped.
    """
    decoded = bytearray()
    if max_bytes <= 0:
        return bytes(decoded)
    byte = 0
    bitpos = 0
    for count in counts:
        bit = classify_pulse(count, min_low_bit, min_high_bit)
        if bit is None:
            continue
        byte = ((byte << 1) | bit) & 0xFF
        bitpos += 1
        if bitpos == 8:
            decoded.append(byte)
            byte = 0
            bitpos = 0
            if len(decoded) == max_bytes:
                break
    return bytes(decoded)


def encode_pulse_counts(data: bytes, min_low_bit: int = 3, min_high_bit: int = 8) -> List[int]:
    """Inverse of `decode_pulse_counts`: shortest valid run length per bit."""
    counts: List[int] = []
    for byte in data:
        for shift in range(7, -1, -1):
            counts.append(min_high_bit + 1 if (byte >> shift) & 1 else min_low_bit + 1)
    return counts


@dataclass
class PulseRuns:
    """Closed runs of a captured buffer split by polarity."""

    positive: List[int] = field(default_factory=list)
    negative: List[int] = field(default_factory=list)
    sequence: List[Tuple[str, int]] = field(default_factory=list)  # ("P"|"N", length)


def pulse_runs(samples: Sequence[int], center: int) -> PulseRuns:
    """
    Split *samples* into runs at or above *center* (positive) and below it (negative).

    A run is recorded when the opposite polarity starts, so the final open run
    is never part of the result.
    """
    runs = PulseRuns()
    pulse_count = 0
    space_count = 0
    for sample in samples:
        if sample - center < 0:
            if pulse_count > 0:
                runs.positive.append(pulse_count)
                runs.sequence.append(("P", pulse_count))
            pulse_count = 0
            space_count += 1
        else:
            if space_count > 0:
                runs.negative.append(space_count)
                runs.sequence.append(("N", space_count))
            space_count = 0
            pulse_count += 1
    return runs
