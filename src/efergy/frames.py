from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Sequence

logger = logging.getLogger(__name__)

CHECKSUM_SPAN = 7  # bytes 0..6 are summed, byte 7 holds the checksum
ADC_FULL_SCALE = 32768.0


class ChecksumError(ValueError):
    def __init__(self, frame: bytes, expected: int, actual: int):
        super().__init__(f"Checksum mismatch (expected={expected:02X}, actual={actual:02X})")
        self.frame = frame
        self.expected = expected
        self.actual = actual


@dataclass(frozen=True)
class PowerReading:
    timestamp: datetime
    watts: float
    current_adc: int
    exponent: int
    frame: bytes


def frame_checksum(data: Sequence[int]) -> int:
    return sum(data) & 0xFF


def signed_exponent(raw: int) -> int:
    """Interpret a raw frame byte as a two's-complement signed exponent."""
    raw &= 0xFF
    return raw - 0x100 if raw & 0x80 else raw


def compute_watts(frame: Sequence[int], voltage: float) -> float:
    current_adc = frame[4] * 256 + frame[5]
    divisor = ADC_FULL_SCALE / (2.0 ** signed_exponent(frame[6]))
    return voltage * current_adc / divisor


class FrameValidator:
    """
    Checksum gate between the demodulator and the output sinks.

    `validate` either returns a decoded `PowerReading` or raises `ChecksumError`;
    it never produces a reading for a frame that fails the additive checksum.
    """

    def __init__(self, voltage: float, clock: Callable[[], datetime] = datetime.now):
        self.voltage = voltage
        self._clock = clock
        self._stats: Dict[str, int] = {"valid": 0, "checksum_errors": 0}

    def validate(self, frame: bytes) -> PowerReading:
        frame = bytes(frame)
        if len(frame) < CHECKSUM_SPAN + 1:
            raise ValueError(f"Frame too short: {len(frame)} bytes")
        actual = frame_checksum(frame[:CHECKSUM_SPAN])
        expected = frame[CHECKSUM_SPAN]
        if actual != expected:
            self._stats["checksum_errors"] += 1
            logger.debug("Rejected frame %s", frame.hex(" "))
            raise ChecksumError(frame, expected, actual)
        self._stats["valid"] += 1
        return PowerReading(
            timestamp=self._clock(),
            watts=compute_watts(frame, self.voltage),
            current_adc=frame[4] * 256 + frame[5],
            exponent=signed_exponent(frame[6]),
            frame=frame,
        )

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)
