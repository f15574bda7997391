"""
Streaming pulse-width demodulator for the Efergy FSK telemetry.

`Demodulator` is the decoding context for one session: it owns the adaptive
wave center, the frame assembly counters and the validator, and processes one
sample per `feed` call without ever looking back in the stream.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .config import DecoderConfig
from .frames import ChecksumError, FrameValidator, PowerReading
from .pulses import classify_pulse

logger = logging.getLogger(__name__)


class WaveCenter:
    """Running DC-bias estimate, recomputed from a fresh block of samples on demand."""

    def __init__(self, sample_count: int = 100):
        if sample_count <= 0:
            raise ValueError("sample_count must be positive")
        self.sample_count = sample_count
        self.center = 0
        self.calibrations = 0
        self._remaining = sample_count
        self._total = 0

    @property
    def warming_up(self) -> bool:
        return self._remaining > 0

    def observe(self, sample: int) -> bool:
        """Accumulate a warm-up sample; True once the new center is in place."""
        if not self.warming_up:
            return False
        self._total += sample
        self._remaining -= 1
        if self._remaining:
            return False
        self.center = self._total // self.sample_count
        self.calibrations += 1
        return True

    def rearm(self) -> None:
        self._remaining = self.sample_count
        self._total = 0


class Demodulator:
    def __init__(
        self,
        config: DecoderConfig,
        validator: Optional[FrameValidator] = None,
    ):
        self.config = config
        self.validator = validator or FrameValidator(config.voltage)
        self.tracker = WaveCenter(config.center_samples)
        self._callbacks: List[Callable[[PowerReading], None]] = []
        self._stats: Dict[str, int] = {
            "samples": 0,
            "frames": 0,
            "readings": 0,
            "checksum_errors": 0,
            "stale_frames": 0,
            "recalibrations": 0,
        }
        self.prev = 0
        self._reset_frame()

    @property
    def center(self) -> int:
        return self.tracker.center

    def _reset_frame(self) -> None:
        self.hctr = 0
        self.byte = 0
        self.bitpos = 0
        self.bits_decoded = 0
        self.frame = bytearray()
        self.preamble = False
        self.in_frame = False

    def register_callback(self, callback: Callable[[PowerReading], None]) -> None:
        self._callbacks.append(callback)

    def feed(self, sample: int) -> Optional[PowerReading]:
        """Process one sample; return the reading completed by it, if any."""
        self._stats["samples"] += 1
        reading = None
        if self.tracker.warming_up:
            if self.tracker.observe(sample):
                if self.tracker.calibrations > 1:
                    self._stats["recalibrations"] += 1
                logger.info("Wave center set to %d", self.tracker.center)
                self._reset_frame()
        else:
            reading = self._step(self.prev, sample)
        self.prev = sample
        return reading

    def run(self, samples: Iterable[int]) -> Iterator[PowerReading]:
        for sample in samples:
            reading = self.feed(sample)
            if reading is not None:
                yield reading

    def _step(self, prev: int, cur: int) -> Optional[PowerReading]:
        center = self.tracker.center
        reading = None
        if cur > center and prev < center:
            self.hctr = 0
        elif cur > center and prev > center:
            self.hctr += 1
            if self.hctr > self.config.preamble_count:
                self.preamble = True
        elif cur < center and prev > center:
            if self.hctr > self.config.min_low_bit and self.in_frame:
                reading = self._push_bit(self.hctr)
            self.hctr = 0
        else:
            self.hctr = 0

        if self.hctr == 0 and self.preamble:
            self.preamble = False
            self.in_frame = True
        return reading

    def _push_bit(self, width: int) -> Optional[PowerReading]:
        cfg = self.config
        reading = None
        bit = classify_pulse(width, cfg.min_low_bit, cfg.min_high_bit)
        self.bits_decoded += 1
        self.bitpos += 1
        self.byte = ((self.byte << 1) | (bit or 0)) & 0xFF
        if self.bitpos > 7:
            self.frame.append(self.byte)
            self.byte = 0
            self.bitpos = 0
            if len(self.frame) == cfg.frame_byte_count:
                reading = self._complete_frame(bytes(self.frame))
        if self.bits_decoded > cfg.frame_bit_count:
            logger.debug("Stale frame after %d bits, resetting", self.bits_decoded)
            self._stats["stale_frames"] += 1
            self._reset_frame()
        return reading

    def _complete_frame(self, frame: bytes) -> Optional[PowerReading]:
        self._stats["frames"] += 1
        try:
            reading = self.validator.validate(frame)
        except ChecksumError as exc:
            self._stats["checksum_errors"] += 1
            logger.warning("%s; recalibrating wave center (try 'efergy analyze')", exc)
            self.tracker.rearm()
            return None
        self._stats["readings"] += 1
        for callback in self._callbacks:
            callback(reading)
        return reading

    def stats(self) -> Dict[str, int]:
        stats = dict(self._stats)
        stats["center"] = self.tracker.center
        return stats
