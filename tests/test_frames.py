from __future__ import annotations

from datetime import datetime

import numpy as np
import pytest

from efergy.frames import ChecksumError, FrameValidator, compute_watts, frame_checksum, signed_exponent


def build_frame(adc: int = 100, exponent_byte: int = 0, head: bytes = b"\x01\x02\x03\x04") -> bytes:
    body = head + bytes([(adc >> 8) & 0xFF, adc & 0xFF, exponent_byte & 0xFF])
    return body + bytes([frame_checksum(body)])


def test_checksum_wraps_mod_256() -> None:
    assert frame_checksum([0xFF, 0x02]) == 0x01
    assert frame_checksum(b"\x01\x02\x03\x04\x00\x64\x00") == 0x6E


def test_signed_exponent_twos_complement() -> None:
    assert signed_exponent(0x00) == 0
    assert signed_exponent(0x01) == 1
    assert signed_exponent(0x7F) == 127
    assert signed_exponent(0x80) == -128
    assert signed_exponent(0xFE) == -2
    assert signed_exponent(0xFF) == -1


def test_watts_with_positive_exponent() -> None:
    frame = build_frame(adc=0x0120, exponent_byte=0x02)
    assert np.isclose(compute_watts(frame, 240.0), 240.0 * 0x0120 / (32768.0 / 4.0))


def test_watts_with_negative_exponent() -> None:
    frame = build_frame(adc=0x0120, exponent_byte=0xFF)
    # 0xFF is -1, not 255
    assert np.isclose(compute_watts(frame, 240.0), 240.0 * 0x0120 / (32768.0 * 2.0))


def test_validator_returns_reading() -> None:
    stamp = datetime(2026, 1, 2, 3, 4, 5)
    validator = FrameValidator(240.0, clock=lambda: stamp)
    frame = build_frame(adc=1000, exponent_byte=0x01)
    reading = validator.validate(frame)
    assert reading.timestamp == stamp
    assert reading.current_adc == 1000
    assert reading.exponent == 1
    assert np.isclose(reading.watts, 240.0 * 1000 / 16384.0)
    assert validator.stats() == {"valid": 1, "checksum_errors": 0}


def test_validator_rejects_bad_checksum() -> None:
    validator = FrameValidator(240.0)
    frame = bytearray(build_frame())
    frame[7] ^= 0x04
    with pytest.raises(ChecksumError) as excinfo:
        validator.validate(bytes(frame))
    assert excinfo.value.actual == 0x6E
    assert excinfo.value.expected == 0x6A
    assert validator.stats()["checksum_errors"] == 1
    assert validator.stats()["valid"] == 0


def test_validator_rejects_short_frame() -> None:
    with pytest.raises(ValueError):
        FrameValidator(240.0).validate(b"\x00\x00\x00")


def test_elite_voltage_reports_scaled_current() -> None:
    frame = build_frame(adc=0x4000, exponent_byte=0x00)
    assert np.isclose(compute_watts(frame, 1.0), 0.5)
