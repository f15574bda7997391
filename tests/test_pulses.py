from __future__ import annotations

from efergy.pulses import classify_pulse, decode_pulse_counts, encode_pulse_counts, pulse_runs


def test_decode_reproduces_encoded_bytes() -> None:
    data = bytes([0x01, 0x02, 0x03, 0x04, 0x00, 0x64, 0x00, 0x6E, 0xA5])
    counts = encode_pulse_counts(data)
    assert decode_pulse_counts(counts, max_bytes=9) == data


def test_threshold_boundaries_are_strict() -> None:
    assert classify_pulse(3, 3, 8) is None
    assert classify_pulse(4, 3, 8) == 0
    assert classify_pulse(8, 3, 8) == 0
    assert classify_pulse(9, 3, 8) == 1


def test_short_runs_are_skipped() -> None:
    counts = []
    for width in encode_pulse_counts(b"\xC3"):
        counts.extend([1, 3, width])
    assert decode_pulse_counts(counts, max_bytes=1) == b"\xC3"


def test_decode_stops_at_max_bytes() -> None:
    counts = encode_pulse_counts(b"\x11\x22\x33")
    assert decode_pulse_counts(counts, max_bytes=2) == b"\x11\x22"


def test_incomplete_trailing_byte_is_dropped() -> None:
    counts = encode_pulse_counts(b"\x5A") + [9, 9, 9]
    assert decode_pulse_counts(counts, max_bytes=4) == b"\x5A"
    assert decode_pulse_counts([], max_bytes=4) == b""


def test_custom_high_threshold() -> None:
    counts = [9] * 8
    assert decode_pulse_counts(counts, max_bytes=1, min_low_bit=3, min_high_bit=9) == b"\x00"
    assert decode_pulse_counts(counts, max_bytes=1, min_low_bit=3, min_high_bit=8) == b"\xFF"


def test_pulse_runs_split_by_polarity() -> None:
    samples = [-5, -5, 10, 10, 10, -1, 0, 0, -7, -7, 3]
    runs = pulse_runs(samples, 0)
    assert runs.positive == [3, 2]
    assert runs.negative == [2, 1, 2]
    assert runs.sequence == [("N", 2), ("P", 3), ("N", 1), ("P", 2), ("N", 2)]


def test_pulse_runs_open_run_not_recorded() -> None:
    runs = pulse_runs([5, 5, 5, 5], 0)
    assert runs.positive == []
    assert runs.negative == []
