from __future__ import annotations

from typing import List

from efergy.pulses import encode_pulse_counts

HIGH = 1000
LOW = -1000


def frame_samples(
    data: bytes,
    *,
    warmup: int = 100,
    warmup_value: int = 0,
    preamble: int = 45,
    gap: int = 5,
    tail: int = 10,
    noise_width: int | None = None,
) -> List[int]:
    """
    Build a sample stream the streaming decoder turns back into *data*.

    The high-run counter starts at 0 on the rising-edge sample, so a run of
    `n + 1` high samples reaches a count of `n` at the falling edge.
    """
    samples = [warmup_value] * warmup
    samples += [LOW] * gap + [HIGH] * (preamble + 1)
    for width in encode_pulse_counts(data):
        samples += [LOW] * gap
        if noise_width is not None:
            samples += [HIGH] * (noise_width + 1) + [LOW] * gap
        samples += [HIGH] * (width + 1)
    samples += [LOW] * (1 + tail)
    return samples


def with_checksum(payload: bytes) -> bytes:
    return payload + bytes([sum(payload) & 0xFF])
