"""Sample sources: raw rtl_fm output to a lazy stream of signed 16-bit samples."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

import numpy as np

logger = logging.getLogger(__name__)

SAMPLE_DTYPE = np.dtype("<i2")


def iterate_binary_stream(handle: Any, chunk_size: int = 4096) -> Iterator[bytes]:
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            break
        yield chunk


def iter_samples(chunks: Iterable[bytes]) -> Iterator[int]:
    """
    Yield little-endian int16 samples from arbitrarily sized byte chunks.

    A chunk may split a sample; the dangling byte is carried into the next chunk.
    A trailing odd byte at end of stream is dropped.
    """
    pending = b""
    for chunk in chunks:
        if not chunk:
            continue
        data = pending + bytes(chunk)
        usable = len(data) - (len(data) % 2)
        pending = data[usable:]
        if not usable:
            continue
        for value in np.frombuffer(data[:usable], dtype=SAMPLE_DTYPE).tolist():
            yield value
    if pending:
        logger.debug("Dropping %d trailing byte(s) at end of stream", len(pending))


def read_samples(handle: Any, chunk_size: int = 4096) -> Iterator[int]:
    return iter_samples(iterate_binary_stream(handle, chunk_size))


def encode_samples(samples: Iterable[int]) -> bytes:
    """Pack samples in the same wire format rtl_fm emits."""
    return np.asarray(list(samples), dtype=SAMPLE_DTYPE).tobytes()
