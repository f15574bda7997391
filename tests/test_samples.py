from __future__ import annotations

import io

from efergy.samples import encode_samples, iter_samples, read_samples


def test_little_endian_signed_samples() -> None:
    data = b"\x01\x00\xff\xff\x00\x80\xff\x7f"
    assert list(iter_samples([data])) == [1, -1, -32768, 32767]


def test_samples_split_across_chunks() -> None:
    chunks = [b"\x01", b"\x00\xfe", b"\xff", b"", b"\x02"]
    # trailing odd byte is dropped
    assert list(iter_samples(chunks)) == [1, -2]


def test_read_samples_from_handle() -> None:
    values = [0, 100, -100, 32767, -32768] * 1000
    handle = io.BytesIO(encode_samples(values))
    assert list(read_samples(handle, chunk_size=3)) == values


def test_empty_stream() -> None:
    assert list(read_samples(io.BytesIO(b""))) == []
