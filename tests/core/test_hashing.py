from __future__ import annotations

from pathlib import PurePosixPath

import xxhash

from packler.core import hashing


def test_content_hash_is_xxh64_and_stable() -> None:
    data = b"\x89PNG\r\n\x1a\nfake image"
    h = hashing.content_hash(data)
    assert h == xxhash.xxh64(data).intdigest()
    assert h == hashing.content_hash(bytes(data))
    assert 0 <= h < 2**64
    assert hashing.content_hash(b"a") != hashing.content_hash(b"b")


def test_hash_hex_is_fixed_width() -> None:
    assert hashing.hash_hex(0) == "0" * 16
    assert hashing.hash_hex(0x1A2B3C4D5E6F7890) == "1a2b3c4d5e6f7890"
    assert hashing.hash_hex(0xFF) == "00000000000000ff"


def test_hashed_relative_path_keeps_segments_and_dots() -> None:
    h = 0x1A2B3C4D5E6F7890
    assert (
        hashing.hashed_relative_path("images/logo.png", h)
        == "images/logo-1a2b3c4d5e6f7890.png"
    )
    assert (
        hashing.hashed_relative_path("images/icons/app.min.v2.svg", h)
        == "images/icons/app.min.v2-1a2b3c4d5e6f7890.svg"
    )
    assert (
        hashing.hashed_relative_path(PurePosixPath("images/LICENSE"), h)
        == "images/LICENSE-1a2b3c4d5e6f7890"
    )


def test_hashed_relative_path_is_deterministic() -> None:
    h = hashing.content_hash(b"same bytes")
    assert hashing.hashed_relative_path("a/b.css", h) == hashing.hashed_relative_path(
        "a/b.css", h
    )
