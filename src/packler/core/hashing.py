from __future__ import annotations

from pathlib import PurePath, PurePosixPath

import xxhash

HASH_HEX_WIDTH = 16


def content_hash(data: bytes) -> int:
    """64-bit xxHash (seed 0) of `data`."""
    return xxhash.xxh64(data).intdigest()


def hash_hex(h: int) -> str:
    return f"{h:0{HASH_HEX_WIDTH}x}"


def hashed_relative_path(relative: str | PurePath, h: int) -> str:
    """
    Insert `-<hash>` right before the final extension of the file name:

      images/icons/logo.png   -> images/icons/logo-<hash>.png
      images/app.min.v2.svg   -> images/app.min.v2-<hash>.svg
      images/LICENSE          -> images/LICENSE-<hash>

    Uses the stem (not the first dot) so internal dots survive.
    """
    rel = PurePosixPath(PurePath(relative).as_posix())
    name = f"{rel.stem}-{hash_hex(h)}{rel.suffix}"
    return rel.with_name(name).as_posix()
