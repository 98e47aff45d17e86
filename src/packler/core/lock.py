from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock, Timeout

from .errors import FilesystemError, LockError


@contextmanager
def output_root_lock(lock_path: Path) -> Iterator[FileLock]:
    """
    Hold an exclusive lock on the output root for the duration of the block.
    Fails immediately if another process holds it.
    """
    lock_path = Path(lock_path)
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Could not create '{lock_path.parent}': {e}") from e

    lock = FileLock(str(lock_path), timeout=0)
    try:
        lock.acquire()
    except Timeout as e:
        raise LockError(
            f"Output root is locked by another packler instance ({lock_path})"
        ) from e
    try:
        yield lock
    finally:
        lock.release()
