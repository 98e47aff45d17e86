from __future__ import annotations

from pathlib import Path

import pytest

from packler.core import LockError, output_root_lock


def test_second_holder_is_refused(tmp_path: Path) -> None:
    lock_path = tmp_path / "dist" / ".packler.lock"
    with output_root_lock(lock_path):
        with pytest.raises(LockError):
            with output_root_lock(lock_path):
                pass

    # released: can be taken again
    with output_root_lock(lock_path):
        pass
