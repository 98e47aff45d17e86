import os
import shutil
import tempfile
from pathlib import Path

from .errors import FilesystemError
from .time import utc_now_iso


def ensure_parent(path: Path) -> None:
    parent = Path(path).parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Could not create directory '{parent}': {e}") from e


def relpath_posix(path: Path, base_dir: Path) -> str:
    return Path(path).relative_to(base_dir).as_posix()


def read_bytes(path: Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise FilesystemError(f"Could not read '{path}': {e}") from e


def remove_tree(path: Path) -> bool:
    """
    Remove a directory tree. Returns False when there was nothing to remove.
    """
    path = Path(path)
    if not path.exists():
        return False
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Could not remove '{path}': {e}") from e
    return True


def remove_file(path: Path) -> None:
    try:
        Path(path).unlink()
    except OSError as e:
        raise FilesystemError(f"Could not remove '{path}': {e}") from e


def copy_file(src: Path, dst: Path) -> None:
    """
    Byte-for-byte copy, creating parents of `dst` as needed.
    """
    ensure_parent(dst)
    try:
        shutil.copyfile(src, dst)
    except OSError as e:
        raise FilesystemError(f"Could not copy '{src}' to '{dst}': {e}") from e


def move_by_copy(src: Path, dst: Path) -> None:
    """
    Copy then delete instead of rename.

    A rename keeps the security label of the scratch location (SELinux
    `unlabeled_t`), which keeps containers from serving the file. A fresh copy
    gets the label of its destination directory.
    """
    copy_file(src, dst)
    remove_file(src)


def fsync_dir(parent: Path) -> None:
    """
    Ensure directory entry durability after atomic rename.
    """
    fd: int | None = None
    try:
        fd = os.open(parent, os.O_RDONLY)
        os.fsync(fd)
    except OSError:
        return
    finally:
        if fd is not None:
            os.close(fd)


def atomic_write_text(
    path: Path,
    text: str,
    *,
    encoding: str = "utf-8",
    newline: str = "\n",
    mode: int = 0o644,
) -> None:
    """
    Atomically write text to `path`.

    Guarantees:
      - readers either see the old complete file or the new complete file
      - temp file written in the same directory (atomic replace works)
      - file contents are fsync()'d before replace
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd: int | None = None
    tmp_path: Path | None = None

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=str(path.parent),
            text=True,
        )
        tmp_path = Path(tmp_name)

        with os.fdopen(fd, "w", encoding=encoding, newline=newline) as f:
            fd = None
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
        tmp_path = None

        fsync_dir(path.parent)

    finally:
        if fd is not None:
            os.close(fd)
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)


def make_tmp_dir_for(final_dir: Path) -> Path:
    """
    Create a temp dir next to final_dir (same filesystem) so rename is atomic.
    """
    final_dir = Path(final_dir)
    try:
        final_dir.parent.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.mkdtemp(
            prefix=f".{final_dir.name}.tmp.", dir=str(final_dir.parent)
        )
    except OSError as e:
        raise FilesystemError(
            f"Could not create staging directory for '{final_dir}': {e}"
        ) from e
    return Path(tmp)


def atomic_dir_swap(final_dir: Path, tmp_dir: Path) -> None:
    """
    Swap tmp_dir into final_dir with rollback.
    """
    final_dir = Path(final_dir)
    tmp_dir = Path(tmp_dir)

    stamp = utc_now_iso().replace(":", "").replace("-", "").replace(".", "")
    backup_dir = final_dir.parent / f".{final_dir.name}.old.{stamp}"

    try:
        if final_dir.exists():
            final_dir.rename(backup_dir)

        try:
            tmp_dir.rename(final_dir)
        except OSError:
            if backup_dir.exists() and not final_dir.exists():
                backup_dir.rename(final_dir)
            raise
    except OSError as e:
        raise FilesystemError(
            f"Could not swap '{tmp_dir}' into '{final_dir}': {e}"
        ) from e
    finally:
        # best-effort cleanup
        if backup_dir.exists():
            shutil.rmtree(backup_dir, ignore_errors=True)
