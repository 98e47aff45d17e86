from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterator

from packler.core import (
    FilesystemError,
    ILogger,
    ItemFailure,
    PacklerConfig,
    atomic_dir_swap,
    content_hash,
    copy_file,
    get_logger,
    hashed_relative_path,
    item_failure_from_exc,
    make_tmp_dir_for,
    read_bytes,
    relpath_posix,
    remove_tree,
)
from packler.pipeline.types import AssetRecord, StageOutcome


def _walk_files(
    root: Path, *, log: ILogger, failures: list[ItemFailure]
) -> Iterator[Path]:
    """
    Regular files under `root`, directory by directory, names sorted.
    Unreadable directories are reported and skipped.
    """

    def _on_error(e: OSError) -> None:
        where = str(e.filename or root)
        log.warning("Could not walk into images", path=where, error=str(e))
        failures.append(
            item_failure_from_exc(where, FilesystemError(f"Could not list '{where}': {e}"))
        )

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            p = Path(dirpath) / name
            if p.is_file():
                yield p
            else:
                log.debug("Not a file, skip", path=str(p))


def collect_images(
    config: PacklerConfig, *, log: ILogger, failures: list[ItemFailure]
) -> list[AssetRecord]:
    images_dir = config.source_image_dir()
    if not images_dir.is_dir():
        log.warning("Images directory does not exist", path=str(images_dir))
        return []

    out: list[AssetRecord] = []
    for p in _walk_files(images_dir, log=log, failures=failures):
        logical = relpath_posix(p, config.assets_source_dir)
        try:
            data = read_bytes(p)
        except FilesystemError as e:
            log.warning("Could not read image, skip", path=str(p), error=str(e))
            failures.append(item_failure_from_exc(logical, e))
            continue

        h = content_hash(data)
        out.append(
            AssetRecord(
                source_path=p.as_posix(),
                logical_path=logical,
                processed_relative_path=hashed_relative_path(logical, h),
                content_hash=h,
            )
        )
        log.debug("Image", path=str(p), logical_path=logical)

    return out


def process_images(
    config: PacklerConfig, *, logger: ILogger | None = None
) -> StageOutcome:
    """
    Fingerprint every file of the images directory and copy it under its
    hashed name. The destination directory is rebuilt from scratch in a
    staging directory and swapped in once every copy was attempted.

    A file that cannot be read or copied is dropped from the result; the
    rest of the batch carries on.
    """
    log = (logger or get_logger()).bind(stage="images")
    outcome = StageOutcome()

    log.info("Collecting all images metadata")
    candidates = collect_images(config, log=log, failures=outcome.failures)

    final_dir = config.dist_image_dir()
    staging = make_tmp_dir_for(final_dir)
    try:
        for image in candidates:
            rel = Path(image.processed_relative_path).relative_to(
                relpath_posix(config.source_image_dir(), config.assets_source_dir)
            )
            try:
                copy_file(Path(image.source_path), staging / rel)
            except FilesystemError as e:
                log.error(
                    "Could not copy image, skip",
                    logical_path=image.logical_path,
                    error=str(e),
                )
                outcome.failures.append(item_failure_from_exc(image.logical_path, e))
                continue
            outcome.records.append(image)

        log.info("Replacing destination directory", path=str(final_dir))
        atomic_dir_swap(final_dir, staging)
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)

    log.info(
        "Images processed",
        images=len(outcome.records),
        dropped=len(outcome.failures),
    )
    return outcome


def clean_dist_dir(config: PacklerConfig) -> bool:
    return remove_tree(config.dist_image_dir())
