"""
Stylesheet pipeline.

  - clear the scratch folder, stage a fresh destination folder
  - compile every entry point concurrently into the scratch folder
  - fingerprint each compiled file and move it to its hashed name
  - swap the staged folder into dist/css
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable

from packler.core import (
    EntryPointMissing,
    FilesystemError,
    ILogger,
    ItemFailure,
    PacklerConfig,
    atomic_dir_swap,
    content_hash,
    ensure_parent,
    get_logger,
    hashed_relative_path,
    item_failure_from_exc,
    make_tmp_dir_for,
    move_by_copy,
    read_bytes,
    relpath_posix,
    remove_tree,
)
from packler.pipeline.types import AssetRecord, StageOutcome

from .compiler import SassCompiler


class SassRun:
    def __init__(
        self, config: PacklerConfig, compiler: SassCompiler, *, log: ILogger
    ) -> None:
        self.config = config
        self.compiler = compiler
        self.log = log

    def intermediate_dir(self) -> Path:
        return self.config.intermediate_sass_dir()

    def clean_intermediate_folder(self) -> None:
        try:
            if remove_tree(self.intermediate_dir()):
                self.log.info("Intermediate folder cleared")
        except FilesystemError as e:
            self.log.warning("Could not remove intermediate folder", error=str(e))

    async def start(self, entrypoints: Iterable[str]) -> StageOutcome:
        """
        One task per entry point, all awaited. A failed entry point never
        cancels its siblings; only successes end up in the records.
        """
        entries = [str(e) for e in entrypoints]
        self.log.info("Start SASS pipeline", entrypoints=len(entries))

        await asyncio.to_thread(self.clean_intermediate_folder)

        final_dir = self.config.dist_sass_dir()
        staging = await asyncio.to_thread(make_tmp_dir_for, final_dir)
        try:
            results = await asyncio.gather(
                *(self._run_one(entry, staging) for entry in entries)
            )

            outcome = StageOutcome()
            for res in results:
                if isinstance(res, ItemFailure):
                    outcome.failures.append(res)
                else:
                    outcome.records.append(res)

            await asyncio.to_thread(atomic_dir_swap, final_dir, staging)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        self.log.info(
            "Stylesheets processed",
            stylesheets=len(outcome.records),
            dropped=len(outcome.failures),
        )
        return outcome

    async def _run_one(self, entrypoint: str, dest_root: Path) -> AssetRecord | ItemFailure:
        try:
            return await self.run(entrypoint, dest_root)
        except Exception as e:
            self.log.error("Could not process entrypoint", entrypoint=entrypoint, error=str(e))
            return item_failure_from_exc(entrypoint, e)

    async def run(self, entrypoint: str, dest_root: Path) -> AssetRecord:
        entry = PurePosixPath(Path(entrypoint).as_posix())
        original_path = self.config.source_sass_dir() / entry

        if not original_path.exists():
            raise EntryPointMissing(str(entry))

        prehash_file_path = self.intermediate_dir() / entry.with_suffix(".css")
        await asyncio.to_thread(ensure_parent, prehash_file_path)

        self.log.info("Compiling sass/scss", entrypoint=str(entry), into=str(prehash_file_path))
        await self.compiler.compile(original_path, prehash_file_path)

        css = await asyncio.to_thread(read_bytes, prehash_file_path)
        h = content_hash(css)

        # <entry-stem>-<hash>.css, in the entry's subdirectory
        hashed = hashed_relative_path(entry.with_suffix(".css"), h)
        final_file_path = dest_root / hashed

        self.log.info("Moving file to final destination", entrypoint=str(entry), file=hashed)
        await asyncio.to_thread(move_by_copy, prehash_file_path, final_file_path)

        return AssetRecord(
            source_path=original_path.as_posix(),
            logical_path=relpath_posix(original_path, self.config.assets_source_dir),
            processed_relative_path=(
                PurePosixPath(self.config.sass_dir_name) / hashed
            ).as_posix(),
            content_hash=h,
        )


async def process_stylesheets(
    config: PacklerConfig,
    compiler: SassCompiler,
    *,
    entrypoints: Iterable[str] | None = None,
    logger: ILogger | None = None,
) -> StageOutcome:
    log = (logger or get_logger()).bind(stage="sass")
    run = SassRun(config, compiler, log=log)
    return await run.start(config.sass_entrypoints if entrypoints is None else entrypoints)


def clean_dist_dir(config: PacklerConfig) -> bool:
    return remove_tree(config.dist_sass_dir())


def clean_intermediate_dir(config: PacklerConfig) -> bool:
    return remove_tree(config.intermediate_sass_dir())
