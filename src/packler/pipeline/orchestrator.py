from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from packler.core import (
    ILogger,
    PacklerConfig,
    SerializationError,
    format_duration_ms,
    get_logger,
    item_failure_from_exc,
    monotonic_ms,
)
from packler.stages import images, stylesheets
from packler.stages.stylesheets import SassCompiler
from packler.tools import resolve_sass

from .manifest import write_manifest
from .report import BuildReport
from .types import AssetManifest, StageOutcome

CompilerResolver = Callable[[PacklerConfig], Awaitable[SassCompiler]]


async def resolve_compiler(config: PacklerConfig) -> SassCompiler:
    path = await asyncio.to_thread(resolve_sass, config)
    return SassCompiler(path=path, style=config.sass_style)


@dataclass(slots=True)
class BuildResult:
    manifest: AssetManifest
    report: BuildReport


class BuildOrchestrator:
    """
    Runs the image and stylesheet pipelines and owns the manifest.

    A pipeline that blows up as a whole contributes an empty list; the
    manifest is still produced (and, for `build`, written).
    """

    def __init__(
        self,
        config: PacklerConfig,
        *,
        compiler_resolver: CompilerResolver = resolve_compiler,
        logger: ILogger | None = None,
    ) -> None:
        self.config = config
        self.compiler_resolver = compiler_resolver
        self.log: ILogger = logger or get_logger("packler.build")

    async def _images(self, report: BuildReport) -> StageOutcome:
        try:
            return await asyncio.to_thread(
                images.process_images, self.config, logger=self.log
            )
        except Exception as e:
            self.log.warning("Could not process images", error=str(e))
            report.stage_errors.append(item_failure_from_exc("images", e))
            return StageOutcome()

    async def _stylesheets(self, report: BuildReport) -> StageOutcome:
        try:
            if not self.config.sass_entrypoints:
                self.log.info("No SASS entrypoints configured")
                await asyncio.to_thread(stylesheets.clean_dist_dir, self.config)
                return StageOutcome()

            compiler = await self.compiler_resolver(self.config)
            return await stylesheets.process_stylesheets(
                self.config, compiler, logger=self.log
            )
        except Exception as e:
            self.log.warning("Could not process SASS files", error=str(e))
            report.stage_errors.append(item_failure_from_exc("sass", e))
            return StageOutcome()

    async def build_and_return(self) -> BuildResult:
        """
        Process every asset; nothing is persisted.
        """
        t0 = monotonic_ms()
        report = BuildReport()

        # Disjoint output subtrees: dist/images vs dist/css + scratch.
        imgs, sass = await asyncio.gather(
            self._images(report), self._stylesheets(report)
        )

        manifest = AssetManifest(images=imgs.records, stylesheets=sass.records)
        report.images = len(imgs.records)
        report.stylesheets = len(sass.records)
        report.failures = [*imgs.failures, *sass.failures]
        report.duration_ms = monotonic_ms() - t0

        return BuildResult(manifest=manifest, report=report)

    def persist(self, result: BuildResult) -> None:
        path = self.config.metadata_file()
        try:
            write_manifest(path, result.manifest)
        except SerializationError as e:
            self.log.error("Could not write manifest", path=str(path), error=str(e))
            result.report.manifest_written = False
            return
        result.report.manifest_written = True
        self.log.info("Manifest written", path=str(path), assets=len(result.manifest))

    async def build(self) -> BuildResult:
        self.log.info("Building assets")
        result = await self.build_and_return()
        await asyncio.to_thread(self.persist, result)

        report = result.report
        log_fields: dict[str, object] = {
            "status": report.status,
            "images": report.images,
            "stylesheets": report.stylesheets,
            "dropped": report.dropped,
            "duration": format_duration_ms(report.duration_ms),
        }
        if report.status == "success":
            self.log.info("Assets built", **log_fields)
        else:
            self.log.warning("Assets built with errors", **log_fields)
        return result

    def clean(self) -> None:
        for label, fn in (
            ("images", images.clean_dist_dir),
            ("sass", stylesheets.clean_dist_dir),
            ("sass-intermediate", stylesheets.clean_intermediate_dir),
        ):
            if fn(self.config):
                self.log.info("Removed", what=label)
