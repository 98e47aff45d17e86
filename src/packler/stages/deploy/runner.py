from __future__ import annotations

import asyncio

from packler.core import (
    ConfigurationError,
    ILogger,
    UploadError,
    get_logger,
    item_failure_from_exc,
)
from packler.pipeline import BuildOrchestrator, BuildResult, DeployReport

from .bucket import AssetBucket, ObjectStore
from .config import BucketParams


async def send_assets(
    bucket: AssetBucket, orchestrator: BuildOrchestrator, result: BuildResult
) -> DeployReport:
    """
    Upload every record of the manifest, images first. A failed object is
    logged and skipped.
    """
    report = DeployReport()
    dist_dir = orchestrator.config.dist_dir

    for record in result.manifest.records():
        key = record.processed_relative_path
        try:
            await asyncio.to_thread(bucket.send_asset, dist_dir / key, key)
        except UploadError as e:
            bucket.log.error("Could not upload asset, skip", key=key, error=str(e))
            report.failures.append(item_failure_from_exc(key, e))
            continue
        report.uploaded.append(key)

    return report


async def deploy_assets(
    orchestrator: BuildOrchestrator,
    params: BucketParams | None,
    *,
    client: ObjectStore | None = None,
    logger: ILogger | None = None,
) -> tuple[BuildResult, DeployReport]:
    """
    Build, upload, write the manifest, then push the CORS policy.
    """
    log = logger or get_logger("packler.deploy")
    if params is None:
        raise ConfigurationError(
            "Cannot deploy assets: bucket parameters were not provided"
        )

    bucket = AssetBucket(params, client=client, logger=log)

    log.info("Building assets")
    result = await orchestrator.build_and_return()

    log.info("Uploading assets", assets=len(result.manifest))
    report = await send_assets(bucket, orchestrator, result)

    log.info("Writing metadata file")
    await asyncio.to_thread(orchestrator.persist, result)

    log.info("Setting CORS config on assets bucket")
    report.cors_applied = await asyncio.to_thread(bucket.send_cors)

    log.info(
        "Assets deployed",
        status=report.status,
        uploaded=len(report.uploaded),
        dropped=len(report.failures),
    )
    return result, report
