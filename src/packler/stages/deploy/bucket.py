from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from packler.core import ILogger, UploadError, get_logger
from packler.core.retry import DeterministicExponentialBackoff

from .config import BucketParams

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ObjectStore(Protocol):
    """The two S3 calls the deploy stage needs."""

    def put_object(self, **kwargs: Any) -> Any: ...
    def put_bucket_cors(self, **kwargs: Any) -> Any: ...


def make_s3_client(params: BucketParams) -> ObjectStore:
    """
    Credentials come from the usual AWS_* environment / profile chain.
    """
    return boto3.client(
        "s3",
        region_name=params.region,
        endpoint_url=params.endpoint,
        config=Config(signature_version="s3v4"),
    )


def guess_content_type(path: str | Path) -> str:
    ct, _ = mimetypes.guess_type(str(path))
    return ct or DEFAULT_CONTENT_TYPE


class AssetBucket:
    """
    Additive uploads only: objects are PUT under content-addressed keys and
    nothing is ever deleted, so older builds keep being served.
    """

    def __init__(
        self,
        params: BucketParams,
        *,
        client: ObjectStore | None = None,
        logger: ILogger | None = None,
        backoff_base: float = 0.5,
    ) -> None:
        self.params = params
        self.client = client if client is not None else make_s3_client(params)
        self.log = (logger or get_logger("packler.deploy")).bind(bucket=params.name)
        self._backoff_base = backoff_base

    def _retrying(self, key: str) -> Retrying:
        def _before_sleep(retry_state) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            self.log.warning(
                "upload.retry",
                key=key,
                attempt=retry_state.attempt_number,
                error=repr(exc) if exc else None,
            )

        return Retrying(
            stop=stop_after_attempt(self.params.max_attempts),
            wait=DeterministicExponentialBackoff(base=self._backoff_base),
            retry=retry_if_exception_type(BotoCoreError),
            reraise=False,
            before_sleep=_before_sleep,
        )

    def send_asset(self, local_path: Path, key: str) -> None:
        content_type = guess_content_type(key)
        try:
            for attempt in self._retrying(key):
                with attempt:
                    with Path(local_path).open("rb") as body:
                        self.client.put_object(
                            Bucket=self.params.name,
                            Key=key,
                            Body=body,
                            ACL="public-read",
                            ContentType=content_type,
                        )
        except RetryError as re:
            last = re.last_attempt.exception()
            raise UploadError(
                f"Upload of '{key}' failed after "
                f"{re.last_attempt.attempt_number} attempts: {last}"
            ) from last
        except Exception as e:
            raise UploadError(f"Upload of '{key}' failed: {e}") from e

        self.log.debug("Uploaded", key=key, content_type=content_type)

    def cors_configuration(self) -> dict[str, Any]:
        return {
            "CORSRules": [
                {
                    "AllowedOrigins": list(self.params.allowed_origins),
                    "AllowedHeaders": ["*"],
                    "AllowedMethods": ["GET", "HEAD"],
                    "ExposeHeaders": ["Etag"],
                    "MaxAgeSeconds": int(self.params.cors_max_age_seconds),
                }
            ]
        }

    def send_cors(self) -> bool:
        """
        Push the CORS policy. Failure is logged and reported, never raised.
        """
        try:
            self.client.put_bucket_cors(
                Bucket=self.params.name,
                CORSConfiguration=self.cors_configuration(),
            )
        except Exception as e:
            self.log.error("Could not set CORS configuration", error=str(e))
            return False
        self.log.info("CORS configuration applied")
        return True
