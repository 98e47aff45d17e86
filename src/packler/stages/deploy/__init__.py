from .bucket import AssetBucket, ObjectStore, guess_content_type, make_s3_client
from .config import CORS_MAX_AGE_SECONDS, BucketParams
from .runner import deploy_assets, send_assets

__all__ = [
    "AssetBucket",
    "ObjectStore",
    "BucketParams",
    "CORS_MAX_AGE_SECONDS",
    "deploy_assets",
    "send_assets",
    "guess_content_type",
    "make_s3_client",
]
