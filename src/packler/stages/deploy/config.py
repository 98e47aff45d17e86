from __future__ import annotations

from dataclasses import dataclass, field

from packler.core import Settings

CORS_MAX_AGE_SECONDS = 30000


@dataclass(frozen=True, slots=True)
class BucketParams:
    name: str
    region: str | None = None
    endpoint: str | None = None
    allowed_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))
    cors_max_age_seconds: int = CORS_MAX_AGE_SECONDS
    max_attempts: int = 3

    @classmethod
    def from_settings(cls, s: Settings) -> "BucketParams | None":
        if not s.bucket_name:
            return None
        return cls(
            name=s.bucket_name,
            region=s.bucket_region,
            endpoint=s.bucket_endpoint,
            allowed_origins=tuple(s.cors_allowed_origins),
            cors_max_age_seconds=s.cors_max_age_seconds,
            max_attempts=s.upload_max_attempts,
        )
