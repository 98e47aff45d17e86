from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from packler.core import ItemFailure

Status = Literal["success", "partial", "failed"]


@dataclass(slots=True)
class BuildReport:
    images: int = 0
    stylesheets: int = 0
    failures: list[ItemFailure] = field(default_factory=list)
    # item = stage id ("images" | "sass")
    stage_errors: list[ItemFailure] = field(default_factory=list)
    # None until the manifest has been persisted (or attempted)
    manifest_written: bool | None = None
    duration_ms: int = 0

    @property
    def produced(self) -> int:
        return self.images + self.stylesheets

    @property
    def dropped(self) -> int:
        return len(self.failures) + len(self.stage_errors)

    @property
    def status(self) -> Status:
        if self.manifest_written is False:
            return "failed"
        if self.dropped == 0:
            return "success"
        return "partial" if self.produced > 0 else "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "images": self.images,
            "stylesheets": self.stylesheets,
            "failures": [f.to_dict() for f in self.failures],
            "stage_errors": [f.to_dict() for f in self.stage_errors],
            "manifest_written": self.manifest_written,
            "duration_ms": self.duration_ms,
        }


@dataclass(slots=True)
class DeployReport:
    uploaded: list[str] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)
    cors_applied: bool = False

    @property
    def status(self) -> Status:
        if not self.failures:
            return "success"
        return "partial" if self.uploaded else "failed"
