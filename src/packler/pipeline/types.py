from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field

from packler.core import ItemFailure


class AssetRecord(BaseModel):
    """
    One processed asset.

    `processed_relative_path` is `logical_path` with the stem rewritten to embed
    the content hash, so identical content always maps to the same path.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    source_path: str
    logical_path: str
    processed_relative_path: str

    # Recomputed on every run, never persisted.
    content_hash: int | None = Field(default=None, exclude=True)


class AssetManifest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    images: list[AssetRecord] = Field(default_factory=list)
    stylesheets: list[AssetRecord] = Field(default_factory=list, alias="sass")

    def records(self) -> Iterator[AssetRecord]:
        yield from self.images
        yield from self.stylesheets

    def __len__(self) -> int:
        return len(self.images) + len(self.stylesheets)


@dataclass(slots=True)
class StageOutcome:
    """
    What a pipeline stage produced: the records that made it, and the items
    that were dropped along the way.
    """

    records: list[AssetRecord] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)
