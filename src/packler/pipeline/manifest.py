from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from packler.core import SerializationError, atomic_write_json, read_json

from .types import AssetManifest


def encode_manifest(manifest: AssetManifest) -> dict[str, Any]:
    """
    {"images": [Record...], "sass": [Record...]}, content hashes omitted.
    """
    return manifest.model_dump(mode="json", by_alias=True)


def write_manifest(path: Path, manifest: AssetManifest) -> None:
    try:
        payload = encode_manifest(manifest)
        atomic_write_json(Path(path), payload)
    except (OSError, TypeError, ValueError) as e:
        raise SerializationError(f"Could not write manifest '{path}': {e}") from e


def read_manifest(path: Path) -> AssetManifest:
    try:
        return AssetManifest.model_validate(read_json(Path(path)))
    except (OSError, ValueError, ValidationError) as e:
        raise SerializationError(f"Could not read manifest '{path}': {e}") from e


def logical_mapping(manifest: AssetManifest) -> dict[str, str]:
    return {r.logical_path: r.processed_relative_path for r in manifest.records()}
