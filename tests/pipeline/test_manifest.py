from __future__ import annotations

import json
from pathlib import Path

import pytest

from packler.core import SerializationError
from packler.pipeline import (
    AssetManifest,
    AssetRecord,
    encode_manifest,
    logical_mapping,
    read_manifest,
    write_manifest,
)


def _manifest() -> AssetManifest:
    return AssetManifest(
        images=[
            AssetRecord(
                source_path="assets/images/logo.png",
                logical_path="images/logo.png",
                processed_relative_path="images/logo-1a2b3c4d5e6f7890.png",
                content_hash=0x1A2B3C4D5E6F7890,
            )
        ],
        stylesheets=[
            AssetRecord(
                source_path="assets/css/main.scss",
                logical_path="css/main.scss",
                processed_relative_path="css/main-00000000000000ff.css",
                content_hash=0xFF,
            )
        ],
    )


def test_encoded_shape() -> None:
    encoded = encode_manifest(_manifest())
    assert list(encoded) == ["images", "sass"]
    assert encoded["images"][0] == {
        "source_path": "assets/images/logo.png",
        "logical_path": "images/logo.png",
        "processed_relative_path": "images/logo-1a2b3c4d5e6f7890.png",
    }
    assert "content_hash" not in encoded["sass"][0]


def test_round_trip_preserves_mapping(tmp_path: Path) -> None:
    m = _manifest()
    path = tmp_path / "dist" / "assets.json"
    write_manifest(path, m)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert set(raw) == {"images", "sass"}

    back = read_manifest(path)
    assert logical_mapping(back) == logical_mapping(m)
    assert [r.content_hash for r in back.records()] == [None, None]


def test_empty_manifest_is_written(tmp_path: Path) -> None:
    path = tmp_path / "assets.json"
    write_manifest(path, AssetManifest())
    assert json.loads(path.read_text(encoding="utf-8")) == {"images": [], "sass": []}


def test_bad_manifest_raises(tmp_path: Path) -> None:
    path = tmp_path / "assets.json"
    path.write_text('{"images": "nope"}', encoding="utf-8")
    with pytest.raises(SerializationError):
        read_manifest(path)

    with pytest.raises(SerializationError):
        read_manifest(tmp_path / "missing.json")
