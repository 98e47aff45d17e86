from __future__ import annotations

import stat
from pathlib import Path
from typing import Callable

import pytest

from packler.core import PacklerConfig
from packler.stages.stylesheets import SassCompiler

# argv: --no-source-map -s <style> <input> <output>
FAKE_SASS = """#!/bin/sh
mkdir -p "$(dirname "$5")"
{ printf '/* %s */\\n' "$3"; cat "$4"; } > "$5"
"""

BROKEN_SASS = """#!/bin/sh
echo "Error: expected ';'" >&2
exit 65
"""


def _script(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_sass(tmp_path: Path) -> Path:
    return _script(tmp_path / "fake-sass", FAKE_SASS)


@pytest.fixture
def broken_sass(tmp_path: Path) -> Path:
    return _script(tmp_path / "broken-sass", BROKEN_SASS)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, bytes | str], Path]:
    def _write(rel: str, content: bytes | str) -> Path:
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        p.write_bytes(content)
        return p

    return _write


@pytest.fixture
def config(tmp_path: Path) -> PacklerConfig:
    return PacklerConfig(
        assets_source_dir=tmp_path / "assets",
        dist_dir=tmp_path / "dist",
        target=tmp_path / "target",
    )


@pytest.fixture
def compiler_resolver(fake_sass: Path):
    async def _resolve(cfg: PacklerConfig) -> SassCompiler:
        return SassCompiler(path=fake_sass, style=cfg.sass_style)

    return _resolve
