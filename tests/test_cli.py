from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from packler.cli import (
    Component,
    ExitCode,
    _build_parser,
    exit_code_for,
    main,
    requested_components,
    worst,
)
from packler.core import output_root_lock


@pytest.fixture(autouse=True)
def _workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    for var in list(os.environ):
        if var.startswith("PACKLER_"):
            monkeypatch.delenv(var)
    return tmp_path


def test_worst_orders_by_severity() -> None:
    assert worst([]) == ExitCode.OK
    assert worst([ExitCode.OK, ExitCode.PARTIAL]) == ExitCode.PARTIAL
    partial_and_missing = [ExitCode.PARTIAL, ExitCode.NOT_IMPLEMENTED]
    assert worst(partial_and_missing) == ExitCode.NOT_IMPLEMENTED
    assert worst([ExitCode.LOCKED, ExitCode.NOT_IMPLEMENTED]) == ExitCode.LOCKED
    assert worst([ExitCode.FAILED, ExitCode.LOCKED]) == ExitCode.FAILED


def test_exit_code_for_status() -> None:
    assert exit_code_for("success") == ExitCode.OK
    assert exit_code_for("partial") == ExitCode.PARTIAL
    assert exit_code_for("failed") == ExitCode.FAILED


def test_parser() -> None:
    p = _build_parser()

    args = p.parse_args(["build", "--watch"])
    assert args.cmd == "build" and args.watch is True
    assert args.components is None

    args = p.parse_args(["-c", "assets", "-c", "frontend", "deploy"])
    assert args.components == ["assets", "frontend"]

    args = p.parse_args(["clean", "-c", "backend"])
    assert requested_components(args) == [Component.BACKEND]

    with pytest.raises(SystemExit):
        p.parse_args(["-c", "database", "build"])
    with pytest.raises(SystemExit):
        p.parse_args([])


def test_components_before_and_after_subcommand() -> None:
    p = _build_parser()

    args = p.parse_args(["-c", "assets", "build", "-c", "frontend"])
    assert requested_components(args) == [Component.ASSETS, Component.FRONTEND]

    args = p.parse_args(["-c", "assets", "deploy", "-c", "assets"])
    assert requested_components(args) == [Component.ASSETS]

    assert requested_components(p.parse_args(["build"])) == [Component.ASSETS]


def test_mixed_components_run_both(tmp_path: Path) -> None:
    (tmp_path / "assets" / "images").mkdir(parents=True)
    code = main(["-c", "assets", "build", "-c", "frontend"])
    assert code == ExitCode.NOT_IMPLEMENTED
    assert (tmp_path / "dist" / "assets.json").is_file()


def test_watch_without_sources_exits_cleanly() -> None:
    assert main(["build", "--watch"]) == ExitCode.FAILED


def test_build_writes_manifest(tmp_path: Path) -> None:
    images = tmp_path / "assets" / "images"
    images.mkdir(parents=True)
    (images / "logo.png").write_bytes(b"logo")

    assert main(["build"]) == ExitCode.OK

    manifest = json.loads((tmp_path / "dist" / "assets.json").read_text("utf-8"))
    assert [r["logical_path"] for r in manifest["images"]] == ["images/logo.png"]
    assert manifest["sass"] == []
    for r in manifest["images"]:
        assert (tmp_path / "dist" / r["processed_relative_path"]).is_file()


def test_clean(tmp_path: Path) -> None:
    (tmp_path / "assets" / "images").mkdir(parents=True)
    assert main(["build"]) == ExitCode.OK
    assert main(["clean"]) == ExitCode.OK
    assert not (tmp_path / "dist" / "images").exists()


def test_unimplemented_components() -> None:
    assert main(["-c", "backend", "build"]) == ExitCode.NOT_IMPLEMENTED
    assert main(["-c", "assets", "-c", "frontend", "build"]) == ExitCode.NOT_IMPLEMENTED


def test_deploy_without_bucket_fails(tmp_path: Path) -> None:
    (tmp_path / "assets" / "images").mkdir(parents=True)
    (tmp_path / "assets" / "images" / "a.png").write_bytes(b"a")

    assert main(["deploy"]) == ExitCode.FAILED
    assert not (tmp_path / "dist" / "images").exists()


def test_locked_output_root(tmp_path: Path) -> None:
    with output_root_lock(tmp_path / "dist" / ".packler.lock"):
        assert main(["build"]) == ExitCode.LOCKED
    assert not (tmp_path / "dist" / "assets.json").exists()


def test_invalid_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PACKLER_SASS_STYLE", "nested")
    assert main(["build"]) == ExitCode.FAILED
