"""
Dart Sass provisioning.

Resolution order:
  1. `sass_binary` from the settings, used as is
  2. a previous download under {target}/packler/tools/sass-{version}/
  3. the official release archive, downloaded and unpacked into the cache
"""

from __future__ import annotations

import platform
import shutil
import tarfile
import zipfile
from pathlib import Path

import httpx

from packler.core import (
    ExternalToolError,
    PacklerConfig,
    atomic_dir_swap,
    get_logger,
    make_tmp_dir_for,
)

from .http import download_to_file, make_http_client

SASS_RELEASES_URL = "https://github.com/sass/dart-sass/releases/download"

_OS_NAMES = {"Linux": "linux", "Darwin": "macos", "Windows": "windows"}
_ARCH_NAMES = {
    "x86_64": "x64",
    "amd64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
}

log = get_logger(__name__)


def platform_target(
    system: str | None = None, machine: str | None = None
) -> tuple[str, str]:
    """(os, arch) as spelled in Dart Sass release names."""
    system = system or platform.system()
    machine = (machine or platform.machine()).lower()
    os_name = _OS_NAMES.get(system)
    arch = _ARCH_NAMES.get(machine)
    if os_name is None or arch is None:
        raise ExternalToolError(f"No Dart Sass release for {system}/{machine}")
    return os_name, arch


def release_url(version: str, os_name: str, arch: str) -> str:
    ext = "zip" if os_name == "windows" else "tar.gz"
    return f"{SASS_RELEASES_URL}/{version}/dart-sass-{version}-{os_name}-{arch}.{ext}"


def install_dir(config: PacklerConfig) -> Path:
    return config.tools_dir() / f"sass-{config.sass_version}"


def cached_binary(config: PacklerConfig, os_name: str) -> Path:
    exe = "sass.bat" if os_name == "windows" else "sass"
    return install_dir(config) / "dart-sass" / exe


def _extract(archive: Path, dest: Path) -> None:
    if archive.name.endswith(".zip"):
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
    else:
        with tarfile.open(archive, "r:gz") as tf:
            tf.extractall(dest, filter="data")


def resolve_sass(
    config: PacklerConfig,
    *,
    client: httpx.Client | None = None,
    system: str | None = None,
    machine: str | None = None,
) -> Path:
    """
    Return the path of an invocable `sass` for `config.sass_version`.
    """
    if config.sass_binary is not None:
        path = Path(config.sass_binary)
        if not path.is_file():
            raise ExternalToolError(f"Configured sass binary not found: {path}")
        log.debug("Using configured sass", path=str(path))
        return path

    os_name, arch = platform_target(system, machine)
    binary = cached_binary(config, os_name)
    if binary.is_file():
        log.debug("Using cached sass", path=str(binary), version=config.sass_version)
        return binary

    url = release_url(config.sass_version, os_name, arch)
    log.info("Downloading sass", version=config.sass_version, url=url)

    final_dir = install_dir(config)
    staging = make_tmp_dir_for(final_dir)
    archive = staging.with_name(staging.name + "-" + url.rsplit("/", 1)[-1])
    own_client = client is None
    http = client or make_http_client()
    try:
        size = download_to_file(http, url=url, dest_path=archive)
        try:
            _extract(archive, staging)
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            raise ExternalToolError(f"Could not unpack {archive.name}: {e}") from e
        atomic_dir_swap(final_dir, staging)
    finally:
        if own_client:
            http.close()
        archive.unlink(missing_ok=True)
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)

    if not binary.is_file():
        raise ExternalToolError(f"Sass archive did not contain {binary.name}")
    log.info("Sass installed", path=str(binary), bytes=size)
    return binary
