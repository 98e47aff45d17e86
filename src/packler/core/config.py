from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    PyprojectTomlConfigSettingsSource,
    SettingsConfigDict,
)

LogFormat = Literal["json", "console"]
SassStyle = Literal["expanded", "compressed"]

DEFAULT_SASS_VERSION = "1.59.3"
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_ASSETS_DIR = "assets"
DEFAULT_IMAGES_DIR = "images"
DEFAULT_SASS_DIR = "css"
DEFAULT_TARGET_DIR = "target"
DEFAULT_METADATA_FILENAME = "assets.json"
LOCK_FILENAME = ".packler.lock"


class Settings(BaseSettings):
    """
    Values come from (highest priority first): explicit arguments, PACKLER_* env
    vars, .env, then the [tool.packler] table of the workspace pyproject.toml.
    """

    model_config = SettingsConfigDict(
        env_prefix="PACKLER_",
        env_file=".env",
        extra="ignore",
        pyproject_toml_table_header=("tool", "packler"),
    )

    workspace_root: Path = Field(default=Path("."))
    assets_dir: Path = Field(default=Path(DEFAULT_ASSETS_DIR))
    images_dir_name: str = Field(default=DEFAULT_IMAGES_DIR)
    sass_dir_name: str = Field(default=DEFAULT_SASS_DIR)
    dist_dir: Path = Field(default=Path(DEFAULT_OUTPUT_DIR))
    target_dir: Path = Field(default=Path(DEFAULT_TARGET_DIR))
    metadata_filename: str = Field(default=DEFAULT_METADATA_FILENAME)

    sass_version: str = Field(default=DEFAULT_SASS_VERSION)
    sass_binary: Path | None = Field(default=None)
    sass_style: SassStyle = Field(default="expanded")
    sass_entrypoints: list[str] = Field(default_factory=list)

    bucket_name: str | None = Field(default=None)
    bucket_region: str | None = Field(default=None)
    bucket_endpoint: str | None = Field(default=None)
    cors_allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_max_age_seconds: int = Field(default=30000, ge=0)
    upload_max_attempts: int = Field(default=3, ge=1)

    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            PyprojectTomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(**overrides: object) -> Settings:
    return Settings(**overrides)  # type: ignore[arg-type]


def _dir_name(name: str) -> str:
    # "./images/" and "img/../images" both mean "images"
    return posixpath.normpath(name.replace("\\", "/"))


@dataclass(frozen=True, slots=True)
class PacklerConfig:
    """
    Resolved layout for one workspace. Built once at startup and passed to
    every component:

      {assets_source_dir}/{images_dir_name}/      image sources
      {assets_source_dir}/{sass_dir_name}/        stylesheet sources
      {dist_dir}/{images_dir_name}/               fingerprinted images
      {dist_dir}/{sass_dir_name}/                 fingerprinted stylesheets
      {dist_dir}/{metadata_filename}              manifest
      {target}/packler/sass/                      compiler scratch
      {target}/packler/tools/                     provisioned tools
    """

    assets_source_dir: Path
    dist_dir: Path
    target: Path
    images_dir_name: str = DEFAULT_IMAGES_DIR
    sass_dir_name: str = DEFAULT_SASS_DIR
    metadata_filename: str = DEFAULT_METADATA_FILENAME
    sass_version: str = DEFAULT_SASS_VERSION
    sass_binary: Path | None = None
    sass_style: SassStyle = "expanded"
    sass_entrypoints: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_settings(cls, s: Settings) -> "PacklerConfig":
        root = Path(s.workspace_root)
        return cls(
            assets_source_dir=root / s.assets_dir,
            dist_dir=root / s.dist_dir,
            target=root / s.target_dir,
            images_dir_name=_dir_name(s.images_dir_name),
            sass_dir_name=_dir_name(s.sass_dir_name),
            metadata_filename=s.metadata_filename,
            sass_version=s.sass_version,
            sass_binary=s.sass_binary,
            sass_style=s.sass_style,
            sass_entrypoints=tuple(s.sass_entrypoints),
        )

    def metadata_file(self) -> Path:
        return self.dist_dir / self.metadata_filename

    def source_image_dir(self) -> Path:
        return self.assets_source_dir / self.images_dir_name

    def dist_image_dir(self) -> Path:
        return self.dist_dir / self.images_dir_name

    def source_sass_dir(self) -> Path:
        return self.assets_source_dir / self.sass_dir_name

    def dist_sass_dir(self) -> Path:
        return self.dist_dir / self.sass_dir_name

    def intermediate_sass_dir(self) -> Path:
        return self.target / "packler" / "sass"

    def tools_dir(self) -> Path:
        return self.target / "packler" / "tools"

    def lock_file(self) -> Path:
        return self.dist_dir / LOCK_FILENAME
