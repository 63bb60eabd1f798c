"""TOML config loading for vira.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "vira.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"


@dataclass
class PreprocessConfig:
    include_paths: list[Path] = field(default_factory=lambda: [Path(".")])
    defines: dict[str, str] = field(default_factory=dict)


@dataclass
class DiagnosticsConfig:
    color: bool = True


@dataclass
class ViraConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find vira.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> ViraConfig:
    """Parse a vira.toml file into a ViraConfig.

    Relative include paths are resolved against the file's directory.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = ViraConfig()
    base = path.parent

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
        )

    if "preprocess" in data:
        pre = data["preprocess"]
        config.preprocess = PreprocessConfig(
            include_paths=[base / p for p in pre.get("include_paths", ["."])],
            defines={str(k): str(v) for k, v in pre.get("defines", {}).items()},
        )
    else:
        config.preprocess = PreprocessConfig(include_paths=[base])

    if "diagnostics" in data:
        diag = data["diagnostics"]
        config.diagnostics = DiagnosticsConfig(color=diag.get("color", True))

    return config


def load_nearest(start_path: Path | None = None) -> ViraConfig:
    """Load the nearest vira.toml, or defaults when there is none."""
    try:
        return load_config(find_config(start_path))
    except FileNotFoundError:
        return ViraConfig()
