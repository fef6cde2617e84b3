"""Configuration loading for sourcetree builds.

Settings come from three places, highest precedence first: command-line
flags, the project's ``sourcetree.toml`` and the defaults in
:mod:`sourcetree_cli.config`.  The TOML file may contain::

    [build]
    input = "dump.lsif"
    output = "site"
    dist = "assets"
    workers = 8
    bench = false
    check = true

    [uri_map]
    "file:///home/me/vendor/lib" = "vendor/lib"
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config
from .config import BuildConfig

logger = logging.getLogger(__name__)

BUILD_KEYS = ("input", "output", "dist", "workers", "bench", "check", "style")


def load_full_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    path = config_file or config.CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (toml.TomlDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


def load_uri_map(path: Path) -> Dict[str, str]:
    """Read a ``--uri-map`` JSON file: an object of URI prefix -> output prefix."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"URI map {path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in payload.items()
    ):
        raise ValueError(f"URI map {path} must be a JSON object of strings")
    return payload


def resolve_build_config(
    input: Optional[Path] = None,
    output: Optional[Path] = None,
    dist: Optional[Path] = None,
    uri_map: Optional[Path] = None,
    workers: Optional[int] = None,
    bench: Optional[bool] = None,
    check: Optional[bool] = None,
    config_file: Optional[Path] = None,
) -> BuildConfig:
    """Merge command-line values over the TOML file over built-in defaults."""
    full = load_full_config(config_file)
    section: Dict[str, Any] = {k: v for k, v in full.get("build", {}).items() if k in BUILD_KEYS}

    cli_values = {
        "input": input,
        "output": output,
        "dist": dist,
        "workers": workers,
        "bench": bench,
        "check": check,
    }
    merged = {**section, **{k: v for k, v in cli_values.items() if v is not None}}

    build = BuildConfig()
    for key in ("input", "output", "dist"):
        if merged.get(key) is not None:
            setattr(build, key, Path(merged[key]))
    if merged.get("workers") is not None:
        build.workers = max(1, int(merged["workers"]))
    build.bench = bool(merged.get("bench", build.bench))
    build.check = bool(merged.get("check", build.check))
    if merged.get("style"):
        build.style = str(merged["style"])

    build.uri_map = {str(k): str(v) for k, v in full.get("uri_map", {}).items()}
    if uri_map is not None:
        build.uri_map.update(load_uri_map(uri_map))
    return build
