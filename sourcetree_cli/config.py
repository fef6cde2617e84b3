"""Defaults and packaged resource paths for sourcetree builds."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

PACKAGE_DIR = Path(__file__).parent
TEMPLATE_DIR = PACKAGE_DIR / "templates"
DIST_DIR = PACKAGE_DIR / "dist"

DEFAULT_INPUT = Path("dump.lsif")
DEFAULT_OUTPUT = Path("out")
DEFAULT_WORKERS = min(32, (os.cpu_count() or 1) + 4)

# Project-level settings file; override its location with SOURCETREE_CONFIG
CONFIG_FILE = Path(os.environ.get("SOURCETREE_CONFIG", "sourcetree.toml")).expanduser()

# Output layout
DIST_FOLDER = "_dist"
REFS_FOLDER = "_data/refs"
HIGHLIGHT_STYLE = os.environ.get("SOURCETREE_STYLE", "default")


@dataclass
class BuildConfig:
    """Everything a build needs, passed explicitly through the pipeline."""

    input: Path = DEFAULT_INPUT
    output: Path = DEFAULT_OUTPUT
    dist: Optional[Path] = None
    uri_map: Dict[str, str] = field(default_factory=dict)
    workers: int = DEFAULT_WORKERS
    bench: bool = False
    check: bool = False
    style: str = HIGHLIGHT_STYLE
