"""Configuration paths for local docdrift state."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("DOCDRIFT_HOME", str(Path.home() / ".docdrift"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
DB_FILE = BASE_DIR / "decisions.db"
DEFAULT_DOCS_DIR = "docs/code"
SOURCE_ROOT = "app"
SUPPORTED_EXTENSIONS = {".php"}
