"""Configuration manager for docdrift using TOML files."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

import toml

from . import config
from .private_changes import (
    DEFAULT_CHANGE_PERCENTAGE,
    DEFAULT_CHANGED_LINES,
    DEFAULT_KEYWORD_CHANGES,
    SIGNIFICANCE_KEYWORDS,
    PrivateChangeAssessor,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSettings:
    """Thresholds for the private-change assessment, from ``[analysis]``."""
    private_change_percentage: float = DEFAULT_CHANGE_PERCENTAGE
    private_changed_lines: int = DEFAULT_CHANGED_LINES
    private_keyword_changes: int = DEFAULT_KEYWORD_CHANGES
    extra_keywords: List[str] = field(default_factory=list)

    @property
    def keywords(self) -> Tuple[str, ...]:
        extra = tuple(kw for kw in self.extra_keywords if kw not in SIGNIFICANCE_KEYWORDS)
        return SIGNIFICANCE_KEYWORDS + extra

    def build_assessor(self) -> PrivateChangeAssessor:
        return PrivateChangeAssessor(
            change_percentage_threshold=self.private_change_percentage,
            changed_lines_threshold=self.private_changed_lines,
            keyword_changes_threshold=self.private_keyword_changes,
            keywords=self.keywords,
        )

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "AnalysisSettings":
        """Build settings from a TOML section, ignoring unknown or mistyped keys."""
        defaults = cls()
        try:
            return cls(
                private_change_percentage=float(
                    section.get("private_change_percentage", defaults.private_change_percentage)
                ),
                private_changed_lines=int(section.get("private_changed_lines", defaults.private_changed_lines)),
                private_keyword_changes=int(
                    section.get("private_keyword_changes", defaults.private_keyword_changes)
                ),
                extra_keywords=[str(kw) for kw in section.get("extra_keywords", [])],
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Invalid [analysis] settings, using defaults: %s", exc)
            return defaults


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config.CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(config.CONFIG_FILE, "w") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.warning("Could not write %s: %s", config.CONFIG_FILE, exc)
        return False


def load_analysis_settings() -> AnalysisSettings:
    """Load ``[analysis]``; a missing or broken file yields the defaults."""
    section = load_full_config().get("analysis", {})
    if not isinstance(section, dict):
        return AnalysisSettings()
    return AnalysisSettings.from_dict(section)


def save_analysis_settings(settings: AnalysisSettings) -> bool:
    """Save analysis thresholds, preserving other sections (e.g. ``[paths]``)."""
    data = load_full_config()
    data["analysis"] = asdict(settings)
    return _save_full_config(data)


def load_docs_dir() -> str:
    """Documentation root from ``[paths] docs_dir``."""
    paths = load_full_config().get("paths", {})
    if isinstance(paths, dict) and paths.get("docs_dir"):
        return str(paths["docs_dir"])
    return config.DEFAULT_DOCS_DIR
