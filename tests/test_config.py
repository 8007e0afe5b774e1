"""Tests for TOML configuration loading and saving."""

from pathlib import Path

import toml

from docdrift import config
from docdrift.config_manager import (
    AnalysisSettings,
    load_analysis_settings,
    load_docs_dir,
    load_full_config,
    save_analysis_settings,
)
from docdrift.private_changes import SIGNIFICANCE_KEYWORDS


def test_defaults_without_file(isolated_config: Path):
    settings = load_analysis_settings()
    assert settings == AnalysisSettings()
    assert settings.private_change_percentage == 20.0
    assert settings.private_changed_lines == 10
    assert settings.private_keyword_changes == 3
    assert load_docs_dir() == config.DEFAULT_DOCS_DIR


def test_load_from_file(isolated_config: Path):
    isolated_config.mkdir(parents=True)
    config.CONFIG_FILE.write_text(
        '[analysis]\nprivate_changed_lines = 25\nextra_keywords = ["refund"]\n\n[paths]\ndocs_dir = "documentation"\n',
        encoding="utf-8",
    )
    settings = load_analysis_settings()
    assert settings.private_changed_lines == 25
    assert settings.private_change_percentage == 20.0
    assert settings.keywords[-1] == "refund"
    assert load_docs_dir() == "documentation"


def test_invalid_toml_falls_back_to_defaults(isolated_config: Path):
    isolated_config.mkdir(parents=True)
    config.CONFIG_FILE.write_text("[analysis\nnot toml", encoding="utf-8")
    assert load_full_config() == {}
    assert load_analysis_settings() == AnalysisSettings()


def test_mistyped_values_fall_back_to_defaults(isolated_config: Path):
    isolated_config.mkdir(parents=True)
    config.CONFIG_FILE.write_text('[analysis]\nprivate_changed_lines = "many"\n', encoding="utf-8")
    assert load_analysis_settings() == AnalysisSettings()


def test_save_preserves_other_sections(isolated_config: Path):
    isolated_config.mkdir(parents=True)
    config.CONFIG_FILE.write_text('[paths]\ndocs_dir = "handbook"\n', encoding="utf-8")

    assert save_analysis_settings(AnalysisSettings(private_keyword_changes=5))

    data = toml.load(config.CONFIG_FILE)
    assert data["paths"]["docs_dir"] == "handbook"
    assert data["analysis"]["private_keyword_changes"] == 5
    assert load_analysis_settings().private_keyword_changes == 5


def test_build_assessor_uses_settings():
    assessor = AnalysisSettings(private_changed_lines=1, extra_keywords=["refund", "if"]).build_assessor()
    assert assessor.changed_lines_threshold == 1
    assert assessor.keywords == SIGNIFICANCE_KEYWORDS + ("refund",)
