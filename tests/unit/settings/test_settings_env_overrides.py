"""Unit tests covering environment variable overrides for settings."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from wisecompanion.settings.config import PROJECT_ROOT, Settings, reload_settings


def _clear_env(monkeypatch: object, *names: str) -> None:
    """Remove env vars for every alias and prefixed variant."""

    for name in names:
        monkeypatch.delenv(name, raising=False)
        if name.startswith("WISE_"):
            monkeypatch.delenv(name.removeprefix("WISE_"), raising=False)
        else:
            monkeypatch.delenv(f"WISE_{name}", raising=False)


def test_loader_retry_env_overrides(monkeypatch: object) -> None:
    """Retry policy values follow WISE_LOADER__* overrides."""

    _clear_env(monkeypatch, "WISE_LOADER__MAX_ATTEMPTS", "WISE_LOADER__BASE_DELAY_SECONDS", "WISE_SETTINGS_FILE")

    default_settings = reload_settings(env="dev")
    assert default_settings.loader.max_attempts == 3
    assert default_settings.loader.base_delay_seconds == 1.0

    monkeypatch.setenv("WISE_LOADER__MAX_ATTEMPTS", "5")
    monkeypatch.setenv("WISE_LOADER__BASE_DELAY_SECONDS", "0.25")
    overridden = reload_settings(env="dev")
    assert overridden.loader.max_attempts == 5
    assert overridden.loader.base_delay_seconds == 0.25


def test_bare_airtable_variables_are_honoured(monkeypatch: object) -> None:
    """CI exports AIRTABLE_PAT / AIRTABLE_BASE_ID without the WISE_ prefix."""

    _clear_env(monkeypatch, "WISE_AIRTABLE__TOKEN", "WISE_AIRTABLE__BASE_ID", "WISE_SETTINGS_FILE")
    monkeypatch.setenv("AIRTABLE_PAT", "pat-from-ci")
    monkeypatch.setenv("AIRTABLE_BASE_ID", "appFromCi")

    settings = reload_settings(env="dev")
    assert settings.airtable.token == "pat-from-ci"
    assert settings.airtable.base_id == "appFromCi"


def test_relative_artifact_path_resolves_against_project_root(monkeypatch: object) -> None:
    _clear_env(monkeypatch, "WISE_ARTIFACT__PATH", "WISE_ARTIFACT__SOURCE", "WISE_SETTINGS_FILE")
    monkeypatch.setenv("WISE_ARTIFACT__PATH", "public/activities.json")

    settings = reload_settings(env="dev")
    assert settings.artifact_path == (PROJECT_ROOT / "public" / "activities.json").resolve()
    assert settings.artifact_source == str(settings.artifact_path)


def test_category_translations_are_stripped(monkeypatch: object) -> None:
    _clear_env(monkeypatch, "WISE_SETTINGS_FILE")

    default_settings = reload_settings(env="dev")
    assert default_settings.categories.translations["签到"] == "CheckIn"

    custom = Settings(categories={"translations": {" 打卡 ": "CheckIn", "": "Empty"}})
    assert custom.categories.translations == {"打卡": "CheckIn"}


def test_settings_file_override(monkeypatch: object, tmp_path: Path) -> None:
    """A TOML file named by WISE_SETTINGS_FILE takes precedence over the defaults."""

    _clear_env(monkeypatch, "WISE_SETTINGS_FILE", "WISE_AIRTABLE__TABLE", "WISE_LOADER__MAX_ATTEMPTS")
    config_file = tmp_path / "settings.toml"
    config_file.write_text(
        textwrap.dedent(
            """
            [airtable]
            table = "Activities"

            [loader]
            max_attempts = 7
            """
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("WISE_SETTINGS_FILE", str(config_file))

    settings = reload_settings(env="dev")
    assert settings.airtable.table == "Activities"
    assert settings.loader.max_attempts == 7
    assert config_file in settings.config_files
    assert "env_files" not in Settings.model_fields
    assert not hasattr(settings, "is_local")

    monkeypatch.delenv("WISE_SETTINGS_FILE")
    reload_settings()


def test_invalid_loader_env_override_is_rejected(monkeypatch: object) -> None:
    """Bare LOADER_* overrides go through the same bounds as the TOML values."""

    _clear_env(monkeypatch, "WISE_LOADER__BASE_DELAY_SECONDS", "WISE_SETTINGS_FILE")
    monkeypatch.delenv("LOADER_BASE_DELAY", raising=False)
    monkeypatch.setenv("LOADER_BASE_DELAY", "-1")

    with pytest.raises(ValidationError):
        reload_settings(env="dev")

    monkeypatch.delenv("LOADER_BASE_DELAY")
    assert reload_settings(env="dev").loader.base_delay_seconds == 1.0
