"""Configuration loader for wisecompanion using Pydantic settings."""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from wisecompanion.normalization.reference_data import CATEGORY_TRANSLATIONS, PAGE_CATEGORIES

ENV_VAR_NAME = "WISE_ENV"
DEFAULT_ENV = "local"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.default.toml"
LOCAL_CONFIG_FILE = CONFIG_DIR / "settings.local.toml"
SETTINGS_FILE_ENV_VAR = "WISE_SETTINGS_FILE"


def _resolve_env(explicit_env: str | None = None) -> str:
    """Return the active environment name.

    Args:
        explicit_env: Environment value supplied directly by the caller.

    Returns:
        A stripped environment name, falling back to ``DEFAULT_ENV``.
    """

    env = explicit_env or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV
    return env.strip()


def _env_file_candidates(env: str) -> list[Path]:
    """List candidate ``.env`` files used during settings resolution.

    Args:
        env: Active environment name (for example, ``local`` or ``ci``).

    Returns:
        Ordered list of paths that should be considered when loading
        environment variables from disk.
    """

    return [
        PROJECT_ROOT / ".env",
        PROJECT_ROOT / f".env.{env}",
        PROJECT_ROOT / ".env.local",
    ]


def _resolve_config_path(raw_path: str | None) -> Path | None:
    """Return an absolute config path from user input."""

    if not raw_path:
        return None
    candidate = Path(raw_path).expanduser()
    if not candidate.is_absolute():
        candidate = (PROJECT_ROOT / candidate).resolve()
    return candidate


def _config_file_priority(include_missing: bool = False) -> tuple[Path, ...]:
    """Return config files in descending precedence order."""

    ordered: list[Path] = []
    env_override = _resolve_config_path(os.getenv(SETTINGS_FILE_ENV_VAR))
    if env_override:
        ordered.append(env_override)
    ordered.append(LOCAL_CONFIG_FILE)
    ordered.append(DEFAULT_CONFIG_FILE)
    if include_missing:
        return tuple(ordered)
    return tuple(path for path in ordered if path.exists())


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Pydantic settings source that loads values from a TOML file."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        super().__init__(settings_cls)
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        if not self.path.exists():
            self._data = {}
            return self._data
        try:
            with self.path.open("rb") as handle:
                self._data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:  # pragma: no cover - invalid files surface immediately
            raise ValueError(f"Invalid TOML syntax in {self.path}") from exc
        return self._data

    def __call__(self) -> dict[str, Any]:  # pragma: no cover - trivial wrapper
        return self._load()

    def get_field_value(self, field_name: str, field):  # pragma: no cover - passthrough helper
        data = self._load()
        return data.get(field_name), field_name in data


def _read_env_value(*keys: str) -> str | None:
    """Return the first present environment variable from ``keys``."""

    for key in keys:
        value = os.getenv(key)
        if value is not None:
            return value
    return None


class RuntimeSettings(BaseSettings):
    """Process-level runtime controls."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "RUNTIME__LOG_LEVEL"),
    )
    timezone: str = Field(
        default="Asia/Shanghai",
        validation_alias=AliasChoices("TIMEZONE", "RUNTIME__TIMEZONE"),
    )


class AirtableSettings(BaseSettings):
    """Upstream Airtable table the publish step reads from."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    api_base_url: str = Field(
        default="https://api.airtable.com/v0",
        validation_alias=AliasChoices("AIRTABLE_API_URL", "AIRTABLE__API_BASE_URL"),
    )
    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AIRTABLE_PAT", "AIRTABLE__TOKEN"),
    )
    base_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AIRTABLE_BASE_ID", "AIRTABLE__BASE_ID"),
    )
    table: str = Field(
        default="Wisecompanion",
        validation_alias=AliasChoices("AIRTABLE_TABLE", "AIRTABLE__TABLE"),
    )
    filter_formula: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AIRTABLE_FILTER_FORMULA", "AIRTABLE__FILTER_FORMULA"),
    )
    timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices("AIRTABLE_TIMEOUT", "AIRTABLE__TIMEOUT_SECONDS"),
    )


class ArtifactSettings(BaseSettings):
    """Location of the published activities snapshot."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    path: Path = Field(
        default=PROJECT_ROOT / "activities.json",
        validation_alias=AliasChoices("ARTIFACT_PATH", "ARTIFACT__PATH"),
    )
    source: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ARTIFACT_SOURCE", "ARTIFACT__SOURCE"),
    )


class LoaderSettings(BaseSettings):
    """Retry policy used when loading the snapshot."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    max_attempts: int = Field(
        default=3,
        ge=1,
        validation_alias=AliasChoices("LOADER_MAX_ATTEMPTS", "LOADER__MAX_ATTEMPTS"),
    )
    base_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        validation_alias=AliasChoices("LOADER_BASE_DELAY", "LOADER__BASE_DELAY_SECONDS"),
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        validation_alias=AliasChoices("LOADER_BACKOFF_MULTIPLIER", "LOADER__BACKOFF_MULTIPLIER"),
    )
    timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices("LOADER_TIMEOUT", "LOADER__TIMEOUT_SECONDS"),
    )


class CategorySettings(BaseSettings):
    """Category vocabulary: source label translations and page routing."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    translations: dict[str, str] = Field(
        default_factory=lambda: dict(CATEGORY_TRANSLATIONS),
        validation_alias=AliasChoices("CATEGORY_TRANSLATIONS", "CATEGORIES__TRANSLATIONS"),
    )
    pages: dict[str, str] = Field(
        default_factory=lambda: dict(PAGE_CATEGORIES),
        validation_alias=AliasChoices("CATEGORY_PAGES", "CATEGORIES__PAGES"),
    )

    @field_validator("translations", mode="after")
    @classmethod
    def _strip_labels(cls, value: dict[str, str]) -> dict[str, str]:
        cleaned = {str(label).strip(): str(tag).strip() for label, tag in value.items()}
        return {label: tag for label, tag in cleaned.items() if label and tag}


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    structured_logging: bool = Field(
        default=True,
        validation_alias=AliasChoices("OBS_STRUCTURED_LOGGING", "OBSERVABILITY__STRUCTURED_LOGGING"),
    )
    service_name: str = Field(
        default="wisecompanion",
        validation_alias=AliasChoices("OBS_SERVICE_NAME", "OBSERVABILITY__SERVICE_NAME"),
    )


class Settings(BaseSettings):
    """Top-level configuration model with nested sections for each subsystem."""

    env: str = Field(
        default_factory=lambda: _resolve_env(),
        validation_alias=AliasChoices("ENV", "ENVIRONMENT", "RUNTIME__ENV"),
    )
    project_root: Path = Field(default=PROJECT_ROOT)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    airtable: AirtableSettings = Field(default_factory=AirtableSettings)
    artifact: ArtifactSettings = Field(default_factory=ArtifactSettings)
    loader: LoaderSettings = Field(default_factory=LoaderSettings)
    categories: CategorySettings = Field(default_factory=CategorySettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    config_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)

    model_config = SettingsConfigDict(
        env_prefix="WISE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Extend settings sources with TOML-based config files."""

        config_sources = [TomlConfigSettingsSource(settings_cls, path) for path in _config_file_priority()]
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            *config_sources,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths once the model is initialised."""

        if not self.artifact.path.is_absolute():
            artifact_update = {"path": (self.project_root / self.artifact.path).resolve()}
            object.__setattr__(self, "artifact", self.artifact.model_copy(update=artifact_update))
        return self

    @model_validator(mode="after")
    def _apply_env_aliases(self) -> "Settings":
        """Re-apply env overrides that a TOML-supplied section would otherwise shadow."""

        airtable_updates: dict[str, object] = {}
        if not self.airtable.token:
            token = _read_env_value("WISE_AIRTABLE__TOKEN", "AIRTABLE_PAT", "AIRTABLE__TOKEN")
            if token:
                airtable_updates["token"] = token.strip()
        if not self.airtable.base_id:
            base_id = _read_env_value("WISE_AIRTABLE__BASE_ID", "AIRTABLE_BASE_ID", "AIRTABLE__BASE_ID")
            if base_id:
                airtable_updates["base_id"] = base_id.strip()
        if airtable_updates:
            object.__setattr__(self, "airtable", self.airtable.model_copy(update=airtable_updates))

        loader_updates: dict[str, object] = {}

        def _loader_number(field: str, cast, *keys: str) -> None:
            value = _read_env_value(*keys)
            if value is None:
                return
            try:
                loader_updates[field] = cast(value.strip())
            except ValueError:
                pass

        _loader_number("max_attempts", int, "WISE_LOADER__MAX_ATTEMPTS", "LOADER_MAX_ATTEMPTS")
        _loader_number("base_delay_seconds", float, "WISE_LOADER__BASE_DELAY_SECONDS", "LOADER_BASE_DELAY")
        _loader_number(
            "backoff_multiplier",
            float,
            "WISE_LOADER__BACKOFF_MULTIPLIER",
            "LOADER_BACKOFF_MULTIPLIER",
        )
        if loader_updates:
            object.__setattr__(
                self, "loader", LoaderSettings.model_validate({**self.loader.model_dump(), **loader_updates})
            )

        artifact_updates: dict[str, object] = {}
        path_override = _read_env_value("WISE_ARTIFACT__PATH", "ARTIFACT_PATH")
        if path_override and path_override.strip():
            path = Path(path_override.strip()).expanduser()
            artifact_updates["path"] = path if path.is_absolute() else (self.project_root / path).resolve()
        source_override = _read_env_value("WISE_ARTIFACT__SOURCE", "ARTIFACT_SOURCE")
        if source_override and source_override.strip():
            artifact_updates["source"] = source_override.strip()
        if artifact_updates:
            object.__setattr__(self, "artifact", self.artifact.model_copy(update=artifact_updates))
        return self

    @property
    def log_level(self) -> str:
        """str: Effective logging level for the running process."""

        return self.runtime.log_level

    @property
    def artifact_path(self) -> Path:
        """Path: Where the publish step writes the snapshot."""

        return self.artifact.path

    @property
    def artifact_source(self) -> str:
        """str: URL or path the activity store loads the snapshot from."""

        return self.artifact.source or str(self.artifact.path)


def _load_settings(env: str | None = None) -> Settings:
    """Load settings with optional environment override.

    Args:
        env: Environment name supplied programmatically.

    Returns:
        Fully parsed :class:`Settings` instance with env files applied.
    """

    resolved_env = _resolve_env(env)
    candidate_files = [path for path in _env_file_candidates(resolved_env) if path.exists()]
    config_files = _config_file_priority()
    return Settings(
        _env_file=[str(path) for path in candidate_files],
        _env_file_encoding="utf-8",
        env=resolved_env,
        config_files=config_files,
    )


@lru_cache(maxsize=1)
def get_settings(env: str | None = None) -> Settings:
    """Return cached settings for the requested environment."""

    return _load_settings(env)


def reload_settings(env: str | None = None) -> Settings:
    """Clear the cached settings and reload from disk."""

    get_settings.cache_clear()
    return get_settings(env)


__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
    "PROJECT_ROOT",
    "ENV_VAR_NAME",
]
