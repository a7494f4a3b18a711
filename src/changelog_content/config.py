"""Configuration helpers for the content pipeline."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from changelog_content.documents.models import DEFAULT_MAX_DEPTH
from changelog_content.documents.text import DEFAULT_EXCERPT_LENGTH
from changelog_content.slugs.resolver import DEFAULT_RETRY_LIMIT


class ContentSettings(BaseModel):
    """Tuning knobs for the derivation functions."""

    excerpt_length: int = Field(DEFAULT_EXCERPT_LENGTH, ge=1, description="Maximum excerpt length")
    max_render_depth: int = Field(
        DEFAULT_MAX_DEPTH, ge=0, description="Deepest level of nested blocks that is rendered"
    )
    slug_retry_limit: int = Field(
        DEFAULT_RETRY_LIMIT, ge=1, description="Attempts made when a slug is claimed concurrently"
    )


class StorageSettings(BaseModel):
    """Location of the local entry repository."""

    workspace: Path = Field(default_factory=Path.cwd, description="Root directory of stored entries")


class ContentConfig(BaseModel):
    """Aggregate configuration for the pipeline and CLI."""

    content: ContentSettings = Field(default_factory=ContentSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


ENV_PREFIX = "CHANGELOG_CONTENT"
DEFAULT_CONFIG_PATHS = (
    Path.cwd() / "changelog-content.toml",
    Path.home() / ".config" / "changelog-content" / "config.toml",
)


@dataclasses.dataclass
class ConfigSource:
    """Result of attempting to resolve configuration data."""

    config: Optional[ContentConfig]
    path: Optional[Path]
    error: Optional[Exception]


def _load_from_env() -> dict[str, object]:
    """Return a dictionary with configuration values extracted from environment variables."""

    def _get(name: str) -> Optional[str]:
        return os.getenv(f"{ENV_PREFIX}_{name}")

    content: dict[str, str] = {}
    for key in ("EXCERPT_LENGTH", "MAX_RENDER_DEPTH", "SLUG_RETRY_LIMIT"):
        value = _get(key)
        if value:
            content[key.lower()] = value

    storage: dict[str, str] = {}
    workspace = _get("WORKSPACE")
    if workspace:
        storage["workspace"] = workspace

    env_data: dict[str, object] = {}
    if content:
        env_data["content"] = content
    if storage:
        env_data["storage"] = storage
    return env_data


def _load_toml(path: Path) -> Optional[dict]:
    if not path.exists():
        return None

    try:  # Python 3.11+
        import tomllib  # type: ignore
    except ModuleNotFoundError:  # pragma: no cover - Python <3.11 fallback
        import tomli as tomllib  # type: ignore

    with path.open("rb") as handle:
        return tomllib.load(handle)


def resolve_config(explicit_path: Optional[Path] = None) -> ConfigSource:
    """Discover configuration using the first available source.

    The priority order is:
    1. Explicit path provided via CLI argument.
    2. Default configuration files in the working directory or the user's config directory.
    3. Environment variables with the `CHANGELOG_CONTENT_` prefix.
    """

    errors: list[Exception] = []
    sources: list[tuple[Optional[Path], Optional[dict]]] = []

    if explicit_path:
        try:
            data = _load_toml(explicit_path)
            if data is None:
                errors.append(FileNotFoundError(f"Configuration file {explicit_path} does not exist"))
            else:
                sources.append((explicit_path, data))
        except Exception as exc:  # pragma: no cover - configuration loading failure path
            errors.append(exc)

    if not sources:
        for path in DEFAULT_CONFIG_PATHS:
            try:
                data = _load_toml(path)
            except Exception as exc:  # pragma: no cover
                errors.append(exc)
                continue
            if data is not None:
                sources.append((path, data))
                break

    if not sources:
        env_data = _load_from_env()
        if env_data:
            sources.append((None, env_data))

    for path, data in sources:
        if data is None:
            continue
        try:
            config = ContentConfig.model_validate(data)
            return ConfigSource(config=config, path=path, error=None)
        except ValidationError as exc:
            errors.append(exc)

    error = errors[0] if errors else None
    return ConfigSource(config=None, path=None, error=error)


def ensure_config(
    *,
    workspace: Optional[Path] = None,
    excerpt_length: Optional[int] = None,
    max_render_depth: Optional[int] = None,
    config_path: Optional[Path] = None,
) -> ContentConfig:
    """Resolve configuration from precedence order and apply explicit CLI overrides.

    Unlike credentials, every setting has a default, so a missing configuration
    source is not an error. A source that exists but fails to load is.
    """

    source = resolve_config(config_path)

    if source.config:
        config = source.config.model_copy(deep=True)
    elif source.error is not None:
        raise RuntimeError(f"Invalid configuration: {source.error}") from source.error
    else:
        config = ContentConfig()

    overrides = {
        "excerpt_length": excerpt_length,
        "max_render_depth": max_render_depth,
    }
    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        # Re-validate so CLI overrides obey the same bounds as file values.
        config.content = ContentSettings.model_validate(
            {**config.content.model_dump(), **updates}
        )
    if workspace:
        config.storage.workspace = workspace

    return config
