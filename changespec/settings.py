"""Settings resolution with a profile precedence chain."""

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from changespec.specs import DEFAULT_AUTHOR

CONFIG_PATH = Path.home() / ".config" / "changespec" / "config.toml"


class ChangespecSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHANGESPEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # Connected batch changes service
    endpoint: str = "https://sourcegraph.com"
    access_token: SecretStr | None = None
    service_version: str | None = None  # skips the version query when set

    # Capability overrides; None means "derive from the service version"
    allow_optional_published: bool | None = None
    include_auto_author_details: bool | None = None

    # Identity used when a template has no author and defaulting is enabled
    author_name: str = DEFAULT_AUTHOR.name
    author_email: str = DEFAULT_AUTHOR.email

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs; env vars and .env override them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/changespec/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> ChangespecSettings:
    """Resolve the active profile and return a fully populated ChangespecSettings.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. CHANGESPEC_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/changespec/config.toml
    4. First profile defined in ~/.config/changespec/config.toml
    """
    import os

    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("CHANGESPEC_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = toml_config[active].unwrap()
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    return ChangespecSettings(**profile_defaults)
