"""Per-invocation settings.

Values are resolved in priority order:
1. Explicit values passed by the CLI
2. Environment variables (MULTIMOD_SKIP_MAKE, MULTIMOD_LINT_COMMAND, ...)
3. The per-user config file (~/.multimod.toml unless --config or
   MULTIMOD_CONFIG_FILE names another)
4. Defaults

The user config file is read with tomlkit, like every other TOML file this
project touches. Keys may be written with dashes or underscores.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from tomlkit.exceptions import TOMLKitError

from .config import DEFAULT_VERSIONING_FILENAME
from .errors import ConfigParseError

USER_CONFIG_FILENAME = ".multimod.toml"


def default_user_config_path() -> Path:
    return Path.home() / USER_CONFIG_FILENAME


def load_user_config(path: Path) -> dict[str, Any]:
    """Parse a user config file into a plain dict with normalized keys.

    Raises:
        ConfigParseError: If the file cannot be read or is not valid TOML.
    """
    try:
        doc = tomlkit.parse(path.read_text())
    except OSError as exc:
        raise ConfigParseError(path, exc.strerror or str(exc)) from exc
    except TOMLKitError as exc:
        raise ConfigParseError(path, f"invalid TOML: {exc}") from exc
    return {key.replace("-", "_"): value for key, value in doc.unwrap().items()}


class UserConfigSource(PydanticBaseSettingsSource):
    """Settings source backed by the per-user TOML config file.

    An explicitly given file must exist; the default one is optional.
    """

    def __init__(self, settings_cls: type[BaseSettings], config_file: Path | None):
        super().__init__(settings_cls)
        if config_file is not None:
            self.data = load_user_config(Path(config_file))
        elif default_user_config_path().is_file():
            self.data = load_user_config(default_user_config_path())
        else:
            self.data = {}

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self.data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self.data.items()
            if name in self.settings_cls.model_fields
        }


class MultimodSettings(BaseSettings):
    """Configuration shared by every subcommand of one invocation."""

    model_config = SettingsConfigDict(env_prefix="MULTIMOD_")

    repo_root: Path
    config_file: Path | None = None
    versioning_file: Path | None = None
    module_set_name: str | None = None
    from_existing_branch: str | None = None
    skip_make: bool = False
    lint_command: str = "make lint"
    ci_command: str = "make ci"
    sign_tags: bool = True

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        init_kwargs = getattr(init_settings, "init_kwargs", {})
        config_file = init_kwargs.get("config_file")
        if config_file is None:
            config_file = env_settings().get("config_file")
        return (
            init_settings,
            env_settings,
            UserConfigSource(settings_cls, config_file),
        )

    @property
    def versioning_path(self) -> Path:
        """The versioning file, defaulting to versions.yaml in the repo root."""
        return self.versioning_file or self.repo_root / DEFAULT_VERSIONING_FILENAME


def load_settings(repo_root: Path, **overrides: Any) -> MultimodSettings:
    """Build settings for one invocation.

    Overrides that are None are treated as "not given on the command line"
    so lower-priority sources can supply them.

    Raises:
        ConfigParseError: If a setting from any source has an invalid value.
    """
    given = {name: value for name, value in overrides.items() if value is not None}
    try:
        return MultimodSettings(repo_root=repo_root, **given)
    except ValidationError as exc:
        raise ConfigParseError("settings", str(exc)) from exc
