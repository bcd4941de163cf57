"""Versioning file loading.

The versioning file (versions.yaml by default) declares every module set:

    module-sets:
      stable-v1:
        version: v1.2.0
        modules:
          - example.com/repo
          - example.com/repo/trace
    excluded-modules:
      - example.com/repo/internal/tools

A document without a "module-sets" key is read as a bare mapping of set
name → {version, modules}.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigParseError
from .models import ModulePath, ModuleSet

DEFAULT_VERSIONING_FILENAME = "versions.yaml"


class VersioningConfig(BaseModel):
    """Raw contents of the versioning file."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    module_sets: dict[str, ModuleSet] = Field(alias="module-sets")
    excluded_modules: list[ModulePath] = Field(
        default_factory=list, alias="excluded-modules"
    )

    @model_validator(mode="after")
    def name_module_sets(self) -> VersioningConfig:
        for name, mod_set in self.module_sets.items():
            mod_set.name = name
        return self


def parse_versioning_config(data: Any) -> VersioningConfig:
    """Validate a loaded YAML document into a VersioningConfig.

    Raises:
        ValueError: If the document does not describe module sets.
        ValidationError: If a set is missing its version or has bad fields.
    """
    if not isinstance(data, dict):
        raise ValueError("expected a mapping of module sets at the top level")
    if "module-sets" not in data and "module_sets" not in data:
        data = {"module-sets": data}
    return VersioningConfig.model_validate(data)


def load_versioning_config(path: Path) -> VersioningConfig:
    """Load and validate the versioning file at path.

    Raises:
        ConfigParseError: If the file is absent, not valid YAML, or does not
            match the expected structure.
    """
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigParseError(path, exc.strerror or str(exc)) from exc
    try:
        data = yaml.safe_load(text)
        return parse_versioning_config(data)
    except yaml.YAMLError as exc:
        raise ConfigParseError(path, f"invalid YAML: {exc}") from exc
    except (ValueError, ValidationError) as exc:
        raise ConfigParseError(path, str(exc)) from exc
