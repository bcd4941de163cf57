"""Data models for multimod.

These Pydantic models represent the module-set versioning model: which
module belongs to which set, where each module's manifest lives, and the
per-invocation state of a prerelease or tagging run.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .errors import ModuleSetNotFoundError
from .versions import combine_tag_names_and_version

# A module's unique identifier, e.g. "example.com/repo/trace".
ModulePath = str
# Git tag prefix of a module: its directory relative to the repo root,
# or "" for the module at the root.
ModuleTagName = str


class ModuleSet(BaseModel):
    """A named group of modules released together under one version.

    Attributes:
        name: Set name, taken from its key in the versioning file.
        version: Shared version string, e.g. "v1.2.0".
        modules: Member module paths in declared order.
    """

    name: str = ""
    version: str
    modules: list[ModulePath] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def version_as_text(cls, value: object) -> object:
        # Unquoted YAML scalars such as 0.5 or 1 load as numbers.
        if isinstance(value, (int, float)):
            return str(value)
        return value


class ModuleInfo(BaseModel):
    """Which set a module belongs to, and therefore its version."""

    module_set_name: str
    version: str


class ModuleVersioningInfo(BaseModel):
    """Indices derived from the versioning file and the on-disk manifests.

    Attributes:
        repo_root: Repository root every path is resolved against.
        mod_set_map: Set name → ModuleSet.
        mod_info_map: Module path → ModuleInfo, one entry per declared module.
        mod_path_map: Module path → manifest file, one entry per module
            discovered on disk (excluded modules left out).
        manifest_files: Every manifest found on disk, excluded modules
            included. Prerelease rewrites all of them.
        excluded_modules: Modules deliberately kept out of every set.
    """

    repo_root: Path
    mod_set_map: dict[str, ModuleSet] = Field(default_factory=dict)
    mod_info_map: dict[ModulePath, ModuleInfo] = Field(default_factory=dict)
    mod_path_map: dict[ModulePath, Path] = Field(default_factory=dict)
    excluded_modules: list[ModulePath] = Field(default_factory=list)
    manifest_files: list[Path] = Field(default_factory=list)

    def module_set(self, name: str) -> ModuleSet:
        """Return the named set, raising ModuleSetNotFoundError if unknown."""
        try:
            return self.mod_set_map[name]
        except KeyError:
            raise ModuleSetNotFoundError(name, list(self.mod_set_map)) from None


class PrereleaseSession(BaseModel):
    """Everything one prerelease or tag invocation works on.

    Attributes:
        module_set_name: The set being released.
        new_version: Version the set is released at (from the versioning file).
        mod_paths: Member module paths, in declared order.
        mod_tag_names: Tag name of each member, aligned with mod_paths.
        repo_root: Repository root where git commands run.
    """

    module_set_name: str
    new_version: str
    mod_paths: list[ModulePath]
    mod_tag_names: list[ModuleTagName]
    repo_root: Path

    @property
    def branch_name(self) -> str:
        return f"pre_release_{self.module_set_name}_{self.new_version}"

    @property
    def full_tags(self) -> list[str]:
        return combine_tag_names_and_version(self.mod_tag_names, self.new_version)


class CheckResult(BaseModel):
    """Outcome of one verification check.

    Attributes:
        name: Short check name, e.g. "module sets".
        passed: False if the check found a required-property violation.
        message: PASS line on success, the error diagnostic on failure.
        warnings: Advisory findings; never affect ``passed``.
    """

    name: str
    passed: bool
    message: str
    warnings: list[str] = Field(default_factory=list)
