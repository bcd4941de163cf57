"""Module versioning info: discover → index → resolve.

Builds the ModuleVersioningInfo aggregate from the versioning file and a
scan of the repository for module manifests, and resolves the modules and
tag names a prerelease or tagging run operates on.

The declared side (mod_info_map, from the versioning file) and the on-disk
side (mod_path_map, from the manifest scan) are kept as two separate maps;
drift between them is reported by the verifier, not merged away here.
"""

from __future__ import annotations

import os
from pathlib import Path

from .config import load_versioning_config
from .errors import InconsistentModuleSetError, ModuleDiscoveryError
from .gomod import MANIFEST_FILENAME, read_module_path
from .models import (
    ModuleInfo,
    ModulePath,
    ModuleSet,
    ModuleTagName,
    ModuleVersioningInfo,
    PrereleaseSession,
)
from .versions import parse_version


def discover_module_files(repo_root: Path) -> dict[ModulePath, Path]:
    """Walk the repository and map each module path to its manifest file.

    .git directories are skipped. Directories are visited in sorted order so
    the result is deterministic.

    Raises:
        ModuleDiscoveryError: If the tree cannot be walked, a manifest cannot
            be read or has no module directive, or two manifests declare the
            same module path.
    """
    if not repo_root.is_dir():
        raise ModuleDiscoveryError(f"repository root {repo_root} is not a directory")

    def on_error(exc: OSError) -> None:
        raise ModuleDiscoveryError(
            f"could not scan {exc.filename} for module files: {exc.strerror}"
        ) from exc

    mod_path_map: dict[ModulePath, Path] = {}
    for dirpath, dirnames, filenames in os.walk(repo_root, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if d != ".git")
        if MANIFEST_FILENAME not in filenames:
            continue

        manifest = Path(dirpath) / MANIFEST_FILENAME
        try:
            mod_path = read_module_path(manifest)
        except OSError as exc:
            raise ModuleDiscoveryError(f"could not read {manifest}: {exc}") from exc
        if not mod_path:
            raise ModuleDiscoveryError(f"{manifest} has no module directive")
        if mod_path in mod_path_map:
            raise ModuleDiscoveryError(
                f"Module {mod_path} is defined by both "
                f"{mod_path_map[mod_path]} and {manifest}"
            )
        mod_path_map[mod_path] = manifest

    return mod_path_map


def build_mod_info_map(
    mod_set_map: dict[str, ModuleSet],
) -> dict[ModulePath, ModuleInfo]:
    """Index every declared module by path.

    Raises:
        InconsistentModuleSetError: If a module is listed more than once,
            whether in two sets or twice in the same set.
    """
    mod_info_map: dict[ModulePath, ModuleInfo] = {}
    for set_name, mod_set in mod_set_map.items():
        for mod_path in mod_set.modules:
            if mod_path in mod_info_map:
                prev = mod_info_map[mod_path].module_set_name
                where = (
                    f"twice in module set {set_name}"
                    if prev == set_name
                    else f"in module sets {prev} and {set_name}"
                )
                raise InconsistentModuleSetError(
                    f"Module {mod_path} is listed {where}; "
                    "every module must belong to exactly one set"
                )
            mod_info_map[mod_path] = ModuleInfo(
                module_set_name=set_name, version=mod_set.version
            )
    return mod_info_map


def load_module_versioning_info(
    versioning_file: Path, repo_root: Path
) -> ModuleVersioningInfo:
    """Load the versioning file and scan the repo into a ModuleVersioningInfo.

    Args:
        versioning_file: Path to versions.yaml (or equivalent).
        repo_root: Repository root to scan for manifests.

    Raises:
        ConfigParseError: If the versioning file is absent or malformed.
        InconsistentModuleSetError: If a module is listed in more than one set.
        ModuleDiscoveryError: If the manifest scan fails.
    """
    config = load_versioning_config(versioning_file)
    mod_info_map = build_mod_info_map(config.module_sets)

    mod_path_map = discover_module_files(repo_root)
    manifest_files = sorted(mod_path_map.values())
    for excluded in config.excluded_modules:
        mod_path_map.pop(excluded, None)

    return ModuleVersioningInfo(
        repo_root=repo_root,
        mod_set_map=config.module_sets,
        mod_info_map=mod_info_map,
        mod_path_map=mod_path_map,
        excluded_modules=config.excluded_modules,
        manifest_files=manifest_files,
    )


def module_tag_name(manifest: Path, repo_root: Path) -> ModuleTagName:
    """Derive a module's tag name from its manifest location.

    Examples:
        <root>/go.mod → ""
        <root>/exporters/otlp/go.mod → "exporters/otlp"
    """
    rel = manifest.parent.resolve().relative_to(repo_root.resolve())
    return "" if rel == Path(".") else rel.as_posix()


def modules_to_update(
    info: ModuleVersioningInfo, module_set_name: str
) -> tuple[str, list[ModulePath], list[ModuleTagName]]:
    """Resolve the version, member paths and tag names of a module set.

    Returns:
        Tuple of (version, module paths, tag names), the last two aligned
        and in the set's declared member order.

    Raises:
        ModuleSetNotFoundError: If the set is not in the versioning file.
        InvalidVersionError: If the set's version is not a valid version.
        InconsistentModuleSetError: If a member has no manifest on disk.
    """
    mod_set = info.module_set(module_set_name)
    parse_version(mod_set.version)

    tag_names: list[ModuleTagName] = []
    for mod_path in mod_set.modules:
        manifest = info.mod_path_map.get(mod_path)
        if manifest is None:
            raise InconsistentModuleSetError(
                f"Module {mod_path} in module set {module_set_name} "
                "was not found in the repository"
            )
        tag_names.append(module_tag_name(manifest, info.repo_root))

    return mod_set.version, list(mod_set.modules), tag_names


def new_prerelease_session(
    info: ModuleVersioningInfo, module_set_name: str
) -> PrereleaseSession:
    """Create the session state for releasing one module set."""
    version, mod_paths, tag_names = modules_to_update(info, module_set_name)
    return PrereleaseSession(
        module_set_name=module_set_name,
        new_version=version,
        mod_paths=mod_paths,
        mod_tag_names=tag_names,
        repo_root=info.repo_root,
    )
