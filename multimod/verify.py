"""Read-only consistency checks over the module versioning info.

Three independent checks:
1. Every module on disk is in exactly one set, and every declared module
   exists on disk.
2. Set versions are valid, and no two stable sets share a major version.
3. Stable modules do not depend on unstable ones (advisory only).

run_verification() always runs all three, so one failing check never
hides the diagnostics of another.
"""

from __future__ import annotations

from collections.abc import Callable

from .errors import InconsistentModuleSetError, InvalidVersionError, ReleasingError
from .gomod import read_requirements
from .models import CheckResult, ModuleVersioningInfo
from .versions import is_stable_version, is_valid_version, major_version


def verify_all_modules_in_set(info: ModuleVersioningInfo) -> str:
    """Check that declared modules and on-disk modules are the same set.

    Returns:
        The PASS message.

    Raises:
        InconsistentModuleSetError: Listing every module found only on disk
            ("not contained in any module set") and every module declared
            only in the versioning file (naming its set).
    """
    problems: list[str] = []

    for mod_path in sorted(set(info.mod_path_map) - set(info.mod_info_map)):
        problems.append(
            f"Module {mod_path} (defined in {info.mod_path_map[mod_path]}) "
            "is not contained in any module set."
        )

    for mod_path, mod_info in info.mod_info_map.items():
        if mod_path not in info.mod_path_map:
            problems.append(
                f"Module {mod_path} in module set {mod_info.module_set_name} "
                "does not exist in the repository."
            )

    if problems:
        raise InconsistentModuleSetError("\n".join(problems))
    return "PASS: All modules exist in exactly one set."


def verify_versions(info: ModuleVersioningInfo) -> str:
    """Check version syntax and major-version uniqueness among stable sets.

    Returns:
        The PASS message.

    Raises:
        InvalidVersionError: Listing every set with an invalid version and
            every pair of stable sets sharing a major version.
    """
    problems: list[str] = []
    # major version → first stable set seen with it
    set_major_versions: dict[str, str] = {}

    for set_name, mod_set in info.mod_set_map.items():
        if not is_valid_version(mod_set.version):
            problems.append(
                f"Module set {set_name} has invalid version string: {mod_set.version}"
            )
            continue

        if not is_stable_version(mod_set.version):
            continue

        major = major_version(mod_set.version)
        prev_name = set_major_versions.get(major)
        if prev_name is None:
            set_major_versions[major] = set_name
            continue
        prev = info.mod_set_map[prev_name]
        problems.append(
            f"Multiple module sets have the same major version ({major}): "
            f"{prev_name} (version {prev.version}) and "
            f"{set_name} (version {mod_set.version})"
        )

    if problems:
        raise InvalidVersionError("\n".join(problems))
    return (
        "PASS: All module versions are valid, "
        "and no module sets have same non-zero major version."
    )


def verify_dependencies(info: ModuleVersioningInfo) -> list[str]:
    """Warn about stable modules that require unstable tracked modules.

    Only the direct requirements declared in each stable module's manifest
    are inspected; requirements of requirements are not followed.

    Returns:
        One warning per offending (module, dependency) pair. A stable
        module whose manifest cannot be read also produces a warning.
    """
    warnings: list[str] = []

    for mod_path, mod_info in info.mod_info_map.items():
        if not is_stable_version(mod_info.version):
            continue
        manifest = info.mod_path_map.get(mod_path)
        if manifest is None:
            # Reported by verify_all_modules_in_set
            continue

        try:
            requirements = read_requirements(manifest)
        except OSError as exc:
            warnings.append(f"Could not read dependencies of {mod_path}: {exc}")
            continue

        for req in requirements:
            dep_info = info.mod_info_map.get(req.path)
            if dep_info is None or is_stable_version(dep_info.version):
                continue
            warnings.append(
                f"Stable module {mod_path} ({mod_info.version}) depends on "
                f"unstable module {req.path} ({dep_info.version})."
            )

    return warnings


def _run_check(
    name: str, check: Callable[[ModuleVersioningInfo], str], info: ModuleVersioningInfo
) -> CheckResult:
    try:
        message = check(info)
    except ReleasingError as exc:
        return CheckResult(name=name, passed=False, message=str(exc))
    return CheckResult(name=name, passed=True, message=message)


def run_verification(info: ModuleVersioningInfo) -> list[CheckResult]:
    """Run every check and collect the results.

    Returns:
        One CheckResult per check, in order: module sets, versions,
        dependencies. The dependencies check always passes; its findings
        are in ``warnings``.
    """
    results = [
        _run_check("module sets", verify_all_modules_in_set, info),
        _run_check("versions", verify_versions, info),
    ]
    results.append(
        CheckResult(
            name="dependencies",
            passed=True,
            message="Finished checking all stable modules' dependencies.",
            warnings=verify_dependencies(info),
        )
    )
    return results
