"""Error kinds raised by multimod.

Core modules raise these; only the CLI turns them into a non-zero exit.
"""

from __future__ import annotations

from collections.abc import Sequence


class ReleasingError(Exception):
    """Base class for every failure multimod reports to the user."""


class ConfigParseError(ReleasingError):
    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load {path}: {reason}")


class InconsistentModuleSetError(ReleasingError):
    """A module is in zero or more than one module set."""


class ModuleSetNotFoundError(InconsistentModuleSetError):
    def __init__(self, name: str, known: Sequence[str]) -> None:
        self.name = name
        super().__init__(
            f"Module set {name!r} is not defined in the versioning file "
            f"(known sets: {', '.join(sorted(known)) or '<none>'})"
        )


class ModuleDiscoveryError(ReleasingError):
    pass


class InvalidVersionError(ReleasingError):
    """Bad semver string, or two stable sets sharing a major version."""


class TagAlreadyExistsError(ReleasingError):
    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"git tag already exists for {tag}")


class DirtyWorkingTreeError(ReleasingError):
    def __init__(self, diff: str) -> None:
        self.diff = diff
        super().__init__(
            "working tree is not clean, can't proceed with the release process:"
            f"\n\n{diff}"
        )


class BranchExistsError(ReleasingError):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__(f"branch {branch} already exists")


class ExternalCommandError(ReleasingError):
    def __init__(self, args: Sequence[str], returncode: int, output: str) -> None:
        self.command = list(args)
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"'{' '.join(self.command)}' failed with exit code {returncode}"
            + (f":\n{output.rstrip()}" if output.strip() else "")
        )


class CommitNotFoundError(ReleasingError):
    pass


class TagRollbackError(ReleasingError):
    """Tag creation failed and removing the already created tags failed too."""

    def __init__(self, tag: str, error: Exception, rollback_error: Exception) -> None:
        self.tag = tag
        self.error = error
        self.rollback_error = rollback_error
        super().__init__(
            f"git tag failed for {tag}:\n{error}\n"
            f"Could not remove all tags: {rollback_error}"
        )
