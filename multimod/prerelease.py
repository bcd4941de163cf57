"""Prerelease pipeline: tags → tree → branch → rewrite → lint → commit.

This module prepares a module set for release:
1. Resolve the set's version, member modules and tag names
2. Refuse to continue if any of the release tags already exists
3. Refuse to continue if the working tree has uncommitted changes
4. Create and switch to pre_release_<set>_<version>
5. Rewrite the required version of the set's modules in every manifest
6. Run the lint command (unless skipped)
7. Stage everything, run the CI command (unless skipped) and commit

Every step either succeeds or raises, aborting the rest. Nothing is undone
on failure: the branch and any rewritten manifests stay in place for
inspection.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from .errors import BranchExistsError, DirtyWorkingTreeError, TagAlreadyExistsError
from .gomod import rewrite_manifest
from .models import ModuleVersioningInfo, PrereleaseSession
from .settings import MultimodSettings
from .shell import git, git_succeeds, run, step
from .versioning import new_prerelease_session


def current_branch(repo_root: Path) -> str:
    """Return the name of the branch checked out in repo_root."""
    return git("rev-parse", "--abbrev-ref", "HEAD", cwd=repo_root)


def verify_git_tags_do_not_exist(session: PrereleaseSession) -> None:
    """Fail if any tag this release would create already exists.

    Raises:
        TagAlreadyExistsError: For the first existing tag found.
    """
    step("Checking that release tags do not exist")

    for tag in session.full_tags:
        existing = git("tag", "-l", tag, cwd=session.repo_root)
        if existing == tag:
            raise TagAlreadyExistsError(tag)
        print(f"  {tag}: ok")


def verify_working_tree_clean(session: PrereleaseSession) -> None:
    """Fail unless 'git diff --exit-code' reports no changes.

    Raises:
        DirtyWorkingTreeError: Carrying the diff output.
    """
    step("Checking working tree")

    if not git_succeeds("diff", "--exit-code", cwd=session.repo_root):
        raise DirtyWorkingTreeError(git("diff", cwd=session.repo_root, check=False))
    print("  Working tree is clean")


def create_prerelease_branch(session: PrereleaseSession, from_branch: str) -> str:
    """Create and switch to the prerelease branch, based on from_branch.

    Returns:
        The new branch name.

    Raises:
        BranchExistsError: If a branch with that name already exists.
    """
    branch = session.branch_name
    step(f"Creating branch {branch}")

    if git_succeeds(
        "show-ref", "--verify", "--quiet", f"refs/heads/{branch}", cwd=session.repo_root
    ):
        raise BranchExistsError(branch)

    print(f"  git checkout -b {branch} {from_branch}")
    git("checkout", "-b", branch, from_branch, cwd=session.repo_root)
    return branch


def update_all_manifests(
    session: PrereleaseSession, info: ModuleVersioningInfo
) -> list[Path]:
    """Point every manifest's requirements on the set's modules at the new version.

    All manifests in the repository are visited, not just the set's own,
    since modules outside the set (excluded ones included) may depend on it.

    Returns:
        The manifests that were modified.
    """
    step("Updating module versions in all manifests")

    changed: list[Path] = []
    for manifest in info.manifest_files:
        if rewrite_manifest(manifest, session.mod_paths, session.new_version):
            changed.append(manifest)
            print(f"  {manifest.relative_to(session.repo_root)}")

    if not changed:
        print("  No manifests needed updating")
    return changed


def run_lint(session: PrereleaseSession, lint_command: str) -> None:
    """Run the build-consistency command (e.g. 'make lint')."""
    step(f"Running '{lint_command}'")
    run(*shlex.split(lint_command), cwd=session.repo_root)


def commit_changes(session: PrereleaseSession, ci_command: str | None) -> str:
    """Stage all changes, run the CI command and commit.

    Args:
        session: The prerelease session.
        ci_command: Full verification command to run before committing,
            or None to skip it.

    Returns:
        Short hash of the new commit.
    """
    step("Committing changes")

    git("add", ".", cwd=session.repo_root)

    if ci_command is None:
        print("  Skipping CI command")
    else:
        print(f"  Running '{ci_command}'...")
        run(*shlex.split(ci_command), cwd=session.repo_root)

    message = f"Prepare for releasing {session.new_version}"
    print(f"  Commit changes to git with message '{message}'")
    git("commit", "-m", message, cwd=session.repo_root)

    commit_hash = git("log", "--pretty=format:%h", "-1", cwd=session.repo_root)
    print(f"  Commit successful. Hash of commit: {commit_hash}")
    return commit_hash


def run_prerelease(info: ModuleVersioningInfo, settings: MultimodSettings) -> str:
    """Execute the full prerelease pipeline for settings.module_set_name.

    Returns:
        Short hash of the prerelease commit.
    """
    from_branch = settings.from_existing_branch or current_branch(info.repo_root)

    session = new_prerelease_session(info, settings.module_set_name or "")
    step(
        f"Preparing module set {session.module_set_name} "
        f"for release {session.new_version}"
    )
    for mod_path in session.mod_paths:
        print(f"  {mod_path}")

    verify_git_tags_do_not_exist(session)
    verify_working_tree_clean(session)
    create_prerelease_branch(session, from_branch)
    update_all_manifests(session, info)

    if settings.skip_make:
        print("\nSkipping lint command...")
    else:
        run_lint(session, settings.lint_command)

    commit_hash = commit_changes(
        session, None if settings.skip_make else settings.ci_command
    )

    print(
        "\nPrerelease finished successfully. "
        "Now run the following to verify the changes:\n"
        f"\n  git diff {from_branch}\n\n"
        "Then, push the changes to upstream."
    )
    return commit_hash
