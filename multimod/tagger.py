"""Tagging: apply or delete the Git tags of every module in a set.

Git has no way to create several tags atomically, so tag-all is run as a
saga: each created tag is recorded, and if a later tag fails every
recorded tag is deleted again (newest first) before the error propagates.
"""

from __future__ import annotations

from pathlib import Path

from .errors import CommitNotFoundError, ExternalCommandError, TagRollbackError
from .models import ModuleVersioningInfo, PrereleaseSession
from .settings import MultimodSettings
from .shell import git, step
from .versioning import new_prerelease_session


def resolve_commit_hash(commit_ref: str, repo_root: Path) -> str:
    """Resolve commit_ref to a full hash reachable from the current branch.

    Raises:
        CommitNotFoundError: If the reference does not name a commit, or
            the commit is not an ancestor of HEAD.
    """
    sha = git(
        "rev-parse",
        "--quiet",
        "--verify",
        f"{commit_ref}^{{commit}}",
        cwd=repo_root,
        check=False,
    )
    if not sha:
        raise CommitNotFoundError(f"could not retrieve commit hash {commit_ref}")

    try:
        merge_base = git("merge-base", sha, "HEAD", cwd=repo_root)
    except ExternalCommandError as exc:
        raise CommitNotFoundError(
            f"command 'git merge-base {sha} HEAD' failed: {exc}"
        ) from exc
    if merge_base != sha:
        raise CommitNotFoundError(
            f"commit {commit_ref} (complete SHA: {sha}) not found on this branch"
        )
    return sha


def delete_tags(tags: list[str], repo_root: Path) -> None:
    """Delete each tag in order, stopping at the first failure.

    Raises:
        ExternalCommandError: If a deletion fails.
    """
    for tag in tags:
        print(f"  Deleting tag {tag}")
        git("tag", "-d", tag, cwd=repo_root)


class TagSaga:
    """Creates tags one at a time, remembering how to undo them.

    Attributes:
        completed: Tags created so far, in creation order.
    """

    def __init__(self, repo_root: Path, *, sign: bool = True) -> None:
        self.repo_root = repo_root
        self.sign = sign
        self.completed: list[str] = []

    def create_tag(self, tag: str, commit_hash: str) -> None:
        args = ["tag", "-a", tag]
        if self.sign:
            args.append("-s")
        git(*args, "-m", f"Version {tag}", commit_hash, cwd=self.repo_root)
        self.completed.append(tag)

    def compensate(self) -> None:
        """Delete every tag this saga created, newest first."""
        delete_tags(list(reversed(self.completed)), self.repo_root)
        self.completed.clear()


def tag_all_modules(
    session: PrereleaseSession, commit_hash: str, *, sign: bool = True
) -> list[str]:
    """Tag every module of the set at commit_hash, all or nothing.

    Tags are created in the set's declared member order.

    Returns:
        The created tags.

    Raises:
        ExternalCommandError: If a tag could not be created; the tags created
            before it have been deleted.
        TagRollbackError: If a tag could not be created and deleting the
            earlier tags failed as well.
    """
    step(f"Tagging commit {commit_hash}")

    saga = TagSaga(session.repo_root, sign=sign)
    for tag in session.full_tags:
        print(f"  {tag}")
        try:
            saga.create_tag(tag, commit_hash)
        except ExternalCommandError as exc:
            print("  Error creating a tag, removing all newly created tags...")
            try:
                saga.compensate()
            except ExternalCommandError as rollback_exc:
                raise TagRollbackError(tag, exc, rollback_exc) from exc
            raise

    return list(saga.completed)


def delete_module_set_tags(session: PrereleaseSession) -> None:
    """Delete the tags of every module in the set at its current version.

    Used to undo a previous tag-all. Tags are not checked for existence
    first; a missing tag fails like any other deletion.
    """
    step(f"Deleting tags for module set {session.module_set_name}")
    delete_tags(session.full_tags, session.repo_root)


def run_tag(
    info: ModuleVersioningInfo,
    settings: MultimodSettings,
    *,
    commit_ref: str | None = None,
    delete: bool = False,
) -> list[str]:
    """Tag settings.module_set_name at commit_ref, or delete its tags.

    The version comes from the versioning file. A commit reference is only
    needed when tagging.

    Returns:
        The tags created or deleted.
    """
    session = new_prerelease_session(info, settings.module_set_name or "")

    if delete:
        delete_module_set_tags(session)
        print("\nSuccessfully deleted module tags")
        return session.full_tags

    if not commit_ref:
        raise CommitNotFoundError("a commit hash is required unless deleting tags")
    commit_hash = resolve_commit_hash(commit_ref, session.repo_root)
    created = tag_all_modules(session, commit_hash, sign=settings.sign_tags)
    print(f"\nCreated {len(created)} tags for module set {session.module_set_name}")
    return created
