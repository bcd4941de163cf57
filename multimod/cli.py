"""CLI entry point for multimod."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from multimod.errors import ReleasingError
from multimod.prerelease import run_prerelease
from multimod.settings import MultimodSettings, load_settings
from multimod.shell import find_repo_root, warn
from multimod.tagger import run_tag
from multimod.verify import run_verification
from multimod.versioning import load_module_versioning_info


@contextmanager
def _fatal_on_error() -> Iterator[None]:
    """Turn any ReleasingError into a click error with exit code 1."""
    try:
        yield
    except ReleasingError as exc:
        raise click.ClickException(str(exc)) from exc


def _settings(ctx: click.Context, **command_values: Any) -> MultimodSettings:
    """Combine group options and subcommand options into settings."""
    with _fatal_on_error():
        repo_root = find_repo_root()
        settings = load_settings(repo_root, **ctx.obj, **command_values)
    click.echo(f"Using versioning file {settings.versioning_path}")
    return settings


def _require_module_set(settings: MultimodSettings) -> None:
    if not settings.module_set_name:
        raise click.UsageError(
            "Missing option '-m' / '--module-set-name' "
            "(or MULTIMOD_MODULE_SET_NAME)."
        )


@click.group()
@click.version_option(package_name="multimod")
@click.option(
    "-v",
    "--versioning-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Versioning file that defines all module sets. "
    "Defaults to versions.yaml in the repo root.",
)
@click.option(
    "-m",
    "--module-set-name",
    default=None,
    help="Module set whose version is being released. "
    "Must be listed in the versioning file.",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Per-user config file. Defaults to ~/.multimod.toml.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    versioning_file: Path | None,
    module_set_name: str | None,
    config_file: Path | None,
) -> None:
    """Version and tag module sets in a multi-module repository."""
    ctx.obj = {
        "versioning_file": versioning_file,
        "module_set_name": module_set_name,
        "config_file": config_file,
    }


@cli.command()
@click.pass_context
def verify(ctx: click.Context) -> None:
    """Check that the versioning file is consistent with the repository.

    \b
    - All modules are contained in exactly one module set.
    - Versions conform to semver semantics.
    - No more than one stable module set exists for any major version.
    - Warns if stable modules depend on unstable modules.
    """
    settings = _settings(ctx)
    with _fatal_on_error():
        info = load_module_versioning_info(settings.versioning_path, settings.repo_root)
    results = run_verification(info)

    for result in results:
        for warning in result.warnings:
            warn(warning)
        if result.passed:
            click.echo(result.message)
        else:
            for line in result.message.splitlines():
                click.echo(f"FAIL: {line}")

    failed = [r.name for r in results if not r.passed]
    if failed:
        raise click.ClickException(f"Verification failed: {', '.join(failed)}")
    click.echo("PASS: Module sets successfully verified.")


@cli.command()
@click.option(
    "-f",
    "--from-existing-branch",
    default=None,
    help="Existing branch to base the prerelease branch on. "
    "Defaults to the current branch.",
)
@click.option(
    "-s",
    "--skip-make",
    is_flag=True,
    help="Skip the lint and CI commands. For debugging only; "
    "should not be skipped during an actual release.",
)
@click.pass_context
def prerelease(
    ctx: click.Context, from_existing_branch: str | None, skip_make: bool
) -> None:
    """Prepare a new module set version on a prerelease branch.

    \b
    - Checks that Git tags do not already exist for the new version.
    - Checks that the working tree is clean.
    - Switches to a new branch called pre_release_<set>_<version>.
    - Updates module versions in all manifests.
    - Runs the lint and CI commands.
    - Adds and commits the changes.
    """
    settings = _settings(
        ctx,
        from_existing_branch=from_existing_branch,
        skip_make=skip_make or None,
    )
    _require_module_set(settings)
    with _fatal_on_error():
        info = load_module_versioning_info(settings.versioning_path, settings.repo_root)
        run_prerelease(info, settings)


@cli.command()
@click.option("-c", "--commit-hash", default=None, help="Git commit to tag.")
@click.option(
    "-d",
    "--delete-module-set-tags",
    is_flag=True,
    help="Delete the tags of the module set at its version in the versioning "
    "file. Only meant to undo recent tagging mistakes.",
)
@click.pass_context
def tag(
    ctx: click.Context, commit_hash: str | None, delete_module_set_tags: bool
) -> None:
    """Tag every module of a set at a commit.

    If creating any tag fails, the tags already created by this run are
    deleted again.
    """
    if not commit_hash and not delete_module_set_tags:
        raise click.UsageError(
            "Missing option '-c' / '--commit-hash' "
            "(required unless --delete-module-set-tags is given)."
        )
    settings = _settings(ctx)
    _require_module_set(settings)
    with _fatal_on_error():
        info = load_module_versioning_info(settings.versioning_path, settings.repo_root)
        run_tag(
            info,
            settings,
            commit_ref=commit_hash,
            delete=delete_module_set_tags,
        )
