"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from multimod.models import ModuleVersioningInfo
from multimod.versioning import load_module_versioning_info

VERSIONS_YAML = """\
module-sets:
  stable:
    version: v1.2.0
    modules:
      - example.com/repo
      - example.com/repo/trace
  experimental:
    version: v0.5.0
    modules:
      - example.com/repo/metric
"""


def write_go_mod(
    directory: Path, module: str, requires: dict[str, str] | None = None
) -> Path:
    """Write a go.mod declaring module and a require block."""
    directory.mkdir(parents=True, exist_ok=True)
    lines = [f"module {module}", "", "go 1.16", ""]
    if requires:
        lines.append("require (")
        lines.extend(f"\t{path} {version}" for path, version in requires.items())
        lines.append(")")
    go_mod = directory / "go.mod"
    go_mod.write_text("\n".join(lines) + "\n")
    return go_mod


@pytest.fixture(name="write_go_mod")
def write_go_mod_fixture() -> Callable[..., Path]:
    return write_go_mod


@pytest.fixture
def mono_repo(tmp_path: Path) -> Path:
    """A repo with a root module, a trace module and a metric module.

    stable (v1.2.0): example.com/repo, example.com/repo/trace
    experimental (v0.5.0): example.com/repo/metric
    """
    write_go_mod(tmp_path, "example.com/repo")
    write_go_mod(
        tmp_path / "trace", "example.com/repo/trace", {"example.com/repo": "v1.2.0"}
    )
    write_go_mod(
        tmp_path / "metric",
        "example.com/repo/metric",
        {"example.com/repo": "v1.2.0", "example.com/repo/trace": "v1.2.0"},
    )
    (tmp_path / "versions.yaml").write_text(VERSIONS_YAML)
    return tmp_path


@pytest.fixture
def mono_info(mono_repo: Path) -> ModuleVersioningInfo:
    return load_module_versioning_info(mono_repo / "versions.yaml", mono_repo)


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Keep the developer's ~/.multimod.toml and MULTIMOD_* out of tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "MULTIMOD_VERSIONING_FILE",
        "MULTIMOD_MODULE_SET_NAME",
        "MULTIMOD_FROM_EXISTING_BRANCH",
        "MULTIMOD_SKIP_MAKE",
        "MULTIMOD_LINT_COMMAND",
        "MULTIMOD_CI_COMMAND",
        "MULTIMOD_SIGN_TAGS",
        "MULTIMOD_CONFIG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    return home
