"""Tests for multimod.versioning."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from multimod.errors import (
    ConfigParseError,
    InconsistentModuleSetError,
    InvalidVersionError,
    ModuleDiscoveryError,
    ModuleSetNotFoundError,
)
from multimod.models import ModuleVersioningInfo
from multimod.versioning import (
    discover_module_files,
    load_module_versioning_info,
    module_tag_name,
    modules_to_update,
    new_prerelease_session,
)


class TestDiscoverModuleFiles:
    def test_finds_all_manifests(self, mono_repo: Path) -> None:
        result = discover_module_files(mono_repo)

        assert result == {
            "example.com/repo": mono_repo / "go.mod",
            "example.com/repo/metric": mono_repo / "metric" / "go.mod",
            "example.com/repo/trace": mono_repo / "trace" / "go.mod",
        }

    def test_skips_git_directory(
        self, mono_repo: Path, write_go_mod: Callable[..., Path]
    ) -> None:
        write_go_mod(mono_repo / ".git" / "modules", "example.com/hidden")

        assert "example.com/hidden" not in discover_module_files(mono_repo)

    def test_manifest_without_module_directive(self, tmp_path: Path) -> None:
        (tmp_path / "go.mod").write_text("go 1.16\n")

        with pytest.raises(ModuleDiscoveryError, match="no module directive"):
            discover_module_files(tmp_path)

    def test_duplicate_module_path(
        self, tmp_path: Path, write_go_mod: Callable[..., Path]
    ) -> None:
        write_go_mod(tmp_path / "a", "example.com/dup")
        write_go_mod(tmp_path / "b", "example.com/dup")

        with pytest.raises(ModuleDiscoveryError, match="example.com/dup"):
            discover_module_files(tmp_path)

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(ModuleDiscoveryError):
            discover_module_files(tmp_path / "missing")


class TestLoadModuleVersioningInfo:
    def test_builds_indices(self, mono_info: ModuleVersioningInfo) -> None:
        assert set(mono_info.mod_set_map) == {"stable", "experimental"}
        assert mono_info.mod_info_map["example.com/repo/trace"].module_set_name == (
            "stable"
        )
        assert mono_info.mod_info_map["example.com/repo/metric"].version == "v0.5.0"
        assert set(mono_info.mod_info_map) == set(mono_info.mod_path_map)

    def test_module_in_two_sets(self, mono_repo: Path) -> None:
        (mono_repo / "versions.yaml").write_text(
            """\
a:
  version: v1.0.0
  modules: [example.com/repo]
b:
  version: v0.1.0
  modules: [example.com/repo]
"""
        )
        with pytest.raises(InconsistentModuleSetError, match="module sets a and b"):
            load_module_versioning_info(mono_repo / "versions.yaml", mono_repo)

    def test_module_twice_in_one_set(self, mono_repo: Path) -> None:
        (mono_repo / "versions.yaml").write_text(
            "a:\n  version: v1.0.0\n  modules: [example.com/repo, example.com/repo]\n"
        )
        with pytest.raises(InconsistentModuleSetError, match="twice"):
            load_module_versioning_info(mono_repo / "versions.yaml", mono_repo)

    def test_missing_versioning_file(self, mono_repo: Path) -> None:
        with pytest.raises(ConfigParseError):
            load_module_versioning_info(mono_repo / "absent.yaml", mono_repo)

    def test_excluded_modules_left_out(
        self, mono_repo: Path, write_go_mod: Callable[..., Path]
    ) -> None:
        write_go_mod(mono_repo / "internal" / "tools", "example.com/repo/tools")
        text = (mono_repo / "versions.yaml").read_text()
        (mono_repo / "versions.yaml").write_text(
            text + "excluded-modules:\n  - example.com/repo/tools\n"
        )

        info = load_module_versioning_info(mono_repo / "versions.yaml", mono_repo)

        assert "example.com/repo/tools" not in info.mod_path_map
        assert info.excluded_modules == ["example.com/repo/tools"]
        assert mono_repo / "internal" / "tools" / "go.mod" in info.manifest_files


def test_module_tag_name(tmp_path: Path) -> None:
    assert module_tag_name(tmp_path / "go.mod", tmp_path) == ""
    assert (
        module_tag_name(tmp_path / "exporters" / "otlp" / "go.mod", tmp_path)
        == "exporters/otlp"
    )


class TestModulesToUpdate:
    def test_returns_version_paths_and_tags(
        self, mono_info: ModuleVersioningInfo
    ) -> None:
        version, paths, tags = modules_to_update(mono_info, "stable")

        assert version == "v1.2.0"
        assert paths == ["example.com/repo", "example.com/repo/trace"]
        assert tags == ["", "trace"]

    def test_unknown_set(self, mono_info: ModuleVersioningInfo) -> None:
        with pytest.raises(ModuleSetNotFoundError, match="nope"):
            modules_to_update(mono_info, "nope")

    def test_invalid_version(self, mono_info: ModuleVersioningInfo) -> None:
        mono_info.mod_set_map["stable"].version = "1.2.0"

        with pytest.raises(InvalidVersionError):
            modules_to_update(mono_info, "stable")

    def test_member_missing_on_disk(self, mono_info: ModuleVersioningInfo) -> None:
        del mono_info.mod_path_map["example.com/repo/trace"]

        with pytest.raises(InconsistentModuleSetError, match="not found"):
            modules_to_update(mono_info, "stable")


def test_new_prerelease_session(mono_info: ModuleVersioningInfo) -> None:
    session = new_prerelease_session(mono_info, "stable")

    assert session.branch_name == "pre_release_stable_v1.2.0"
    assert session.full_tags == ["v1.2.0", "trace/v1.2.0"]
    assert session.repo_root == mono_info.repo_root
