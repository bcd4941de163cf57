"""Tests for multimod.settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from multimod.errors import ConfigParseError
from multimod.settings import (
    USER_CONFIG_FILENAME,
    MultimodSettings,
    load_settings,
    load_user_config,
)


class TestLoadUserConfig:
    """Tests for load_user_config()."""

    def test_normalizes_dashed_keys(self, tmp_path: Path) -> None:
        config = tmp_path / "multimod.toml"
        config.write_text(
            'lint-command = "make precommit"\n'
            "skip_make = true\n"
            "sign-tags = false\n"
        )

        assert load_user_config(config) == {
            "lint_command": "make precommit",
            "skip_make": True,
            "sign_tags": False,
        }

    def test_invalid_toml(self, tmp_path: Path) -> None:
        config = tmp_path / "multimod.toml"
        config.write_text("lint-command = \n")

        with pytest.raises(ConfigParseError, match="invalid TOML"):
            load_user_config(config)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigParseError, match="missing.toml"):
            load_user_config(tmp_path / "missing.toml")


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path)

        assert settings.repo_root == tmp_path
        assert settings.module_set_name is None
        assert settings.skip_make is False
        assert settings.lint_command == "make lint"
        assert settings.ci_command == "make ci"
        assert settings.sign_tags is True
        assert settings.versioning_path == tmp_path / "versions.yaml"

    def test_none_overrides_are_ignored(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path, module_set_name=None, skip_make=None)

        assert settings.module_set_name is None
        assert settings.skip_make is False

    def test_explicit_versioning_file(self, tmp_path: Path) -> None:
        versioning = tmp_path / "release" / "sets.yaml"

        settings = load_settings(tmp_path, versioning_file=versioning)

        assert settings.versioning_path == versioning

    def test_user_config_in_home(self, tmp_path: Path, isolated_settings: Path) -> None:
        (isolated_settings / USER_CONFIG_FILENAME).write_text(
            'ci-command = "make test"\nsign-tags = false\n'
        )

        settings = load_settings(tmp_path)

        assert settings.ci_command == "make test"
        assert settings.sign_tags is False

    def test_explicit_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "release.toml"
        config.write_text('module-set-name = "stable"\n')

        settings = load_settings(tmp_path, config_file=config)

        assert settings.module_set_name == "stable"
        assert settings.config_file == config

    def test_config_file_from_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config = tmp_path / "release.toml"
        config.write_text('module-set-name = "stable"\nsign-tags = false\n')
        monkeypatch.setenv("MULTIMOD_CONFIG_FILE", str(config))

        settings = load_settings(tmp_path)

        assert settings.config_file == config
        assert settings.module_set_name == "stable"
        assert settings.sign_tags is False

    def test_config_file_option_beats_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from_env = tmp_path / "env.toml"
        from_env.write_text('module-set-name = "from-env"\n')
        from_cli = tmp_path / "cli.toml"
        from_cli.write_text('module-set-name = "from-cli"\n')
        monkeypatch.setenv("MULTIMOD_CONFIG_FILE", str(from_env))

        settings = load_settings(tmp_path, config_file=from_cli)

        assert settings.module_set_name == "from-cli"

    def test_config_file_from_env_must_exist(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MULTIMOD_CONFIG_FILE", str(tmp_path / "missing.toml"))

        with pytest.raises(ConfigParseError, match="missing.toml"):
            load_settings(tmp_path)

    def test_explicit_config_file_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigParseError):
            load_settings(tmp_path, config_file=tmp_path / "missing.toml")

    def test_unknown_config_keys_are_ignored(self, tmp_path: Path) -> None:
        config = tmp_path / "release.toml"
        config.write_text('editor = "vim"\n')

        settings = load_settings(tmp_path, config_file=config)

        assert not hasattr(settings, "editor")

    def test_priority_order(
        self,
        tmp_path: Path,
        isolated_settings: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Command line beats environment beats user config beats defaults."""
        (isolated_settings / USER_CONFIG_FILENAME).write_text(
            'module-set-name = "from-config"\n'
            'lint-command = "from-config"\n'
            'ci-command = "from-config"\n'
        )
        monkeypatch.setenv("MULTIMOD_MODULE_SET_NAME", "from-env")
        monkeypatch.setenv("MULTIMOD_LINT_COMMAND", "from-env")

        settings = load_settings(tmp_path, module_set_name="from-cli")

        assert settings.module_set_name == "from-cli"
        assert settings.lint_command == "from-env"
        assert settings.ci_command == "from-config"
        assert settings.from_existing_branch is None

    def test_env_boolean(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MULTIMOD_SKIP_MAKE", "true")

        assert load_settings(tmp_path).skip_make is True

    def test_invalid_value(self, tmp_path: Path) -> None:
        config = tmp_path / "release.toml"
        config.write_text('sign-tags = "sometimes"\n')

        with pytest.raises(ConfigParseError, match="sign_tags"):
            load_settings(tmp_path, config_file=config)

    def test_settings_model_direct(self, tmp_path: Path) -> None:
        settings = MultimodSettings(repo_root=tmp_path, skip_make=True)

        assert settings.skip_make is True
