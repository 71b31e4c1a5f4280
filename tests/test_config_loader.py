"""
Unit tests for configuration loader.

Tests multi-layer config merging, environment variable overrides,
caching, layered .env files and XDG directory handling.
"""

import json
import logging
import os

import pytest
from pydantic import ValidationError

from launchpad.core.config import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    load_config,
    load_layered_env,
)
from launchpad.core.config.env import env_file_layers
from launchpad.core.config.loader import (
    apply_env_overrides,
    deep_merge,
    get_default_config,
    get_xdg_config_home,
    load_json_file,
)
from launchpad.core.config.models import ApiConfig, LaunchpadConfig, RetryConfig

# ==============================================================================
# Helper Functions Tests
# ==============================================================================


class TestDeepMerge:
    """Test the deep_merge helper function."""

    def test_nested_merge(self):
        """Test merging nested dicts."""
        base = {"api": {"base_url": "http://a", "timeout_seconds": 5}}
        override = {"api": {"base_url": "http://b"}, "sync": {"user_id": "1"}}
        result = deep_merge(base, override)
        assert result == {
            "api": {"base_url": "http://b", "timeout_seconds": 5},
            "sync": {"user_id": "1"},
        }

    def test_override_replaces_non_dict(self):
        """Test that non-dict values are replaced, not merged."""
        assert deep_merge({"a": [1, 2, 3]}, {"a": [4, 5]}) == {"a": [4, 5]}

    def test_base_not_mutated(self):
        base = {"api": {"base_url": "http://a"}}
        deep_merge(base, {"api": {"base_url": "http://b"}})
        assert base == {"api": {"base_url": "http://a"}}


class TestLoadJsonFile:
    """Test JSON file loading."""

    def test_load_existing_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"api": {"base_url": "http://x"}}))

        assert load_json_file(config_file) == {"api": {"base_url": "http://x"}}

    def test_load_nonexistent_file(self, tmp_path):
        assert load_json_file(tmp_path / "nonexistent.json") is None

    def test_load_invalid_json(self, tmp_path, caplog):
        """Invalid JSON returns None and logs a warning."""
        config_file = tmp_path / "invalid.json"
        config_file.write_text("{ invalid json }")

        with caplog.at_level(logging.WARNING):
            assert load_json_file(config_file) is None

        assert "Failed to parse config" in caplog.text

    def test_non_object_ignored(self, tmp_path):
        config_file = tmp_path / "list.json"
        config_file.write_text("[1, 2]")

        assert load_json_file(config_file) is None


class TestApplyEnvOverrides:
    """Test environment variable override logic."""

    def test_connection_overrides(self, monkeypatch):
        monkeypatch.setenv("LAUNCHPAD_API_URL", "https://kit.example.com")
        monkeypatch.setenv("LAUNCHPAD_API_KEY", "secret")
        monkeypatch.setenv("LAUNCHPAD_USER_ID", "42")

        result = apply_env_overrides({"api": {"timeout_seconds": 5}})

        assert result["api"] == {
            "timeout_seconds": 5,
            "base_url": "https://kit.example.com",
            "api_key": "secret",
        }
        assert result["sync"]["user_id"] == "42"

    def test_reconcile_interval(self, monkeypatch):
        monkeypatch.setenv("LAUNCHPAD_RECONCILE_INTERVAL", "5")

        assert apply_env_overrides({})["sync"]["reconcile_interval_seconds"] == 5.0

    @pytest.mark.parametrize("value", ["soon", "0", "-3"])
    def test_invalid_reconcile_interval_ignored(self, monkeypatch, value):
        monkeypatch.setenv("LAUNCHPAD_RECONCILE_INTERVAL", value)

        assert "sync" not in apply_env_overrides({})

    def test_state_dir(self, monkeypatch):
        monkeypatch.setenv("LAUNCHPAD_STATE_DIR", "/var/lib/launchpad")

        assert apply_env_overrides({})["cache"]["state_dir"] == "/var/lib/launchpad"


class TestPaths:
    def test_xdg_config_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_xdg_config_home() == tmp_path
        assert get_user_config_path() == tmp_path / "launchpad" / "config.json"

    def test_xdg_default(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME")

        assert get_xdg_config_home().name == ".config"

    def test_project_config_path(self, tmp_path):
        assert get_project_config_path(tmp_path) == tmp_path / ".launchpad.json"


# ==============================================================================
# load_config Tests
# ==============================================================================


class TestLoadConfig:
    """Test the full precedence chain."""

    def test_defaults(self, tmp_path):
        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.api.base_url == "http://localhost:3000"
        assert config.retry.max_retries == 3
        assert config.retry.base_delay_ms == 1000
        assert config.retry.max_delay_ms == 8000
        assert config.guard.min_protected_count == 3
        assert config.sync.reconcile_interval_seconds == 30.0
        assert get_default_config()["sync"]["reconcile_interval_seconds"] == 30.0

    def test_precedence(self, tmp_path, monkeypatch):
        """defaults < user < project < env."""
        user_config = get_user_config_path()
        user_config.parent.mkdir(parents=True)
        user_config.write_text(
            json.dumps({"api": {"base_url": "http://user", "api_key": "user-key"}, "sync": {"user_id": "u"}})
        )
        (tmp_path / ".launchpad.json").write_text(
            json.dumps({"api": {"base_url": "http://project/"}, "guard": {"min_protected_count": 5}})
        )
        monkeypatch.setenv("LAUNCHPAD_USER_ID", "env-user")

        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.api.base_url == "http://project"
        assert config.api.api_key == "user-key"
        assert config.guard.min_protected_count == 5
        assert config.sync.user_id == "env-user"

    def test_cached(self, tmp_path):
        first = load_config(project_dir=tmp_path)
        (tmp_path / ".launchpad.json").write_text(json.dumps({"sync": {"user_id": "later"}}))

        assert load_config(project_dir=tmp_path) is first

        clear_cache()
        assert load_config(project_dir=tmp_path).sync.user_id == "later"

    def test_invalid_values_rejected(self, tmp_path):
        (tmp_path / ".launchpad.json").write_text(json.dumps({"retry": {"max_retries": -1}}))

        with pytest.raises(ValidationError):
            load_config(project_dir=tmp_path, use_cache=False)


class TestModels:
    def test_base_url_trailing_slash_stripped(self):
        assert ApiConfig(base_url="https://kit.example.com/").base_url == "https://kit.example.com"

    def test_retry_cap_must_cover_base(self):
        with pytest.raises(ValidationError):
            RetryConfig(base_delay_ms=5000, max_delay_ms=1000)

    def test_extra_fields_allowed(self):
        config = LaunchpadConfig(future_section={"x": 1})
        assert config.model_extra == {"future_section": {"x": 1}}


class TestLayeredEnv:
    """Test .env layering: OS env > .env.local > project .env > user .env."""

    def test_precedence(self, tmp_path, monkeypatch):
        user_env = tmp_path / "user.env"
        user_env.write_text("LAUNCHPAD_API_URL=http://user\nLAUNCHPAD_API_KEY=user-key\n")
        project_env = tmp_path / ".env"
        project_env.write_text("LAUNCHPAD_API_URL=http://project\nLAUNCHPAD_USER_ID=from-project\n")
        monkeypatch.setenv("LAUNCHPAD_USER_ID", "from-shell")

        sources = load_layered_env(paths=[user_env, project_env])

        assert os.environ["LAUNCHPAD_API_URL"] == "http://project"
        assert os.environ["LAUNCHPAD_API_KEY"] == "user-key"
        assert os.environ["LAUNCHPAD_USER_ID"] == "from-shell"
        assert sources == {"LAUNCHPAD_API_URL": project_env, "LAUNCHPAD_API_KEY": user_env}

    def test_env_local_overrides_env(self, tmp_path):
        (tmp_path / ".env").write_text("LAUNCHPAD_API_URL=http://shared\nLAUNCHPAD_API_KEY=shared\n")
        (tmp_path / ".env.local").write_text("LAUNCHPAD_API_URL=http://mine\n")

        load_layered_env(project_dir=tmp_path)

        assert os.environ["LAUNCHPAD_API_URL"] == "http://mine"
        assert os.environ["LAUNCHPAD_API_KEY"] == "shared"

    def test_user_env_read_from_xdg(self, tmp_path):
        user_dir = tmp_path / "xdg" / "launchpad"
        user_dir.mkdir(parents=True)
        (user_dir / ".env").write_text("LAUNCHPAD_API_KEY=user-key\n")
        project_dir = tmp_path / "project"
        project_dir.mkdir()

        assert env_file_layers(project_dir)[0] == user_dir / ".env"
        load_layered_env(project_dir=project_dir)

        assert os.environ["LAUNCHPAD_API_KEY"] == "user-key"

    def test_missing_files_ignored(self, tmp_path):
        assert load_layered_env(project_dir=tmp_path, paths=[tmp_path / "absent.env"]) == {}
