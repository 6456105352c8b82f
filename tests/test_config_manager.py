"""
Tests for configuration loading, validation and migration.
"""
import configparser

import pytest

from vyltrex_cli.exceptions import ConfigurationError
from vyltrex_cli.models.config import DEFAULT_USER_AGENT, LauncherConfig
from vyltrex_cli.storage.config_manager import ConfigManager


@pytest.fixture(autouse=True)
def isolated_data_home(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))


class TestLauncherConfig:
    def test_derived_locations(self, tmp_path):
        config = LauncherConfig(data_dir=tmp_path)
        assert config.games_dir == tmp_path / "Games"
        assert config.meta_dir == tmp_path / "Meta"
        assert config.state_file == tmp_path / "Meta" / "installed.json"
        assert config.catalog_file == tmp_path / "games.json"
        assert config.install_dir_for("g1") == tmp_path / "Games" / "g1"
        assert config.temp_archive_for("g1") == tmp_path / "Meta" / "g1.zip"

    def test_install_root_override(self, tmp_path):
        config = LauncherConfig(data_dir=tmp_path, install_root=tmp_path / "elsewhere")
        assert config.install_dir_for("g1") == tmp_path / "elsewhere" / "g1"

    def test_unsafe_id_is_sanitized(self, tmp_path):
        config = LauncherConfig(data_dir=tmp_path)
        assert config.install_dir_for("a/b").parent == tmp_path / "Games"
        assert config.install_dir_for("..").parent == tmp_path / "Games"

    def test_distinct_ids_get_distinct_directories(self, tmp_path):
        config = LauncherConfig(data_dir=tmp_path)
        assert config.install_dir_for("a/b") != config.install_dir_for("ab")
        assert config.temp_archive_for("a/b") != config.temp_archive_for("ab")

    def test_defaults(self):
        config = LauncherConfig()
        assert config.max_redirects == 10
        assert config.digest_algorithm == "sha256"
        assert config.user_agent == DEFAULT_USER_AGENT

    def test_algorithm_is_normalized(self):
        assert LauncherConfig(digest_algorithm="SHA256").digest_algorithm == "sha256"


class TestConfigManager:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = ConfigManager(tmp_path / "config.ini").load_config()
        assert config.max_redirects == 10
        assert config.install_root is None

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "vyltrex" / "config.ini"
        manager = ConfigManager(path)
        manager.save_new_config(
            {"data_dir": tmp_path / "data", "catalog_path": tmp_path / "games.json"}
        )

        config = ConfigManager(path).load_config()
        assert config.data_dir == tmp_path / "data"
        assert config.catalog_file == tmp_path / "games.json"
        assert config.games_dir == tmp_path / "data" / "Games"

    def test_cli_options_override_file(self, tmp_path):
        path = tmp_path / "config.ini"
        ConfigManager(path).save_new_config({"data_dir": tmp_path})
        config = ConfigManager(path).load_config({"max_redirects": 3})
        assert config.max_redirects == 3

    def test_migration_adds_missing_keys(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nmax_redirects = 4\n", encoding="utf-8")

        config = ConfigManager(path).load_config()
        assert config.max_redirects == 4

        parser = configparser.ConfigParser(interpolation=None)
        parser.read(path, encoding="utf-8")
        assert set(LauncherConfig.get_ini_keys()) <= set(parser["DEFAULT"])
        assert parser["DEFAULT"]["install_root"] == ""
        assert parser["DEFAULT"]["max_redirects"] == "4"

    def test_out_of_range_value(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nmax_redirects = 99\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="validation failed"):
            ConfigManager(path).load_config()

    def test_non_integer_value(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nchunk_size = lots\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid value"):
            ConfigManager(path).load_config()

    def test_unknown_algorithm(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\ndigest_algorithm = rot13\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config()

    def test_unparsable_file(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("no section header\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="parsing"):
            ConfigManager(path).load_config()
