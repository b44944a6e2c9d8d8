"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from matchboard.common.config import AppConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Keep host environment overrides out of these tests."""
    for name in ("PRESENTATION_API_BASE", "PRESENTATION_DB_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Test configuration loading."""

    def test_load_valid_config(self, dev_config_path: Path):
        """Test loading a valid configuration file."""
        config = load_config(dev_config_path)

        assert isinstance(config, AppConfig)
        assert config.environment == "test"
        assert config.sync.context_name == "test-kiosk"
        assert config.presentation_api.is_configured is True

    def test_load_minimal_config(self, temp_dir: Path):
        """Test loading a minimal configuration with defaults."""
        config_path = temp_dir / "minimal.yaml"
        with open(config_path, "w") as f:
            yaml.dump({"environment": "minimal"}, f)

        config = load_config(config_path)

        assert config.environment == "minimal"
        assert config.storage.path == "data/presentation.db"
        assert config.storage.matches_key == "presentation.matches"
        assert config.storage.updated_key == "presentation.matches.updated"
        assert config.presentation_api.timezone == "Europe/Kyiv"
        assert config.presentation_api.is_configured is False

    def test_load_empty_config(self, temp_dir: Path):
        """Test loading an empty configuration file."""
        config_path = temp_dir / "empty.yaml"
        config_path.write_text("")

        config = load_config(config_path)

        assert config.environment == "dev"
        assert config.logging.level == "INFO"

    def test_load_missing_config(self, temp_dir: Path):
        """Test loading a missing configuration file."""
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "missing.yaml")

    def test_non_mapping_config_rejected(self, temp_dir: Path):
        """Test that a YAML list at the root is rejected."""
        config_path = temp_dir / "list.yaml"
        config_path.write_text("- a\n- b\n")

        with pytest.raises(ValueError):
            load_config(config_path)

    def test_env_overrides(self, dev_config_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Test environment variables override file values."""
        monkeypatch.setenv("PRESENTATION_API_BASE", "https://other.example.test")
        monkeypatch.setenv("PRESENTATION_DB_PATH", "/tmp/other.db")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        config = load_config(dev_config_path)

        assert config.presentation_api.base_url == "https://other.example.test"
        assert config.storage.path == "/tmp/other.db"
        assert config.logging.level == "WARNING"

    def test_config_logging_section(self, dev_config_path: Path):
        """Test logging configuration section."""
        config = load_config(dev_config_path)

        assert config.logging.level == "DEBUG"
        assert config.logging.format == "console"
        assert config.logging.log_file is None
