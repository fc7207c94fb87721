"""
Tests for configuration loading.

Covers:
- Packaged defaults
- Deployment file overlay
- Environment overrides
- Validation failures
"""

import pytest

from ledger_config import get_active_config
from ledger_config.loader import ENV_DATABASE_URL, ENV_LOG_LEVEL
from ledger_config.schema import DatabaseConfig, LoggingConfig, SequenceConfig
from ledger_kernel.exceptions import ConfigurationError
from ledger_modules.inventory.config import InventoryPolicyConfig


@pytest.fixture
def write_config(tmp_path):
    def _write(text):
        path = tmp_path / "ledger.yaml"
        path.write_text(text)
        return path

    return _write


class TestDefaults:

    def test_packaged_defaults(self):
        config = get_active_config(environ={})

        assert config.database.url == "sqlite:///ledger.db"
        assert config.database.is_sqlite
        assert config.logging.level == "INFO"
        assert config.sequence.backend == "memory"
        assert config.source.endswith("defaults.yaml")

    def test_policy_section_builds_policy(self):
        config = get_active_config(environ={})

        policy = InventoryPolicyConfig.from_mapping(dict(config.inventory_policy))

        assert policy == InventoryPolicyConfig()

    def test_policy_mapping_is_read_only(self):
        config = get_active_config(environ={})

        with pytest.raises(TypeError):
            config.inventory_policy["max_notes_length"] = 1


class TestOverlay:

    def test_file_overrides_only_listed_keys(self, write_config):
        path = write_config(
            "database:\n"
            "  url: postgresql://ledger@localhost/ledger\n"
            "  pool_size: 5\n"
            "sequence:\n"
            "  backend: database\n"
        )

        config = get_active_config(path, environ={})

        assert config.database.url == "postgresql://ledger@localhost/ledger"
        assert config.database.pool_size == 5
        assert config.database.max_overflow == 10
        assert config.sequence.backend == "database"
        assert config.source == str(path)

    def test_empty_file(self, write_config):
        config = get_active_config(write_config(""), environ={})

        assert config.logging.level == "INFO"

    def test_environment_wins(self, write_config):
        path = write_config("logging:\n  level: warning\n")

        config = get_active_config(
            path,
            environ={ENV_DATABASE_URL: "sqlite:///other.db", ENV_LOG_LEVEL: "debug"},
        )

        assert config.database.url == "sqlite:///other.db"
        assert config.logging.level == "DEBUG"

    def test_logs_config_trace(self, captured_logs):
        get_active_config(environ={})

        traces = [r for r in captured_logs() if r["message"] == "LEDGER_CONFIG_TRACE"]
        assert traces[0]["sequence_backend"] == "memory"
        assert traces[0]["dialect"] == "sqlite"


class TestValidation:

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="file not found"):
            get_active_config(tmp_path / "missing.yaml", environ={})

    def test_bad_yaml(self, write_config):
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            get_active_config(write_config("database: [unclosed\n"), environ={})

    def test_unknown_section(self, write_config):
        with pytest.raises(ConfigurationError, match="unknown sections"):
            get_active_config(write_config("metrics:\n  enabled: true\n"), environ={})

    def test_unknown_key(self, write_config):
        with pytest.raises(ConfigurationError, match="bad database settings"):
            get_active_config(write_config("database:\n  colour: blue\n"), environ={})

    def test_top_level_must_be_mapping(self, write_config):
        with pytest.raises(ConfigurationError):
            get_active_config(write_config("- a\n- b\n"), environ={})

    def test_bad_backend(self):
        with pytest.raises(ConfigurationError):
            SequenceConfig(backend="redis")

    def test_bad_level(self):
        with pytest.raises(ConfigurationError):
            LoggingConfig(level="LOUD")

    def test_bad_url(self):
        with pytest.raises(ConfigurationError):
            DatabaseConfig(url="ledger.db")

    def test_non_positive_pool(self):
        with pytest.raises(ConfigurationError):
            DatabaseConfig(url="sqlite:///x.db", pool_size=0)
