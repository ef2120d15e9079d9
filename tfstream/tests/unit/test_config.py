"""Tests for configuration loading and logging setup."""

import io
import json

import pytest

from tfstream.core.record.reader import RecordReader
from tfstream.core.record.writer import RecordWriter
from tfstream.utils.config import (
    DEFAULT_READ_CHUNK_SIZE,
    Config,
    get_config,
    reset_config,
)
from tfstream.utils.logging import (
    add_app_context,
    configure_from_config,
    configure_logging,
    ensure_logging_configured,
    get_logger,
    is_configured,
)

ENV_VARS = [
    "LOG_LEVEL",
    "TFSTREAM_READ_CHUNK_SIZE",
    "TFSTREAM_FLUSH_ON_WRITE",
    "TFSTREAM_FSYNC",
]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate tests from the environment and the global config."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestConfig:
    """Test Config."""

    def test_defaults(self):
        """Test default values."""
        config = Config()

        assert config.get("record.read_chunk_size") == DEFAULT_READ_CHUNK_SIZE
        assert config.get("record.flush_on_write") is False
        assert config.get("record.fsync_on_flush") is False
        assert config.get("logging.level") == "INFO"
        assert config.get("logging.format") == "json"

    def test_missing_key_returns_default(self):
        """Test missing keys fall back to the supplied default."""
        config = Config()

        assert config.get("record.missing") is None
        assert config.get("nothing.here", 42) == 42

    def test_config_file_overrides(self, tmp_path):
        """Test a YAML file is merged over the defaults."""
        config_file = tmp_path / "tfstream.yaml"
        config_file.write_text("record:\n  read_chunk_size: 4096\n")

        config = Config(str(config_file))

        assert config.get("record.read_chunk_size") == 4096
        assert config.get("record.flush_on_write") is False

    def test_empty_config_file(self, tmp_path):
        """Test an empty YAML file leaves the defaults in place."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = Config(str(config_file))

        assert config.get("record.read_chunk_size") == DEFAULT_READ_CHUNK_SIZE

    def test_non_mapping_config_file_raises_error(self, tmp_path):
        """Test a YAML file that is not a mapping is rejected."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            Config(str(config_file))

    def test_env_overrides(self, monkeypatch):
        """Test environment variables win over files."""
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TFSTREAM_READ_CHUNK_SIZE", "512")
        monkeypatch.setenv("TFSTREAM_FLUSH_ON_WRITE", "true")
        monkeypatch.setenv("TFSTREAM_FSYNC", "0")

        config = Config()

        assert config.get("logging.level") == "DEBUG"
        assert config.get("record.read_chunk_size") == 512
        assert config.get("record.flush_on_write") is True
        assert config.get("record.fsync_on_flush") is False

    def test_set_and_to_dict(self):
        """Test setting nested values with dot notation."""
        config = Config()
        config.set("custom.nested.value", 7)

        assert config.get("custom.nested.value") == 7

        snapshot = config.to_dict()
        snapshot["custom"]["nested"]["value"] = 8

        assert config.get("custom.nested.value") == 7

    def test_global_config(self):
        """Test the global instance is shared until reset."""
        assert get_config() is get_config()

        first = get_config()
        reset_config()

        assert get_config() is not first

    def test_reader_and_writer_use_config(self):
        """Test readers and writers take defaults from the global config."""
        get_config().set("record.read_chunk_size", 3)
        get_config().set("record.flush_on_write", True)

        assert RecordReader(io.BytesIO()).chunk_size == 3
        assert RecordWriter(io.BytesIO()).flush_on_write is True
        assert RecordWriter(io.BytesIO(), flush_on_write=False).flush_on_write is False


class TestLogging:
    """Test logging helpers."""

    def test_add_app_context(self):
        """Test the app name is added to every entry."""
        event_dict = add_app_context(None, "info", {"event": "test"})

        assert event_dict["app"] == "tfstream"

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_configure_from_config(self, log_format):
        """Test logging can be configured from a Config."""
        config = Config()
        config.set("logging.format", log_format)
        config.set("logging.output", "stderr")

        configure_from_config(config)
        get_logger("tfstream.tests").info("configured", log_format=log_format)

        assert is_configured()

    def test_json_output_to_file(self, tmp_path):
        """Test JSON entries are appended to a log file."""
        log_file = tmp_path / "tfstream.log"

        configure_logging(log_level="INFO", log_format="json", log_output=str(log_file))
        get_logger("tfstream.tests.file").info("record written", size=27)
        get_logger("tfstream.tests.file").debug("filtered out")

        lines = log_file.read_text().splitlines()
        entry = json.loads(lines[0])

        assert len(lines) == 1
        assert entry["event"] == "record written"
        assert entry["size"] == 27
        assert entry["app"] == "tfstream"
        assert entry["level"] == "info"

    def test_invalid_settings_raise_error(self):
        """Test unknown levels and formats are rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(log_level="LOUD")
        with pytest.raises(ValueError, match="Unknown log format"):
            configure_logging(log_format="xml")

    def test_ensure_configures_once(self, tmp_path):
        """Test logging is configured from config only the first time."""
        config = Config()
        config.set("logging.output", str(tmp_path / "tfstream.log"))

        assert ensure_logging_configured(config) is True
        assert ensure_logging_configured(config) is False
        assert is_configured()

    def test_ensure_respects_opt_out(self):
        """Test configure_on_open=false leaves logging alone."""
        config = Config()
        config.set("logging.configure_on_open", False)

        assert ensure_logging_configured(config) is False
        assert not is_configured()

    def test_ensure_keeps_application_setup(self, tmp_path):
        """Test an explicit configure_logging call is not overridden."""
        configure_logging(log_output=str(tmp_path / "app.log"))
        config = Config()
        config.set("logging.output", str(tmp_path / "other.log"))

        assert ensure_logging_configured(config) is False

    @pytest.mark.parametrize("opener", ["reader", "writer"])
    def test_opening_record_file_configures_logging(self, tmp_path, opener):
        """Test opening a record file applies the logging config."""
        log_file = tmp_path / "tfstream.log"
        get_config().set("logging.output", str(log_file))
        path = tmp_path / "records.tfrecord"
        path.write_bytes(b"")

        if opener == "reader":
            RecordReader.open(path).close()
        else:
            RecordWriter.open(path).close()

        assert is_configured()
        assert log_file.exists()
