"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest

from location_seed.config import IngestConfig, load_config, merge_sources, resolve_tracker_file
from location_seed.core.errors import ConfigError

BASE_ENV = {
    "ES_URL": "http://es.local:9200",
    "ES_INDEX": "places",
    "CSV_FILE": "data/places.csv",
}


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config precedence and validation"""

    def test_from_environment(self):
        config = load_config(env_file=None, environ=dict(BASE_ENV))

        assert config.es_url == "http://es.local:9200"
        assert config.es_index == "places"
        assert config.csv_file == "data/places.csv"
        assert config.batch_size_bytes == 400
        assert config.strict_item_errors is True
        assert config.checkpoint_on_drain is True
        assert config.wait_for_signal is False

    def test_string_values_are_coerced(self):
        environ = dict(BASE_ENV, BULK_SIZE="5242880", WAIT_FOR_SIGNAL="true", STRICT_ITEM_ERRORS="false")

        config = load_config(env_file=None, environ=environ)

        assert config.batch_size_bytes == 5242880
        assert config.wait_for_signal is True
        assert config.strict_item_errors is False

    def test_overrides_win_over_environment(self):
        config = load_config(
            env_file=None,
            environ=dict(BASE_ENV),
            overrides={"es_index": "places_v2", "batch_size_bytes": 1024, "tracker_file": None},
        )

        assert config.es_index == "places_v2"
        assert config.batch_size_bytes == 1024
        assert config.tracker_file is None

    def test_environment_wins_over_yaml(self, tmp_path):
        config_file = tmp_path / "ingest.yaml"
        config_file.write_text(
            "ingest:\n"
            "  es_url: http://yaml:9200\n"
            "  es_index: from_yaml\n"
            "  csv_file: yaml.csv\n"
            "  batch_size_bytes: 2048\n"
        )

        config = load_config(config_path=config_file, env_file=None, environ={"ES_INDEX": "from_env"})

        assert config.es_url == "http://yaml:9200"
        assert config.es_index == "from_env"
        assert config.batch_size_bytes == 2048

    def test_dotenv_file_is_loaded(self, tmp_path, monkeypatch):
        for var in ("ES_URL", "ES_INDEX", "CSV_FILE"):
            # Register the variable so monkeypatch restores it after dotenv sets it
            monkeypatch.setenv(var, "placeholder")
            monkeypatch.delenv(var)
        env_file = tmp_path / ".env"
        env_file.write_text("ES_URL=http://dotenv:9200\nES_INDEX=dotenv\nCSV_FILE=dotenv.csv\n")

        config = load_config(env_file=env_file)

        assert config.es_url == "http://dotenv:9200"
        assert config.es_index == "dotenv"

    def test_missing_required_values(self):
        with pytest.raises(ConfigError) as exc_info:
            load_config(env_file=None, environ={"ES_URL": "http://es.local:9200"})

        assert "es_index" in str(exc_info.value)
        assert "csv_file" in str(exc_info.value)

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ConfigError, match="batch_size_bytes"):
            load_config(env_file=None, environ=dict(BASE_ENV, BULK_SIZE="0"))

    def test_unknown_yaml_key_rejected(self, tmp_path):
        config_file = tmp_path / "ingest.yaml"
        config_file.write_text("bulk_size: 10\n")

        with pytest.raises(ConfigError, match="bulk_size"):
            load_config(config_path=config_file, env_file=None, environ=dict(BASE_ENV))

    def test_missing_yaml_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(config_path=tmp_path / "nope.yaml", env_file=None, environ=dict(BASE_ENV))

    def test_invalid_log_level(self):
        with pytest.raises(ConfigError, match="log level"):
            load_config(env_file=None, environ=dict(BASE_ENV, LOG_LEVEL="chatty"))


@pytest.mark.unit
class TestIngestConfig:
    """Tests for derived config values"""

    def test_tracker_derived_from_input(self):
        config = IngestConfig(es_url="http://x:9200", es_index="places", csv_file="data/places.csv")

        assert config.resolved_tracker_file == Path("data/places_last_id_tracker.csv")

    def test_explicit_tracker(self):
        config = IngestConfig(
            es_url="http://x:9200",
            es_index="places",
            csv_file="data/places.csv",
            tracker_file="/var/lib/seed/places.last",
        )

        assert config.resolved_tracker_file == Path("/var/lib/seed/places.last")

    def test_log_level_normalized(self):
        config = IngestConfig(es_url="http://x:9200", es_index="p", csv_file="p.csv", log_level="debug")

        assert config.log_level == "DEBUG"


@pytest.mark.unit
class TestResolveTrackerFile:
    """Tests for tracker lookup from partially configured sources"""

    def test_input_from_environment(self):
        values = merge_sources(env_file=None, environ={"CSV_FILE": "data/places.csv"})

        assert resolve_tracker_file(values) == Path("data/places_last_id_tracker.csv")

    def test_explicit_tracker_wins_over_input(self, tmp_path):
        config_file = tmp_path / "ingest.yaml"
        config_file.write_text("ingest:\n  tracker_file: /srv/places.last\n")

        values = merge_sources(
            config_path=config_file,
            env_file=None,
            overrides={"csv_file": "other.csv", "tracker_file": None},
            environ={},
        )

        assert resolve_tracker_file(values) == Path("/srv/places.last")

    def test_nothing_configured(self):
        assert resolve_tracker_file(merge_sources(env_file=None, environ={})) is None
