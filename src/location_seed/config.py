"""
Run configuration.

Settings are resolved once at startup into an ``IngestConfig`` and passed
to the pipeline. Sources, lowest to highest precedence: field defaults,
an optional YAML file, environment variables (a ``.env`` file is loaded
first when present), then explicit overrides from the command line.

Expected YAML format:
```yaml
ingest:
  es_url: http://localhost:9200
  es_index: places
  csv_file: data/places.csv
  batch_size_bytes: 5242880
```
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from location_seed.batch.checkpoint import tracker_path_for
from location_seed.core.errors import ConfigError

DEFAULT_BATCH_SIZE_BYTES = 400

# Environment variable for each config field
ENV_VARS = {
    "es_url": "ES_URL",
    "es_index": "ES_INDEX",
    "csv_file": "CSV_FILE",
    "tracker_file": "TRACKER_FILE",
    "batch_size_bytes": "BULK_SIZE",
    "request_timeout": "ES_REQUEST_TIMEOUT",
    "es_username": "ES_USERNAME",
    "es_password": "ES_PASSWORD",
    "es_api_key": "ES_API_KEY",
    "verify_certs": "ES_VERIFY_CERTS",
    "strict_item_errors": "STRICT_ITEM_ERRORS",
    "checkpoint_on_drain": "CHECKPOINT_ON_DRAIN",
    "wait_for_signal": "WAIT_FOR_SIGNAL",
    "log_level": "LOG_LEVEL",
    "log_format": "LOG_FORMAT",
    "metrics_port": "METRICS_PORT",
}


class IngestConfig(BaseModel):
    """
    Everything one ingestion run needs.

    Attributes:
        es_url: Elasticsearch address
        es_index: Target index name
        csv_file: Input CSV path
        tracker_file: Explicit checkpoint path; derived from csv_file when unset
        batch_size_bytes: Flush once the encoded batch exceeds this many bytes
        request_timeout: Per-request timeout in seconds
        strict_item_errors: Treat any failed item in a bulk response as fatal
        checkpoint_on_drain: Save the checkpoint after the final flush too
        wait_for_signal: Stay alive after completion until SIGINT/SIGTERM
        metrics_port: Serve Prometheus metrics on this port when set
    """

    es_url: str = Field(..., min_length=1)
    es_index: str = Field(..., min_length=1)
    csv_file: str = Field(..., min_length=1)
    tracker_file: str | None = None
    batch_size_bytes: int = Field(DEFAULT_BATCH_SIZE_BYTES, gt=0)
    request_timeout: float = Field(30.0, gt=0)
    es_username: str | None = None
    es_password: str | None = None
    es_api_key: str | None = None
    verify_certs: bool = True
    strict_item_errors: bool = True
    checkpoint_on_drain: bool = True
    wait_for_signal: bool = False
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    metrics_port: int | None = Field(None, gt=0, lt=65536)

    class Config:
        extra = "forbid"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def resolved_tracker_file(self) -> Path:
        """Checkpoint path: the explicit one, else derived from the input path."""
        if self.tracker_file:
            return Path(self.tracker_file)
        return tracker_path_for(self.csv_file)


def load_yaml_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load settings from a YAML file.

    Args:
        config_path: Path to the YAML file

    Returns:
        Mapping of config field names to values

    Raises:
        ConfigError: If the file is missing or not a mapping
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError("Configuration file not found", path=str(path))

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}", path=str(path)) from e

    if data is None:
        return {}
    if isinstance(data, dict) and "ingest" in data:
        data = data["ingest"]
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping", path=str(path))
    return data


def load_env_config(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect config values present in the environment."""
    environ = os.environ if environ is None else environ
    values = {}
    for field_name, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value is not None and value != "":
            values[field_name] = value
    return values


def merge_sources(
    config_path: str | Path | None = None,
    env_file: str | Path | None = ".env",
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Merge raw settings from every source without validating them.

    Lets commands that only need a few fields (the tracker path) read the
    same sources as a full run.

    Raises:
        ConfigError: If the YAML file is unreadable
    """
    if env_file and environ is None and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    values: dict[str, Any] = {}
    if config_path:
        values.update(load_yaml_config(config_path))
    values.update(load_env_config(environ))
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})
    return values


def resolve_tracker_file(values: dict[str, Any]) -> Path | None:
    """Tracker path from merged settings, or None if neither path is set."""
    if values.get("tracker_file"):
        return Path(values["tracker_file"])
    if values.get("csv_file"):
        return tracker_path_for(values["csv_file"])
    return None


def load_config(
    config_path: str | Path | None = None,
    env_file: str | Path | None = ".env",
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> IngestConfig:
    """
    Resolve the run configuration from all sources.

    Args:
        config_path: Optional YAML file
        env_file: .env file loaded into the environment if it exists
        overrides: Highest-precedence values; None entries are ignored
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated IngestConfig

    Raises:
        ConfigError: If a source is unreadable or the merged values are invalid
    """
    values = merge_sources(config_path, env_file, overrides, environ)

    try:
        return IngestConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
