import os
import logging
from pathlib import Path
from typing import Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator

from wq.core.errors import ConfigurationError


PREVIEW_FILE_NAME = ".pw.cql.md"
DEFAULT_SCYLLA_URI = "172.17.0.2:9042"
DEFAULT_CQL_PORT = 9042

_ENV_LOADED = False


def _load_env_file(path: str, allow_override: bool = False) -> None:
    """
    Minimal .env loader: loads KEY=VALUE pairs into os.environ.
    - Ignores empty lines and lines starting with '#'
    - Supports values wrapped in single or double quotes
    - By default, does not override existing environment variables
    """
    if not path or not os.path.exists(path):
        return
    try:
        with open(path, "r", encoding="utf-8") as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export "):].strip()
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]
                if allow_override or key not in os.environ:
                    os.environ[key] = value
    except OSError as e:
        raise ConfigurationError(f"Failed to load environment file {path}: {e}") from e


def load_env_if_present(force_reload: bool = False) -> None:
    """
    Load environment variables from .env files in order of precedence:
    1. WQ_ENV_FILE when set (only that file)
    2. .env.local
    3. .env
    """
    global _ENV_LOADED
    if _ENV_LOADED and not force_reload:
        return

    custom = os.environ.get("WQ_ENV_FILE")
    if custom:
        _load_env_file(custom)
    else:
        for env_file in ('.env.local', '.env'):
            _load_env_file(env_file)

    _ENV_LOADED = True


class Settings(BaseModel):
    """
    wq settings from environment variables.
    """
    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    scylla_uri: str = Field(default=DEFAULT_SCYLLA_URI, alias="SCYLLA_URI")
    connect_timeout: float = Field(default=3.0, alias="WQ_CONNECT_TIMEOUT")
    metadata_refresh_interval: float = Field(default=10.0, alias="WQ_METADATA_REFRESH_INTERVAL")
    request_timeout: float = Field(default=10.0, alias="WQ_REQUEST_TIMEOUT")
    log_level: str = Field(default="WARNING", alias="WQ_LOG_LEVEL")

    @field_validator('scylla_uri', mode='before')
    def validate_not_empty_str(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Value cannot be empty or whitespace only")
        return v.strip()

    @field_validator('connect_timeout', 'metadata_refresh_interval', 'request_timeout', mode='before')
    def coerce_positive_float(cls, v):
        if isinstance(v, str):
            v = v.strip()
        value = float(v)
        if value <= 0:
            raise ValueError("Expected a positive number of seconds")
        return value

    @field_validator('log_level', mode='before')
    def validate_log_level(cls, v):
        name = str(v).strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"Unknown log level: {v}")
        return name

    @property
    def node_address(self) -> Tuple[str, int]:
        """Split SCYLLA_URI into (host, port); bracketed IPv6 hosts are accepted."""
        uri = self.scylla_uri
        if uri.startswith("["):
            host, _, rest = uri[1:].partition("]")
            port = rest[1:] if rest.startswith(":") else ""
        elif uri.count(":") == 1:
            host, port = uri.split(":")
        else:
            host, port = uri, ""
        if not port:
            return host, DEFAULT_CQL_PORT
        try:
            port_number = int(port)
        except ValueError:
            raise ConfigurationError(f"Invalid port in SCYLLA_URI '{uri}'")
        if port_number < 1 or port_number > 65535:
            raise ConfigurationError(f"Invalid port in SCYLLA_URI '{uri}'")
        return host, port_number


_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """
    Get application settings. Reads the environment on first call.
    Set reload=True to force reloading from current environment.
    """
    global _settings
    if _settings is None or reload:
        load_env_if_present(force_reload=reload)
        overrides = {
            name: os.environ[name]
            for name in ("SCYLLA_URI", "WQ_CONNECT_TIMEOUT", "WQ_METADATA_REFRESH_INTERVAL",
                         "WQ_REQUEST_TIMEOUT", "WQ_LOG_LEVEL")
            if os.environ.get(name, "").strip()
        }
        try:
            _settings = Settings(**overrides)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
    return _settings


def get_preview_file_path(preview_dir_path) -> Path:
    return Path(preview_dir_path) / PREVIEW_FILE_NAME
