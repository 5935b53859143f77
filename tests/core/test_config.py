import pytest

import wq.core.config as core_config
from wq.core.config import PREVIEW_FILE_NAME, Settings, get_preview_file_path, get_settings
from wq.core.errors import ConfigurationError


ENV_VARS = ("SCYLLA_URI", "WQ_CONNECT_TIMEOUT", "WQ_METADATA_REFRESH_INTERVAL",
            "WQ_REQUEST_TIMEOUT", "WQ_LOG_LEVEL", "WQ_ENV_FILE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep stray .env files in the working directory out of the tests
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(core_config, "_settings", None)
    monkeypatch.setattr(core_config, "_ENV_LOADED", False)


def test_defaults():
    settings = get_settings()
    assert settings.scylla_uri == "172.17.0.2:9042"
    assert settings.node_address == ("172.17.0.2", 9042)
    assert settings.connect_timeout == 3.0
    assert settings.metadata_refresh_interval == 10.0
    assert settings.log_level == "WARNING"


def test_scylla_uri_override(monkeypatch):
    monkeypatch.setenv("SCYLLA_URI", "db.local:19042")
    settings = get_settings(reload=True)
    assert settings.node_address == ("db.local", 19042)


def test_settings_are_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("SCYLLA_URI", "other:9042")
    assert get_settings() is first
    assert get_settings(reload=True).node_address[0] == "other"


@pytest.mark.parametrize("uri, expected", [
    ("scylla", ("scylla", 9042)),
    ("[::1]:9142", ("::1", 9142)),
    ("[::1]", ("::1", 9042)),
    ("::1", ("::1", 9042)),
])
def test_node_address_forms(uri, expected):
    assert Settings(SCYLLA_URI=uri).node_address == expected


@pytest.mark.parametrize("uri", ["host:notaport", "host:70000"])
def test_invalid_port(uri):
    with pytest.raises(ConfigurationError):
        Settings(SCYLLA_URI=uri).node_address


def test_invalid_timeout(monkeypatch):
    monkeypatch.setenv("WQ_CONNECT_TIMEOUT", "-1")
    with pytest.raises(ConfigurationError):
        get_settings(reload=True)


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("WQ_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigurationError):
        get_settings(reload=True)


def test_env_file_is_loaded_without_overriding(monkeypatch, tmp_path):
    env_file = tmp_path / "wq.env"
    env_file.write_text(
        "# comment\n"
        "export SCYLLA_URI='from-file:9042'\n"
        "WQ_LOG_LEVEL=debug\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("WQ_ENV_FILE", str(env_file))
    monkeypatch.setenv("WQ_LOG_LEVEL", "ERROR")
    # the loader writes os.environ directly; register the key so teardown removes it
    monkeypatch.setenv("SCYLLA_URI", "placeholder")
    monkeypatch.delenv("SCYLLA_URI")

    settings = get_settings(reload=True)

    assert settings.node_address == ("from-file", 9042)
    assert settings.log_level == "ERROR"


def test_preview_file_path(tmp_path):
    assert get_preview_file_path(tmp_path) == tmp_path / PREVIEW_FILE_NAME
    assert PREVIEW_FILE_NAME == ".pw.cql.md"
