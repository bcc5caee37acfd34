from __future__ import annotations

from pathlib import Path

import pytest

from gelfudp import ConfigurationError, GraylogClient, create_client
from gelfudp.config import loader
from gelfudp.core.validation import validate_configuration


def test_configuration_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    user_dir = tmp_path / "user"
    user_dir.mkdir()
    (user_dir / "gelfudp.toml").write_text("""[client]\nhost = \"user.example\"\n""")
    monkeypatch.setattr(loader, "user_config_dir", lambda _: str(user_dir))

    project_dir = tmp_path / "project"
    project_dir.mkdir()
    (project_dir / "gelfudp.yaml").write_text("client:\n  host: local.example\n")
    monkeypatch.chdir(project_dir)

    (project_dir / "pyproject.toml").write_text(
        """[tool.gelfudp.client]\nhost = \"pyproject.example\"\n"""
    )

    monkeypatch.setenv("GELFUDP__CLIENT__HOST", "env.example")

    config = loader.load_configuration({"client": {"host": "override.example"}})
    assert config.client.host == "override.example"

    config = loader.load_configuration({})
    assert config.client.host == "env.example"

    monkeypatch.delenv("GELFUDP__CLIENT__HOST")
    config = loader.load_configuration({})
    assert config.client.host == "pyproject.example"

    (project_dir / "pyproject.toml").unlink()
    config = loader.load_configuration({})
    assert config.client.host == "local.example"

    (project_dir / "gelfudp.yaml").unlink()
    config = loader.load_configuration({})
    assert config.client.host == "user.example"


def test_defaults_when_nothing_is_configured() -> None:
    config = loader.load_configuration({})

    assert config.client.host == "localhost"
    assert config.client.port == 12201
    assert config.client.chunk_size == 1400
    assert config.client.compression == "gzip"
    assert config.defaults == {}


def test_env_values_are_coerced(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GELFUDP__CLIENT__PORT", " 5555 ")
    monkeypatch.setenv("GELFUDP__CLIENT__LEVEL", "  debug  ")
    monkeypatch.setenv("GELFUDP__DEFAULTS__serviceName", "billing")

    config = loader.load_configuration({})

    assert config.client.port == 5555
    assert config.client.level == "debug"
    assert config.defaults == {"serviceName": "billing"}


def test_env_booleans_and_negative_ints(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GELFUDP__DEFAULTS__debug", "TRUE")
    monkeypatch.setenv("GELFUDP__DEFAULTS__region", "eu-1")
    monkeypatch.setenv("GELFUDP__CLIENT__PORT", "-5")

    config = loader.load_configuration({})

    assert config.defaults == {"debug": True, "region": "eu-1"}
    assert config.client.port == -5
    with pytest.raises(ConfigurationError):
        validate_configuration(config)


def test_create_client_from_config() -> None:
    client = create_client(
        {
            "client": {"host": "graylog.example", "port": 12299, "chunk_size": 8000, "level": "notice"},
            "defaults": {"app": "svc"},
            "errors": {"history_size": 5},
        }
    )

    assert isinstance(client, GraylogClient)
    assert (client.host, client.port, client.chunk_size) == ("graylog.example", 12299, 8000)
    assert client.builder.level == 5
    assert client.builder.defaults["app"].resolve() == "svc"
    assert client.errors.history.maxlen == 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"client": {"port": 0}},
        {"client": {"host": " "}},
        {"client": {"chunk_size": -1}},
        {"client": {"compression": "snappy"}},
        {"client": {"level": 9}},
        {"errors": {"history_size": 0}},
    ],
)
def test_invalid_configuration(overrides) -> None:
    config = loader.load_configuration(overrides)
    with pytest.raises(ConfigurationError):
        validate_configuration(config)
    with pytest.raises(ConfigurationError):
        create_client(overrides)
