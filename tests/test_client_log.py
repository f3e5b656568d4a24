"""
Tests for docker client construction and logging setup.
"""
import io
import logging

import pytest
import requests
from docker.errors import DockerException

from docker_inventory_agent import client as client_module
from docker_inventory_agent.config import AgentConfig
from docker_inventory_agent.errors import EngineUnavailable
from docker_inventory_agent.log import ROOT_LOGGER, parse_level, setup_logging


class RecordingClient:
    def __init__(self, ping_error=None, **kwargs):
        self.kwargs = kwargs
        self.ping_error = ping_error
        self.logins = []

    def login(self, username, password=None):
        self.logins.append((username, password))

    def ping(self):
        if self.ping_error is not None:
            raise self.ping_error
        return True


class TestBuildDockerClient:
    def test_uses_environment_without_url(self, monkeypatch):
        created = []

        def from_env(**kwargs):
            created.append(RecordingClient(**kwargs))
            return created[-1]

        monkeypatch.setattr(client_module.docker, "from_env", from_env)

        client = client_module.build_docker_client(AgentConfig({"apiKey": "x"}))

        assert client is created[0]
        assert client.kwargs == {"version": "auto", "timeout": 300}
        assert client.logins == []

    def test_uses_configured_url_and_login(self, monkeypatch):
        monkeypatch.setattr(client_module.docker, "DockerClient", RecordingClient)
        config = AgentConfig({
            "apiKey": "x",
            "docker.url": "tcp://engine:2375",
            "docker.apiVersion": "1.41",
            "docker.readTimeOut": "60000",
            "docker.username": "scanner",
            "docker.password": "secret",
        })

        client = client_module.build_docker_client(config)

        assert client.kwargs == {
            "base_url": "tcp://engine:2375",
            "version": "1.41",
            "timeout": 60,
            "tls": False,
        }
        assert client.logins == [("scanner", "secret")]

    def test_connection_timeout_extends_client_timeout(self, monkeypatch):
        monkeypatch.setattr(client_module.docker, "DockerClient", RecordingClient)
        config = AgentConfig({
            "apiKey": "x",
            "docker.url": "tcp://engine:2375",
            "docker.readTimeOut": "60000",
            "docker.connectionTimeOut": "120000",
        })

        assert client_module.build_docker_client(config).kwargs["timeout"] == 120

    def test_tls_certificates(self, monkeypatch):
        monkeypatch.setattr(client_module.docker, "DockerClient", RecordingClient)
        monkeypatch.setattr(client_module, "TLSConfig", lambda **kwargs: kwargs)
        config = AgentConfig({
            "apiKey": "x",
            "docker.url": "tcp://engine:2376",
            "docker.withDockerTlsVerify": "true",
            "docker.certPath": "/certs",
        })

        tls = client_module.build_docker_client(config).kwargs["tls"]

        assert tls["ca_cert"] == "/certs/ca.pem"
        assert tls["client_cert"] == ("/certs/cert.pem", "/certs/key.pem")
        assert tls["verify"] is True

    @pytest.mark.parametrize(
        "error",
        [DockerException("no socket"), requests.ConnectionError("refused")],
    )
    def test_unreachable_engine(self, monkeypatch, error):
        monkeypatch.setattr(
            client_module.docker, "from_env", lambda **kwargs: RecordingClient(ping_error=error)
        )
        with pytest.raises(EngineUnavailable):
            client_module.build_docker_client(AgentConfig({"apiKey": "x"}))


class TestLogging:
    def teardown_method(self):
        logging.getLogger(ROOT_LOGGER).handlers.clear()

    def test_parse_level(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level(" WARN ") == logging.WARNING
        assert parse_level(None) == logging.INFO
        assert parse_level("chatty", logging.ERROR) == logging.ERROR

    def test_plain_format(self):
        stream = io.StringIO()
        setup_logging(logging.INFO, stream=stream)

        logging.getLogger(ROOT_LOGGER + ".agent").info("Found 3 Debian packages")
        logging.getLogger(ROOT_LOGGER + ".agent").debug("hidden")

        assert stream.getvalue() == "[INFO] Found 3 Debian packages\n"

    def test_setup_is_repeatable(self):
        setup_logging(logging.INFO, stream=io.StringIO())
        setup_logging(logging.DEBUG, stream=io.StringIO())
        assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1
