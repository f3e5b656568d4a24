"""Agent configuration file handling."""

import os

from dotenv import dotenv_values

from .errors import ConfigurationError

DEFAULT_CONFIG_FILE = "docker-inventory-agent.config"

API_KEY = "apiKey"
SERVICE_URL = "wss.url"
PRODUCT_NAME = "productName"
PRODUCT_VERSION = "productVersion"
LOG_LEVEL = "log.level"
FAIL_ON_ERROR = "failOnError"
OFFLINE = "offline"
OFFLINE_REQUEST_FILE = "offline.request.file"
CONNECTION_TIMEOUT = "connectionTimeOut"
PROXY_HOST = "proxy.host"
PROXY_PORT = "proxy.port"
PROXY_USER = "proxy.user"
PROXY_PASS = "proxy.pass"

DOCKER_API_VERSION = "docker.apiVersion"
DOCKER_URL = "docker.url"
DOCKER_CERT_PATH = "docker.certPath"
DOCKER_WITH_TLS_VERIFY = "docker.withDockerTlsVerify"
DOCKER_USERNAME = "docker.username"
DOCKER_PASSWORD = "docker.password"
DOCKER_READ_TIMEOUT = "docker.readTimeOut"
DOCKER_CONNECTION_TIMEOUT = "docker.connectionTimeOut"

# milliseconds
DEFAULT_TIMEOUT = 300000

TRUE_VALUES = ("true", "yes", "1", "on")


class AgentConfig:
    """Key/value settings read from a properties-style config file."""

    def __init__(self, properties=None, path=None):
        self.properties = {k: v for k, v in (properties or {}).items() if v is not None}
        self.path = path

    @classmethod
    def load(cls, path, validate=True):
        """Read and validate a config file.

        Args:
            path: Path of the ``key=value`` config file
            validate: Whether required keys must be present

        Returns:
            AgentConfig

        Raises:
            ConfigurationError: If the file cannot be read or is missing keys
        """
        if not os.path.isfile(path):
            raise ConfigurationError(f"Failed to open {path} for reading")
        try:
            properties = dotenv_values(path, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Error occurred when reading from {path}: {e}") from e

        config = cls(properties, path)
        if validate:
            config.validate()
        return config

    def validate(self):
        if not self.get(API_KEY):
            raise ConfigurationError(f"Could not retrieve {API_KEY} property from {self.path}")

    def get(self, key, default=None):
        value = self.properties.get(key)
        if value is None or not value.strip():
            return default
        return value.strip()

    def get_bool(self, key, default=False):
        value = self.get(key)
        if value is None:
            return default
        return value.lower() in TRUE_VALUES

    def get_int(self, key, default=None):
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"Invalid value for {key}: {value!r}")

    def set(self, key, value):
        self.properties[key] = str(value)
