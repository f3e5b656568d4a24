"""Build the docker client from the agent configuration."""

import logging
import os

import docker
import requests
from docker.errors import DockerException
from docker.tls import TLSConfig

from . import config as keys
from .errors import EngineUnavailable

logger = logging.getLogger(__name__)


def _tls_config(config):
    if not config.get_bool(keys.DOCKER_WITH_TLS_VERIFY):
        return None
    cert_path = config.get(keys.DOCKER_CERT_PATH)
    if not cert_path:
        return TLSConfig(verify=True)
    logger.info(f"Docker certificate path: {cert_path}")
    return TLSConfig(
        client_cert=(
            os.path.join(cert_path, "cert.pem"),
            os.path.join(cert_path, "key.pem"),
        ),
        ca_cert=os.path.join(cert_path, "ca.pem"),
        verify=True,
    )


def build_docker_client(config):
    """Create and ping a docker client.

    Uses ``docker.url`` when configured, otherwise the standard DOCKER_*
    environment variables.

    Args:
        config: AgentConfig

    Returns:
        docker.DockerClient

    Raises:
        EngineUnavailable: If the client cannot be created or reached
    """
    api_version = config.get(keys.DOCKER_API_VERSION, "auto")
    read_timeout = config.get_int(keys.DOCKER_READ_TIMEOUT, keys.DEFAULT_TIMEOUT)
    logger.info(f"Read timeout is set to {read_timeout}")
    connection_timeout = config.get_int(keys.DOCKER_CONNECTION_TIMEOUT)
    if connection_timeout is not None:
        logger.info(f"Connection timeout is set to {connection_timeout}")
    # the SDK takes one timeout for both connecting and reading
    timeout = max(max(read_timeout, connection_timeout or 0) // 1000, 1)

    docker_url = config.get(keys.DOCKER_URL)
    try:
        if docker_url:
            logger.info(f"Docker URL: {docker_url}")
            client = docker.DockerClient(
                base_url=docker_url,
                version=api_version,
                timeout=timeout,
                tls=_tls_config(config) or False,
            )
        else:
            logger.info("Docker URL not configured, using environment")
            client = docker.from_env(version=api_version, timeout=timeout)

        username = config.get(keys.DOCKER_USERNAME)
        if username:
            logger.info(f"Docker username: {username}")
            client.login(username=username, password=config.get(keys.DOCKER_PASSWORD))

        client.ping()
    except (DockerException, requests.exceptions.RequestException) as e:
        raise EngineUnavailable(f"Failed to connect to Docker daemon: {e}") from e

    return client
