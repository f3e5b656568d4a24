"""Send project inventories to the remote analysis service."""

import json
import logging
import time
from enum import IntEnum
from typing import Dict, List, Optional

import requests

from . import __version__
from . import config as keys

logger = logging.getLogger(__name__)

AGENT_TYPE = "docker-agent"
DEFAULT_SERVICE_URL = "https://saas.whitesourcesoftware.com/agent"
DEFAULT_OFFLINE_REQUEST_FILE = "update-request.txt"
REQUEST_TYPE_UPDATE = "UPDATE"
SUCCESS_STATUS = 1


class StatusCode(IntEnum):
    """Process exit status of a run."""

    SUCCESS = 0
    ERROR = 1
    POLICY_VIOLATION = 2
    CLIENT_FAILURE = 3
    CONNECTION_FAILURE = 4
    SERVER_FAILURE = 5


class ResultsSender:
    """Posts an update request with all inventories of a run."""

    def __init__(self, config, session=None):
        self.config = config
        self.session = session or requests.Session()
        self.url = config.get(keys.SERVICE_URL, DEFAULT_SERVICE_URL)
        timeout = config.get_int(keys.CONNECTION_TIMEOUT, keys.DEFAULT_TIMEOUT)
        self.timeout = max(timeout / 1000.0, 1)

    def _proxies(self) -> Optional[Dict[str, str]]:
        host = self.config.get(keys.PROXY_HOST)
        if not host:
            return None
        port = self.config.get(keys.PROXY_PORT)
        user = self.config.get(keys.PROXY_USER)
        password = self.config.get(keys.PROXY_PASS)

        address = f"{host}:{port}" if port else host
        if user:
            credentials = f"{user}:{password}" if password else user
            address = f"{credentials}@{address}"
        proxy = f"http://{address}"
        return {"http": proxy, "https": proxy}

    def build_request(self, projects) -> Dict:
        return {
            "type": REQUEST_TYPE_UPDATE,
            "agent": AGENT_TYPE,
            "agentVersion": __version__,
            "token": self.config.get(keys.API_KEY),
            "product": self.config.get(keys.PRODUCT_NAME, ""),
            "productVersion": self.config.get(keys.PRODUCT_VERSION, ""),
            "timeStamp": int(time.time() * 1000),
            "diff": json.dumps([project.to_dict() for project in projects]),
        }

    def send(self, projects: List) -> StatusCode:
        """Send the inventories, or write them to a file in offline mode.

        Args:
            projects: ProjectInventory list

        Returns:
            StatusCode of the request
        """
        request = self.build_request(projects)

        if self.config.get_bool(keys.OFFLINE):
            path = self.config.get(keys.OFFLINE_REQUEST_FILE, DEFAULT_OFFLINE_REQUEST_FILE)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(request, f, indent=2)
            logger.info(f"Offline request written to {path}")
            return StatusCode.SUCCESS

        logger.info(f"Sending {len(projects)} projects to {self.url}")
        try:
            response = self.session.post(
                self.url,
                data=request,
                proxies=self._proxies(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error connecting to {self.url}: {e}")
            return StatusCode.CONNECTION_FAILURE

        if not response.ok:
            logger.error(f"Server responded with HTTP {response.status_code}")
            return StatusCode.SERVER_FAILURE

        try:
            result = response.json()
        except ValueError:
            logger.error("Server returned an invalid response")
            return StatusCode.SERVER_FAILURE

        if result.get("status") != SUCCESS_STATUS:
            logger.error(f"Server failure: {result.get('message')}")
            return StatusCode.SERVER_FAILURE

        logger.info(f"Server response: {result.get('message', 'ok')}")
        return StatusCode.SUCCESS
