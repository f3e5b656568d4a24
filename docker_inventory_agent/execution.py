"""Run listing commands inside a container."""

import logging

import requests
from docker.errors import APIError, NotFound

logger = logging.getLogger(__name__)

# exit codes for "command not executable" and "command not found"
TOOL_ABSENT_EXIT_CODES = (126, 127)


class CommandExecutor:
    """Executes fixed argument vectors inside containers and captures stdout.

    Most images ship only one package manager, so a missing tool is the
    normal case: it yields empty output instead of an error.
    """

    def __init__(self, client):
        self.client = client

    def execute(self, container_id, argv) -> bytes:
        """Run ``argv`` in the container and return its stdout.

        Args:
            container_id: Engine id (full or short) of the container
            argv: Command and arguments

        Returns:
            Captured stdout bytes, empty when the tool is missing or the exec
            could not be completed (including engine transport errors)
        """
        argv = list(argv)
        try:
            container = self.client.containers.get(container_id)
            exit_code, output = container.exec_run(
                argv,
                stdout=True,
                stderr=False,
                stdin=False,
                tty=False,
                detach=False,
            )
        except (APIError, NotFound, requests.exceptions.RequestException) as e:
            logger.debug(f"Could not run {' '.join(argv)} in {container_id}: {e}")
            return b""

        if exit_code in TOOL_ABSENT_EXIT_CODES:
            logger.debug(f"{argv[0]} not available in {container_id}")
            return b""
        return output or b""
