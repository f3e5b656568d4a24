"""Select containers to inspect, creating one from an image when asked."""

import logging
from typing import List

from docker.errors import DockerException

from .models import TargetContainer

logger = logging.getLogger(__name__)

WARM_UP_COMMAND = ["touch", "/execStartText.log"]


class ContainerLifecycleManager:
    """Resolves the containers of a run and cleans up what it created.

    Without a target image every active container is inspected. With one,
    the image is pulled if needed, a container is created and started from
    it, and only that container is inspected and removed afterwards.
    """

    def __init__(self, client, options):
        self.client = client
        self.options = options
        self.forced_container = None
        self.forced_target = None
        self._forced_found = False

    def prepare(self):
        """Pull, create and start the forced container if an image was given.

        Engine errors propagate: without the container the run has nothing
        to inspect.
        """
        image = self.options.target_image
        if not image:
            return None

        logger.info(f"Check if image exists '{image}'")
        if not self.image_exists(image):
            logger.info(f"Pulling image '{image}'")
            self.client.images.pull(image)
        else:
            logger.info(f"Image found '{image}', skip pulling")

        logger.info("Creating container")
        command = self.options.startup_command or None
        if command:
            logger.info(f"Container will be started with '{command}' command")
        if self.options.interactive:
            logger.info("Container will be started in interactive mode")

        # stdin and tty keep the container alive after its entrypoint returns
        self.forced_container = self.client.containers.create(
            image,
            command=command,
            stdin_open=True,
            tty=True,
            detach=True,
        )
        logger.info(f"Container '{self.forced_container.id}' created and starting")
        self.forced_container.start()

        # wait for one trivial exec so later commands find a running container
        self.forced_container.exec_run(WARM_UP_COMMAND)
        return self.forced_container

    def image_exists(self, image) -> bool:
        for existing in self.client.images.list():
            if any(tag.startswith(image) for tag in existing.tags or []):
                return True
        return False

    def discover(self) -> List[TargetContainer]:
        """List active containers, keeping only the forced one if it exists."""
        summaries = self.client.api.containers(size=True)
        if not summaries:
            logger.info("No active containers")
            return []

        containers = []
        for summary in summaries:
            if self.forced_container is not None and summary["Id"].lower() != self.forced_container.id.lower():
                continue
            container = TargetContainer.from_summary(summary)
            if self.forced_container is not None:
                self._forced_found = True
                self.forced_target = container
            containers.append(container)
        return containers

    def cleanup(self):
        """Stop and remove the forced container. Failures are only logged."""
        if self.forced_container is None:
            return

        logger.info("Cleaning created container")
        if self._forced_found:
            try:
                self.forced_container.stop()
            except DockerException as e:
                logger.warning(f"Failed to stop container {self.forced_container.id}: {e}")
        try:
            self.forced_container.remove(force=True)
        except DockerException as e:
            logger.error(f"Failed to remove container {self.forced_container.id}: {e}")
            return

        if self.forced_target is not None:
            self.forced_target.removed = True
        self.forced_container = None
