"""Inspect containers and build one project inventory per container."""

import logging
import os
import shutil
from dataclasses import replace
from typing import List, Optional

from .archive import ArchiveExporter, filter_archive
from .client import build_docker_client
from .errors import EngineUnavailable
from .execution import CommandExecutor
from .extensions import ARCHIVE_EXCLUDES, ARCHIVE_INCLUDES, EXCLUDES, INCLUDES
from .extractor import PackageInventoryExtractor
from .lifecycle import ContainerLifecycleManager
from .models import ProjectInventory, RunContext, RunOptions
from .scanner import FileSystemScanner
from .sender import ResultsSender, StatusCode

logger = logging.getLogger(__name__)

# directory scanner defaults
ARCHIVE_EXTRACTION_DEPTH = 2
CASE_SENSITIVE_GLOB = False
FOLLOW_SYMLINKS = False

WINDOWS_PATH_SEPARATOR = "\\"
UNIX_PATH_SEPARATOR = "/"


def container_relative_path(system_path, export_root):
    """Make a scanned file path relative to the container root.

    Args:
        system_path: Path reported by the scanner
        export_root: Directory the container export was extracted to

    Returns:
        Forward-slash path without the export root or a leading separator
    """
    root = export_root.replace(WINDOWS_PATH_SEPARATOR, UNIX_PATH_SEPARATOR).rstrip(UNIX_PATH_SEPARATOR)
    path = system_path.replace(WINDOWS_PATH_SEPARATOR, UNIX_PATH_SEPARATOR)
    if root and (path == root or path.startswith(root + UNIX_PATH_SEPARATOR)):
        path = path[len(root):]
    return path.lstrip(UNIX_PATH_SEPARATOR)


class DockerAgent:
    """Collects OS packages and files from containers and sends them."""

    def __init__(
        self,
        config,
        options: Optional[RunOptions] = None,
        client=None,
        sender=None,
        scanner=None,
        context: Optional[RunContext] = None,
        show_progress=True,
    ):
        self.config = config
        self.options = options or RunOptions()
        self.client = client
        self.sender = sender
        self.scanner = scanner or FileSystemScanner()
        self.context = context or RunContext.create()
        self.show_progress = show_progress

    def _get_docker_client(self):
        if self.client is None:
            self.client = build_docker_client(self.config)
            logger.info("Connected to Docker daemon")
        return self.client

    def send_request(self) -> StatusCode:
        """Inspect all target containers and send the inventories."""
        try:
            projects = self.create_projects()
        except EngineUnavailable as e:
            logger.error(f"Error creating docker client, exiting: {e}")
            return StatusCode.CLIENT_FAILURE

        sender = self.sender or ResultsSender(self.config)
        return sender.send(projects)

    def create_projects(self) -> List[ProjectInventory]:
        """Create a project inventory for each container of the run.

        Returns:
            List of ProjectInventory, one per inspected container

        Raises:
            EngineUnavailable: If the docker client cannot be reached
        """
        client = self._get_docker_client()
        lifecycle = ContainerLifecycleManager(client, self.options)
        extractor = PackageInventoryExtractor(CommandExecutor(client))
        exporter = ArchiveExporter(client, show_progress=self.show_progress)

        projects = []
        try:
            lifecycle.prepare()
            for container in lifecycle.discover():
                projects.append(self.inspect_container(container, extractor, exporter))
        finally:
            lifecycle.cleanup()
            shutil.rmtree(self.context.temp_root, ignore_errors=True)
        return projects

    def inspect_container(self, container, extractor, exporter) -> ProjectInventory:
        logger.info(f"Processing Container {container.image} {container.short_id} ({container.name})")
        logger.debug(f"Container {container.short_id} runs image {container.image_id or 'unknown'}")
        project = ProjectInventory(coordinates=container.display_name)

        try:
            project.add_all(extractor.extract(container.short_id))
        except Exception as e:
            logger.error(f"Error extracting packages from container {container.short_id}: {e}")
            logger.debug(f"Error extracting packages from container {container.short_id}", exc_info=True)

        tar_path = self.context.export_tar(container)
        extract_dir = self.context.extract_dir(container)
        archive_dir = self.context.archive_dir(container)
        try:
            exporter.export(container, tar_path)
            count = filter_archive(tar_path, extract_dir)
            logger.debug(f"Extracted {count} files from {tar_path}")
            project.add_all(self._scan(extract_dir, archive_dir))
        except Exception as e:
            logger.error(f"Error scanning container {container.short_id}: {e}")
            logger.debug(f"Error scanning container {container.short_id}", exc_info=True)
        finally:
            _delete_quietly(tar_path)
            _delete_quietly(extract_dir)
            _delete_quietly(archive_dir)
        return project

    def _scan(self, extract_dir, archive_dir):
        os.makedirs(extract_dir, exist_ok=True)
        os.makedirs(archive_dir, exist_ok=True)
        records = self.scanner.scan(
            [extract_dir],
            INCLUDES,
            EXCLUDES,
            case_sensitive=CASE_SENSITIVE_GLOB,
            archive_extraction_depth=ARCHIVE_EXTRACTION_DEPTH,
            follow_symlinks=FOLLOW_SYMLINKS,
            archive_includes=ARCHIVE_INCLUDES,
            archive_excludes=ARCHIVE_EXCLUDES,
            archive_work_dir=archive_dir,
        )
        return [
            replace(record, system_path=container_relative_path(record.system_path, extract_dir))
            for record in records
            if record.system_path
        ]


def _delete_quietly(path):
    if os.path.isdir(path):
        shutil.rmtree(path, ignore_errors=True)
    elif os.path.exists(path):
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Failed to delete {path}: {e}")
