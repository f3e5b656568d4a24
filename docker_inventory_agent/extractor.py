"""Collect OS packages from every supported package manager."""

import logging
from typing import Set

from .models import PackageRecord
from .package_formats import PACKAGE_FORMATS, resolve_arch

logger = logging.getLogger(__name__)


class PackageInventoryExtractor:
    """Runs each package format's listing command and merges the records."""

    def __init__(self, executor, formats=PACKAGE_FORMATS):
        self.executor = executor
        self.formats = formats

    def extract(self, container_id) -> Set[PackageRecord]:
        """Extract all installed OS packages from a container.

        Args:
            container_id: Engine id of the container

        Returns:
            Set of package records from every format that produced output
        """
        packages = set()
        for package_format in self.formats:
            records = self._extract_format(container_id, package_format)
            if records:
                logger.info(f"Found {len(records)} {package_format.label} packages")
                packages.update(records)
        return packages

    def _extract_format(self, container_id, package_format):
        logger.debug(f"Listing {package_format.name} packages in {container_id}")
        if package_format.arch_probe is None:
            output = self.executor.execute(container_id, package_format.command)
            return package_format.parser(output)

        arch = resolve_arch(self.executor.execute(container_id, package_format.arch_probe))
        if arch is None:
            logger.debug(f"Skipping {package_format.label} packages, unsupported architecture")
            return []
        output = self.executor.execute(container_id, package_format.command)
        return package_format.parser(output, arch)
