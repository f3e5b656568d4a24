"""Data model for containers, package records and project inventories."""

import os
import tempfile
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

SHORT_CONTAINER_ID_LENGTH = 12
DOCKER_NAME_FORMAT = "{image} {short_id} ({name})"
TAR_SUFFIX = ".tar"
TEMP_FOLDER_NAME = "docker-inventory-agent"


@dataclass
class TargetContainer:
    """A container selected for inspection."""

    id: str
    name: str
    image: str
    image_id: str = ""
    size_root_fs: int = 0
    removed: bool = False

    @property
    def short_id(self) -> str:
        return self.id[:SHORT_CONTAINER_ID_LENGTH]

    @property
    def display_name(self) -> str:
        return DOCKER_NAME_FORMAT.format(
            image=self.image, short_id=self.short_id, name=self.name
        )

    @classmethod
    def from_summary(cls, summary: Dict) -> "TargetContainer":
        """Build a container from an engine container-list entry.

        Args:
            summary: One dict from ``client.api.containers(size=True)``

        Returns:
            TargetContainer
        """
        name = "".join(summary.get("Names") or [])
        if name.startswith("/"):
            name = name[1:]
        return cls(
            id=summary["Id"],
            name=name,
            image=summary.get("Image", ""),
            image_id=summary.get("ImageID", ""),
            size_root_fs=summary.get("SizeRootFs") or 0,
        )


@dataclass(frozen=True)
class PackageRecord:
    """An installed OS package, named by its synthesized archive filename."""

    artifact_id: str
    version: Optional[str] = None
    group_id: Optional[str] = None

    def to_dependency(self) -> Dict:
        return {
            "groupId": self.group_id,
            "artifactId": self.artifact_id,
            "version": self.version,
            "sha1": None,
            "systemPath": None,
        }


@dataclass(frozen=True)
class ExtractedFileRecord:
    """A file found in a container export by the filesystem scanner."""

    system_path: str
    artifact_id: str
    sha1: str
    file_size: int = 0

    def to_dependency(self) -> Dict:
        return {
            "groupId": None,
            "artifactId": self.artifact_id,
            "version": None,
            "sha1": self.sha1,
            "systemPath": self.system_path,
        }


Dependency = Union[PackageRecord, ExtractedFileRecord]


@dataclass
class ProjectInventory:
    """All dependencies found in one container."""

    coordinates: str
    dependencies: Set[Dependency] = field(default_factory=set)

    def add_all(self, records):
        self.dependencies.update(records)

    @property
    def packages(self) -> List[PackageRecord]:
        return [d for d in self.dependencies if isinstance(d, PackageRecord)]

    @property
    def files(self) -> List[ExtractedFileRecord]:
        return [d for d in self.dependencies if isinstance(d, ExtractedFileRecord)]

    def to_dict(self) -> Dict:
        dependencies = sorted(
            (d.to_dependency() for d in self.dependencies),
            key=lambda d: (d["artifactId"], d["systemPath"] or ""),
        )
        return {
            "coordinates": {
                "groupId": None,
                "artifactId": self.coordinates,
                "version": None,
            },
            "dependencies": dependencies,
        }


@dataclass
class RunOptions:
    """Pre-parsed command-line options for one run."""

    target_image: str = ""
    startup_command: List[str] = field(default_factory=list)
    interactive: bool = False


@dataclass
class RunContext:
    """Per-run temporary locations, keyed by a run id."""

    run_id: str
    temp_root: str

    @classmethod
    def create(cls, base_dir: Optional[str] = None) -> "RunContext":
        run_id = uuid.uuid4().hex
        base_dir = base_dir or tempfile.gettempdir()
        return cls(run_id=run_id, temp_root=os.path.join(base_dir, TEMP_FOLDER_NAME, run_id))

    def export_tar(self, container: TargetContainer) -> str:
        return os.path.join(self.temp_root, "export", container.short_id + TAR_SUFFIX)

    def extract_dir(self, container: TargetContainer) -> str:
        return os.path.join(self.temp_root, "export", container.short_id)

    def archive_dir(self, container: TargetContainer) -> str:
        return os.path.join(self.temp_root, "archives", container.short_id)
