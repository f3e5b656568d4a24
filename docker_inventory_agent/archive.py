"""Export a container filesystem to a tar file and keep only relevant files."""

import logging
import os
import shutil
import tarfile

from docker.errors import DockerException

from .errors import ExportFailure
from .extensions import CATEGORY_PATTERNS, matches_category
from .progress import ExtractProgressIndicator, file_size_source

logger = logging.getLogger(__name__)

EXPORT_CHUNK_SIZE = 2 * 1024 * 1024


class ArchiveExporter:
    """Streams ``docker export`` output to a local tar file."""

    def __init__(self, client, progress_stream=None, show_progress=True):
        self.client = client
        self.progress_stream = progress_stream
        self.show_progress = show_progress

    def export(self, container, tar_path):
        """Export the container filesystem to ``tar_path``.

        Args:
            container: TargetContainer to export
            tar_path: Destination tar file

        Returns:
            The tar path

        Raises:
            ExportFailure: If the engine stream or the local file fails
        """
        os.makedirs(os.path.dirname(tar_path), exist_ok=True)
        logger.info(f"Exporting container to {tar_path} (may take a few minutes)")

        indicator = None
        if self.show_progress:
            indicator = ExtractProgressIndicator(
                file_size_source(tar_path),
                container.size_root_fs,
                stream=self.progress_stream,
            )
        try:
            stream = self.client.containers.get(container.id).export(
                chunk_size=EXPORT_CHUNK_SIZE
            )
            if indicator is not None:
                indicator.start()
            with open(tar_path, "wb") as out:
                for chunk in stream:
                    out.write(chunk)
        except (DockerException, OSError) as e:
            raise ExportFailure(container.short_id, e) from e
        finally:
            if indicator is not None:
                indicator.finished()
                if indicator.is_alive():
                    indicator.join()

        logger.info(f"Successfully exported container to {tar_path}")
        return tar_path


def _is_safe_member(name):
    if name.startswith(("/", "\\")) or os.path.isabs(name):
        return False
    return ".." not in name.replace("\\", "/").split("/")


def filter_archive(tar_path, dest_dir, patterns=CATEGORY_PATTERNS):
    """Extract only source, binary and archive files from a tar file.

    Directories, links and special files are skipped, and so is every entry
    whose lower-cased name matches none of ``patterns``.

    Args:
        tar_path: Tar file to read
        dest_dir: Directory to extract matching files into
        patterns: Compiled regexes, matched against the whole entry name

    Returns:
        Number of files written
    """
    extracted = 0
    try:
        with tarfile.open(tar_path, mode="r|*") as tar:
            for member in tar:
                if not member.isfile():
                    continue
                if not _is_safe_member(member.name):
                    logger.debug(f"Skipping unsafe entry {member.name}")
                    continue
                if not matches_category(member.name, patterns):
                    continue

                target = os.path.join(dest_dir, member.name)
                os.makedirs(os.path.dirname(target), exist_ok=True)
                source = tar.extractfile(member)
                if source is None:
                    continue
                with source, open(target, "wb") as out:
                    shutil.copyfileobj(source, out)
                extracted += 1
    except (OSError, tarfile.TarError) as e:
        logger.warning(f"Error extracting files from {tar_path}: {e}")
    return extracted
