"""Filesystem scanner: hash matching files and look inside nested archives."""

import fnmatch
import hashlib
import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
from typing import List

from .extensions import ARCHIVE_EXCLUDES, ARCHIVE_INCLUDES
from .models import ExtractedFileRecord

logger = logging.getLogger(__name__)

ARCHIVE_PATH_SEPARATOR = "!/"
HASH_BUFFER_SIZE = 64 * 1024


def sha1_of(path):
    digest = hashlib.sha1()
    with open(path, "rb") as fh:
        for block in iter(lambda: fh.read(HASH_BUFFER_SIZE), b""):
            digest.update(block)
    return digest.hexdigest()


def _matches(path, patterns, case_sensitive):
    if not case_sensitive:
        path = path.lower()
        patterns = [pattern.lower() for pattern in patterns]
    return any(fnmatch.fnmatchcase(path, pattern) for pattern in patterns)


def _safe_name(name):
    normalized = name.replace("\\", "/")
    return not normalized.startswith("/") and ".." not in normalized.split("/")


class FileSystemScanner:
    """Walks directories and returns a record for every included file.

    Archives matching the archive include globs are unpacked (up to
    ``archive_extraction_depth`` levels) and their content is reported as
    ``<archive path>!/<path inside archive>``.
    """

    def scan(
        self,
        directories,
        includes,
        excludes,
        case_sensitive=False,
        archive_extraction_depth=0,
        follow_symlinks=False,
        archive_includes=ARCHIVE_INCLUDES,
        archive_excludes=ARCHIVE_EXCLUDES,
        archive_work_dir=None,
    ) -> List[ExtractedFileRecord]:
        """Scan directories for files matching the include globs.

        Args:
            directories: Root directories to walk
            includes: Glob patterns of files to report
            excludes: Glob patterns of files to ignore
            case_sensitive: Whether globs are matched case sensitively
            archive_extraction_depth: How many levels of nested archives to open
            follow_symlinks: Whether to follow symbolic links
            archive_includes: Glob patterns of archives to open
            archive_excludes: Glob patterns of archives not to open
            archive_work_dir: Where nested archives are unpacked (a temporary
                directory when not given)

        Returns:
            List of ExtractedFileRecord with absolute system paths
        """
        self._options = {
            "includes": list(includes),
            "excludes": list(excludes),
            "case_sensitive": case_sensitive,
            "follow_symlinks": follow_symlinks,
            "archive_includes": list(archive_includes),
            "archive_excludes": list(archive_excludes),
        }
        owns_work_dir = archive_work_dir is None and archive_extraction_depth > 0
        if owns_work_dir:
            archive_work_dir = tempfile.mkdtemp(prefix="docker-inventory-archives-")

        records = []
        try:
            for directory in directories:
                for path, relative_path in self._walk(directory):
                    records.extend(
                        self._scan_file(
                            path,
                            path,
                            relative_path,
                            archive_extraction_depth,
                            archive_work_dir,
                        )
                    )
        finally:
            if owns_work_dir:
                shutil.rmtree(archive_work_dir, ignore_errors=True)

        logger.debug(f"Scanner found {len(records)} files")
        return records

    def _walk(self, directory):
        follow_symlinks = self._options["follow_symlinks"]
        for root, dirs, files in os.walk(directory, followlinks=follow_symlinks):
            dirs.sort()
            for name in sorted(files):
                path = os.path.join(root, name)
                if os.path.islink(path) and not follow_symlinks:
                    continue
                if not os.path.isfile(path):
                    continue
                relative_path = os.path.relpath(path, directory).replace(os.sep, "/")
                yield path, relative_path

    def _scan_file(self, path, system_path, relative_path, depth, work_dir):
        options = self._options
        records = []
        case_sensitive = options["case_sensitive"]

        if _matches(relative_path, options["includes"], case_sensitive) and not _matches(
            relative_path, options["excludes"], case_sensitive
        ):
            try:
                records.append(
                    ExtractedFileRecord(
                        system_path=system_path,
                        artifact_id=os.path.basename(path),
                        sha1=sha1_of(path),
                        file_size=os.path.getsize(path),
                    )
                )
            except OSError as e:
                logger.warning(f"Error reading {system_path}: {e}")
                return records

        if depth > 0 and self._is_archive(relative_path):
            records.extend(self._scan_archive(path, system_path, depth, work_dir))
        return records

    def _is_archive(self, relative_path):
        options = self._options
        case_sensitive = options["case_sensitive"]
        return _matches(relative_path, options["archive_includes"], case_sensitive) and not _matches(
            relative_path, options["archive_excludes"], case_sensitive
        )

    def _scan_archive(self, path, system_path, depth, work_dir):
        target = tempfile.mkdtemp(dir=work_dir, prefix="archive-")
        try:
            if not self._unpack(path, target):
                return []
            records = []
            for inner_path, inner_relative in self._walk(target):
                inner_system_path = system_path + ARCHIVE_PATH_SEPARATOR + inner_relative
                records.extend(
                    self._scan_file(inner_path, inner_system_path, inner_relative, depth - 1, work_dir)
                )
            return records
        finally:
            shutil.rmtree(target, ignore_errors=True)

    def _unpack(self, path, target):
        try:
            if zipfile.is_zipfile(path):
                with zipfile.ZipFile(path) as archive:
                    for member in archive.infolist():
                        if member.is_dir() or not _safe_name(member.filename):
                            continue
                        archive.extract(member, target)
                return True
            if tarfile.is_tarfile(path):
                with tarfile.open(path) as archive:
                    for member in archive:
                        if not member.isfile() or not _safe_name(member.name):
                            continue
                        destination = os.path.join(target, member.name)
                        os.makedirs(os.path.dirname(destination), exist_ok=True)
                        source = archive.extractfile(member)
                        if source is None:
                            continue
                        with source, open(destination, "wb") as out:
                            shutil.copyfileobj(source, out)
                return True
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as e:
            logger.warning(f"Error unpacking archive {path}: {e}")
            return False
        logger.debug(f"Unsupported archive format: {path}")
        return False
