"""Parsers for the package listings of dpkg, rpm, apk and pacman.

Every parser takes the raw stdout bytes of one listing command and returns
a list of :class:`PackageRecord`. Parsers never raise: lines that do not
look like a package entry are skipped.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .models import PackageRecord

NON_ASCII_CHARS = re.compile(r"[^\x20-\x7e]")
LINE_SEPARATOR = re.compile(r"\r?\n")

# reference: https://askubuntu.com/questions/18804/what-do-the-various-dpkg-flags-like-ii-rc-mean
DEBIAN_INSTALLED_PACKAGE_PREFIX = "ii"
DEBIAN_PACKAGE_PATTERN = "{name}_{version}_{arch}.deb"
RPM_PACKAGE_PATTERN = "{name}.rpm"
ALPINE_PACKAGE_PATTERN = "{name}.apk"
ALPINE_PACKAGE_SPLIT_PATTERN = " - "
ARCH_LINUX_PACKAGE_PATTERN = "{name}-{version}-{arch}.pkg.tar.xz"
ARCH_LINUX_ARCHITECTURES = ("x86_64", "i686", "any")


def _lines(output):
    if not output:
        return []
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return LINE_SEPARATOR.split(output)


def _strip_noise(line):
    return NON_ASCII_CHARS.sub("", line)


def parse_debian(output) -> List[PackageRecord]:
    """Parse ``dpkg -l`` output.

    Only installed packages (status ``ii``) are kept. Architecture-qualified
    names (``libc6:amd64``) lose their suffix and epochs (``1:2.3``) are
    dropped from the version.
    """
    packages = []
    for line in _lines(output):
        line = _strip_noise(line)
        if not line.startswith(DEBIAN_INSTALLED_PACKAGE_PREFIX):
            continue

        args = [
            token
            for token in line.split(" ")
            if token.strip() and token != DEBIAN_INSTALLED_PACKAGE_PREFIX
        ]
        if len(args) < 3:
            continue

        name, version, arch = args[0], args[1], args[2]
        if ":" in name:
            name = name[: name.index(":")]
        if ":" in version:
            version = version[version.index(":") + 1 :]

        packages.append(
            PackageRecord(
                DEBIAN_PACKAGE_PATTERN.format(name=name, version=version, arch=arch),
                version,
            )
        )
    return packages


def parse_rpm(output) -> List[PackageRecord]:
    """Parse ``rpm -qa`` output (one ``name-version-release.arch`` per line)."""
    return [
        PackageRecord(RPM_PACKAGE_PATTERN.format(name=line.strip()))
        for line in _lines(output)
        if line.strip()
    ]


def parse_alpine(output) -> List[PackageRecord]:
    """Parse ``apk -vv info`` output (``name-version - description``)."""
    packages = []
    for line in _lines(output):
        line = _strip_noise(line)
        if ALPINE_PACKAGE_SPLIT_PATTERN not in line:
            continue
        name = line.split(ALPINE_PACKAGE_SPLIT_PATTERN)[0]
        if name:
            packages.append(PackageRecord(ALPINE_PACKAGE_PATTERN.format(name=name)))
    return packages


def resolve_arch(output) -> Optional[str]:
    """Return the ``uname -m`` architecture if pacman packages exist for it."""
    lines = [_strip_noise(line).strip() for line in _lines(output)]
    lines = [line for line in lines if line]
    if len(lines) != 1 or lines[0] not in ARCH_LINUX_ARCHITECTURES:
        return None
    return lines[0]


def parse_arch(output, arch: str) -> List[PackageRecord]:
    """Parse ``pacman -Q`` output (``name version`` per line)."""
    packages = []
    for line in _lines(output):
        args = _strip_noise(line).split(" ")
        if len(args) != 2 or not all(args):
            continue
        name, version = args
        packages.append(
            PackageRecord(
                ARCH_LINUX_PACKAGE_PATTERN.format(name=name, version=version, arch=arch),
                version,
            )
        )
    return packages


@dataclass(frozen=True)
class PackageFormat:
    """A package manager: how to list its packages and how to read the list.

    ``arch_probe`` is an optional command whose output must resolve to a
    supported architecture (see :func:`resolve_arch`) before ``command``
    runs; the architecture is then passed to ``parser``.
    """

    name: str
    label: str
    command: Sequence[str]
    parser: Callable
    arch_probe: Optional[Sequence[str]] = None


DEBIAN = PackageFormat("debian", "Debian", ("dpkg", "-l"), parse_debian)
RPM = PackageFormat("rpm", "RPM", ("rpm", "-qa"), parse_rpm)
ALPINE = PackageFormat("alpine", "Alpine", ("apk", "-vv", "info"), parse_alpine)
ARCH_LINUX = PackageFormat(
    "arch", "Arch Linux", ("pacman", "-Q"), parse_arch, arch_probe=("uname", "-m")
)

PACKAGE_FORMATS = (DEBIAN, RPM, ALPINE, ARCH_LINUX)
