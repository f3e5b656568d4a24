"""
Unit tests for the package listing parsers.
"""
from conftest import DPKG_OUTPUT

from docker_inventory_agent.models import PackageRecord
from docker_inventory_agent.package_formats import (
    ARCH_LINUX,
    PACKAGE_FORMATS,
    parse_alpine,
    parse_arch,
    parse_debian,
    parse_rpm,
    resolve_arch,
)


class TestDebianParser:
    def test_installed_packages(self):
        records = parse_debian(DPKG_OUTPUT)
        assert [r.artifact_id for r in records] == [
            "bash_5.1-2+deb11u1_amd64.deb",
            "libc6_2.31-0ubuntu9.9_amd64.deb",
        ]
        assert records[0].version == "5.1-2+deb11u1"
        assert all(r.group_id is None for r in records)

    def test_strips_arch_qualifier_and_epoch(self):
        records = parse_debian(b"ii  libssl1.1:amd64  1:1.1.1n-0+deb11u4  amd64  SSL library\n")
        assert records == [PackageRecord("libssl1.1_1.1.1n-0+deb11u4_amd64.deb", "1.1.1n-0+deb11u4")]

    def test_skips_other_statuses_and_short_lines(self):
        output = (
            b"rc  oldpkg  1.0  amd64  removed package\n"
            b"ii  onlyname  1.0\n"
            b"hi  held  2.0  all  held package\n"
        )
        assert parse_debian(output) == []

    def test_strips_non_printable_noise(self):
        records = parse_debian(b"\x1b\x00ii  zlib1g  1:1.2.11  amd64  compression\r\n")
        assert [r.artifact_id for r in records] == ["zlib1g_1.2.11_amd64.deb"]

    def test_empty_output(self):
        assert parse_debian(b"") == []


class TestRpmParser:
    def test_one_record_per_line(self):
        records = parse_rpm(b"bash-5.0-6.el8.x86_64\n\n  \nglibc-2.28-151.el8.x86_64\r\n")
        assert records == [
            PackageRecord("bash-5.0-6.el8.x86_64.rpm"),
            PackageRecord("glibc-2.28-151.el8.x86_64.rpm"),
        ]
        assert records[0].version is None

    def test_example_line(self):
        assert parse_rpm(b"bash-5.0-6.el8")[0].artifact_id == "bash-5.0-6.el8.rpm"


class TestAlpineParser:
    def test_takes_segment_before_separator(self):
        output = (
            b"musl-1.2.3-r4 - the musl c library (libc) implementation\n"
            b"busybox-1.35.0-r29 - Size optimized toolbox\n"
            b"WARNING: Ignoring APKINDEX\n"
            b"\n"
        )
        assert [r.artifact_id for r in parse_alpine(output)] == [
            "musl-1.2.3-r4.apk",
            "busybox-1.35.0-r29.apk",
        ]


class TestArchParser:
    def test_resolve_arch(self):
        assert resolve_arch(b"x86_64\n") == "x86_64"
        assert resolve_arch(b"i686") == "i686"
        assert resolve_arch(b"armv7l\n") is None
        assert resolve_arch(b"") is None

    def test_two_token_lines(self):
        output = b"acl 2.3.1-3\nbash 5.2.015-1\nbroken line here\nlonely\n"
        assert parse_arch(output, "x86_64") == [
            PackageRecord("acl-2.3.1-3-x86_64.pkg.tar.xz", "2.3.1-3"),
            PackageRecord("bash-5.2.015-1-x86_64.pkg.tar.xz", "5.2.015-1"),
        ]


def test_formats_are_uniformly_described():
    assert [f.name for f in PACKAGE_FORMATS] == ["debian", "rpm", "alpine", "arch"]
    assert ARCH_LINUX.arch_probe == ("uname", "-m")
    assert all(f.arch_probe is None for f in PACKAGE_FORMATS if f is not ARCH_LINUX)
