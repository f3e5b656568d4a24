"""File extension classification used to pick files out of container exports."""

import re

SOURCE_EXTENSIONS = (
    "c", "cc", "cp", "cpp", "cxx", "c++", "h", "hh", "hpp", "hxx", "h++",
    "m", "mm", "cs", "go", "java", "js", "ts", "php", "py", "rb", "swift",
    "scala", "kt", "groovy", "pl", "pm", "rs",
)

BINARY_EXTENSIONS = (
    "jar", "war", "ear", "aar", "dll", "exe", "msi", "nupkg", "egg", "whl",
    "gem", "deb", "udeb", "rpm", "drpm", "apk", "dmg", "swf", "swc", "air",
    "so", "a", "pyd", "bpl", "pkg.tar.xz",
)

ARCHIVE_EXTENSIONS = (
    "zip", "tar", "tgz", "tar.gz", "tar.bz2", "tbz2", "tar.xz", "txz",
    "rar", "7z",
)


def _pattern(extensions):
    alternatives = "|".join(re.escape(ext) for ext in extensions)
    return re.compile(r".*\.(" + alternatives + r")")


SOURCE_FILE_PATTERN = _pattern(SOURCE_EXTENSIONS)
BINARY_FILE_PATTERN = _pattern(BINARY_EXTENSIONS)
ARCHIVE_FILE_PATTERN = _pattern(ARCHIVE_EXTENSIONS)

CATEGORY_PATTERNS = (SOURCE_FILE_PATTERN, BINARY_FILE_PATTERN, ARCHIVE_FILE_PATTERN)

INCLUDES = tuple(f"*.{ext}" for ext in SOURCE_EXTENSIONS + BINARY_EXTENSIONS + ARCHIVE_EXTENSIONS)
EXCLUDES = ()

# archives the filesystem scanner unpacks and scans recursively
ARCHIVE_INCLUDES = (
    "*.jar", "*.war", "*.ear", "*.aar", "*.zip", "*.whl", "*.egg", "*.nupkg",
    "*.tar", "*.tgz", "*.tar.gz", "*.tar.bz2", "*.tbz2", "*.tar.xz", "*.txz",
)
ARCHIVE_EXCLUDES = ()


def matches_category(name, patterns=CATEGORY_PATTERNS):
    """True if the lower-cased ``name`` fully matches one of ``patterns``."""
    lower_case_name = name.lower()
    return any(pattern.fullmatch(lower_case_name) for pattern in patterns)
