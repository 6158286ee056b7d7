"""
Package identifier parsing.

Decodes the opaque package identifiers that ecosystem tools emit into a
``(name, version)`` pair. The grammar follows the Cargo Package ID
specification (https://doc.rust-lang.org/cargo/reference/pkgid-spec.html),
which also covers the ``module@version`` form printed by Go tooling:

- Simple:   ``regex``, ``regex@1.4.3``, ``regex:1.4.3``
- Registry: ``registry+https://github.com/rust-lang/crates.io-index#regex@1.4.3``
- Git:      ``git+ssh://git@github.com/rust-lang/regex.git?branch=dev#regex@1.4.3``
- Path:     ``path+file:///path/to/project#1.1.8``

Malformed input is an expected, common case. The parser never raises and
returns ``None`` for anything it cannot decode unambiguously.
"""

import re
from pathlib import PurePosixPath
from typing import NamedTuple, Optional
from urllib.parse import urlsplit

from .logging_config import logger

URL_SCHEME_SEPARATOR = "://"
FRAGMENT_SEPARATOR = "#"
NAME_VERSION_SEPARATORS = ("@", ":")

MAX_PACKAGE_NAME_LENGTH = 64

_VALID_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")

# "package-1.0.0" / "package_1.0.0" where "package@1.0.0" was meant
_MALFORMED_FRAGMENT_RES = (
    re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*-\d+\..*"),
    re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*_\d+\..*"),
)


class PackageId(NamedTuple):
    """Name and exact version decoded from a package identifier."""

    name: str
    version: str


def parse_package_id(package_id: Optional[str]) -> Optional[PackageId]:
    """
    Parse a package identifier into its name and version.

    Args:
        package_id: Identifier as emitted by the ecosystem tool

    Returns:
        PackageId, or None when the identifier is empty, malformed or
        carries no version
    """
    if package_id is None or not package_id.strip():
        return None

    try:
        if URL_SCHEME_SEPARATOR in package_id:
            return _parse_url_package_id(package_id)
        return _parse_simple_package_id(package_id)
    except (ValueError, TypeError) as e:
        logger.debug(f"Failed to parse package ID: {package_id} - {e}")
        return None


def _parse_simple_package_id(package_id: str) -> Optional[PackageId]:
    """Parse ``name@version`` / ``name:version``; a bare name has no version."""
    for separator in NAME_VERSION_SEPARATORS:
        index = package_id.rfind(separator)
        if index == -1:
            continue
        name = package_id[:index]
        version = package_id[index + 1 :]
        if name and version:
            logger.debug(f"Parsed simple package ID ({separator}): {package_id} -> {name} v{version}")
            return PackageId(name, version)

    if is_valid_package_name(package_id):
        logger.debug(f"Package ID carries no version: {package_id}")
    return None


def _parse_url_package_id(package_id: str) -> Optional[PackageId]:
    """Parse ``[kind+]scheme://host/path[?query]#fragment`` identifiers."""
    hash_index = package_id.find(FRAGMENT_SEPARATOR)
    if hash_index == -1:
        logger.debug(f"URL package ID missing required # fragment: {package_id}")
        return None

    url_part = package_id[:hash_index]
    fragment = package_id[hash_index + 1 :]

    if not fragment:
        logger.debug(f"URL package ID has empty fragment: {package_id}")
        return None

    if any(separator in fragment for separator in NAME_VERSION_SEPARATORS):
        parsed = _parse_simple_package_id(fragment)
        if parsed is not None:
            return parsed

    # From here on the fragment must be a bare version
    if is_malformed_package_version(fragment):
        logger.debug(f"Fragment appears to be a malformed package-version string: {fragment}")
        return None

    if fragment.startswith(NAME_VERSION_SEPARATORS) or fragment.endswith(NAME_VERSION_SEPARATORS):
        logger.debug(f"Fragment starts or ends with a separator: {fragment}")
        return None

    name = extract_name_from_url(url_part)
    if name is None:
        return None

    logger.debug(f"Parsed URL package ID (version only): {package_id} -> {name} v{fragment}")
    return PackageId(name, fragment)


def is_valid_package_name(name: Optional[str]) -> bool:
    """Check whether a string looks like a plain package name."""
    if not name or not _VALID_NAME_RE.match(name):
        return False
    if name.endswith("-"):
        return False
    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        return False
    return True


def is_malformed_package_version(fragment: str) -> bool:
    """
    Detect fragments such as ``serde-1.0.136`` that lack a name/version separator.

    Without ecosystem-specific conventions there is no way to tell where the
    name ends, so these are reported as unparsable instead of guessed at.
    """
    return any(pattern.match(fragment) for pattern in _MALFORMED_FRAGMENT_RES)


def extract_name_from_url(url: str) -> Optional[str]:
    """
    Derive a package name from the last path segment of a source URL.

    The ``kind+`` transport prefix and any query string are ignored and a
    trailing ``.git`` is stripped.
    """
    clean_url = url
    plus_index = url.find("+")
    scheme_index = url.find(URL_SCHEME_SEPARATOR)
    if plus_index != -1 and scheme_index > plus_index:
        clean_url = url[plus_index + 1 :]

    try:
        if clean_url.startswith("file://"):
            name = PurePosixPath(urlsplit(clean_url).path).name
            return name or None

        path = urlsplit(clean_url).path
    except ValueError as e:
        logger.debug(f"Failed to extract name from URL: {url} - {e}")
        return None

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if not path:
        return None
    return path.rsplit("/", 1)[-1] or None
