"""
Detection of dependencies excluded from analysis by manifest comments.

A dependency is excluded when the line that declares it carries an ignore
marker, e.g. in a Cargo.toml:

    serde = "1.0" # trustify-da-ignore

    [dependencies.aho-corasick] # trustify-da-ignore
    version = "1.0.0"

The legacy ``exhortignore`` spelling is honored as well.
"""

from enum import Enum
from typing import Iterable, Set

from .exceptions import ConfigurationError
from .logging_config import logger

IGNORE_PATTERN = "trustify-da-ignore"
LEGACY_IGNORE_PATTERN = "exhortignore"


class ExclusionStrategy(str, Enum):
    """How excluding a dependency propagates to its transitive dependencies.

    INSENSITIVE drops the excluded dependency together with everything below
    it. SENSITIVE drops only the excluded edge and keeps transitive
    dependencies that are still reachable from the root through another path.
    """

    INSENSITIVE = "insensitive"
    SENSITIVE = "sensitive"

    @classmethod
    def from_string(cls, value: str) -> "ExclusionStrategy":
        """Parse a strategy name, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ConfigurationError(f"Unknown ignore strategy '{value}'. Choose one of: {choices}")


def contains_ignore_pattern(text: str) -> bool:
    """Check if a line of text contains either ignore marker."""
    return LEGACY_IGNORE_PATTERN in text or IGNORE_PATTERN in text


def line_declares_dependency(trimmed: str, name: str) -> bool:
    """
    Check whether a trimmed manifest line declares the named dependency.

    Two surface forms are recognized:

    - a table header such as ``[dependencies.name]`` or
      ``[workspace.dependencies.name]``
    - an inline key such as ``name = "1.0"``, ``name="1.0"`` or
      ``"name" = "1.0"``
    """
    if trimmed.startswith("[") and f".{name}]" in trimmed:
        return True
    return trimmed.startswith((f"{name} ", f"{name}\t", f"{name}=", f'"{name}"'))


def find_ignored_dependencies(content: str, declared_names: Iterable[str]) -> Set[str]:
    """
    Return the declared dependency names whose declaration line is marked ignored.

    Args:
        content: Full manifest source text
        declared_names: Every dependency name declared by the manifest, from
            all declaration sections

    Returns:
        Subset of ``declared_names`` to exclude
    """
    ignored: Set[str] = set()
    if not content:
        logger.debug("Empty content provided for ignore detection")
        return ignored

    names = list(declared_names)
    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or not contains_ignore_pattern(trimmed):
            continue
        for name in names:
            if name not in ignored and line_declares_dependency(trimmed, name):
                ignored.add(name)

    if ignored:
        logger.debug(f"Found {len(ignored)} ignored dependencies: {sorted(ignored)}")
    return ignored
