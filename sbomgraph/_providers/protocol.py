"""Provider Protocol for dependency graph extraction plugins.

This module defines the core protocol and types of the provider system. Each
supported ecosystem is one ``Ecosystem`` variant, bound to the manifest file
names it owns and the native tool it runs.
"""

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol, Union

if TYPE_CHECKING:
    from sbomgraph.graph import DependencyGraph


class Ecosystem(Enum):
    """Package-manager ecosystems with a dependency provider."""

    CARGO = ("cargo", "cargo", ("Cargo.toml",))
    GOLANG = ("golang", "go", ("go.mod",))

    def __init__(self, purl_type: str, executable: str, manifests: tuple[str, ...]) -> None:
        self.purl_type = purl_type
        self.executable = executable
        self.manifests = manifests

    @classmethod
    def for_manifest(cls, manifest_path: Union[str, Path]) -> Optional["Ecosystem"]:
        """Return the ecosystem that owns a manifest file name, if any."""
        name = Path(manifest_path).name
        for ecosystem in cls:
            if name in ecosystem.manifests:
                return ecosystem
        return None


class AnalysisType(str, Enum):
    """
    Depth of a dependency analysis.

    STACK walks the full transitive graph. COMPONENT keeps only the direct
    dependencies of the project.
    """

    STACK = "stack"
    COMPONENT = "component"

    @classmethod
    def from_string(cls, value: str) -> "AnalysisType":
        """Parse an analysis type name, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown analysis type '{value}'. Choose one of: {choices}")


class Provider(Protocol):
    """
    Protocol for dependency providers.

    Each provider implements extraction for one ecosystem by invoking its
    native tool and turning the output into a DependencyGraph.

    Attributes:
        name: Human-readable name of the provider
        ecosystem: The ecosystem this provider handles
    """

    @property
    def name(self) -> str:
        """Human-readable name of this provider."""
        ...

    @property
    def ecosystem(self) -> Ecosystem:
        """The ecosystem handled by this provider."""
        ...

    def supports(self, manifest_path: Path) -> bool:
        """
        Check if this provider handles the given manifest.

        Args:
            manifest_path: Path to the project manifest

        Returns:
            True if this provider can analyze the manifest
        """
        ...

    def provide(self, manifest_path: Path, analysis_type: AnalysisType) -> "DependencyGraph":
        """
        Extract the dependency graph of a project.

        Args:
            manifest_path: Path to the project manifest
            analysis_type: STACK for the full graph, COMPONENT for direct deps

        Returns:
            DependencyGraph rooted at the project

        Raises:
            ManifestError: If the manifest is unreadable or has no root identity
        """
        ...
