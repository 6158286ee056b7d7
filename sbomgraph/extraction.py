"""
Public entry points for dependency graph extraction.

Example:
    from sbomgraph import extract

    graph = extract("path/to/Cargo.toml", mode="stack")
    for parent, child in graph.edges:
        print(parent.to_string(), "->", child.to_string())
"""

from pathlib import Path
from typing import Optional, Union

from ._providers import AnalysisType, create_default_registry
from .config import ProviderConfig
from .graph import DependencyGraph
from .logging_config import logger


def extract(
    manifest_path: Union[str, Path],
    mode: Union[str, AnalysisType] = AnalysisType.STACK,
    config: Optional[ProviderConfig] = None,
) -> DependencyGraph:
    """
    Extract the dependency graph of a project manifest.

    Args:
        manifest_path: Path to a supported manifest (Cargo.toml, go.mod)
        mode: "stack" for the full transitive graph, "component" for direct
            dependencies only
        config: Provider configuration (defaults when None)

    Returns:
        DependencyGraph rooted at the project

    Raises:
        ConfigurationError: If the configuration is invalid
        UnsupportedManifestError: If no provider handles the manifest
        ManifestError: If the manifest is unreadable or has no root identity
        ValueError: If the mode is unknown
    """
    analysis_type = mode if isinstance(mode, AnalysisType) else AnalysisType.from_string(mode)
    config = config or ProviderConfig()
    config.validate()

    logger.debug(f"Extracting {analysis_type.value} graph from {manifest_path}")
    registry = create_default_registry(config)
    return registry.extract(Path(manifest_path), analysis_type)


def provide_stack(manifest_path: Union[str, Path], config: Optional[ProviderConfig] = None) -> DependencyGraph:
    """Extract the full transitive dependency graph of a manifest."""
    return extract(manifest_path, AnalysisType.STACK, config)


def provide_component(manifest_path: Union[str, Path], config: Optional[ProviderConfig] = None) -> DependencyGraph:
    """Extract only the direct dependencies of a manifest."""
    return extract(manifest_path, AnalysisType.COMPONENT, config)
