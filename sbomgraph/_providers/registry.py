"""Provider registry for dispatching manifests to ecosystem providers."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sbomgraph.config import ProviderConfig
from sbomgraph.exceptions import UnsupportedManifestError
from sbomgraph.graph import DependencyGraph
from sbomgraph.logging_config import logger

from .protocol import AnalysisType, Ecosystem, Provider


class ProviderRegistry:
    """
    Registry mapping ecosystems to their dependency providers.

    Each ecosystem has exactly one provider; registering a second provider
    for the same ecosystem replaces the first.

    Example:
        registry = ProviderRegistry()
        registry.register(CargoProvider(config))
        registry.register(GoModulesProvider(config))

        graph = registry.extract(Path("Cargo.toml"), AnalysisType.STACK)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._providers: Dict[Ecosystem, Provider] = {}

    def register(self, provider: Provider) -> None:
        """
        Register a provider for its ecosystem.

        Args:
            provider: Provider implementation to register
        """
        if provider.ecosystem in self._providers:
            logger.debug(f"Replacing provider for {provider.ecosystem.value}")
        self._providers[provider.ecosystem] = provider
        logger.debug(f"Registered provider: {provider.name} ({provider.ecosystem.value})")

    def get_provider_for(self, manifest_path: Union[str, Path]) -> Optional[Provider]:
        """
        Get the provider that handles a manifest.

        Args:
            manifest_path: Path to the project manifest

        Returns:
            The provider, or None if no registered provider handles the file name
        """
        ecosystem = Ecosystem.for_manifest(manifest_path)
        if ecosystem is None:
            return None
        provider = self._providers.get(ecosystem)
        if provider is None or not provider.supports(Path(manifest_path)):
            return None
        return provider

    def extract(self, manifest_path: Union[str, Path], analysis_type: AnalysisType) -> DependencyGraph:
        """
        Extract the dependency graph of a manifest with its ecosystem's provider.

        Args:
            manifest_path: Path to the project manifest
            analysis_type: STACK or COMPONENT

        Returns:
            DependencyGraph rooted at the project

        Raises:
            UnsupportedManifestError: If no provider handles the manifest
            ManifestError: If the manifest is unreadable or has no root identity
        """
        provider = self.get_provider_for(manifest_path)
        if provider is None:
            supported = ", ".join(sorted(m for e in self._providers for m in e.manifests))
            raise UnsupportedManifestError(
                f"Unsupported manifest: {Path(manifest_path).name}. Supported manifests: {supported}"
            )

        logger.debug(f"Using provider {provider.name} for {manifest_path}")
        return provider.provide(Path(manifest_path), analysis_type)

    def list_providers(self) -> List[Dict[str, Any]]:
        """
        List all registered providers.

        Returns:
            List of dicts with provider info
        """
        return [
            {
                "name": provider.name,
                "ecosystem": ecosystem.value,
                "executable": ecosystem.executable,
                "manifests": list(ecosystem.manifests),
            }
            for ecosystem, provider in self._providers.items()
        ]


def create_default_registry(config: Optional[ProviderConfig] = None) -> ProviderRegistry:
    """
    Create a registry with all built-in providers.

    Args:
        config: Provider configuration (defaults when None)

    Returns:
        ProviderRegistry with the Cargo and Go providers registered
    """
    from .providers import CargoProvider, GoModulesProvider

    config = config or ProviderConfig()
    registry = ProviderRegistry()
    registry.register(CargoProvider(config))
    registry.register(GoModulesProvider(config))
    return registry
