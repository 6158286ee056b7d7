"""Dependency Provider Plugin Architecture.

This module provides a plugin-based system for dependency graph extraction:
- One provider per package-manager ecosystem (Cargo, Go modules)
- Bounded execution of each ecosystem's native tool
- Stack (transitive) and component (direct) analysis

Usage:
    from sbomgraph._providers import AnalysisType, create_default_registry

    registry = create_default_registry()
    graph = registry.extract("Cargo.toml", AnalysisType.STACK)
"""

from .protocol import AnalysisType, Ecosystem, Provider
from .registry import ProviderRegistry, create_default_registry
from .runner import BoundedProcessRunner

__all__ = [
    # Core types
    "AnalysisType",
    "Ecosystem",
    "Provider",
    # Registry
    "ProviderRegistry",
    "create_default_registry",
    # Process execution
    "BoundedProcessRunner",
]
