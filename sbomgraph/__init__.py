"""sbomgraph package for extracting dependency graphs (SBOMs) from project manifests."""


def _get_version() -> str:
    """Get package version with fallback mechanisms."""
    # Method 1: Try importlib.metadata (preferred for installed packages)
    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("sbomgraph")
    except PackageNotFoundError:
        pass

    # Method 2: Try reading from pyproject.toml directly
    try:
        from pathlib import Path

        import tomllib

        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                pyproject_data = tomllib.load(f)
            return pyproject_data.get("project", {}).get("version", "unknown")
    except (OSError, ValueError):
        pass

    # Final fallback
    return "unknown"


__version__ = _get_version()

from .config import ProviderConfig  # noqa: E402
from .extraction import extract, provide_component, provide_stack  # noqa: E402
from .graph import DependencyGraph, ProjectInfo  # noqa: E402
from .ignore import ExclusionStrategy  # noqa: E402
from .serialization import serialize_graph  # noqa: E402

__all__ = [
    "__version__",
    "DependencyGraph",
    "ExclusionStrategy",
    "ProjectInfo",
    "ProviderConfig",
    "extract",
    "provide_component",
    "provide_stack",
    "serialize_graph",
]
