"""Built-in ecosystem providers."""

from .cargo import CargoProvider
from .gomod import GoModulesProvider

__all__ = [
    "CargoProvider",
    "GoModulesProvider",
]
