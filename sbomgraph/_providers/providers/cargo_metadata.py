"""Model of the ``cargo metadata --format-version 1`` JSON document.

Only the fields used to build the dependency graph are modelled. Parsing is
lenient: unknown fields are ignored and values of the wrong JSON type are
treated as absent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass
class CargoDepKind:
    """
    One way a dependency edge is used.

    ``kind`` is None for normal dependencies, "dev" or "build" otherwise.
    """

    kind: Optional[str] = None
    target: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CargoDepKind":
        data = _as_dict(data)
        return cls(kind=_as_str(data.get("kind")), target=_as_str(data.get("target")))


@dataclass
class CargoDep:
    """A resolved edge from a node to one of its dependencies."""

    name: str
    pkg: str
    dep_kinds: List[CargoDepKind] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["CargoDep"]:
        data = _as_dict(data)
        name = _as_str(data.get("name"))
        pkg = _as_str(data.get("pkg"))
        if not name or not pkg:
            return None
        return cls(
            name=name,
            pkg=pkg,
            dep_kinds=[CargoDepKind.from_dict(k) for k in _as_list(data.get("dep_kinds"))],
        )

    @property
    def is_runtime(self) -> bool:
        """
        Whether the edge is used at runtime.

        Only an edge whose every kind is dev or build is a non-runtime edge;
        an edge with no kind information counts as runtime.
        """
        if not self.dep_kinds:
            return True
        return any(k.kind is None for k in self.dep_kinds)


@dataclass
class CargoNode:
    """A package in the resolved dependency graph."""

    id: str
    deps: List[CargoDep] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["CargoNode"]:
        data = _as_dict(data)
        node_id = _as_str(data.get("id"))
        if not node_id:
            return None
        deps = [CargoDep.from_dict(d) for d in _as_list(data.get("deps"))]
        return cls(
            id=node_id,
            deps=[d for d in deps if d is not None],
        )


@dataclass
class CargoResolve:
    """The ``resolve`` section: every node plus the root package id."""

    nodes: List[CargoNode] = field(default_factory=list)
    root: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CargoResolve":
        data = _as_dict(data)
        nodes = [CargoNode.from_dict(n) for n in _as_list(data.get("nodes"))]
        return cls(nodes=[n for n in nodes if n is not None], root=_as_str(data.get("root")))


@dataclass
class CargoPackage:
    """A package description from the ``packages`` section."""

    id: str
    name: str
    version: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional["CargoPackage"]:
        data = _as_dict(data)
        package_id = _as_str(data.get("id"))
        name = _as_str(data.get("name"))
        if not package_id or not name:
            return None
        return cls(id=package_id, name=name, version=_as_str(data.get("version")) or "")


@dataclass
class CargoMetadata:
    """Top-level ``cargo metadata`` document."""

    packages: List[CargoPackage] = field(default_factory=list)
    workspace_members: List[str] = field(default_factory=list)
    resolve: Optional[CargoResolve] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CargoMetadata":
        """
        Build the model from the decoded JSON document.

        Args:
            data: Decoded JSON value (anything other than an object yields an
                empty document)
        """
        data = _as_dict(data)
        packages = [CargoPackage.from_dict(p) for p in _as_list(data.get("packages"))]
        resolve_data = data.get("resolve")
        return cls(
            packages=[p for p in packages if p is not None],
            workspace_members=[m for m in _as_list(data.get("workspace_members")) if isinstance(m, str)],
            resolve=CargoResolve.from_dict(resolve_data) if isinstance(resolve_data, dict) else None,
        )

    def node_map(self) -> Dict[str, CargoNode]:
        """Index resolve nodes by package id."""
        if self.resolve is None:
            return {}
        return {node.id: node for node in self.resolve.nodes}
