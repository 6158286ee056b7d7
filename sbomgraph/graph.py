"""
Rooted dependency graph produced by every ecosystem provider.

Nodes are Package URLs (``packageurl.PackageURL``); their canonical string
form is the node key, so two coordinates are the same node only when every
field matches. Edges are ordered (parent, child) pairs kept in insertion
order, and the graph never holds the same pair twice.
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from packageurl import PackageURL

from .ignore import ExclusionStrategy
from .logging_config import logger

DEFAULT_VERSION = "0.0.0"

EdgeKey = Tuple[str, str]


@dataclass(frozen=True)
class ProjectInfo:
    """Name and version of the analyzed project (the graph root)."""

    name: str
    version: str = DEFAULT_VERSION

    def __post_init__(self) -> None:
        if not self.version:
            object.__setattr__(self, "version", DEFAULT_VERSION)


def coordinate_key(purl: PackageURL) -> str:
    """Canonical string identity of a coordinate."""
    return purl.to_string()


class DependencyGraph:
    """
    A rooted, de-duplicated parent -> child dependency graph.

    Example:
        graph = DependencyGraph()
        root = PackageURL(type="cargo", name="app", version="1.0.0")
        graph.add_root(root)
        graph.add_dependency(root, PackageURL(type="cargo", name="serde", version="1.0.136"))
    """

    def __init__(self) -> None:
        self._root: Optional[PackageURL] = None
        self._nodes: Dict[str, PackageURL] = {}
        self._edges: Dict[EdgeKey, None] = {}

    @property
    def root(self) -> Optional[PackageURL]:
        """The root coordinate, or None before add_root is called."""
        return self._root

    @property
    def edges(self) -> List[Tuple[PackageURL, PackageURL]]:
        """All edges in insertion order."""
        return [(self._nodes[parent], self._nodes[child]) for parent, child in self._edges]

    @property
    def components(self) -> List[PackageURL]:
        """Every non-root coordinate that appears in an edge, in first-seen order."""
        root_key = coordinate_key(self._root) if self._root is not None else None
        seen: Dict[str, None] = {}
        for parent, child in self._edges:
            for key in (parent, child):
                if key != root_key:
                    seen.setdefault(key, None)
        return [self._nodes[key] for key in seen]

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[Tuple[PackageURL, PackageURL]]:
        return iter(self.edges)

    def add_root(self, root: PackageURL) -> None:
        """Set the root coordinate. It is part of the graph even without edges."""
        self._root = root
        self._nodes[coordinate_key(root)] = root

    def add_dependency(self, parent: PackageURL, child: PackageURL) -> bool:
        """
        Add a parent -> child edge.

        Returns:
            True if the edge was added, False if the same pair already exists
        """
        key = (coordinate_key(parent), coordinate_key(child))
        if key in self._edges:
            return False
        self._nodes.setdefault(key[0], parent)
        self._nodes.setdefault(key[1], child)
        self._edges[key] = None
        return True

    def children_of(self, parent: PackageURL) -> List[PackageURL]:
        """Direct children of a coordinate, in insertion order."""
        parent_key = coordinate_key(parent)
        return [self._nodes[child] for p, child in self._edges if p == parent_key]

    def apply_exclusions(
        self,
        excluded_edges: Iterable[Tuple[PackageURL, PackageURL]],
        strategy: ExclusionStrategy = ExclusionStrategy.INSENSITIVE,
    ) -> int:
        """
        Prune the graph for excluded dependencies.

        Edges are first marked for removal according to the strategy, then
        every edge whose parent is no longer reachable from the root is
        dropped as well.

        Args:
            excluded_edges: Edges that lead to an excluded dependency
            strategy: Propagation policy for the excluded subtrees

        Returns:
            Number of edges removed
        """
        marked: Set[EdgeKey] = {(coordinate_key(p), coordinate_key(c)) for p, c in excluded_edges}
        if not marked:
            return 0

        before = len(self._edges)

        if strategy is ExclusionStrategy.INSENSITIVE:
            root_keys = {coordinate_key(self._root)} if self._root is not None else set()
            removed_nodes = self._descendants({child for _, child in marked} - root_keys, stop=root_keys)
            for key in list(self._edges):
                if key in marked or key[0] in removed_nodes or key[1] in removed_nodes:
                    del self._edges[key]
        else:
            for key in marked:
                self._edges.pop(key, None)

        self._drop_unreachable()
        self._forget_orphan_nodes()

        removed = before - len(self._edges)
        logger.debug(f"Exclusion ({strategy.value}) removed {removed} edges")
        return removed

    def _adjacency(self) -> Dict[str, List[str]]:
        adjacency: Dict[str, List[str]] = {}
        for parent, child in self._edges:
            adjacency.setdefault(parent, []).append(child)
        return adjacency

    def _descendants(self, starts: Set[str], stop: Set[str] = frozenset()) -> Set[str]:
        """Start nodes plus every node reachable from them without passing through ``stop``."""
        adjacency = self._adjacency()
        found = set(starts)
        queue = deque(starts)
        while queue:
            for child in adjacency.get(queue.popleft(), []):
                if child not in found and child not in stop:
                    found.add(child)
                    queue.append(child)
        return found

    def _drop_unreachable(self) -> None:
        if self._root is None:
            return
        reachable = self._descendants({coordinate_key(self._root)})
        for key in list(self._edges):
            if key[0] not in reachable:
                del self._edges[key]

    def _forget_orphan_nodes(self) -> None:
        referenced = {key for edge in self._edges for key in edge}
        if self._root is not None:
            referenced.add(coordinate_key(self._root))
        for key in list(self._nodes):
            if key not in referenced:
                del self._nodes[key]
