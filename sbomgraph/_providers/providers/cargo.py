"""Cargo provider plugin for Rust projects.

Builds the dependency graph of a Cargo.toml from the resolved graph printed
by ``cargo metadata --format-version 1``. Cargo's resolver is authoritative:
every version in the graph is the exact version it selected.

Supported inputs:
- Cargo.toml (package or virtual workspace manifest)
"""

import json
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from packageurl import PackageURL

from sbomgraph.config import ProviderConfig
from sbomgraph.exceptions import ManifestError
from sbomgraph.graph import DEFAULT_VERSION, DependencyGraph, ProjectInfo
from sbomgraph.ignore import find_ignored_dependencies
from sbomgraph.logging_config import logger
from sbomgraph.package_id import parse_package_id

from ..protocol import AnalysisType, Ecosystem
from ..utils import RunnerFactory, default_runner_factory, read_manifest, run_tool
from .cargo_metadata import CargoDep, CargoMetadata, CargoNode

DEFAULT_WORKSPACE_NAME = "rust-workspace"

# Manifest tables that declare dependencies, as key paths
DEPENDENCY_SECTIONS = (
    ("dependencies",),
    ("dev-dependencies",),
    ("build-dependencies",),
    ("workspace", "dependencies"),
    ("workspace", "build-dependencies"),
)

# Tables allowed under [target.<cfg>]
TARGET_DEPENDENCY_TABLES = ("dependencies", "dev-dependencies", "build-dependencies")

METADATA_ARGS = ["metadata", "--format-version", "1"]

Edge = Tuple[PackageURL, PackageURL]


def parse_cargo_toml(content: str, manifest_path: Path) -> Dict[str, Any]:
    """
    Parse Cargo.toml content.

    Raises:
        ManifestError: If the content is not valid TOML
    """
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Invalid Cargo.toml {manifest_path}: {e}")


def _table(data: Any, *keys: str) -> Dict[str, Any]:
    """Walk nested TOML tables, returning {} when any step is missing or not a table."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return {}
        current = current.get(key)
    return current if isinstance(current, dict) else {}


def _workspace_version(manifest: Dict[str, Any]) -> Optional[str]:
    version = _table(manifest, "workspace", "package").get("version")
    return version if isinstance(version, str) and version else None


def extract_project_info(manifest: Dict[str, Any], manifest_path: Path) -> ProjectInfo:
    """
    Determine the root identity of a Cargo project.

    A ``[package]`` with a name wins. Its version may be a string or
    ``{ workspace = true }``, which inherits ``[workspace.package].version``.
    A virtual workspace is named after its directory.

    Raises:
        ManifestError: If the manifest has neither a named package nor a workspace
    """
    package = manifest.get("package")
    workspace = manifest.get("workspace")

    if isinstance(package, dict):
        name = package.get("name")
        if isinstance(name, str) and name:
            version = package.get("version")
            if isinstance(version, dict):
                version = _workspace_version(manifest) if version.get("workspace") is True else None
            elif not isinstance(version, str):
                version = None
            return ProjectInfo(name=name, version=version or DEFAULT_VERSION)

    if isinstance(workspace, dict):
        directory_name = manifest_path.resolve().parent.name
        name = directory_name or DEFAULT_WORKSPACE_NAME
        return ProjectInfo(name=name, version=_workspace_version(manifest) or DEFAULT_VERSION)

    if isinstance(package, dict):
        raise ManifestError(f"[package] section in {manifest_path} has no name and there is no [workspace]")
    raise ManifestError(f"{manifest_path} has neither a [package] nor a [workspace] section")


def collect_declared_dependencies(manifest: Dict[str, Any]) -> Set[str]:
    """Return every dependency name declared in any dependency table of the manifest."""
    names: Set[str] = set()
    for section in DEPENDENCY_SECTIONS:
        names.update(_table(manifest, *section).keys())

    for cfg_table in _table(manifest, "target").values():
        for section in TARGET_DEPENDENCY_TABLES:
            names.update(_table(cfg_table, section).keys())

    return names


class CargoProvider:
    """
    Dependency provider for Rust Cargo projects.

    Runs ``cargo metadata`` in the manifest's directory and walks its
    ``resolve`` graph. Dev and build only edges are left out, and dependencies
    whose declaration line carries an ignore marker are pruned according to
    the configured exclusion strategy.

    Example:
        provider = CargoProvider(ProviderConfig(timeout=10))
        graph = provider.provide(Path("Cargo.toml"), AnalysisType.STACK)
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        runner_factory: RunnerFactory = default_runner_factory,
    ) -> None:
        self.config = config or ProviderConfig()
        self._runner_factory = runner_factory

    @property
    def name(self) -> str:
        return "cargo-metadata"

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.CARGO

    def supports(self, manifest_path: Path) -> bool:
        return Path(manifest_path).name in self.ecosystem.manifests

    def provide(self, manifest_path: Path, analysis_type: AnalysisType) -> DependencyGraph:
        """Extract the dependency graph of a Cargo project."""
        manifest_path = Path(manifest_path)
        content = read_manifest(manifest_path)
        manifest = parse_cargo_toml(content, manifest_path)
        project = extract_project_info(manifest, manifest_path)

        ignored = find_ignored_dependencies(content, collect_declared_dependencies(manifest))

        root = self._purl(project.name, project.version)
        graph = DependencyGraph()
        graph.add_root(root)
        logger.info(f"Analyzing Cargo project {project.name}@{project.version} ({analysis_type.value})")

        metadata = self._fetch_metadata(manifest_path)
        if metadata is None:
            return graph

        excluded: List[Edge] = []
        try:
            self._populate(graph, root, metadata, ignored, analysis_type, excluded)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to process cargo metadata for {manifest_path}: {e}")

        if excluded:
            graph.apply_exclusions(excluded, self.config.ignore_strategy)

        logger.info(f"Resolved {len(graph.components)} Cargo dependencies ({len(graph)} edges)")
        return graph

    def _fetch_metadata(self, manifest_path: Path) -> Optional[CargoMetadata]:
        output = run_tool(
            "cargo",
            METADATA_ARGS,
            cwd=manifest_path.resolve().parent,
            timeout=self.config.timeout,
            executable=self.config.executable_for(self.ecosystem.executable),
            runner_factory=self._runner_factory,
        )
        if output is None:
            return None

        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            logger.warning(f"cargo metadata printed invalid JSON: {e}")
            return None

        metadata = CargoMetadata.from_dict(data)
        if metadata.resolve is None:
            logger.warning("cargo metadata output has no resolve section")
            return None
        return metadata

    def _populate(
        self,
        graph: DependencyGraph,
        root: PackageURL,
        metadata: CargoMetadata,
        ignored: Set[str],
        analysis_type: AnalysisType,
        excluded: List[Edge],
    ) -> None:
        nodes = metadata.node_map()
        root_node = self._root_node(metadata, nodes)
        if root_node is None:
            logger.warning("cargo metadata has neither a resolve root nor workspace members")
            return

        versions = {p.id: (p.name, p.version) for p in metadata.packages}

        if analysis_type is AnalysisType.COMPONENT:
            for dep in root_node.deps:
                child = self._dep_purl(dep, versions)
                if child is None:
                    continue
                graph.add_dependency(root, child)
                if self._is_ignored(dep, child, ignored):
                    excluded.append((root, child))
            return

        self._walk(graph, root, root_node, nodes, versions, ignored, excluded)

    def _root_node(self, metadata: CargoMetadata, nodes: Dict[str, CargoNode]) -> Optional[CargoNode]:
        """
        Find the node the walk starts from.

        A virtual workspace has no resolve root, so its members' dependencies
        are merged into one synthetic node, keeping the first dep per package.
        """
        if metadata.resolve is not None and metadata.resolve.root:
            node = nodes.get(metadata.resolve.root)
            if node is not None:
                return node
            logger.warning(f"Resolve root {metadata.resolve.root} not found among resolve nodes")

        if not metadata.workspace_members:
            return None

        merged: Dict[str, CargoDep] = {}
        for member in metadata.workspace_members:
            member_node = nodes.get(member)
            if member_node is None:
                logger.debug(f"Workspace member {member} not found among resolve nodes")
                continue
            for dep in member_node.deps:
                merged.setdefault(dep.pkg, dep)

        logger.debug(
            f"Virtual workspace root with {len(merged)} dependencies "
            f"from {len(metadata.workspace_members)} members"
        )
        return CargoNode(id="", deps=list(merged.values()))

    def _walk(
        self,
        graph: DependencyGraph,
        root: PackageURL,
        root_node: CargoNode,
        nodes: Dict[str, CargoNode],
        versions: Dict[str, Tuple[str, str]],
        ignored: Set[str],
        excluded: List[Edge],
    ) -> None:
        """Depth-first, pre-order walk of the resolve graph."""
        visited: Set[str] = {root_node.id}
        stack = [(root, iter(root_node.deps))]

        while stack:
            parent, deps = stack[-1]
            dep = next(deps, None)
            if dep is None:
                stack.pop()
                continue

            child = self._dep_purl(dep, versions)
            if child is None:
                continue

            if not graph.add_dependency(parent, child):
                continue
            if self._is_ignored(dep, child, ignored):
                excluded.append((parent, child))

            child_node = nodes.get(dep.pkg)
            if child_node is None or child_node.id in visited:
                continue
            visited.add(child_node.id)
            stack.append((child, iter(child_node.deps)))

    def _dep_purl(self, dep: CargoDep, versions: Dict[str, Tuple[str, str]]) -> Optional[PackageURL]:
        if not dep.is_runtime:
            logger.debug(f"Skipping dev/build dependency: {dep.name}")
            return None

        parsed = parse_package_id(dep.pkg)
        if parsed is not None:
            return self._purl(parsed.name, parsed.version)

        # Package ids from older cargo releases only resolve through the packages list
        known = versions.get(dep.pkg)
        if known is not None and known[1]:
            return self._purl(known[0], known[1])

        logger.warning(f"Could not parse package id, skipping dependency: {dep.pkg}")
        return None

    def _purl(self, name: str, version: str) -> PackageURL:
        return PackageURL(type=self.ecosystem.purl_type, name=name, version=version)

    @staticmethod
    def _is_ignored(dep: CargoDep, child: PackageURL, ignored: Set[str]) -> bool:
        # resolve deps carry the extern crate name (dashes become underscores)
        return dep.name in ignored or child.name in ignored
