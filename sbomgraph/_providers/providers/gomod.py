"""Go modules provider plugin.

Builds the dependency graph of a go.mod from ``go mod graph`` (the module
requirement graph) and ``go list -m all`` (the versions selected by Minimal
Version Selection).

Supported inputs:
- go.mod
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from packageurl import PackageURL

from sbomgraph.config import ProviderConfig
from sbomgraph.exceptions import ManifestError
from sbomgraph.graph import DEFAULT_VERSION, DependencyGraph, ProjectInfo
from sbomgraph.ignore import find_ignored_dependencies
from sbomgraph.logging_config import logger
from sbomgraph.package_id import parse_package_id

from ..protocol import AnalysisType, Ecosystem
from ..utils import RunnerFactory, default_runner_factory, read_manifest, run_tool

GRAPH_ARGS = ["mod", "graph"]
LIST_ARGS = ["list", "-m", "all"]

# Pseudo-modules printed by go mod graph for the toolchain requirement
TOOLCHAIN_MODULES = ("go", "toolchain")

Edge = Tuple[PackageURL, PackageURL]


@dataclass
class GoRequirement:
    """A ``require`` directive entry from go.mod."""

    path: str
    version: str
    indirect: bool = False


@dataclass
class GoModFile:
    """The parts of go.mod used to build the graph."""

    module: str
    requires: List[GoRequirement] = field(default_factory=list)

    @property
    def direct_requires(self) -> List[GoRequirement]:
        return [r for r in self.requires if not r.indirect]


def _split_comment(line: str) -> Tuple[str, str]:
    code, _, comment = line.partition("//")
    return code.strip(), comment.strip()


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "`"):
        return value[1:-1]
    return value


def _parse_require(spec: str, comment: str) -> Optional[GoRequirement]:
    tokens = spec.split()
    if len(tokens) < 2:
        return None
    return GoRequirement(path=_unquote(tokens[0]), version=tokens[1], indirect="indirect" in comment)


def parse_go_mod(content: str, manifest_path: Path) -> GoModFile:
    """
    Parse the module path and require directives of a go.mod.

    Raises:
        ManifestError: If the file has no module directive
    """
    module: Optional[str] = None
    requires: List[GoRequirement] = []
    in_require_block = False
    in_other_block = False

    for raw_line in content.splitlines():
        code, comment = _split_comment(raw_line)
        if not code:
            continue

        if in_require_block or in_other_block:
            if code == ")":
                in_require_block = in_other_block = False
            elif in_require_block:
                requirement = _parse_require(code, comment)
                if requirement is not None:
                    requires.append(requirement)
            continue

        parts = code.split(None, 1)
        keyword = parts[0]
        rest = parts[1] if len(parts) > 1 else ""
        if "(" in keyword:
            keyword, _, rest = code.partition("(")
            rest = "(" + rest
        keyword = keyword.strip()
        rest = rest.strip()

        if keyword == "module":
            module = _unquote(rest)
        elif keyword == "require":
            if rest == "(":
                in_require_block = True
            else:
                requirement = _parse_require(rest, comment)
                if requirement is not None:
                    requires.append(requirement)
        elif rest == "(":
            in_other_block = True

    if not module:
        raise ManifestError(f"{manifest_path} has no module directive")
    return GoModFile(module=module, requires=requires)


def strip_require_keyword(content: str) -> str:
    """Drop ``require`` keywords so single-line requires read like block entries."""
    lines = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("require ") or stripped.startswith("require\t"):
            stripped = stripped[len("require") :].strip()
        lines.append(stripped)
    return "\n".join(lines)


def parse_selected_versions(output: str) -> Dict[str, str]:
    """
    Parse ``go list -m all`` output into module path -> selected version.

    The main module is printed without a version and is left out. Replacement
    directives (``=> ...``) do not change the selected version of the path.
    """
    selected: Dict[str, str] = {}
    for line in output.splitlines():
        tokens = line.split()
        if len(tokens) >= 2 and tokens[1] != "=>":
            selected[tokens[0]] = tokens[1]
    return selected


def parse_module_graph(output: str) -> Dict[str, List[str]]:
    """Parse ``go mod graph`` output into node -> children, preserving order."""
    adjacency: Dict[str, List[str]] = {}
    for line in output.splitlines():
        tokens = line.split()
        if len(tokens) != 2:
            continue
        parent, child = tokens
        if child.split("@", 1)[0] in TOOLCHAIN_MODULES:
            continue
        children = adjacency.setdefault(parent, [])
        if child not in children:
            children.append(child)
    return adjacency


def module_purl(path: str, version: str) -> PackageURL:
    """Build the golang Package URL of a module path."""
    namespace, _, name = path.rpartition("/")
    return PackageURL(type=Ecosystem.GOLANG.purl_type, namespace=namespace or None, name=name, version=version)


class GoModulesProvider:
    """
    Dependency provider for Go modules.

    Example:
        provider = GoModulesProvider(ProviderConfig(go_executable="/usr/local/go/bin/go"))
        graph = provider.provide(Path("go.mod"), AnalysisType.STACK)
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
        return "go-modules"

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.GOLANG

    def supports(self, manifest_path: Path) -> bool:
        return Path(manifest_path).name in self.ecosystem.manifests

    def provide(self, manifest_path: Path, analysis_type: AnalysisType) -> DependencyGraph:
        """Extract the dependency graph of a Go module."""
        manifest_path = Path(manifest_path)
        content = read_manifest(manifest_path)
        go_mod = parse_go_mod(content, manifest_path)
        project = ProjectInfo(name=go_mod.module, version=DEFAULT_VERSION)

        ignored = find_ignored_dependencies(
            strip_require_keyword(content),
            {r.path for r in go_mod.requires},
        )

        root = module_purl(project.name, project.version)
        graph = DependencyGraph()
        graph.add_root(root)
        logger.info(f"Analyzing Go module {project.name} ({analysis_type.value})")

        excluded: List[Edge] = []
        if analysis_type is AnalysisType.COMPONENT:
            selected = self._selected_versions(manifest_path) if go_mod.direct_requires else {}
            for requirement in go_mod.direct_requires:
                child = module_purl(requirement.path, selected.get(requirement.path, requirement.version))
                graph.add_dependency(root, child)
                if requirement.path in ignored:
                    excluded.append((root, child))
        else:
            self._populate_stack(graph, root, go_mod, manifest_path, ignored, excluded)

        if excluded:
            graph.apply_exclusions(excluded, self.config.ignore_strategy)

        logger.info(f"Resolved {len(graph.components)} Go modules ({len(graph)} edges)")
        return graph

    def _run_go(self, args: List[str], manifest_path: Path) -> Optional[str]:
        return run_tool(
            "go",
            args,
            cwd=manifest_path.resolve().parent,
            timeout=self.config.timeout,
            executable=self.config.executable_for(self.ecosystem.executable),
            runner_factory=self._runner_factory,
        )

    def _selected_versions(self, manifest_path: Path) -> Dict[str, str]:
        """Versions chosen by minimal version selection, keyed by module path."""
        list_output = self._run_go(LIST_ARGS, manifest_path)
        if list_output is None:
            logger.warning("go list -m all failed, using the versions recorded in go.mod and the module graph")
            return {}
        return parse_selected_versions(list_output)

    def _populate_stack(
        self,
        graph: DependencyGraph,
        root: PackageURL,
        go_mod: GoModFile,
        manifest_path: Path,
        ignored: Set[str],
        excluded: List[Edge],
    ) -> None:
        graph_output = self._run_go(GRAPH_ARGS, manifest_path)
        if graph_output is None:
            return

        selected = self._selected_versions(manifest_path)
        self._walk(graph, root, go_mod.module, parse_module_graph(graph_output), selected, ignored, excluded)

    def _walk(
        self,
        graph: DependencyGraph,
        root: PackageURL,
        main_module: str,
        adjacency: Dict[str, List[str]],
        selected: Dict[str, str],
        ignored: Set[str],
        excluded: List[Edge],
    ) -> None:
        """
        Depth-first, pre-order walk over the selected-version nodes.

        Every requirement edge is redirected to the version MVS selected for
        the child path, so the graph only holds modules that are in the build.
        """
        visited: Set[str] = {main_module}
        stack = [(root, iter(adjacency.get(main_module, [])))]

        while stack:
            parent, children = stack[-1]
            node = next(children, None)
            if node is None:
                stack.pop()
                continue

            parsed = parse_package_id(node)
            if parsed is None:
                logger.warning(f"Could not parse module id, skipping: {node}")
                continue

            path = parsed.name
            if path == main_module:
                continue
            version = selected.get(path, parsed.version)
            child = module_purl(path, version)

            if not graph.add_dependency(parent, child):
                continue
            if path in ignored:
                excluded.append((parent, child))

            key = f"{path}@{version}"
            if key in visited:
                continue
            visited.add(key)
            stack.append((child, iter(adjacency.get(key, []))))
