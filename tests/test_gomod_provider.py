"""Tests for the GoModulesProvider plugin."""

import unittest
from pathlib import Path

import pytest
from conftest import FakeRunner

from sbomgraph._providers import AnalysisType, Ecosystem
from sbomgraph._providers.providers import GoModulesProvider
from sbomgraph._providers.providers.gomod import (
    module_purl,
    parse_go_mod,
    parse_module_graph,
    parse_selected_versions,
    strip_require_keyword,
)
from sbomgraph.config import ProviderConfig
from sbomgraph.exceptions import ManifestError
from sbomgraph.ignore import ExclusionStrategy

GRAPH_ARGS = ("mod", "graph")
LIST_ARGS = ("list", "-m", "all")

GO_MOD = """\
module github.com/example/service

go 1.21

require (
\tgithub.com/gin-gonic/gin v1.9.0
\tgithub.com/stretchr/testify v1.8.1
\tgolang.org/x/text v0.7.0 // indirect
)

require github.com/google/uuid v1.3.0

replace (
\tgithub.com/old/module v1.0.0 => github.com/new/module v1.1.0
)
"""

# gin 1.9.0 asks for x/text 0.5.0 but MVS selects 0.7.0
GO_MOD_GRAPH = """\
github.com/example/service github.com/gin-gonic/gin@v1.9.0
github.com/example/service github.com/stretchr/testify@v1.8.1
github.com/example/service golang.org/x/text@v0.7.0
github.com/example/service github.com/google/uuid@v1.3.0
github.com/example/service go@1.21
github.com/gin-gonic/gin@v1.9.0 golang.org/x/text@v0.5.0
github.com/gin-gonic/gin@v1.9.0 github.com/stretchr/testify@v1.8.1
github.com/stretchr/testify@v1.8.1 github.com/davecgh/go-spew@v1.1.1
golang.org/x/text@v0.5.0 golang.org/x/tools@v0.1.0
golang.org/x/text@v0.7.0 golang.org/x/tools@v0.1.12
golang.org/x/tools@v0.1.12 golang.org/x/text@v0.7.0
go@1.21 toolchain@go1.21.0
"""

GO_LIST_ALL = """\
github.com/example/service
github.com/davecgh/go-spew v1.1.1
github.com/gin-gonic/gin v1.9.0
github.com/google/uuid v1.3.0
github.com/stretchr/testify v1.8.1
golang.org/x/text v0.7.0
golang.org/x/tools v0.1.12
"""


def _edges(graph) -> list:
    return [(parent.namespace, parent.name, child.namespace, child.name, child.version) for parent, child in graph.edges]


def _paths(graph) -> list:
    return [f"{c.namespace}/{c.name}" for c in graph.components]


@pytest.fixture
def go_project(tmp_path) -> Path:
    manifest = tmp_path / "go.mod"
    manifest.write_text(GO_MOD)
    return manifest


@pytest.fixture
def go_runner() -> FakeRunner:
    return FakeRunner({GRAPH_ARGS: GO_MOD_GRAPH, LIST_ARGS: GO_LIST_ALL})


class TestGoModParsing(unittest.TestCase):
    def test_module_and_requires(self):
        go_mod = parse_go_mod(GO_MOD, Path("go.mod"))

        self.assertEqual(go_mod.module, "github.com/example/service")
        self.assertEqual(
            [(r.path, r.version, r.indirect) for r in go_mod.requires],
            [
                ("github.com/gin-gonic/gin", "v1.9.0", False),
                ("github.com/stretchr/testify", "v1.8.1", False),
                ("golang.org/x/text", "v0.7.0", True),
                ("github.com/google/uuid", "v1.3.0", False),
            ],
        )
        self.assertEqual(len(go_mod.direct_requires), 3)

    def test_require_block_without_space(self):
        content = "module example.com/m\n\nrequire(\n    github.com/a/b v1.0.0 //trustify-da-ignore\n)\n"
        go_mod = parse_go_mod(content, Path("go.mod"))
        self.assertEqual([r.path for r in go_mod.requires], ["github.com/a/b"])

    def test_tab_after_require_keyword(self):
        go_mod = parse_go_mod("module example.com/m\nrequire\tgithub.com/a/b v1.0.0\n", Path("go.mod"))
        self.assertEqual([(r.path, r.version) for r in go_mod.requires], [("github.com/a/b", "v1.0.0")])

    def test_quoted_module_path(self):
        go_mod = parse_go_mod('module "example.com/quoted"\n', Path("go.mod"))
        self.assertEqual(go_mod.module, "example.com/quoted")

    def test_missing_module_directive(self):
        with self.assertRaises(ManifestError):
            parse_go_mod("go 1.21\n\nrequire github.com/a/b v1.0.0\n", Path("go.mod"))

    def test_strip_require_keyword(self):
        stripped = strip_require_keyword("require github.com/a/b v1.0.0 // trustify-da-ignore\n")
        self.assertEqual(stripped, "github.com/a/b v1.0.0 // trustify-da-ignore")


class TestToolOutputParsing:
    def test_selected_versions(self):
        selected = parse_selected_versions(GO_LIST_ALL + "github.com/x/y v1.0.0 => ../y\n")
        assert selected["golang.org/x/text"] == "v0.7.0"
        assert selected["github.com/x/y"] == "v1.0.0"
        assert "github.com/example/service" not in selected

    def test_module_graph_skips_toolchain(self):
        adjacency = parse_module_graph(GO_MOD_GRAPH)
        assert "go@1.21" not in adjacency["github.com/example/service"]
        assert "go@1.21" not in adjacency

    def test_module_purl(self):
        purl = module_purl("github.com/labstack/echo/v4", "v4.1.18")
        assert purl.to_string() == "pkg:golang/github.com/labstack/echo/v4@v4.1.18"
        assert purl.namespace == "github.com/labstack/echo"
        assert purl.name == "v4"


class TestGoModulesProvider:
    def test_stack_follows_selected_versions(self, go_project, go_runner, tools_on_path):
        graph = GoModulesProvider(runner_factory=go_runner.factory).provide(go_project, AnalysisType.STACK)

        assert graph.root.to_string() == "pkg:golang/github.com/example/service@0.0.0"
        assert _edges(graph) == [
            ("github.com/example", "service", "github.com/gin-gonic", "gin", "v1.9.0"),
            ("github.com/gin-gonic", "gin", "golang.org/x", "text", "v0.7.0"),
            ("golang.org/x", "text", "golang.org/x", "tools", "v0.1.12"),
            ("golang.org/x", "tools", "golang.org/x", "text", "v0.7.0"),
            ("github.com/gin-gonic", "gin", "github.com/stretchr", "testify", "v1.8.1"),
            ("github.com/stretchr", "testify", "github.com/davecgh", "go-spew", "v1.1.1"),
            ("github.com/example", "service", "github.com/stretchr", "testify", "v1.8.1"),
            ("github.com/example", "service", "golang.org/x", "text", "v0.7.0"),
            ("github.com/example", "service", "github.com/google", "uuid", "v1.3.0"),
        ]
        assert go_runner.calls == [["/usr/bin/go", "mod", "graph"], ["/usr/bin/go", "list", "-m", "all"]]

    def test_component_uses_direct_requires(self, go_project, tools_on_path):
        runner = FakeRunner()

        graph = GoModulesProvider(runner_factory=runner.factory).provide(go_project, AnalysisType.COMPONENT)

        assert _paths(graph) == ["github.com/gin-gonic/gin", "github.com/stretchr/testify", "github.com/google/uuid"]
        assert runner.calls == [["/usr/bin/go", "list", "-m", "all"]]
        assert graph.components[0].version == "v1.9.0"

    def test_component_reports_selected_versions(self, tmp_path, tools_on_path):
        manifest = tmp_path / "go.mod"
        manifest.write_text("module example.com/m\n\nrequire golang.org/x/text v0.5.0\n")
        runner = FakeRunner({LIST_ARGS: "example.com/m\ngolang.org/x/text v0.7.0\n"})

        graph = GoModulesProvider(runner_factory=runner.factory).provide(manifest, AnalysisType.COMPONENT)

        assert [c.to_string() for c in graph.components] == ["pkg:golang/golang.org/x/text@v0.7.0"]

    def test_component_and_stack_agree_on_versions(self, go_project, go_runner, tools_on_path):
        provider = GoModulesProvider(runner_factory=go_runner.factory)

        component = provider.provide(go_project, AnalysisType.COMPONENT)
        stack = provider.provide(go_project, AnalysisType.STACK)

        stack_versions = {c.to_string() for c in stack.components}
        assert all(c.to_string() in stack_versions for c in component.components)

    def test_stack_without_go_list(self, go_project, tools_on_path):
        runner = FakeRunner({GRAPH_ARGS: "github.com/example/service github.com/google/uuid@v1.3.0\n"})

        graph = GoModulesProvider(runner_factory=runner.factory).provide(go_project, AnalysisType.STACK)

        assert _paths(graph) == ["github.com/google/uuid"]

    def test_go_not_installed(self, go_project, tools_missing):
        graph = GoModulesProvider().provide(go_project, AnalysisType.STACK)
        assert graph.root is not None
        assert len(graph) == 0

    def test_configured_go_executable(self, go_project, go_runner, tools_on_path):
        config = ProviderConfig(go_executable="/usr/local/go/bin/go")
        GoModulesProvider(config, runner_factory=go_runner.factory).provide(go_project, AnalysisType.STACK)
        assert go_runner.calls[0][0] == "/usr/local/go/bin/go"

    def test_ignored_module_insensitive(self, tmp_path, go_runner, tools_on_path):
        manifest = tmp_path / "go.mod"
        manifest.write_text(GO_MOD.replace("gin v1.9.0", "gin v1.9.0 // trustify-da-ignore"))

        graph = GoModulesProvider(runner_factory=go_runner.factory).provide(manifest, AnalysisType.STACK)

        # everything below gin goes, including modules the root also requires
        assert _paths(graph) == ["github.com/google/uuid"]

    def test_ignored_module_sensitive(self, tmp_path, go_runner, tools_on_path):
        manifest = tmp_path / "go.mod"
        manifest.write_text(GO_MOD.replace("gin v1.9.0", "gin v1.9.0 // trustify-da-ignore"))
        config = ProviderConfig(ignore_strategy=ExclusionStrategy.SENSITIVE)

        graph = GoModulesProvider(config, runner_factory=go_runner.factory).provide(manifest, AnalysisType.STACK)

        paths = _paths(graph)
        assert "github.com/gin-gonic/gin" not in paths
        assert "github.com/stretchr/testify" in paths
        assert "golang.org/x/tools" in paths

    def test_all_requires_ignored(self, tmp_path, tools_on_path):
        manifest = tmp_path / "go.mod"
        manifest.write_text(
            "module github.com/devfile-samples/devfile-sample-go-basic\n\ngo 1.19\n\nrequire(\n"
            "    github.com/labstack/echo/v4 v4.1.18-0.20201215153152-4422e3b66b9f //trustify-da-ignore\n"
            "    github.com/gin-gonic/gin v1.6.0 //trustify-da-ignore\n"
            "    gopkg.in/yaml.v3  v3.0.0-20220521103104-8f96da9f5d5e //trustify-da-ignore\n"
            ")\n"
        )

        graph = GoModulesProvider(runner_factory=FakeRunner().factory).provide(manifest, AnalysisType.COMPONENT)

        assert graph.root.name == "devfile-sample-go-basic"
        assert len(graph) == 0

    def test_single_line_require_ignored(self, tmp_path, tools_on_path):
        manifest = tmp_path / "go.mod"
        manifest.write_text(
            "module example.com/m\n\n"
            "require github.com/a/b v1.0.0 // exhortignore\n"
            "require github.com/c/d v2.0.0\n"
        )

        graph = GoModulesProvider(runner_factory=FakeRunner().factory).provide(manifest, AnalysisType.COMPONENT)

        assert _paths(graph) == ["github.com/c/d"]

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ManifestError):
            GoModulesProvider().provide(tmp_path / "go.mod", AnalysisType.STACK)

    def test_identity(self):
        provider = GoModulesProvider()
        assert provider.ecosystem is Ecosystem.GOLANG
        assert provider.supports(Path("go.mod"))
        assert not provider.supports(Path("go.sum"))
