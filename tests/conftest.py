"""Pytest configuration and shared fixtures for all tests."""

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

CRATES_IO = "registry+https://github.com/rust-lang/crates.io-index"


def crate_id(name: str, version: str) -> str:
    """Modern cargo package id of a crates.io package."""
    return f"{CRATES_IO}#{name}@{version}"


class FakeRunner:
    """Stands in for BoundedProcessRunner, answering by argument list."""

    def __init__(self, outputs: Optional[Dict[Tuple[str, ...], Optional[str]]] = None, error: Exception = None):
        self.outputs = outputs or {}
        self.error = error
        self.calls: List[List[str]] = []
        self.timeouts: List[float] = []

    def factory(self, timeout: float) -> "FakeRunner":
        self.timeouts.append(timeout)
        return self

    def run(self, cmd, cwd=None, command_name=None):
        self.calls.append(list(cmd))
        if self.error is not None:
            raise self.error
        return self.outputs.get(tuple(cmd[1:]))


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep SBOMGRAPH_* variables from the developer's shell out of the tests."""
    for name in ("SBOMGRAPH_CARGO_PATH", "SBOMGRAPH_GO_PATH", "SBOMGRAPH_TIMEOUT", "SBOMGRAPH_IGNORE_STRATEGY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tools_on_path(monkeypatch):
    """Pretend cargo and go are installed."""
    monkeypatch.setattr(
        "sbomgraph._providers.utils.resolve_executable",
        lambda command, override=None: override or f"/usr/bin/{command}",
    )


@pytest.fixture
def tools_missing(monkeypatch):
    """Pretend neither cargo nor go is installed."""
    monkeypatch.setattr("sbomgraph._providers.utils.resolve_executable", lambda command, override=None: None)


APP_CARGO_TOML = """\
[package]
name = "app"
version = "0.1.0"
edition = "2021"

[dependencies]
serde = "1.0"
anyhow = "1.0"
regex = "1.7"
memchr = "2.5"

[dev-dependencies]
criterion = "0.4"

[build-dependencies]
cc = "1.0"
"""

APP_ID = "path+file:///work/app#app@0.1.0"


def _dep(name: str, version: str, *kinds: Optional[str]) -> dict:
    return {
        "name": name,
        "pkg": crate_id(name, version),
        "dep_kinds": [{"kind": kind, "target": None} for kind in (kinds or (None,))],
    }


def _package(package_id: str) -> dict:
    name, version = package_id.rsplit("#", 1)[1].split("@", 1)
    return {"id": package_id, "name": name, "version": version}


def _node(node_id: str, *deps: dict) -> dict:
    return {
        "id": node_id,
        "dependencies": [d["pkg"] for d in deps],
        "deps": list(deps),
        "features": [],
    }


def app_metadata() -> dict:
    """
    cargo metadata for APP_CARGO_TOML.

    app -> serde -> serde_derive -> proc-macro2
    app -> anyhow
    app -> regex -> aho-corasick -> memchr
                 -> memchr
    app -> memchr (dev + normal)
    app -> criterion (dev only), cc (build only)
    """
    nodes = [
        _node(
            APP_ID,
            _dep("serde", "1.0.136"),
            _dep("anyhow", "1.0.72"),
            _dep("regex", "1.7.0"),
            _dep("criterion", "0.4.0", "dev"),
            _dep("cc", "1.0.79", "build"),
            _dep("memchr", "2.5.0", "dev", None),
        ),
        _node(crate_id("serde", "1.0.136"), _dep("serde_derive", "1.0.136")),
        _node(crate_id("serde_derive", "1.0.136"), _dep("proc-macro2", "1.0.36")),
        _node(crate_id("proc-macro2", "1.0.36")),
        _node(crate_id("anyhow", "1.0.72")),
        _node(crate_id("regex", "1.7.0"), _dep("aho-corasick", "1.0.0"), _dep("memchr", "2.5.0")),
        _node(crate_id("aho-corasick", "1.0.0"), _dep("memchr", "2.5.0")),
        _node(crate_id("memchr", "2.5.0")),
        _node(crate_id("criterion", "0.4.0")),
        _node(crate_id("cc", "1.0.79")),
    ]
    return {
        "packages": [_package(node["id"]) for node in nodes],
        "workspace_members": [APP_ID],
        "workspace_default_members": [APP_ID],
        "resolve": {"nodes": nodes, "root": APP_ID},
        "target_directory": "/work/app/target",
        "version": 1,
        "workspace_root": "/work/app",
        "metadata": None,
    }


@pytest.fixture
def app_project(tmp_path) -> Path:
    """A package manifest whose cargo metadata is app_metadata()."""
    manifest = tmp_path / "Cargo.toml"
    manifest.write_text(APP_CARGO_TOML)
    return manifest


@pytest.fixture
def app_runner() -> FakeRunner:
    return FakeRunner({("metadata", "--format-version", "1"): json.dumps(app_metadata())})


@pytest.fixture
def process_runner(monkeypatch, tools_on_path) -> FakeRunner:
    """Route every BoundedProcessRunner.run call to a FakeRunner loaded with app_metadata()."""
    fake = FakeRunner({("metadata", "--format-version", "1"): json.dumps(app_metadata())})

    def run(self, cmd, cwd=None, command_name=None):
        fake.timeouts.append(self.timeout)
        return fake.run(cmd, cwd=cwd, command_name=command_name)

    monkeypatch.setattr("sbomgraph._providers.runner.BoundedProcessRunner.run", run)
    return fake
