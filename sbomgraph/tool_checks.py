"""Availability checks for the native ecosystem tools.

Providers shell out to each ecosystem's own tooling (cargo, go). The tools are
optional: when one is missing, extraction still produces a root-only graph and
these helpers supply installation hints.
"""

import os
import shutil
from dataclasses import dataclass, field
from typing import Optional

from .logging_config import logger


@dataclass
class ToolInfo:
    """Information about an external tool."""

    name: str
    command: str
    description: str
    install_instructions: str
    homepage: str
    required_for: list[str] = field(default_factory=list)


EXTERNAL_TOOLS: dict[str, ToolInfo] = {
    "cargo": ToolInfo(
        name="Cargo",
        command="cargo",
        description="Rust package manager (provides `cargo metadata`)",
        install_instructions=(
            "Install via rustup:\n"
            "  - curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh\n"
            "  - macOS: brew install rust"
        ),
        homepage="https://doc.rust-lang.org/cargo/",
        required_for=["Rust manifests (Cargo.toml)"],
    ),
    "go": ToolInfo(
        name="Go",
        command="go",
        description="Go toolchain (provides `go mod graph` and `go list -m`)",
        install_instructions=(
            "Install via package manager:\n"
            "  - macOS: brew install go\n"
            "  - Linux: See https://go.dev/doc/install"
        ),
        homepage="https://go.dev",
        required_for=["Go manifests (go.mod)"],
    ),
}


@dataclass
class ToolStatus:
    """Status of an external tool."""

    name: str
    available: bool
    path: Optional[str] = None
    info: Optional[ToolInfo] = None


def check_tool_available(command: str) -> tuple[bool, Optional[str]]:
    """
    Check if a command-line tool is available on the system.

    Args:
        command: The command to check (e.g., "cargo", "go")

    Returns:
        Tuple of (is_available, path_if_found)
    """
    path = shutil.which(command)
    return (path is not None, path)


def resolve_executable(command: str, override: Optional[str] = None) -> Optional[str]:
    """
    Resolve the executable used to run a tool.

    An explicit override wins when it points at an executable file; otherwise
    the command is looked up on PATH.

    Args:
        command: Tool command name (e.g., "cargo")
        override: Explicitly configured executable path

    Returns:
        Path to the executable, or None if it cannot be found
    """
    if override:
        if os.path.isfile(override) and os.access(override, os.X_OK):
            return override
        # Allow bare command names as overrides, resolved on PATH
        found = shutil.which(override)
        if found:
            return found
        logger.warning(f"Configured {command} executable not found: {override}")
        return None

    _, path = check_tool_available(command)
    return path


def check_all_tools(overrides: Optional[dict[str, Optional[str]]] = None) -> dict[str, ToolStatus]:
    """
    Check availability of all external tools.

    Args:
        overrides: Optional mapping of command -> configured executable path

    Returns:
        Dictionary mapping tool commands to their status
    """
    overrides = overrides or {}
    results = {}
    for command, info in EXTERNAL_TOOLS.items():
        path = resolve_executable(command, overrides.get(command))
        results[command] = ToolStatus(name=info.name, available=path is not None, path=path, info=info)
    return results


def get_tool_install_message(command: str) -> str:
    """
    Get a formatted message with installation instructions for a tool.

    Args:
        command: Tool command name

    Returns:
        Formatted installation instructions string
    """
    info = EXTERNAL_TOOLS.get(command)
    if info is None:
        return f"Install {command} and make sure it is on PATH."
    return f"{info.name} ({info.homepage})\n{info.install_instructions}"
