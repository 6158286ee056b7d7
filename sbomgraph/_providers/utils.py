"""Shared utilities for dependency providers."""

from pathlib import Path
from typing import Callable, List, Optional, Union

from sbomgraph.exceptions import CommandExecutionError, ManifestError
from sbomgraph.logging_config import logger
from sbomgraph.tool_checks import get_tool_install_message, resolve_executable

from .runner import BoundedProcessRunner

RunnerFactory = Callable[[float], BoundedProcessRunner]


def default_runner_factory(timeout: float) -> BoundedProcessRunner:
    """Create a process runner with the given time budget."""
    return BoundedProcessRunner(timeout=timeout)


def read_manifest(manifest_path: Union[str, Path]) -> str:
    """
    Read a manifest as UTF-8 text.

    Args:
        manifest_path: Path to the manifest file

    Returns:
        The manifest content

    Raises:
        ManifestError: If the path is not a readable regular file or is not
            valid UTF-8
    """
    path = Path(manifest_path)
    if not path.exists():
        raise ManifestError(f"Manifest not found: {path}")
    if not path.is_file():
        raise ManifestError(f"Manifest is not a regular file: {path}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise ManifestError(f"Failed to read manifest {path}: {e}")

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError(f"Manifest {path} is not valid UTF-8: {e}")


def run_tool(
    command: str,
    args: List[str],
    cwd: Path,
    timeout: float,
    executable: Optional[str] = None,
    runner_factory: RunnerFactory = default_runner_factory,
) -> Optional[str]:
    """
    Run an ecosystem tool and return its output.

    Failures to locate, run or finish the tool are logged and reported as
    "no data" so callers can fall back to a root-only graph.

    Args:
        command: Tool command name (e.g., "cargo")
        args: Arguments passed after the executable
        cwd: Directory the tool runs in
        timeout: Seconds the tool may run
        executable: Explicitly configured executable path
        runner_factory: Builds the process runner for the timeout

    Returns:
        Tool output, or None when the tool produced nothing usable
    """
    resolved = resolve_executable(command, executable)
    if resolved is None:
        logger.warning(
            f"{command} not found, dependencies will not be resolved. Install: {get_tool_install_message(command)}"
        )
        return None

    command_name = " ".join([command] + args[:1])
    runner = runner_factory(timeout)
    try:
        return runner.run([resolved] + args, cwd=cwd, command_name=command_name)
    except CommandExecutionError as e:
        logger.warning(f"{command_name} failed, dependencies will not be resolved: {e}")
        return None
