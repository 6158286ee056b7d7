"""Rich console utilities for sbomgraph.

Standard output is reserved for the SBOM document, so the shared console
writes to standard error.
"""

import os
from typing import Any, Dict, List, Tuple

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from .graph import DependencyGraph
from .tool_checks import ToolStatus

IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "highlight": "magenta",
    }
)

# Shared console instance
console = Console(
    theme=custom_theme,
    stderr=True,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)


def print_summary_table(title: str, data: List[Tuple[str, Any]]) -> None:
    """
    Print a two-column summary table.

    Args:
        title: Table title
        data: List of (label, value) tuples
    """
    if not data:
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for label, value in data:
        table.add_row(label, str(value))

    console.print(table)


def print_graph_summary(graph: DependencyGraph, analysis_type: str) -> None:
    """Print the root identity and size of an extracted graph."""
    root = graph.root
    data: List[Tuple[str, Any]] = [
        ("Root", root.to_string() if root is not None else "none"),
        ("Analysis", analysis_type),
        ("Dependencies", len(graph.components)),
        ("Direct dependencies", len(graph.children_of(root)) if root is not None else 0),
        ("Edges", len(graph)),
    ]
    print_summary_table("Dependency Graph", data)


def print_tool_status(statuses: Dict[str, ToolStatus]) -> None:
    """Print availability of the native ecosystem tools."""
    table = Table(title="Ecosystem Tools", show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Path / Used for")

    for status in statuses.values():
        used_for = ", ".join(status.info.required_for) if status.info else ""
        if status.available:
            table.add_row(status.name, "[success]available[/success]", status.path or "")
        else:
            table.add_row(status.name, "[warning]missing[/warning]", used_for)

    console.print(table)
