"""Command-line interface for sbomgraph.

Subcommands:
    sbomgraph stack Cargo.toml          # Full transitive graph as CycloneDX JSON
    sbomgraph component go.mod          # Direct dependencies only
    sbomgraph tools                     # Show which ecosystem tools are installed

Configuration is resolved here, once: CLI options win over the
SBOMGRAPH_* environment variables, which win over the defaults.
"""

import sys
from pathlib import Path
from typing import Callable, Mapping, Optional

import click

from .. import __version__
from .._providers import AnalysisType
from ..config import ProviderConfig
from ..console import print_graph_summary, print_tool_status
from ..exceptions import SbomgraphError
from ..extraction import extract
from ..ignore import ExclusionStrategy
from ..logging_config import configure_logging, logger
from ..serialization import DEFAULT_CYCLONEDX_VERSION, get_supported_cyclonedx_versions, serialize_graph
from ..tool_checks import check_all_tools

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def build_config(
    timeout: Optional[float] = None,
    cargo: Optional[str] = None,
    go: Optional[str] = None,
    ignore_strategy: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProviderConfig:
    """
    Build the provider configuration from CLI options and environment variables.

    Args:
        timeout: --timeout value
        cargo: --cargo value
        go: --go value
        ignore_strategy: --ignore-strategy value
        environ: Environment to read fallbacks from (defaults to os.environ)

    Returns:
        Validated ProviderConfig

    Raises:
        ConfigurationError: If a value is invalid
    """
    config = ProviderConfig.from_env(environ)

    if timeout is not None:
        config.timeout = timeout
    if cargo:
        config.cargo_executable = cargo
    if go:
        config.go_executable = go
    if ignore_strategy:
        config.ignore_strategy = ExclusionStrategy.from_string(ignore_strategy)

    config.validate()
    return config


def analysis_options(func: Callable) -> Callable:
    """Options shared by the analysis subcommands."""
    options = [
        click.argument("manifest", type=click.Path(dir_okay=False, path_type=Path)),
        click.option(
            "-o",
            "--output-file",
            type=click.Path(dir_okay=False, path_type=Path),
            default=None,
            help="Write the SBOM to this file instead of standard output.",
        ),
        click.option(
            "--spec-version",
            type=click.Choice(get_supported_cyclonedx_versions()),
            default=DEFAULT_CYCLONEDX_VERSION,
            show_default=True,
            help="CycloneDX spec version of the output.",
        ),
        click.option("--summary", is_flag=True, help="Print a summary table of the graph to standard error."),
        click.option(
            "--timeout",
            type=float,
            default=None,
            help="Seconds the native tool may run [env: SBOMGRAPH_TIMEOUT, default: 5].",
        ),
        click.option("--cargo", default=None, help="Path to the cargo executable [env: SBOMGRAPH_CARGO_PATH]."),
        click.option("--go", default=None, help="Path to the go executable [env: SBOMGRAPH_GO_PATH]."),
        click.option(
            "--ignore-strategy",
            type=click.Choice([s.value for s in ExclusionStrategy], case_sensitive=False),
            default=None,
            help="How ignored dependencies prune their subtrees [env: SBOMGRAPH_IGNORE_STRATEGY].",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def run_analysis(
    manifest: Path,
    analysis_type: AnalysisType,
    output_file: Optional[Path],
    spec_version: str,
    summary: bool,
    timeout: Optional[float],
    cargo: Optional[str],
    go: Optional[str],
    ignore_strategy: Optional[str],
) -> None:
    """Extract, serialize and emit the graph of one manifest. Exits 1 on failure."""
    try:
        config = build_config(timeout=timeout, cargo=cargo, go=go, ignore_strategy=ignore_strategy)
        graph = extract(manifest, analysis_type, config)
        document = serialize_graph(graph, spec_version)
    except SbomgraphError as e:
        logger.debug(f"Analysis of {manifest} failed: {e!r}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_file is not None:
        output_file.write_text(document, encoding="utf-8")
        logger.info(f"Wrote CycloneDX {spec_version} SBOM to {output_file}")
    else:
        click.echo(document)

    if summary:
        print_graph_summary(graph, analysis_type.value)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "-V", "--version", prog_name="sbomgraph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Format of log records written to standard error.",
)
def cli(verbose: bool, log_format: str) -> None:
    """Extract dependency graphs from project manifests as CycloneDX SBOMs."""
    configure_logging(level="DEBUG" if verbose else "INFO", structured=log_format == "json")


@cli.command()
@analysis_options
def stack(manifest: Path, **options) -> None:
    """Full transitive dependency graph of MANIFEST."""
    run_analysis(manifest, AnalysisType.STACK, **options)


@cli.command()
@analysis_options
def component(manifest: Path, **options) -> None:
    """Direct dependencies of MANIFEST."""
    run_analysis(manifest, AnalysisType.COMPONENT, **options)


@cli.command()
@click.option("--cargo", default=None, help="Path to the cargo executable [env: SBOMGRAPH_CARGO_PATH].")
@click.option("--go", default=None, help="Path to the go executable [env: SBOMGRAPH_GO_PATH].")
def tools(cargo: Optional[str], go: Optional[str]) -> None:
    """Show which ecosystem tools are available."""
    try:
        config = build_config(cargo=cargo, go=go)
    except SbomgraphError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    statuses = check_all_tools({"cargo": config.cargo_executable, "go": config.go_executable})
    print_tool_status(statuses)


def main() -> None:
    """Console script entry point."""
    cli()
