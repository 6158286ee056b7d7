"""
CycloneDX rendering of dependency graphs.

The graph root becomes ``metadata.component``, every other node a library
component, and each node gets one entry in the ``dependencies`` section. The
canonical Package URL string of a node is used as its ``bom-ref``.
"""

from typing import Dict, List, Optional, Type

from cyclonedx.model import ExternalReference, ExternalReferenceType, XsUri
from cyclonedx.model.bom import Bom, OrganizationalEntity, Tool
from cyclonedx.model.component import Component, ComponentType
from packageurl import PackageURL

from . import __version__
from .graph import DependencyGraph, coordinate_key
from .logging_config import logger

SBOMGRAPH_TOOL_NAME = "sbomgraph"
SBOMGRAPH_VENDOR_NAME = "sbomgraph"

# Lazy imports to avoid loading all versions upfront
_CYCLONEDX_OUTPUTTERS: Dict[str, Optional[Type]] = {
    "1.4": None,  # JsonV1Dot4
    "1.5": None,  # JsonV1Dot5
    "1.6": None,  # JsonV1Dot6
}

DEFAULT_CYCLONEDX_VERSION = "1.6"


def _get_cyclonedx_outputter(spec_version: Optional[str]) -> Type:
    """
    Get the CycloneDX JSON outputter class for a spec version.

    Args:
        spec_version: CycloneDX spec version (e.g., "1.5", "1.6")

    Returns:
        Outputter class for the specified version

    Raises:
        ValueError: If the version is not supported
    """
    if spec_version:
        major_minor = ".".join(spec_version.split(".")[:2])
    else:
        major_minor = DEFAULT_CYCLONEDX_VERSION

    if major_minor in _CYCLONEDX_OUTPUTTERS and _CYCLONEDX_OUTPUTTERS[major_minor] is None:
        if major_minor == "1.4":
            from cyclonedx.output.json import JsonV1Dot4

            _CYCLONEDX_OUTPUTTERS["1.4"] = JsonV1Dot4
        elif major_minor == "1.5":
            from cyclonedx.output.json import JsonV1Dot5

            _CYCLONEDX_OUTPUTTERS["1.5"] = JsonV1Dot5
        elif major_minor == "1.6":
            from cyclonedx.output.json import JsonV1Dot6

            _CYCLONEDX_OUTPUTTERS["1.6"] = JsonV1Dot6

    outputter_class = _CYCLONEDX_OUTPUTTERS.get(major_minor)
    if outputter_class is None:
        raise ValueError(
            f"Unsupported CycloneDX version: {spec_version}. "
            f"Supported versions: {', '.join(get_supported_cyclonedx_versions())}"
        )
    return outputter_class


def get_supported_cyclonedx_versions() -> List[str]:
    """
    Get list of supported CycloneDX versions.

    Returns:
        List of version strings (e.g., ["1.4", "1.5", "1.6"])
    """
    return sorted(_CYCLONEDX_OUTPUTTERS.keys())


def _component(purl: PackageURL, component_type: ComponentType) -> Component:
    return Component(
        name=purl.name,
        group=purl.namespace,
        version=purl.version,
        type=component_type,
        purl=purl,
        bom_ref=coordinate_key(purl),
    )


def _add_sbomgraph_tool(bom: Bom) -> None:
    tool = Tool(
        vendor=OrganizationalEntity(name=SBOMGRAPH_VENDOR_NAME),
        name=SBOMGRAPH_TOOL_NAME,
        version=__version__,
    )
    tool.external_references.add(
        ExternalReference(type=ExternalReferenceType.WEBSITE, url=XsUri("https://pypi.org/project/sbomgraph/"))
    )
    bom.metadata.tools.tools.add(tool)


def graph_to_bom(graph: DependencyGraph) -> Bom:
    """
    Convert a dependency graph to a CycloneDX BOM.

    Args:
        graph: Graph with a root

    Returns:
        Bom with the root as metadata component and one dependency entry per node

    Raises:
        ValueError: If the graph has no root
    """
    if graph.root is None:
        raise ValueError("Cannot serialize a dependency graph without a root")

    bom = Bom()
    _add_sbomgraph_tool(bom)

    root = _component(graph.root, ComponentType.APPLICATION)
    bom.metadata.component = root

    components: Dict[str, Component] = {coordinate_key(graph.root): root}
    for purl in graph.components:
        component = _component(purl, ComponentType.LIBRARY)
        components[coordinate_key(purl)] = component
        bom.components.add(component)

    for key, component in components.items():
        children = [components[coordinate_key(child)] for child in graph.children_of(component.purl)]
        bom.register_dependency(component, children)

    logger.debug(f"Built CycloneDX BOM with {len(components)} components")
    return bom


def serialize_cyclonedx_bom(bom: Bom, spec_version: Optional[str] = None) -> str:
    """
    Serialize a CycloneDX BOM to a JSON string.

    Args:
        bom: The CycloneDX BOM object to serialize
        spec_version: CycloneDX spec version; defaults to 1.6

    Returns:
        JSON string representation of the BOM

    Raises:
        ValueError: If spec_version is unsupported
    """
    outputter_class = _get_cyclonedx_outputter(spec_version)

    logger.debug(f"Serializing CycloneDX BOM using version {spec_version or DEFAULT_CYCLONEDX_VERSION}")
    outputter = outputter_class(bom)
    return outputter.output_as_string()


def serialize_graph(graph: DependencyGraph, spec_version: str = DEFAULT_CYCLONEDX_VERSION) -> str:
    """
    Render a dependency graph as a CycloneDX JSON document.

    Examples:
        >>> graph = extract("Cargo.toml")
        >>> json_str = serialize_graph(graph, "1.5")
    """
    return serialize_cyclonedx_bom(graph_to_bom(graph), spec_version)
