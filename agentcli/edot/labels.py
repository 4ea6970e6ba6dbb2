"""Elastic-specific labelling and metadata for EDOT collector pipelines."""

from __future__ import annotations

from collections.abc import Iterable

from agentcli.model import Node
from agentcli.otel.registry import ComponentDescriptor
from agentcli.otel.zpages import ComponentStatus, PipelineStatus, PipelineTopology

ELASTIC_SUFFIX = " [Elastic]"


def is_elastic_component(name: str) -> bool:
    """Tell whether a component name refers to an Elastic-provided component."""
    value = name.strip().lower()
    return "elastic" in value or "ecsformatprocessor" in value


def elastic_node_label(
    component_name: str, kind: str, pipeline_name: str, descriptor: ComponentDescriptor
) -> str:
    """Label a node by its descriptor, marking Elastic components."""
    label = descriptor.name.strip() or component_name
    if is_elastic_component(component_name):
        return label + ELASTIC_SUFFIX
    return label


def elastic_metadata(nodes: Iterable[Node]) -> dict[str, str]:
    """List the Elastic components among the nodes, or nothing if there are none."""
    elastic_nodes = sorted(node.id for node in nodes if is_elastic_component(node.id))
    if not elastic_nodes:
        return {}
    return {"elastic_components": ",".join(elastic_nodes)}


def _copy_components(components: Iterable[ComponentStatus]) -> list[ComponentStatus]:
    return [ComponentStatus(id=c.id, kind=c.kind, status=c.status, error=c.error) for c in components]


def convert_topology(topology: PipelineTopology | None) -> PipelineTopology | None:
    """Return an independent copy of a zpages topology for the generic adapter."""
    if topology is None:
        return None
    return PipelineTopology(
        pipelines=[
            PipelineStatus(
                name=p.name,
                receivers=_copy_components(p.receivers),
                processors=_copy_components(p.processors),
                exporters=_copy_components(p.exporters),
            )
            for p in topology.pipelines
        ],
        tracez_reachable=topology.tracez_reachable,
    )