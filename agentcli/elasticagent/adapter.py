"""Maps Elastic Agent configuration and runtime status into the pipeline model."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlunsplit

from agentcli.elasticagent.client import ComponentInfo, ElasticAgentError, StatusResponse
from agentcli.model import Agent, Edge, HealthStatus, Node, NodeMetrics, Pipeline

AGENT_ID = "elastic-agent"
AGENT_TYPE = "elastic-agent"

_METRICS_SCHEME = "http"
_METRICS_HOST = "localhost"
_METRICS_PORT = 5066
_METRICS_PATH = "/stats"
DEFAULT_METRICS_ENDPOINT = "http://localhost:5066/stats"

_STATUS_MAP = {
    "HEALTHY": HealthStatus.HEALTHY,
    "RUNNING": HealthStatus.HEALTHY,
    "OK": HealthStatus.HEALTHY,
    "DEGRADED": HealthStatus.DEGRADED,
    "WARNING": HealthStatus.DEGRADED,
    "WARN": HealthStatus.DEGRADED,
    "FAILED": HealthStatus.ERROR,
    "ERROR": HealthStatus.ERROR,
    "DISABLED": HealthStatus.DISABLED,
    "STOPPED": HealthStatus.DISABLED,
}


@dataclass
class ElasticInput:
    """One input from elastic-agent.yml."""

    id: str
    type: str = ""
    enabled: bool = True
    use_output: str = ""


@dataclass
class ElasticOutput:
    """One output from elastic-agent.yml."""

    type: str = ""


@dataclass
class ElasticAgentConfig:
    """The wiring of inputs to outputs in elastic-agent.yml."""

    inputs: list[ElasticInput] = field(default_factory=list)
    outputs: dict[str, ElasticOutput] = field(default_factory=dict)


@dataclass
class BeatSnapshot:
    """Throughput counters read from a beat stats endpoint."""

    events_in_per_sec: float = 0.0
    events_out_per_sec: float = 0.0
    error_count: float = 0.0
    drop_count: float = 0.0


class StatusSource(Protocol):
    def get_status(self) -> StatusResponse: ...


class BeatMetricsSource(Protocol):
    def collect_beat_stats(self, endpoint: str) -> BeatSnapshot | None: ...


def map_runtime_status(overall: str) -> HealthStatus:
    """Map an Elastic Agent overall state to a health status."""
    return _STATUS_MAP.get(overall.strip().upper(), HealthStatus.UNKNOWN)


def default_metrics_endpoint_by_input(elastic_input: ElasticInput) -> str:
    """The beat stats endpoint for an input: the agent's shared local monitoring endpoint."""
    del elastic_input  # every input reports through the same monitoring endpoint
    netloc = f"{_METRICS_HOST}:{_METRICS_PORT}"
    return urlunsplit((_METRICS_SCHEME, netloc, _METRICS_PATH, "", ""))


class _ComponentIndex:
    def __init__(self, components: Iterable[ComponentInfo]) -> None:
        self.by_id: dict[str, HealthStatus] = {}
        self.by_name: dict[str, HealthStatus] = {}
        for component in components:
            status = map_runtime_status(component.status.overall)
            component_id = component.id.strip().lower()
            name = component.name.strip().lower()
            if component_id:
                self.by_id[component_id] = status
            if name:
                self.by_name[name] = status

    def resolve(self, candidates: Iterable[str]) -> HealthStatus:
        for candidate in candidates:
            key = candidate.strip().lower()
            if not key:
                continue
            if key in self.by_id:
                return self.by_id[key]
            if key in self.by_name:
                return self.by_name[key]
        return HealthStatus.UNKNOWN


def _input_candidates(elastic_input: ElasticInput) -> list[str]:
    t, out = elastic_input.type, elastic_input.use_output
    return [f"{t}-{out}", f"{t}/{out}", t, elastic_input.id, f"{elastic_input.id}-{out}"]


def _output_candidates(name: str) -> list[str]:
    return [name, f"output-{name}", f"output.{name}", f"es-{name}"]


class Adapter(Agent):
    """Builds the pipeline graph of a standalone Elastic Agent."""

    def __init__(
        self,
        config: ElasticAgentConfig | None,
        client: StatusSource | None,
        metrics: BeatMetricsSource | None = None,
        metrics_endpoint_by_input: Callable[[ElasticInput], str] | None = default_metrics_endpoint_by_input,
    ) -> None:
        self.config = config
        self.client = client
        self.metrics = metrics
        self.metrics_endpoint_by_input = metrics_endpoint_by_input

    @property
    def agent_id(self) -> str:
        return AGENT_ID

    @property
    def agent_type(self) -> str:
        return AGENT_TYPE

    def status(self) -> Pipeline:
        """Build a pipeline from the configured wiring and the runtime status."""
        if self.config is None:
            raise ElasticAgentError("elastic agent config is required")
        if self.client is None:
            raise ElasticAgentError("elastic agent status client is required")

        runtime = self.client.get_status()
        components = _ComponentIndex(runtime.components)
        nodes: list[Node] = []
        edges: list[Edge] = []
        metrics_cache: dict[str, NodeMetrics | None] = {}
        missing_refs: list[str] = []

        output_node_ids: dict[str, str] = {}
        for output_name in sorted(self.config.outputs):
            node_id = f"output.{output_name}"
            output_node_ids[output_name] = node_id
            nodes.append(
                Node(
                    id=node_id,
                    label=output_name,
                    kind="output",
                    status=components.resolve(_output_candidates(output_name)),
                )
            )

        for elastic_input in self.config.inputs:
            status = components.resolve(_input_candidates(elastic_input))
            if not elastic_input.enabled:
                status = HealthStatus.DISABLED
            node_id = f"input.{elastic_input.id}"
            nodes.append(
                Node(
                    id=node_id,
                    label=elastic_input.id,
                    kind="input",
                    status=status,
                    metrics=self._input_metrics(elastic_input, metrics_cache),
                )
            )

            target = output_node_ids.get(elastic_input.use_output)
            if target is not None:
                edges.append(Edge(source=node_id, target=target))
                continue
            ref = elastic_input.use_output.strip()
            if ref:
                missing_refs.append(f"{elastic_input.id}->{ref}")

        metadata = {
            "agent_id": runtime.id,
            "agent_type": AGENT_TYPE,
            "runtime_status": runtime.status.overall.lower(),
        }
        if missing_refs:
            metadata["config_warnings"] = "missing output mappings: " + ",".join(sorted(missing_refs))

        return Pipeline(name=runtime.name, nodes=nodes, edges=edges, metadata=metadata)

    def _input_metrics(
        self, elastic_input: ElasticInput, cache: dict[str, NodeMetrics | None]
    ) -> NodeMetrics | None:
        if not elastic_input.enabled or self.metrics is None or self.metrics_endpoint_by_input is None:
            return None
        endpoint = self.metrics_endpoint_by_input(elastic_input).strip()
        if not endpoint:
            return None
        if endpoint in cache:
            return cache[endpoint]

        try:
            snapshot = self.metrics.collect_beat_stats(endpoint)
        except Exception:  # metrics are best effort; a failing collector leaves the node bare
            snapshot = None
        if snapshot is None:
            cache[endpoint] = None
            return None

        node_metrics = NodeMetrics(
            events_in_per_sec=snapshot.events_in_per_sec,
            events_out_per_sec=snapshot.events_out_per_sec,
            error_count=snapshot.error_count,
            drop_count=snapshot.drop_count,
        )
        cache[endpoint] = node_metrics
        return node_metrics

    def health(self) -> HealthStatus:
        """Return the top-level runtime health."""
        if self.client is None:
            raise ElasticAgentError("elastic agent status client is required")
        return map_runtime_status(self.client.get_status().status.overall)