"""Shared pipeline model and the contract every runtime agent fulfils."""

from __future__ import annotations

import abc
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class HealthStatus(str, Enum):
    """Health of an agent or of one pipeline component."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    ERROR = "error"
    DISABLED = "disabled"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass
class NodeMetrics:
    """Throughput and failure counters attached to a pipeline node."""

    events_in_per_sec: float = 0.0
    events_out_per_sec: float = 0.0
    error_count: float = 0.0
    drop_count: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass
class Node:
    """One component of a pipeline graph."""

    id: str
    label: str
    kind: str
    status: HealthStatus = HealthStatus.UNKNOWN
    metrics: NodeMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "kind": self.kind,
            "status": self.status.value,
        }
        if self.metrics is not None:
            out["metrics"] = self.metrics.to_dict()
        return out


@dataclass(frozen=True)
class Edge:
    """A directed connection between two nodes, by node id."""

    source: str
    target: str

    def to_dict(self) -> dict[str, str]:
        return {"from": self.source, "to": self.target}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Pipeline:
    """A pipeline graph as reported by an agent."""

    name: str
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    updated_at: datetime = field(default_factory=_utc_now)
    metadata: dict[str, str] = field(default_factory=dict)

    def node(self, node_id: str) -> Node | None:
        """Return the node with the given id, if any."""
        return next((n for n in self.nodes if n.id == node_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "updated_at": self.updated_at.isoformat(),
            "metadata": dict(self.metadata),
        }


class Agent(abc.ABC):
    """Minimum contract for any supported runtime agent."""

    @property
    @abc.abstractmethod
    def agent_id(self) -> str:
        """Identifier of the agent."""

    @property
    @abc.abstractmethod
    def agent_type(self) -> str:
        """Type string of the agent."""

    @abc.abstractmethod
    def status(self) -> Pipeline:
        """Build the current pipeline graph."""

    @abc.abstractmethod
    def health(self) -> HealthStatus:
        """Return the top-level health."""