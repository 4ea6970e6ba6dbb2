"""Display metadata for well-known OpenTelemetry collector components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OTelPipelineType(str, Enum):
    """Signal type carried by a collector pipeline."""

    TRACE = "traces"
    METRICS = "metrics"
    LOGS = "logs"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ComponentDescriptor:
    """Friendly description of a collector component."""

    name: str
    kind: str
    categories: tuple[OTelPipelineType, ...]
    icon: str
    known: bool


_ALL_SIGNALS = (OTelPipelineType.TRACE, OTelPipelineType.METRICS, OTelPipelineType.LOGS)

_KNOWN_COMPONENTS: dict[str, ComponentDescriptor] = {
    "otlpreceiver": ComponentDescriptor("OTLP receiver", "receiver", _ALL_SIGNALS, "receiver", True),
    "batchprocessor": ComponentDescriptor("Batch processor", "processor", _ALL_SIGNALS, "processor", True),
    "debugexporter": ComponentDescriptor("Debug exporter", "exporter", _ALL_SIGNALS, "exporter", True),
    "prometheusreceiver": ComponentDescriptor(
        "Prometheus receiver", "receiver", (OTelPipelineType.METRICS,), "receiver", True
    ),
}

_ALIASES = {
    "otlp": "otlpreceiver",
    "batch": "batchprocessor",
    "debug": "debugexporter",
    "prometheus": "prometheusreceiver",
}


def lookup_component_descriptor(kind: str, component_name: str, pipeline_name: str) -> ComponentDescriptor:
    """Return a friendly descriptor; unknown components fall back to their raw name."""
    component_name = component_name.strip()
    kind = kind.strip()

    for key in _lookup_keys(kind, component_name):
        descriptor = _KNOWN_COMPONENTS.get(key)
        if descriptor is not None:
            return descriptor

    return ComponentDescriptor(
        name=component_name,
        kind=kind,
        categories=(_pipeline_type_from_name(pipeline_name),),
        icon="generic",
        known=False,
    )


def _lookup_keys(kind: str, component_name: str) -> list[str]:
    trimmed = component_name.strip()
    base = _component_base_name(trimmed)
    keys = [
        _normalize_key(base),
        _normalize_key(base + kind),
        _normalize_key(trimmed),
        _normalize_key(trimmed + kind),
    ]
    alias = _ALIASES.get(_normalize_key(base))
    if alias is not None:
        keys.append(alias)
    return keys


def _normalize_key(value: str) -> str:
    return value.strip().replace("_", "").lower()


def _component_base_name(value: str) -> str:
    trimmed = value.strip()
    idx = trimmed.find("/")
    return trimmed[:idx] if idx > 0 else trimmed


def _pipeline_type_from_name(name: str) -> OTelPipelineType:
    base = _component_base_name(name)
    if base in ("trace", "traces"):
        return OTelPipelineType.TRACE
    if base == "metrics":
        return OTelPipelineType.METRICS
    if base == "logs":
        return OTelPipelineType.LOGS
    return OTelPipelineType.UNKNOWN