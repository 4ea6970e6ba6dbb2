"""Zpages access for EDOT collectors, sharing the generic collector parsers."""

from __future__ import annotations

from agentcli.otel import zpages as _collector
from agentcli.otel.zpages import (
    ComponentStatus,
    PipelineStatus,
    PipelineTopology,
    ZPagesError,
    parse_pipelinez,
    parse_pipelinez_json,
)

DEFAULT_ZPAGES_URL = "http://localhost:55679"

__all__ = [
    "ComponentStatus",
    "DEFAULT_ZPAGES_URL",
    "PipelineStatus",
    "PipelineTopology",
    "ZPagesClient",
    "ZPagesError",
    "parse_pipelinez",
    "parse_pipelinez_collector_html",
    "parse_pipelinez_html",
    "parse_pipelinez_json",
]


def parse_pipelinez_html(html: str) -> list[PipelineStatus]:
    """Parse a pipelinez HTML page, either data-attribute rows or collector links."""
    return _collector.parse_pipelinez_html(html)


def parse_pipelinez_collector_html(html: str) -> list[PipelineStatus]:
    """Parse the component links of a collector's pipelinez HTML page."""
    return _collector.parse_pipelinez_collector_html(html)


class ZPagesClient(_collector.ZPagesClient):
    """Reads the zpages endpoints of an EDOT collector."""

    def __init__(self, base_url: str | None = None, timeout: float = 5.0) -> None:
        if not (base_url or "").strip():
            base_url = DEFAULT_ZPAGES_URL
        super().__init__(base_url, timeout)

    def get_pipeline_topology(self) -> PipelineTopology:
        """Read /debug/pipelinez and probe /debug/tracez."""
        return super().get_pipeline_topology()