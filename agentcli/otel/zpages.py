"""Client and parsers for collector zpages pipeline endpoints."""

from __future__ import annotations

import html as html_lib
import http.client
import json
import re
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any

DEFAULT_ZPAGES_URL = "http://localhost:55679"

_ROW_RE = re.compile(
    r'<tr[^>]*data-pipeline="([^"]+)"[^>]*data-kind="([^"]+)"[^>]*data-component="([^"]+)"'
    r'[^>]*data-status="([^"]*)"[^>]*data-error="([^"]*)"[^>]*>',
    re.IGNORECASE | re.DOTALL,
)
_LINK_RE = re.compile(r'zpipelinename=([^"&]+)&zcomponentname=([^"&]+)&zcomponentkind=([^"&]+)')
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

_ROW_GROUPS = {
    "receiver": "receivers",
    "receivers": "receivers",
    "processor": "processors",
    "processors": "processors",
    "exporter": "exporters",
    "exporters": "exporters",
}
_LINK_GROUPS = {"receiver": "receivers", "processor": "processors", "exporter": "exporters"}


class ZPagesError(Exception):
    """Raised when zpages cannot be read or parsed."""


@dataclass
class ComponentStatus:
    """One runtime component entry from zpages."""

    id: str
    kind: str = ""
    status: str = ""
    error: str = ""


@dataclass
class PipelineStatus:
    """One pipeline with its component groups."""

    name: str
    receivers: list[ComponentStatus] = field(default_factory=list)
    processors: list[ComponentStatus] = field(default_factory=list)
    exporters: list[ComponentStatus] = field(default_factory=list)


@dataclass
class PipelineTopology:
    """Active collector pipelines and whether tracez answered."""

    pipelines: list[PipelineStatus] = field(default_factory=list)
    tracez_reachable: bool = False


class ZPagesClient:
    """Reads the collector zpages endpoints."""

    def __init__(self, base_url: str | None = None, timeout: float = 5.0) -> None:
        if not (base_url or "").strip():
            base_url = DEFAULT_ZPAGES_URL
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def get_pipeline_topology(self) -> PipelineTopology:
        """Read /debug/pipelinez and probe /debug/tracez."""
        try:
            body, content_type = self._get("/debug/pipelinez")
        except ZPagesError as exc:
            raise ZPagesError(f"request zpages pipelinez: {exc}") from exc

        try:
            pipelines = parse_pipelinez(body, content_type)
        except ZPagesError as exc:
            raise ZPagesError(f"parse zpages pipelinez: {exc}") from exc

        return PipelineTopology(pipelines=pipelines, tracez_reachable=self._is_tracez_reachable())

    def _get(self, path: str) -> tuple[bytes, str]:
        try:
            with urllib.request.urlopen(self.base_url + path, timeout=self.timeout) as resp:
                if resp.status != 200:
                    raise ZPagesError(f"{path} returned {resp.status} {resp.reason}")
                body = resp.read()
                return body, resp.headers.get("Content-Type", "")
        except urllib.error.HTTPError as exc:
            raise ZPagesError(f"{path} returned {exc.code} {exc.reason}") from exc
        except urllib.error.URLError as exc:
            raise ZPagesError(str(exc.reason)) from exc
        except (OSError, http.client.HTTPException, ValueError) as exc:
            raise ZPagesError(str(exc)) from exc

    def _is_tracez_reachable(self) -> bool:
        try:
            with urllib.request.urlopen(self.base_url + "/debug/tracez", timeout=self.timeout) as resp:
                return resp.status == 200
        except (OSError, http.client.HTTPException, ValueError):
            return False


def parse_pipelinez(body: bytes | str, content_type: str) -> list[PipelineStatus]:
    """Parse a pipelinez response body, choosing JSON or HTML by content."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    trimmed = text.strip()
    if not trimmed:
        raise ZPagesError("empty response")
    if "json" in content_type.lower() or trimmed.startswith(("{", "[")):
        return parse_pipelinez_json(body)
    return parse_pipelinez_html(trimmed)


def parse_pipelinez_json(body: bytes | str) -> list[PipelineStatus]:
    """Parse the JSON form of pipelinez, sorted by pipeline name."""
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ZPagesError(f"decode pipelinez json: {exc}") from exc
    if not isinstance(payload, dict):
        raise ZPagesError("pipelinez json must be an object")

    out: list[PipelineStatus] = []
    for entry in _list_field(payload, "pipelines"):
        if entry is None:
            continue
        if not isinstance(entry, dict):
            raise ZPagesError("pipeline entry must be an object")
        name = _text_field(entry, "name").strip() or _text_field(entry, "pipeline_id").strip()
        if not name:
            continue
        out.append(
            PipelineStatus(
                name=name,
                receivers=_normalize_components("receiver", _list_field(entry, "receivers")),
                processors=_normalize_components("processor", _list_field(entry, "processors")),
                exporters=_normalize_components("exporter", _list_field(entry, "exporters")),
            )
        )

    if not out:
        raise ZPagesError("no pipelines found")
    return sorted(out, key=lambda p: p.name)


def parse_pipelinez_html(html: str) -> list[PipelineStatus]:
    """Parse HTML rows carrying data-* attributes, else fall back to collector links."""
    matches = _ROW_RE.findall(html)
    if not matches:
        return parse_pipelinez_collector_html(html)

    by_pipeline: dict[str, PipelineStatus] = {}
    for pipeline_name, kind, component_id, status, error in matches:
        pipeline_name = pipeline_name.strip()
        kind = kind.strip().lower()
        component_id = component_id.strip()
        if not pipeline_name or not component_id:
            continue
        parts = by_pipeline.setdefault(pipeline_name, PipelineStatus(name=pipeline_name))
        group = _ROW_GROUPS.get(kind)
        if group is not None:
            getattr(parts, group).append(
                ComponentStatus(id=component_id, kind=kind, status=status.strip(), error=error.strip())
            )

    if not by_pipeline:
        raise ZPagesError("no pipeline components parsed from html")
    return [by_pipeline[name] for name in sorted(by_pipeline)]


def parse_pipelinez_collector_html(html: str) -> list[PipelineStatus]:
    """Parse the collector's own pipelinez page from its component links."""
    html = html_lib.unescape(html)
    matches = _LINK_RE.findall(html)
    if not matches:
        raise ZPagesError("no pipeline rows found in html")

    by_pipeline: dict[str, PipelineStatus] = {}
    seen: dict[str, set[str]] = {}
    for raw_pipeline, raw_component, raw_kind in matches:
        pipeline_name = _query_unescape(raw_pipeline.strip())
        component_name = _query_unescape(raw_component.strip())
        kind = _query_unescape(raw_kind.strip()).lower()
        if not pipeline_name or not component_name or not kind:
            continue

        parts = by_pipeline.setdefault(pipeline_name, PipelineStatus(name=pipeline_name))
        seen_keys = seen.setdefault(pipeline_name, set())
        key = f"{kind}|{component_name}"
        if key in seen_keys:
            continue
        seen_keys.add(key)

        group = _LINK_GROUPS.get(kind)
        if group is not None:
            getattr(parts, group).append(ComponentStatus(id=component_name, kind=kind))

    return [by_pipeline[name] for name in sorted(by_pipeline)]


def _query_unescape(value: str) -> str:
    if _BAD_ESCAPE_RE.search(value):
        return ""
    return urllib.parse.unquote_plus(value, errors="replace")


def _field(obj: dict[str, Any], name: str) -> Any:
    if name in obj:
        return obj[name]
    lowered = name.lower()
    for key, value in obj.items():
        if key.lower() == lowered:
            return value
    return None


def _text_field(obj: dict[str, Any], name: str) -> str:
    value = _field(obj, name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ZPagesError(f"field {name!r} must be a string")
    return value


def _list_field(obj: dict[str, Any], name: str) -> list[Any]:
    value = _field(obj, name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ZPagesError(f"field {name!r} must be a list")
    return value


def _normalize_components(default_kind: str, components: list[Any]) -> list[ComponentStatus]:
    out: list[ComponentStatus] = []
    for component in components:
        if component is None:
            continue
        if not isinstance(component, dict):
            raise ZPagesError("component entry must be an object")
        component_id = _text_field(component, "id").strip()
        if not component_id:
            continue
        out.append(
            ComponentStatus(
                id=component_id,
                kind=_text_field(component, "kind").strip() or default_kind,
                status=_text_field(component, "status").strip(),
                error=_text_field(component, "error").strip(),
            )
        )
    return out