"""Collector health_check probing and small pipeline-graph helpers."""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Iterable, Mapping
from typing import Any

from agentcli.model import Edge, HealthStatus

DEFAULT_HEALTH_CHECK_URL = "http://localhost:13133/"

_HEALTHY_STATES = {"server available", "statusok", "ok"}
_ERROR_STATES = {"server not available", "statusfatalerror", "statuspermanenterror"}

_RANKS = {
    HealthStatus.ERROR: 4,
    HealthStatus.DEGRADED: 3,
    HealthStatus.DISABLED: 2,
    HealthStatus.UNKNOWN: 1,
}


class HealthCheckError(Exception):
    """Raised when the health_check endpoint cannot be queried or decoded."""


class HealthChecker:
    """Queries a collector's health_check extension for its top-level health.

    ``extensions`` maps extension names to their settings, either a mapping
    or an object with a ``raw`` mapping; the ``health_check`` entry's
    ``endpoint`` is used unless an explicit ``health_check_url`` is given.
    """

    def __init__(
        self,
        health_check_url: str | None = None,
        extensions: Mapping[str, Any] | None = None,
        timeout: float = 5.0,
    ) -> None:
        url = (health_check_url or "").strip()
        self.url_override = bool(url)
        self.health_check_url = url or DEFAULT_HEALTH_CHECK_URL
        self.extensions = extensions
        self.timeout = timeout

    @property
    def url(self) -> str:
        """The URL that will be queried."""
        return health_url(self.extensions, self.health_check_url, self.url_override)

    def health(self) -> HealthStatus:
        """Query the endpoint and map its reported status."""
        url = self.url
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as resp:
                if resp.status != 200:
                    return HealthStatus.ERROR
                body = resp.read()
        except urllib.error.HTTPError:
            return HealthStatus.ERROR
        except urllib.error.URLError as exc:
            raise HealthCheckError(f"request health check endpoint: {exc.reason}") from exc
        except (OSError, http.client.HTTPException, ValueError) as exc:
            raise HealthCheckError(f"request health check endpoint: {exc}") from exc

        payload = _decode_payload(body)
        status = payload.get("status") if payload else None
        value = status.strip().lower() if isinstance(status, str) else ""
        if value in _HEALTHY_STATES:
            return HealthStatus.HEALTHY
        if value in _ERROR_STATES:
            return HealthStatus.ERROR
        return HealthStatus.UNKNOWN


def _decode_payload(body: bytes) -> dict[str, Any] | None:
    try:
        text = body.decode("utf-8").lstrip()
        payload, _ = json.JSONDecoder().raw_decode(text)
    except (UnicodeDecodeError, ValueError) as exc:
        raise HealthCheckError(f"decode health check response: {exc}") from exc
    if payload is not None and not isinstance(payload, dict):
        raise HealthCheckError("decode health check response: expected a JSON object")
    return payload


def health_url(extensions: Mapping[str, Any] | None, fallback: str, prefer_fallback: bool) -> str:
    """Choose the health URL from an override, the health_check extension, or the fallback."""
    if prefer_fallback:
        normalized = normalize_health_endpoint(fallback)
        if normalized is not None:
            return normalized

    if not extensions:
        return fallback
    component = extensions.get("health_check")
    if component is None:
        return fallback
    raw = getattr(component, "raw", component)
    if not isinstance(raw, Mapping):
        return fallback
    endpoint = raw.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint.strip():
        return fallback
    normalized = normalize_health_endpoint(endpoint)
    return fallback if normalized is None else normalized


def _split_host_port(host_port: str) -> tuple[str, str] | None:
    """Split a host[:port] string; None when the port is malformed."""
    if host_port.startswith("["):
        close = host_port.find("]")
        if close < 0:
            return None
        rest = host_port[close + 1:]
        if rest and not (rest.startswith(":") and rest[1:].isdigit() or rest == ":"):
            return None
        return host_port[1:close], rest[1:]
    colon = host_port.rfind(":")
    if colon < 0:
        return host_port, ""
    port = host_port[colon + 1:]
    if port and not (port.isascii() and port.isdigit()):
        return None
    return host_port[:colon], port


def normalize_health_endpoint(raw_endpoint: str) -> str | None:
    """Turn a configured endpoint into a queryable URL, or None if it is unusable."""
    candidate = raw_endpoint.strip()
    if not candidate:
        return None
    if not candidate.startswith(("http://", "https://")):
        candidate = "http://" + candidate

    try:
        parts = urllib.parse.urlsplit(candidate)
    except ValueError:
        return None
    netloc = parts.netloc
    if not netloc.strip():
        return None

    userinfo, at, host_port = netloc.rpartition("@")
    split = _split_host_port(host_port)
    if split is None:
        return None
    host, port = split[0].strip(), split[1].strip()
    if not host and not port:
        return None
    if is_bind_all_host(host):
        host = "localhost"

    if ":" in host:
        host = f"[{host}]"
    new_host = f"{host}:{port}" if port else host
    new_netloc = f"{userinfo}{at}{new_host}"
    path = parts.path or "/"
    return urllib.parse.urlunsplit((parts.scheme, new_netloc, path, parts.query, parts.fragment))


def is_bind_all_host(host: str) -> bool:
    """Tell whether a host means "all interfaces" rather than a reachable address."""
    return host.strip().lower() in ("", "0.0.0.0", "::")


def health_rank(status: HealthStatus) -> int:
    """Rank a status by severity; higher is worse."""
    return _RANKS.get(status, 0)


def dedupe_edges(edges: Iterable[Edge]) -> list[Edge]:
    """Drop repeated edges, keeping the first occurrence of each."""
    seen: set[tuple[str, str]] = set()
    out: list[Edge] = []
    for edge in edges:
        key = (edge.source, edge.target)
        if key in seen:
            continue
        seen.add(key)
        out.append(edge)
    return out