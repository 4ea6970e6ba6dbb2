"""Read-only client for the Elastic Agent status API."""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

DEFAULT_STATUS_URL = "http://localhost:6791"
_FALLBACK_AGENT_NAME = "elastic-agent"


class ElasticAgentError(Exception):
    """Raised when the Elastic Agent status API cannot be read or decoded."""


def _field(obj: dict[str, Any], name: str) -> Any:
    if name in obj:
        return obj[name]
    lowered = name.lower()
    for key, value in obj.items():
        if key.lower() == lowered:
            return value
    return None


def _text(obj: dict[str, Any], name: str) -> str:
    value = _field(obj, name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {name!r} must be a string")
    return value


def _object(obj: dict[str, Any], name: str) -> dict[str, Any]:
    value = _field(obj, name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"field {name!r} must be an object")
    return value


def _objects(obj: dict[str, Any], name: str) -> list[dict[str, Any]]:
    value = _field(obj, name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {name!r} must be a list")
    out: list[dict[str, Any]] = []
    for item in value:
        if item is None:
            item = {}
        if not isinstance(item, dict):
            raise ValueError(f"entries of {name!r} must be objects")
        out.append(item)
    return out


@dataclass
class RuntimeStatus:
    """The common status shape: an overall state and a message."""

    overall: str = ""
    message: str = ""

    @staticmethod
    def from_dict(data: dict[str, Any]) -> RuntimeStatus:
        return RuntimeStatus(overall=_text(data, "overall"), message=_text(data, "message"))


@dataclass
class UnitInfo:
    """A component sub-unit in the agent status."""

    id: str = ""
    type: str = ""
    status: str = ""
    message: str = ""

    @staticmethod
    def from_dict(data: dict[str, Any]) -> UnitInfo:
        return UnitInfo(
            id=_text(data, "id"),
            type=_text(data, "type"),
            status=_text(data, "status"),
            message=_text(data, "message"),
        )


@dataclass
class ComponentInfo:
    """One Elastic Agent component entry."""

    id: str = ""
    name: str = ""
    status: RuntimeStatus = field(default_factory=RuntimeStatus)
    units: list[UnitInfo] = field(default_factory=list)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ComponentInfo:
        return ComponentInfo(
            id=_text(data, "id"),
            name=_text(data, "name"),
            status=RuntimeStatus.from_dict(_object(data, "status")),
            units=[UnitInfo.from_dict(u) for u in _objects(data, "units")],
        )


@dataclass
class StatusResponse:
    """The payload returned by /api/status."""

    id: str = ""
    name: str = ""
    status: RuntimeStatus = field(default_factory=RuntimeStatus)
    components: list[ComponentInfo] = field(default_factory=list)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> StatusResponse:
        """Build a response from decoded JSON; raises ValueError on wrong field types."""
        return StatusResponse(
            id=_text(data, "id"),
            name=_text(data, "name"),
            status=RuntimeStatus.from_dict(_object(data, "status")),
            components=[ComponentInfo.from_dict(c) for c in _objects(data, "components")],
        )


def _decode_object(body: bytes, what: str) -> dict[str, Any]:
    try:
        text = body.decode("utf-8").lstrip()
        payload, _ = json.JSONDecoder().raw_decode(text)
    except (UnicodeDecodeError, ValueError) as exc:
        raise ElasticAgentError(f"decode elastic agent {what} response: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ElasticAgentError(f"decode elastic agent {what} response: expected a JSON object")
    return payload


class Client:
    """Read-only access to the Elastic Agent status APIs."""

    def __init__(self, base_url: str | None = None, timeout: float = 5.0) -> None:
        if not (base_url or "").strip():
            base_url = DEFAULT_STATUS_URL
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _fetch(self, path: str, what: str) -> tuple[int, str, bytes]:
        try:
            with urllib.request.urlopen(self.base_url + path, timeout=self.timeout) as resp:
                return resp.status, resp.reason, resp.read()
        except urllib.error.HTTPError as exc:
            with exc:
                return exc.code, str(exc.reason), b""
        except urllib.error.URLError as exc:
            raise ElasticAgentError(f"request elastic agent {what}: {exc.reason}") from exc
        except (OSError, http.client.HTTPException, ValueError) as exc:
            raise ElasticAgentError(f"request elastic agent {what}: {exc}") from exc

    def get_status(self) -> StatusResponse:
        """Read /api/status, falling back to /stats when the API is absent."""
        code, reason, body = self._fetch("/api/status", "status")
        if code == 404:
            return self._status_from_stats()
        if code != 200:
            raise ElasticAgentError(f"elastic agent status api returned {code} {reason}")
        payload = _decode_object(body, "status")
        try:
            return StatusResponse.from_dict(payload)
        except ValueError as exc:
            raise ElasticAgentError(f"decode elastic agent status response: {exc}") from exc

    def _status_from_stats(self) -> StatusResponse:
        code, reason, body = self._fetch("/stats", "stats")
        if code != 200:
            raise ElasticAgentError(f"elastic agent stats api returned {code} {reason}")
        payload = _decode_object(body, "stats")
        try:
            info = _object(_object(payload, "beat"), "info")
            ephemeral_id = _text(info, "ephemeral_id").strip()
            name = _text(info, "name").strip()
        except ValueError as exc:
            raise ElasticAgentError(f"decode elastic agent stats response: {exc}") from exc

        return StatusResponse(
            id=ephemeral_id,
            name=name or _FALLBACK_AGENT_NAME,
            status=RuntimeStatus(overall="HEALTHY", message="derived from /stats fallback"),
            components=[],
        )

    def get_components(self) -> list[ComponentInfo]:
        """Return the component entries of the current status."""
        return self.get_status().components