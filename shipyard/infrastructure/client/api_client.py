"""
Shipyard API Client

Architectural Intent:
- Async client for the HTTP facade, one method per endpoint
- Uses stdlib urllib for the HTTP layer, run in the default executor so
  several calls can be in flight at once
- Decodes the response envelope into domain objects and maps failures onto
  the Shipyard error taxonomy

Error Mapping:
    404                          -> NotFoundError
    400                          -> ValidationError
    other non-2xx / success=false -> ServerError
    payload missing fields       -> ServerError
    connection failure / timeout -> NetworkError
    truncated or garbled reply   -> NetworkError
"""

from __future__ import annotations
from typing import Any, Callable, Optional, TypeVar
from urllib.parse import quote, urlencode
import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request

from shipyard.domain.entities.deployment import DeploymentRecord
from shipyard.domain.entities.node import Node
from shipyard.domain.entities.telemetry import LogEntry, MonitoringSample
from shipyard.domain.exceptions import (
    NetworkError,
    NotFoundError,
    ServerError,
    ShipyardError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3002/api"
DEFAULT_TIMEOUT = 10.0

T = TypeVar("T")


def _error_for(status: int, message: str) -> ShipyardError:
    if status == 404:
        return NotFoundError(message)
    if status == 400:
        return ValidationError(message)
    return ServerError(message, status_code=status)


def _decode(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8")) if raw else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ServerError("response is not valid JSON") from None


def _parse(factory: Callable[[dict[str, Any]], T], item: Any) -> T:
    try:
        return factory(item)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise ServerError(f"malformed response item: {type(e).__name__}: {e}") from None


class ShipyardClient:
    """Client for the Shipyard REST API."""

    def __init__(
        self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    # ---- transport ---------------------------------------------------------

    def _request_sync(
        self, method: str, path: str, payload: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(
            url,
            data=data,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method=method,
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                envelope = _decode(resp.read())
                status = resp.status
        except urllib.error.HTTPError as e:
            try:
                envelope = _decode(e.read())
            except ServerError:
                envelope = {}
            message = envelope.get("error") if isinstance(envelope, dict) else None
            raise _error_for(e.code, message or f"HTTP {e.code} from {url}") from None
        except urllib.error.URLError as e:
            raise NetworkError(f"cannot reach {url}: {e.reason}") from None
        except (TimeoutError, ConnectionError) as e:
            raise NetworkError(f"request to {url} failed: {e}") from None
        except http.client.HTTPException as e:
            raise NetworkError(f"bad response from {url}: {e!r}") from None

        if not isinstance(envelope, dict) or not envelope.get("success"):
            message = envelope.get("error") if isinstance(envelope, dict) else None
            raise ServerError(message or f"request to {url} was not successful", status)
        return envelope

    async def _request(
        self, method: str, path: str, payload: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        logger.debug("%s %s", method, path)
        return await asyncio.get_event_loop().run_in_executor(
            None, self._request_sync, method, path, payload
        )

    # ---- endpoints ---------------------------------------------------------

    async def list_servers(self, refresh: bool = False) -> list[Node]:
        path = "/servers" + ("?" + urlencode({"refresh": "true"}) if refresh else "")
        envelope = await self._request("GET", path)
        return [_parse(Node.from_dict, item) for item in envelope.get("data", [])]

    async def get_server(self, id_or_name: str) -> Node:
        envelope = await self._request("GET", f"/servers/{quote(id_or_name, safe='')}")
        return _parse(Node.from_dict, envelope.get("data"))

    async def list_deployments(self) -> list[DeploymentRecord]:
        envelope = await self._request("GET", "/deployments")
        return [_parse(DeploymentRecord.from_dict, item) for item in envelope.get("data", [])]

    async def get_deployment(self, deployment_id: str) -> DeploymentRecord:
        envelope = await self._request(
            "GET", f"/deployments/{quote(deployment_id, safe='')}"
        )
        return _parse(DeploymentRecord.from_dict, envelope.get("data"))

    async def deploy(
        self, version: Optional[str] = None, servers: Optional[list[str]] = None
    ) -> DeploymentRecord:
        payload: dict[str, Any] = {}
        if version is not None:
            payload["version"] = version
        if servers is not None:
            payload["servers"] = list(servers)
        envelope = await self._request("POST", "/deploy", payload)
        return _parse(DeploymentRecord.from_dict, envelope.get("data"))

    async def rollback(self, deployment_id: str) -> DeploymentRecord:
        envelope = await self._request(
            "POST", f"/rollback/{quote(deployment_id, safe='')}", {}
        )
        return _parse(DeploymentRecord.from_dict, envelope.get("data"))

    async def monitoring(self, count: Optional[int] = None) -> list[MonitoringSample]:
        path = "/monitoring" + (f"?count={count}" if count is not None else "")
        envelope = await self._request("GET", path)
        return [_parse(MonitoringSample.from_dict, item) for item in envelope.get("data", [])]

    async def logs(self) -> list[LogEntry]:
        envelope = await self._request("GET", "/logs")
        return [_parse(LogEntry.from_dict, item) for item in envelope.get("data", [])]

    async def execute_command(self, command: str, args: Optional[list[str]] = None) -> str:
        envelope = await self._request(
            "POST", "/command", {"command": command, "args": list(args or [])}
        )
        return envelope.get("output", "")

    async def health(self) -> dict[str, Any]:
        return await self._request("GET", "/health")
