"""
Shipyard HTTP Facade

Architectural Intent:
- Lightweight REST server built on Python stdlib (http.server + asyncio)
- Thin presentation adapter over the FleetRegistry, DeploymentLedger and
  DataSourcePort; no domain logic of its own
- Every response uses the envelope {"success": bool, "data"?, "error"?,
  "message"?, "total"?, "timestamp"?}
- CORS is fully open and there is no authentication

API Surface:
    GET  /api/servers              -> all nodes (?refresh=true re-samples gauges)
    GET  /api/servers/{id}         -> one node by id or name
    GET  /api/deployments          -> ledger, newest first
    GET  /api/deployments/{id}     -> one record
    POST /api/deploy               -> start a deployment ({"version", "servers"})
    POST /api/rollback/{id}        -> start a rollback of a recorded deployment
    GET  /api/monitoring           -> synthetic hourly samples (?count=N)
    GET  /api/logs                 -> recent fleet log entries
    POST /api/command              -> canned command output ({"command", "args"})
    GET  /api/health               -> liveness and version

Threading Model:
    ThreadingHTTPServer serves each request on its own thread, all inside a
    daemon thread so the asyncio event loop stays free. start() captures the
    running loop and binds it to the lifecycle simulator so handler threads
    can schedule deployment completions onto it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import threading
from datetime import datetime, UTC
from http import HTTPStatus
from http.server import ThreadingHTTPServer, BaseHTTPRequestHandler
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from shipyard.application.dtos.deployment_dtos import CommandRequest, DeployRequest
from shipyard.domain.exceptions import ShipyardError, ValidationError
from shipyard.domain.ports.data_source_port import DataSourcePort
from shipyard.infrastructure.repositories.deployment_ledger import DeploymentLedger
from shipyard.infrastructure.repositories.fleet_registry import FleetRegistry

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"
DEFAULT_SAMPLE_COUNT = 24
MAX_SAMPLE_COUNT = 168

_GET_ROUTES = (
    (re.compile(r"^/api/servers/?$"), "_list_servers"),
    (re.compile(r"^/api/servers/([^/]+)$"), "_get_server"),
    (re.compile(r"^/api/deployments/?$"), "_list_deployments"),
    (re.compile(r"^/api/deployments/([^/]+)$"), "_get_deployment"),
    (re.compile(r"^/api/monitoring/?$"), "_monitoring"),
    (re.compile(r"^/api/logs/?$"), "_logs"),
    (re.compile(r"^/api/health/?$"), "_health"),
)

_POST_ROUTES = (
    (re.compile(r"^/api/deploy/?$"), "_deploy"),
    (re.compile(r"^/api/rollback/([^/]+)$"), "_rollback"),
    (re.compile(r"^/api/command/?$"), "_command"),
)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _ok(data: Any = None, **extra: Any) -> dict[str, Any]:
    envelope: dict[str, Any] = {"success": True}
    if data is not None:
        envelope["data"] = data
    envelope.update(extra)
    return envelope


# ---------------------------------------------------------------------------
# Request handler
# ---------------------------------------------------------------------------

class ShipyardRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the Shipyard facade.

    Attributes on the *server* instance (set by ShipyardWebApp):
        registry:     FleetRegistry    -- managed nodes
        ledger:       DeploymentLedger -- deployment records
        data_source:  DataSourcePort   -- telemetry, logs and commands
        version:      str              -- reported by /api/health
    """

    server_version = "Shipyard/" + SERVICE_VERSION

    # Route per-request log lines through the module logger
    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("web: %s", format % args)

    def end_headers(self) -> None:
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        super().end_headers()

    # ---- routing -----------------------------------------------------------

    def do_GET(self) -> None:  # noqa: N802
        self._route(_GET_ROUTES)

    def do_POST(self) -> None:  # noqa: N802
        self._route(_POST_ROUTES)

    def do_OPTIONS(self) -> None:  # noqa: N802
        """Answer CORS preflight requests."""
        self.send_response(HTTPStatus.NO_CONTENT)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _route(self, routes: tuple) -> None:
        url = urlsplit(self.path)
        self._query = parse_qs(url.query)
        for pattern, endpoint_name in routes:
            match = pattern.match(url.path)
            if match:
                args = [unquote(group) for group in match.groups()]
                self._dispatch(getattr(self, endpoint_name), *args)
                return
        self._send_json(
            {"success": False, "error": f"route {self.command} {url.path} not found"},
            HTTPStatus.NOT_FOUND,
        )

    def _dispatch(self, endpoint: Callable[..., dict[str, Any]], *args: str) -> None:
        """Run an endpoint and convert its outcome into an envelope."""
        try:
            payload = endpoint(*args)
        except ShipyardError as exc:
            if exc.status_code >= 500:
                logger.error(
                    "%s %s failed: %s", self.command, self.path, exc.message,
                    extra={"method": self.command, "path": self.path,
                           "status_code": exc.status_code},
                )
            self._send_json(
                {"success": False, "error": exc.message}, HTTPStatus(exc.status_code)
            )
            return
        except Exception as exc:
            logger.exception(
                "Unhandled error serving %s %s", self.command, self.path,
                extra={"method": self.command, "path": self.path, "status_code": 500},
            )
            self._send_json(
                {"success": False, "error": str(exc)},
                HTTPStatus.INTERNAL_SERVER_ERROR,
            )
            return
        self._send_json(payload)

    # ---- endpoint implementations ------------------------------------------

    def _list_servers(self) -> dict[str, Any]:
        registry: FleetRegistry = self.server.registry  # type: ignore[attr-defined]
        if self._flag("refresh"):
            nodes = registry.refresh_gauges(self.server.data_source)  # type: ignore[attr-defined]
        else:
            nodes = registry.list_nodes()
        return _ok([n.to_dict() for n in nodes], timestamp=_now())

    def _get_server(self, id_or_name: str) -> dict[str, Any]:
        registry: FleetRegistry = self.server.registry  # type: ignore[attr-defined]
        return _ok(registry.get_node(id_or_name).to_dict())

    def _list_deployments(self) -> dict[str, Any]:
        ledger: DeploymentLedger = self.server.ledger  # type: ignore[attr-defined]
        records = ledger.list_deployments()
        return _ok([r.to_dict() for r in records], total=len(records))

    def _get_deployment(self, deployment_id: str) -> dict[str, Any]:
        ledger: DeploymentLedger = self.server.ledger  # type: ignore[attr-defined]
        return _ok(ledger.get_deployment(deployment_id).to_dict())

    def _deploy(self) -> dict[str, Any]:
        registry: FleetRegistry = self.server.registry  # type: ignore[attr-defined]
        ledger: DeploymentLedger = self.server.ledger  # type: ignore[attr-defined]
        request = DeployRequest.from_payload(self._read_json(), registry.names())
        record = ledger.create_deployment(request.version, request.servers)
        return _ok(record.to_dict(), message="deployment started")

    def _rollback(self, deployment_id: str) -> dict[str, Any]:
        ledger: DeploymentLedger = self.server.ledger  # type: ignore[attr-defined]
        record = ledger.create_rollback(deployment_id)
        return _ok(record.to_dict(), message="rollback started")

    def _monitoring(self) -> dict[str, Any]:
        source: DataSourcePort = self.server.data_source  # type: ignore[attr-defined]
        count = self._int_param("count", DEFAULT_SAMPLE_COUNT, 1, MAX_SAMPLE_COUNT)
        return _ok([s.to_dict() for s in source.sample_metrics(count)])

    def _logs(self) -> dict[str, Any]:
        source: DataSourcePort = self.server.data_source  # type: ignore[attr-defined]
        entries = source.recent_logs()
        return _ok([e.to_dict() for e in entries], total=len(entries))

    def _command(self) -> dict[str, Any]:
        source: DataSourcePort = self.server.data_source  # type: ignore[attr-defined]
        request = CommandRequest.from_payload(self._read_json())
        output = source.run_command(request.command, list(request.args))
        return _ok(output=output, timestamp=_now())

    def _health(self) -> dict[str, Any]:
        return _ok(
            status="healthy",
            version=self.server.version,  # type: ignore[attr-defined]
            timestamp=_now(),
        )

    # ---- helpers -----------------------------------------------------------

    def _read_json(self) -> Any:
        """Read and decode the JSON request body; an empty body reads as {}."""
        try:
            content_length = int(self.headers.get("Content-Length", 0))
            raw = self.rfile.read(content_length) if content_length > 0 else b""
            return json.loads(raw) if raw else {}
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            raise ValidationError("invalid JSON body") from None

    def _flag(self, name: str) -> bool:
        values = self._query.get(name, [])
        return bool(values) and values[-1].lower() in ("1", "true", "yes")

    def _int_param(self, name: str, default: int, low: int, high: int) -> int:
        values = self._query.get(name)
        if not values:
            return default
        try:
            value = int(values[-1])
        except ValueError:
            raise ValidationError(f"{name} must be an integer") from None
        if not (low <= value <= high):
            raise ValidationError(f"{name} must be within {low}-{high}")
        return value

    def _send_json(self, data: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        """Serialize *data* as JSON and send it as the HTTP response."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


# ---------------------------------------------------------------------------
# Web application wrapper
# ---------------------------------------------------------------------------

class ShipyardWebApp:
    """Async-friendly HTTP facade for the deployment tracker.

    Usage::

        app = ShipyardWebApp(registry, ledger, data_source)
        await app.start("0.0.0.0", 3002)
        # ... later ...
        app.stop()
    """

    def __init__(
        self,
        registry: FleetRegistry,
        ledger: DeploymentLedger,
        data_source: DataSourcePort,
        version: str = SERVICE_VERSION,
    ) -> None:
        self.registry = registry
        self.ledger = ledger
        self.data_source = data_source
        self.version = version
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._server is None:
            raise RuntimeError("web app is not running")
        return self._server.server_address[1]

    async def start(self, host: str = "127.0.0.1", port: int = 3002) -> None:
        """Start the server in a background thread.

        The current event loop is bound to the lifecycle simulator so that
        deployment completions scheduled from handler threads run on it.
        """
        self.ledger.simulator.bind(asyncio.get_running_loop())

        self._server = ThreadingHTTPServer((host, port), ShipyardRequestHandler)
        self._server.daemon_threads = True
        # Attach application state to the server so handlers can access it.
        self._server.registry = self.registry  # type: ignore[attr-defined]
        self._server.ledger = self.ledger  # type: ignore[attr-defined]
        self._server.data_source = self.data_source  # type: ignore[attr-defined]
        self._server.version = self.version  # type: ignore[attr-defined]

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="shipyard-web",
        )
        self._thread.start()
        logger.info("Shipyard API started on http://%s:%d/api", host, self.port)

    def stop(self) -> None:
        """Shut down the server gracefully."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            logger.info("Shipyard API stopped")
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
