"""
CLI Module

Architectural Intent:
- Command-line interface for Shipyard
- `serve` runs the HTTP facade; the other commands are API clients that go
  through the StateSynchronizer
- Supports --verbose/--debug flags for log level control
"""

import argparse
import asyncio
import logging
import sys
import traceback

from shipyard.domain.entities.deployment import DeploymentRecord
from shipyard.domain.entities.node import Node
from shipyard.domain.exceptions import NetworkError, NotFoundError, ShipyardError
from shipyard.infrastructure.config import ShipyardConfig, load_config
from shipyard.infrastructure.logging import configure_logging


def _format_node(node: Node) -> str:
    return (
        f"  {node.name:<10} {node.host:<16} {node.status.value:<8} "
        f"cpu={node.cpu:>3.0f}% mem={node.memory:>3.0f}% disk={node.disk:>3.0f}%"
    )


def _format_deployment(record: DeploymentRecord) -> str:
    line = (
        f"  {record.id:<14} {record.version:<8} {record.status.value:<8} "
        f"{','.join(record.servers)}"
    )
    if record.rollback:
        line += f" (rollback of {record.original_deployment})"
    if record.error:
        line += f" [{record.error}]"
    return line


async def _wait_forever() -> None:
    await asyncio.Event().wait()


async def _serve(config: ShipyardConfig, host: str, port: int) -> None:
    from shipyard.composition_root import create_container

    container = create_container(config)
    await container.exporter.initialize()
    await container.web_app.start(host, port)
    print(f"[*] Shipyard API listening on http://{host}:{container.web_app.port}/api")
    print(f"[*] Health check: http://{host}:{container.web_app.port}/api/health")
    try:
        await _wait_forever()
    finally:
        container.ledger.shutdown()
        container.web_app.stop()
        container.exporter.shutdown()


async def async_main():
    parser = argparse.ArgumentParser(
        description="Shipyard: a simulated deployment tracker"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to JSON config (default: shipyard.json)"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured JSON log lines"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the Shipyard API server")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Bind port")

    subparsers.add_parser("status", help="Show fleet nodes and recent deployments")

    deploy_parser = subparsers.add_parser("deploy", help="Start a deployment")
    deploy_parser.add_argument("--version", dest="release", default=None,
                               help="Version label to deploy")
    deploy_parser.add_argument(
        "--servers", "-t", default=None, help="Comma-separated list of target nodes"
    )

    rollback_parser = subparsers.add_parser(
        "rollback", help="Roll back to a recorded deployment"
    )
    rollback_parser.add_argument("deployment_id", help="Deployment id to roll back")

    command_parser = subparsers.add_parser("command", help="Run a fleet command")
    command_parser.add_argument("name", help="Command name (status, deploy, ...)")
    command_parser.add_argument("args", nargs="*", help="Command arguments")

    args = parser.parse_args()

    config = load_config(args.config)

    # Configure logging based on flags
    if args.debug:
        configure_logging(level=logging.DEBUG, json_format=args.json_logs)
    elif args.verbose:
        configure_logging(level=logging.INFO, json_format=args.json_logs)
    else:
        configure_logging(level=config.log_level, json_format=args.json_logs)

    verbose = args.verbose or args.debug

    if args.command == "serve":
        host = args.host or config.web.host
        port = args.port if args.port is not None else config.web.port
        await _serve(config, host, port)
        return

    if args.command in ("status", "deploy", "rollback", "command"):
        from shipyard.composition_root import create_synchronizer

        sync = create_synchronizer(config)
        try:
            await _run_client_command(sync, args)
        except NotFoundError as e:
            print(f"[-] Not found: {e}")
            sys.exit(1)
        except NetworkError as e:
            print(f"[-] Connection error: {e}")
            if verbose:
                traceback.print_exc()
            sys.exit(1)
        except ShipyardError as e:
            print(f"[-] Request failed: {e}")
            if verbose:
                traceback.print_exc()
            sys.exit(1)
        return

    parser.print_help()


async def _run_client_command(sync, args) -> None:
    if args.command == "status":
        if not await sync.refresh():
            print(f"[-] API unreachable ({sync.error}); showing offline snapshot.")
        if sync.last_refreshed is not None:
            print(f"[*] Last refreshed: {sync.last_refreshed.isoformat(timespec='seconds')}")
        print("[*] Nodes:")
        for node in sync.nodes:
            print(_format_node(node))
        print("[*] Deployments:")
        for record in sync.deployments:
            print(_format_deployment(record))
        return

    if args.command == "deploy":
        servers = [s.strip() for s in args.servers.split(",")] if args.servers else None
        print(f"[*] Deploying {args.release or 'default version'} "
              f"to {servers or 'all servers'}...")
        record = await sync.deploy(args.release, servers)
        print(f"[+] Deployment {record.id} started ({record.status.value}).")
        return

    if args.command == "rollback":
        print(f"[*] Rolling back deployment {args.deployment_id}...")
        record = await sync.rollback(args.deployment_id)
        print(f"[+] Rollback {record.id} started ({record.status.value}).")
        return

    if args.command == "command":
        output = await sync.execute_command(args.name, args.args)
        print(output.rstrip("\n"))


def main():
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        print("\n[*] Shipyard stopped.")


if __name__ == "__main__":
    main()
