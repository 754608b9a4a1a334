"""Tests for CLI module."""

from datetime import datetime, UTC

import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from shipyard.domain.entities.deployment import DeploymentRecord
from shipyard.domain.exceptions import NetworkError, NotFoundError, ValidationError
from shipyard.infrastructure.fixtures import default_fleet, default_history
from shipyard.presentation.cli.cli import async_main


def _running(record_id: str = "1700000000000", original: str | None = None) -> DeploymentRecord:
    return DeploymentRecord.start(
        id=record_id,
        version="v2.0.0",
        servers=("alijack",),
        commit="abc1234",
        author="system",
        original_deployment=original,
    )


def _make_sync(**overrides):
    """Create a mock synchronizer with sensible defaults."""
    sync = MagicMock()
    sync.refresh = AsyncMock(return_value=True)
    sync.nodes = default_fleet()
    sync.deployments = list(reversed(default_history()))
    sync.error = None
    sync.last_refreshed = datetime(2026, 1, 5, 9, 30, tzinfo=UTC)
    sync.deploy = AsyncMock(return_value=_running())
    sync.rollback = AsyncMock(return_value=_running("1700000000001", original="2"))
    sync.execute_command = AsyncMock(return_value="Fleet status check completed\n")
    for key, value in overrides.items():
        setattr(sync, key, value)
    return sync


class TestCLIHelp:
    """Test all help outputs (no server or network needed)."""

    @pytest.mark.asyncio
    async def test_no_command_prints_help(self, capsys):
        with patch("sys.argv", ["shipyard"]):
            await async_main()
        captured = capsys.readouterr()
        assert "simulated deployment tracker" in captured.out

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["serve", "status", "deploy", "rollback", "command"])
    async def test_subcommand_help(self, command):
        with patch("sys.argv", ["shipyard", command, "--help"]), \
             pytest.raises(SystemExit, match="0"):
            await async_main()

    @pytest.mark.asyncio
    async def test_help_flag(self):
        with patch("sys.argv", ["shipyard", "--help"]), \
             pytest.raises(SystemExit, match="0"):
            await async_main()

    @pytest.mark.asyncio
    async def test_verbose_flag(self):
        with patch("sys.argv", ["shipyard", "--verbose"]):
            await async_main()

    @pytest.mark.asyncio
    async def test_debug_flag(self):
        with patch("sys.argv", ["shipyard", "--debug", "--json-logs"]):
            await async_main()


class TestClientCommands:
    @pytest.mark.asyncio
    async def test_status(self, capsys):
        sync = _make_sync()
        with patch("sys.argv", ["shipyard", "status"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync):
            await async_main()
        out = capsys.readouterr().out
        assert "alijack" in out
        assert "tenjack" in out
        assert "v1.2.0" in out
        assert "[*] Last refreshed: 2026-01-05T09:30:00+00:00" in out
        sync.refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_status_offline(self, capsys):
        sync = _make_sync(refresh=AsyncMock(return_value=False), error="connection refused",
                           last_refreshed=None)
        with patch("sys.argv", ["shipyard", "status"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync):
            await async_main()
        out = capsys.readouterr().out
        assert "offline snapshot" in out
        assert "connection refused" in out
        assert "Last refreshed" not in out

    @pytest.mark.asyncio
    async def test_deploy(self, capsys):
        sync = _make_sync()
        with patch("sys.argv", ["shipyard", "deploy", "--version", "v2.0.0",
                                "--servers", "alijack, tenjack"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync):
            await async_main()
        sync.deploy.assert_awaited_once_with("v2.0.0", ["alijack", "tenjack"])
        assert "[+] Deployment 1700000000000 started (running)." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_deploy_defaults(self):
        sync = _make_sync()
        with patch("sys.argv", ["shipyard", "deploy"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync):
            await async_main()
        sync.deploy.assert_awaited_once_with(None, None)

    @pytest.mark.asyncio
    async def test_rollback(self, capsys):
        sync = _make_sync()
        with patch("sys.argv", ["shipyard", "rollback", "2"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync):
            await async_main()
        sync.rollback.assert_awaited_once_with("2")
        assert "[+] Rollback 1700000000001 started" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_command(self, capsys):
        sync = _make_sync()
        with patch("sys.argv", ["shipyard", "command", "status"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync):
            await async_main()
        sync.execute_command.assert_awaited_once_with("status", [])
        assert "Fleet status check completed" in capsys.readouterr().out


class TestClientErrors:
    @pytest.mark.asyncio
    async def test_rollback_not_found(self, capsys):
        sync = _make_sync(
            rollback=AsyncMock(side_effect=NotFoundError("deployment '999' not found"))
        )
        with patch("sys.argv", ["shipyard", "rollback", "999"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync), \
             pytest.raises(SystemExit, match="1"):
            await async_main()
        assert "[-] Not found: deployment '999' not found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_network_error(self, capsys):
        sync = _make_sync(deploy=AsyncMock(side_effect=NetworkError("cannot reach")))
        with patch("sys.argv", ["shipyard", "deploy"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync), \
             pytest.raises(SystemExit, match="1"):
            await async_main()
        assert "[-] Connection error" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_validation_error(self, capsys):
        sync = _make_sync(deploy=AsyncMock(side_effect=ValidationError("unknown servers: x")))
        with patch("sys.argv", ["shipyard", "deploy", "-t", "x"]), \
             patch("shipyard.composition_root.create_synchronizer", return_value=sync), \
             pytest.raises(SystemExit, match="1"):
            await async_main()
        assert "[-] Request failed: unknown servers: x" in capsys.readouterr().out


class TestServe:
    @pytest.mark.asyncio
    async def test_serve_starts_and_stops(self, capsys):
        with patch("sys.argv", ["shipyard", "serve", "--port", "0"]), \
             patch("shipyard.presentation.cli.cli._wait_forever", new=AsyncMock()):
            await async_main()
        out = capsys.readouterr().out
        assert "[*] Shipyard API listening on http://127.0.0.1:" in out
        assert "/api/health" in out
