"""
Seed Fixtures

Architectural Intent:
- Startup contents of the fleet registry and the deployment ledger
- Offline snapshot the client synchronizer shows when the facade is unreachable
- Timestamps are computed at call time, relative to now
"""

from datetime import datetime, UTC, timedelta

from shipyard.domain.entities.deployment import DeploymentRecord, DeploymentStatus
from shipyard.domain.entities.node import Node, NodeStatus

SEED_AUTHOR = "walson"


def default_fleet() -> list[Node]:
    """The two managed nodes the registry starts with."""
    now = datetime.now(UTC)
    return [
        Node(
            id="1",
            name="alijack",
            host="182.92.31.155",
            status=NodeStatus.HEALTHY,
            cpu=45,
            memory=68,
            disk=32,
            uptime="15d 8h",
            last_check=now,
            services=("demo-service", "nginx"),
            tags=("aliyun", "load-balancer"),
        ),
        Node(
            id="2",
            name="tenjack",
            host="152.136.16.77",
            status=NodeStatus.HEALTHY,
            cpu=52,
            memory=72,
            disk=45,
            uptime="12d 3h",
            last_check=now,
            services=("demo-service",),
            tags=("tencent-cloud", "app-server"),
        ),
    ]


def default_history() -> list[DeploymentRecord]:
    """Historical ledger records, oldest first."""
    now = datetime.now(UTC)
    return [
        DeploymentRecord(
            id="1",
            version="v1.1.0",
            servers=("alijack",),
            commit="e4f5g6h",
            author=SEED_AUTHOR,
            status=DeploymentStatus.SUCCESS,
            started_at=now - timedelta(days=1),
            completed_at=now - timedelta(days=1) + timedelta(seconds=50),
            duration="50s",
        ),
        DeploymentRecord(
            id="2",
            version="v1.2.0",
            servers=("alijack", "tenjack"),
            commit="a1b2c3d",
            author=SEED_AUTHOR,
            status=DeploymentStatus.SUCCESS,
            started_at=now - timedelta(hours=1),
            completed_at=now - timedelta(hours=1) + timedelta(seconds=90),
            duration="1m30s",
        ),
    ]


def offline_nodes() -> list[Node]:
    return default_fleet()


def offline_deployments() -> list[DeploymentRecord]:
    """Last known good deployment shown while the facade is unreachable."""
    return default_history()[-1:]
