"""Health monitoring of a running cluster over SSH."""

from __future__ import annotations

from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Sequence

from clusterprep import remote
from clusterprep.remote import RemoteError

Connector = Callable[..., Any]
Runner = Callable[[Any, str], str]

_API_COMMAND = "sudo systemctl is-active kube-apiserver || kubectl get --raw /healthz"
_ETCD_COMMAND = (
    "sudo ETCDCTL_API=3 etcdctl endpoint health 2>/dev/null || echo 'etcd-check-skipped'"
)
_KUBELET_COMMAND = "sudo systemctl is-active kubelet"
_NODES_COMMAND = "kubectl get nodes --no-headers 2>/dev/null || echo 'kubectl-not-available'"
_NODE_PREFIX = "Node - "


@dataclass
class ComponentStatus:
    """Status of one cluster component."""

    name: str
    healthy: bool = False
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class ClusterHealth:
    """Overall health of the cluster at a point in time."""

    timestamp: datetime
    healthy: bool
    components: list[ComponentStatus]
    node_count: int
    ready_nodes: int


class Monitor:
    """Checks API server, etcd, kubelets and node readiness."""

    def __init__(
        self,
        masters: Sequence[str],
        nodes: Sequence[str],
        user: str,
        key_path: str,
        port: int = 22,
        timeout: float = 30.0,
        *,
        connector: Connector | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.masters = list(masters)
        self.nodes = list(nodes)
        self.user = user
        self.key_path = key_path
        self.port = port
        self.timeout = timeout
        self._connector = connector or remote.connect
        self._runner = runner or remote.run_command

    def _connect(self, host: str) -> Any:
        return self._connector(host, self.user, self.key_path, self.port, self.timeout)

    def _run(self, host: str, command: str) -> str | None:
        """Run a command on a reachable host; None means the command failed."""
        with closing(self._connect(host)) as client:
            try:
                return self._runner(client, command)
            except RemoteError:
                return None

    def check_cluster_health(self) -> ClusterHealth:
        """Run every health check and summarise the result."""
        components = [self._check_api_server(), self._check_etcd()]
        components.extend(self._check_kubelets())
        node_statuses = self._check_node_status()
        components.extend(node_statuses)
        ready = sum(
            1
            for status in node_statuses
            if status.name.startswith(_NODE_PREFIX) and status.healthy
        )
        return ClusterHealth(
            timestamp=datetime.now(),
            healthy=all(component.healthy for component in components),
            components=components,
            node_count=len(self.masters) + len(self.nodes),
            ready_nodes=ready,
        )

    def _check_api_server(self) -> ComponentStatus:
        status = ComponentStatus(name="Kubernetes API Server")
        if not self.masters:
            status.message = "No master nodes configured"
            return status
        try:
            output = self._run(self.masters[0], _API_COMMAND)
        except RemoteError as err:
            status.message = f"Cannot connect to master: {err}"
            return status
        if output is None:
            status.message = "API server is not responding"
        elif "ok" in output or "active" in output:
            status.healthy = True
            status.message = "API server is healthy"
        else:
            status.message = "API server status unknown"
        return status

    def _check_etcd(self) -> ComponentStatus:
        status = ComponentStatus(name="etcd")
        if not self.masters:
            status.message = "No etcd nodes configured"
            return status
        try:
            output = self._run(self.masters[0], _ETCD_COMMAND)
        except RemoteError as err:
            status.message = f"Cannot connect to etcd node: {err}"
            return status
        if output is None or "unhealthy" in output:
            status.message = "etcd cluster is unhealthy"
        elif "healthy" in output:
            status.healthy = True
            status.message = "etcd cluster is healthy"
        else:
            status.healthy = True
            status.message = "etcd status check skipped (may not be running on this node)"
        return status

    def _check_kubelets(self) -> list[ComponentStatus]:
        statuses = []
        for host in [*self.masters, *self.nodes]:
            status = ComponentStatus(name=f"kubelet - {host}")
            try:
                output = self._run(host, _KUBELET_COMMAND)
            except RemoteError as err:
                status.message = f"Cannot connect: {err}"
            else:
                if output is not None and "active" in output:
                    status.healthy = True
                    status.message = "kubelet is running"
                else:
                    status.message = "kubelet is not running"
            statuses.append(status)
        return statuses

    def _check_node_status(self) -> list[ComponentStatus]:
        if not self.masters:
            return []
        try:
            output = self._run(self.masters[0], _NODES_COMMAND)
        except RemoteError as err:
            return [
                ComponentStatus(
                    name="Node Status",
                    message=f"Cannot connect to master: {err}",
                )
            ]
        if output is None or "kubectl-not-available" in output:
            return [
                ComponentStatus(
                    name="Node Status",
                    healthy=True,
                    message="kubectl not available - cluster may still be initializing",
                )
            ]

        statuses = []
        for line in output.strip().splitlines():
            fields = line.split()
            if len(fields) < 2:
                continue
            node_name, node_state = fields[0], fields[1]
            healthy = "Ready" in node_state
            statuses.append(
                ComponentStatus(
                    name=f"{_NODE_PREFIX}{node_name}",
                    healthy=healthy,
                    message="Node is Ready" if healthy else f"Node status: {node_state}",
                )
            )
        return statuses