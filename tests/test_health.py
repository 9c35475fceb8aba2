from __future__ import annotations

from clusterprep.health import ComponentStatus, Monitor
from clusterprep.remote import RemoteError

API = "sudo systemctl is-active kube-apiserver"
ETCD = "sudo ETCDCTL_API=3"
KUBELET = "sudo systemctl is-active kubelet"
NODES = "kubectl get nodes"


class FakeClient:
    def __init__(self, host: str) -> None:
        self.host = host
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeCluster:
    """Scripted hosts: command prefixes map to output or to a RemoteError."""

    def __init__(self, outputs=None, unreachable=()):
        self.outputs = outputs or {}
        self.unreachable = set(unreachable)
        self.clients: list[FakeClient] = []

    def connect(self, host, user, key_path, port, timeout):
        if host in self.unreachable:
            raise RemoteError("connection refused")
        client = FakeClient(host)
        self.clients.append(client)
        return client

    def run(self, client, command):
        for prefix, value in self.outputs.get(client.host, {}).items():
            if command.startswith(prefix):
                if isinstance(value, Exception):
                    raise value
                return value
        raise RemoteError("command failed")


def make_monitor(cluster, masters, nodes) -> Monitor:
    return Monitor(
        masters,
        nodes,
        "ubuntu",
        "/tmp/test_key",
        connector=cluster.connect,
        runner=cluster.run,
    )


def healthy_outputs():
    return {
        "m1": {
            API: "active\n",
            ETCD: "127.0.0.1:2379 is healthy: successfully committed proposal\n",
            KUBELET: "active\n",
            NODES: "m1 Ready control-plane 1d v1.29.0\nn1 Ready <none> 1d v1.29.0\n",
        },
        "n1": {KUBELET: "active\n"},
    }


def by_name(health):
    return {component.name: component for component in health.components}


def test_healthy_cluster():
    cluster = FakeCluster(healthy_outputs())
    health = make_monitor(cluster, ["m1"], ["n1"]).check_cluster_health()
    assert health.healthy is True
    assert health.node_count == 2
    assert health.ready_nodes == 2
    names = [c.name for c in health.components]
    assert names == [
        "Kubernetes API Server",
        "etcd",
        "kubelet - m1",
        "kubelet - n1",
        "Node - m1",
        "Node - n1",
    ]
    components = by_name(health)
    assert components["Kubernetes API Server"].message == "API server is healthy"
    assert components["etcd"].message == "etcd cluster is healthy"
    assert components["kubelet - n1"].message == "kubelet is running"
    assert components["Node - m1"].message == "Node is Ready"
    assert all(client.closed for client in cluster.clients)


def test_no_masters():
    cluster = FakeCluster({"n1": {KUBELET: "active\n"}})
    health = make_monitor(cluster, [], ["n1"]).check_cluster_health()
    assert health.healthy is False
    assert health.node_count == 1
    assert health.ready_nodes == 0
    components = by_name(health)
    assert components["Kubernetes API Server"].message == "No master nodes configured"
    assert components["etcd"].message == "No etcd nodes configured"
    assert not any(name.startswith("Node") for name in components)


def test_node_not_ready():
    outputs = healthy_outputs()
    outputs["m1"][NODES] = "m1 Ready control-plane 1d v1.29.0\nn1 Unknown <none> 1d v1.29.0\n"
    health = make_monitor(FakeCluster(outputs), ["m1"], ["n1"]).check_cluster_health()
    assert health.healthy is False
    assert health.ready_nodes == 1
    node = by_name(health)["Node - n1"]
    assert node == ComponentStatus(
        name="Node - n1", healthy=False, message="Node status: Unknown"
    )


def test_kubectl_unavailable():
    outputs = healthy_outputs()
    outputs["m1"][NODES] = "kubectl-not-available\n"
    health = make_monitor(FakeCluster(outputs), ["m1"], ["n1"]).check_cluster_health()
    status = by_name(health)["Node Status"]
    assert status.healthy is True
    assert status.message == "kubectl not available - cluster may still be initializing"
    assert health.ready_nodes == 0
    assert health.healthy is True


def test_etcd_unhealthy():
    outputs = healthy_outputs()
    outputs["m1"][ETCD] = "127.0.0.1:2379 is unhealthy\n"
    health = make_monitor(FakeCluster(outputs), ["m1"], ["n1"]).check_cluster_health()
    etcd = by_name(health)["etcd"]
    assert etcd.healthy is False
    assert etcd.message == "etcd cluster is unhealthy"
    assert health.healthy is False


def test_etcd_check_skipped():
    outputs = healthy_outputs()
    outputs["m1"][ETCD] = "etcd-check-skipped\n"
    health = make_monitor(FakeCluster(outputs), ["m1"], ["n1"]).check_cluster_health()
    etcd = by_name(health)["etcd"]
    assert etcd.healthy is True
    assert etcd.message == "etcd status check skipped (may not be running on this node)"


def test_api_server_not_responding():
    outputs = healthy_outputs()
    outputs["m1"][API] = RemoteError("command exited with status 1")
    health = make_monitor(FakeCluster(outputs), ["m1"], ["n1"]).check_cluster_health()
    api = by_name(health)["Kubernetes API Server"]
    assert api.healthy is False
    assert api.message == "API server is not responding"


def test_api_server_status_unknown():
    outputs = healthy_outputs()
    outputs["m1"][API] = "starting\n"
    health = make_monitor(FakeCluster(outputs), ["m1"], ["n1"]).check_cluster_health()
    assert by_name(health)["Kubernetes API Server"].message == "API server status unknown"


def test_kubelet_not_running():
    outputs = healthy_outputs()
    outputs["n1"][KUBELET] = RemoteError("command exited with status 3", "inactive\n")
    health = make_monitor(FakeCluster(outputs), ["m1"], ["n1"]).check_cluster_health()
    kubelet = by_name(health)["kubelet - n1"]
    assert kubelet.healthy is False
    assert kubelet.message == "kubelet is not running"
    assert health.healthy is False


def test_unreachable_master():
    cluster = FakeCluster({"n1": {KUBELET: "active\n"}}, unreachable={"m1"})
    health = make_monitor(cluster, ["m1"], ["n1"]).check_cluster_health()
    components = by_name(health)
    assert (
        components["Kubernetes API Server"].message
        == "Cannot connect to master: connection refused"
    )
    assert components["etcd"].message == "Cannot connect to etcd node: connection refused"
    assert components["kubelet - m1"].message == "Cannot connect: connection refused"
    assert components["Node Status"].healthy is False
    assert components["kubelet - n1"].healthy is True
    assert health.healthy is False