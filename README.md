# clusterprep

A library for getting a set of hosts ready for a Kubernetes deployment and for
checking on the cluster afterwards. Remote checks run over SSH with private-key
authentication.

## Installation

```
pip install clusterprep
```

## Validating an inventory

`clusterprep.inventory.Validator.validate(path)` reads an Ansible INI inventory
and checks that it has these section headers, each on a line of its own:

- `[all]`
- `[kube_control_plane]` or `[kube-master]`
- `[kube_node]` or `[kube-node]`
- `[etcd]`

Blank lines and lines starting with `#` are skipped. If the file cannot be
opened or read, or a section is missing, it raises `InventoryError`. On success
it prints `Inventory validation successful: <path>` and returns `None`.

```python
from clusterprep.inventory import InventoryError, Validator

try:
    Validator().validate("inventory/hosts.ini")
except InventoryError as exc:
    print(f"bad inventory: {exc}")
```

`Validator` takes an optional `config` object, which it keeps as an attribute
but does not use for validation.

## Network helpers

```python
from clusterprep.network import Calculator

calc = Calculator()
network = calc.validate_cidr("10.233.0.0/16")   # an ipaddress network object
service_net, pod_net = calc.calculate_subnets("10.233.0.0/16")
# ("10.233.0.0/18", "10.233.64.0/18")
```

- `validate_cidr(cidr)` requires an explicit prefix length, accepts host bits
  being set, and returns the `ipaddress` network. It raises `ValueError` for an
  invalid CIDR. IPv4 and IPv6 are both accepted.
- `calculate_subnets(cidr)` raises `ValueError` for an invalid CIDR or an IPv6
  network. For any valid IPv4 network it returns the fixed pair
  `("10.233.0.0/18", "10.233.64.0/18")` (the module constants
  `SERVICE_NETWORK` and `POD_NETWORK`); it does not derive them from the input.

## Preflight checks

`clusterprep.preflight.Checker(hosts, user, key_path, port=22, timeout=30.0)`
runs these checks, each producing `CheckResult` objects with `name`, `passed`,
`message` and `details`:

- `check_ssh_connectivity()` — one result per host: can it be reached over SSH.
- `check_system_requirements()` — one result per host: at least 2 CPU cores
  (`nproc`), 2 GB of memory (`MemTotal` from `/proc/meminfo`, rounded down to
  whole GB) and 20 GB free on `/` (`df -BG`). Measured values go into `details`
  as `cpu_cores`, `memory_gb` and `disk_available_gb`. A measurement whose
  command fails is skipped rather than failed.
- `check_network_connectivity()` — one result per pair of hosts, pinging from
  the earlier host to the later one; it passes when all 3 pings are received.
- `check_kubernetes_version()` — always passes and lists the supported versions
  v1.28, v1.29 and v1.30 in `details["supported_versions"]`.

`run_all()` returns all of these results in that order.

```python
from clusterprep.preflight import Checker

checker = Checker(["10.0.1.1", "10.0.1.2"], "ubuntu", "/home/ubuntu/.ssh/id_ed25519", 22)
for result in checker.run_all():
    mark = "PASS" if result.passed else "FAIL"
    print(f"[{mark}] {result.name}: {result.message}")
```

## Cluster health

`clusterprep.health.Monitor(masters, nodes, user, key_path, port=22, timeout=30.0)`
has one public method, `check_cluster_health()`, which returns a
`ClusterHealth` with `timestamp`, `healthy`, `components`, `node_count` and
`ready_nodes`. The components are `ComponentStatus` objects (`name`, `healthy`,
`message`, `details`) covering:

- the API server and etcd, checked on the first master;
- kubelet on every master and node;
- each node's state as reported by `kubectl get nodes` on the first master
  (named `Node - <name>`). If `kubectl` is not available, a single healthy
  `Node Status` entry says the cluster may still be initialising.

`healthy` is true only when every component is healthy; `node_count` is the
number of masters plus nodes; `ready_nodes` counts the `Node - ` entries that
are Ready.

```python
from clusterprep.health import Monitor

monitor = Monitor(["10.0.1.1"], ["10.0.2.1", "10.0.2.2"], "ubuntu",
                  "/home/ubuntu/.ssh/id_ed25519", 22)
health = monitor.check_cluster_health()
print("healthy" if health.healthy else "unhealthy",
      f"{health.ready_nodes}/{health.node_count} nodes ready")
for component in health.components:
    print(component.name, component.message)
```

## Substituting the SSH layer

Both `Checker` and `Monitor` accept keyword-only `connector` and `runner`
arguments. `connector(host, user, key_path, port, timeout)` must return an
object with a `close()` method or raise `RemoteError`; `runner(client, command)`
must return the command's output or raise `RemoteError`. They default to the
functions in `clusterprep.remote`, and are useful for testing or for routing
commands some other way.

## Low-level SSH access

- `clusterprep.remote.connect(host, user, key_path, port=22, timeout=30.0)`
  loads an Ed25519, ECDSA or RSA private key from `key_path` (the path is used
  as given; `~` is not expanded) and returns a connected `paramiko.SSHClient`.
  Unknown host keys are accepted automatically, and neither an SSH agent nor
  default key files are consulted.
- `clusterprep.remote.run_command(client, command)` runs a command and returns
  its combined stdout and stderr as text.

Both raise `RemoteError`. When a command exits with a non-zero status, the
error's `output` attribute holds what it printed.

## What this package does not do

It is a library only: it installs no command-line program. It does not
generate inventories, install or configure Kubernetes, load configuration
files, or store results; it only reads an existing inventory and reports on
hosts and clusters over SSH.

## Running the tests

```
pip install "clusterprep[test]"
pytest
```