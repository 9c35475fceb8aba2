"""Preflight checks run against cluster hosts before deployment."""

from __future__ import annotations

import itertools
import re
from contextlib import closing
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from clusterprep import remote
from clusterprep.remote import RemoteError

MIN_CPU = 2
MIN_MEMORY_GB = 2
MIN_DISK_GB = 20
SUPPORTED_VERSIONS = ("v1.28", "v1.29", "v1.30")

_MEMTOTAL = re.compile(r"MemTotal:\s+(\d+)\s+kB")

Connector = Callable[..., Any]
Runner = Callable[[Any, str], str]


@dataclass
class CheckResult:
    """Outcome of a single preflight check."""

    name: str
    passed: bool = False
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)


def _to_int(text: str) -> int:
    """Parse an integer, treating anything unparsable as zero."""
    try:
        return int(text.strip())
    except ValueError:
        return 0


class Checker:
    """Runs connectivity, resource and version checks over SSH."""

    def __init__(
        self,
        hosts: Sequence[str],
        user: str,
        key_path: str,
        port: int = 22,
        timeout: float = 30.0,
        *,
        connector: Connector | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.hosts = list(hosts)
        self.user = user
        self.key_path = key_path
        self.port = port
        self.timeout = timeout
        self._connector = connector or remote.connect
        self._runner = runner or remote.run_command

    def _connect(self, host: str) -> Any:
        return self._connector(host, self.user, self.key_path, self.port, self.timeout)

    def _run(self, client: Any, command: str) -> str | None:
        """Run a command, returning None when it fails."""
        try:
            return self._runner(client, command)
        except RemoteError:
            return None

    def run_all(self) -> list[CheckResult]:
        """Run every check and return the results in order."""
        return [
            *self.check_ssh_connectivity(),
            *self.check_system_requirements(),
            *self.check_network_connectivity(),
            self.check_kubernetes_version(),
        ]

    def check_ssh_connectivity(self) -> list[CheckResult]:
        """Check that every host accepts an SSH connection."""
        results = []
        for host in self.hosts:
            result = CheckResult(name=f"SSH Connectivity - {host}")
            try:
                client = self._connect(host)
            except RemoteError as err:
                result.message = f"Failed to connect: {err}"
            else:
                client.close()
                result.passed = True
                result.message = "SSH connection successful"
            results.append(result)
        return results

    def check_system_requirements(self) -> list[CheckResult]:
        """Check CPU cores, memory and free disk space on every host."""
        results = []
        for host in self.hosts:
            result = CheckResult(name=f"System Requirements - {host}")
            try:
                client = self._connect(host)
            except RemoteError as err:
                result.message = f"Cannot connect: {err}"
            else:
                with closing(client):
                    self._assess_resources(client, result)
            results.append(result)
        return results

    def _assess_resources(self, client: Any, result: CheckResult) -> None:
        cpu_output = self._run(client, "nproc")
        if cpu_output is not None:
            cpu = _to_int(cpu_output)
            result.details["cpu_cores"] = cpu
            if cpu < MIN_CPU:
                result.message = f"Insufficient CPU cores: {cpu} (minimum: {MIN_CPU})"
                return

        mem_output = self._run(client, "cat /proc/meminfo | grep MemTotal")
        if mem_output is not None:
            match = _MEMTOTAL.search(mem_output)
            if match:
                mem_gb = int(match.group(1)) // 1024 // 1024
                result.details["memory_gb"] = mem_gb
                if mem_gb < MIN_MEMORY_GB:
                    result.message = (
                        f"Insufficient memory: {mem_gb}GB (minimum: {MIN_MEMORY_GB}GB)"
                    )
                    return

        disk_output = self._run(client, "df -BG / | tail -1 | awk '{print $4}'")
        if disk_output is not None:
            disk_gb = _to_int(disk_output.strip().removesuffix("G"))
            result.details["disk_available_gb"] = disk_gb
            if disk_gb < MIN_DISK_GB:
                result.message = (
                    f"Insufficient disk space: {disk_gb}GB (minimum: {MIN_DISK_GB}GB)"
                )
                return

        result.passed = True
        result.message = "System requirements met"

    def check_network_connectivity(self) -> list[CheckResult]:
        """Ping between every pair of hosts, from the earlier to the later."""
        results = []
        for src, dst in itertools.combinations(self.hosts, 2):
            result = CheckResult(name=f"Network Connectivity - {src} to {dst}")
            try:
                client = self._connect(src)
            except RemoteError as err:
                result.message = f"Cannot connect to source: {err}"
            else:
                with closing(client):
                    output = self._run(client, f"ping -c 3 -W 2 {dst}")
                if output is not None and "3 received" in output:
                    result.passed = True
                    result.message = "Network connectivity verified"
                else:
                    result.message = "Ping failed between nodes"
            results.append(result)
        return results

    def check_kubernetes_version(self) -> CheckResult:
        """Report the Kubernetes versions this tool supports."""
        versions = list(SUPPORTED_VERSIONS)
        return CheckResult(
            name="Kubernetes Version Compatibility",
            passed=True,
            message=f"Supported versions: {', '.join(versions)}",
            details={"supported_versions": versions},
        )