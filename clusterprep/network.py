"""IPv4 subnet helpers for cluster network planning."""

from __future__ import annotations

import ipaddress

SERVICE_NETWORK = "10.233.0.0/18"
POD_NETWORK = "10.233.64.0/18"


def _parse_cidr(cidr: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    """Parse CIDR notation, requiring an explicit prefix length."""
    if "/" not in cidr:
        raise ValueError(f"missing prefix length in {cidr!r}")
    return ipaddress.ip_network(cidr, strict=False)


class Calculator:
    """Works out the service and pod subnets of a cluster."""

    def calculate_subnets(self, cidr: str) -> tuple[str, str]:
        """Return the (service, pod) subnets for an IPv4 parent network."""
        try:
            network = _parse_cidr(cidr)
        except ValueError as err:
            raise ValueError(f"invalid CIDR: {err}") from err
        if network.version != 4:
            raise ValueError("only IPv4 networks are supported")
        return SERVICE_NETWORK, POD_NETWORK

    def validate_cidr(self, cidr: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
        """Check CIDR notation and return the network it names."""
        try:
            return _parse_cidr(cidr)
        except ValueError as err:
            raise ValueError(f"invalid CIDR {cidr}: {err}") from err