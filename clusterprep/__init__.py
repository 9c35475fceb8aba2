"""Inventory validation, subnet helpers, SSH preflight checks and cluster health monitoring."""

__version__ = "0.1.0"