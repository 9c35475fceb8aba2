"""Validation of Ansible inventory files."""

from __future__ import annotations

import os
from typing import Any

_CONTROL_PLANE = {"[kube_control_plane]", "[kube-master]"}
_NODE = {"[kube_node]", "[kube-node]"}


class InventoryError(Exception):
    """Raised when an inventory file cannot be read or is incomplete."""


class Validator:
    """Checks that an inventory holds the sections a cluster needs."""

    def __init__(self, config: Any = None) -> None:
        self.config = config

    def validate(self, path: str | os.PathLike[str]) -> None:
        """Raise InventoryError unless every required section is present."""
        try:
            handle = open(path, encoding="utf-8")
        except OSError as err:
            raise InventoryError(f"failed to open inventory: {err}") from err

        sections: set[str] = set()
        with handle:
            try:
                for raw in handle:
                    line = raw.strip()
                    if not line or line.startswith("#"):
                        continue
                    if line == "[all]":
                        sections.add("all")
                    elif line in _CONTROL_PLANE:
                        sections.add("control_plane")
                    elif line in _NODE:
                        sections.add("node")
                    elif line == "[etcd]":
                        sections.add("etcd")
            except (OSError, UnicodeDecodeError) as err:
                raise InventoryError(f"error reading inventory: {err}") from err

        required = [
            ("all", "[all]"),
            ("control_plane", "[kube_control_plane]"),
            ("node", "[kube_node]"),
            ("etcd", "[etcd]"),
        ]
        for key, header in required:
            if key not in sections:
                raise InventoryError(f"inventory missing {header} section")

        print(f"Inventory validation successful: {path}")