"""SSH connections and remote command execution."""

from __future__ import annotations

import io
import os
from pathlib import Path

import paramiko

_KEY_TYPES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


class RemoteError(Exception):
    """Raised when a remote host cannot be reached or a command fails."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


def _load_key(key_path: str | os.PathLike[str]) -> paramiko.PKey:
    try:
        data = Path(key_path).read_bytes()
    except OSError as err:
        raise RemoteError(f"cannot read SSH key: {err}") from err
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise RemoteError(f"cannot parse SSH key: {err}") from err

    last_error: Exception | None = None
    for key_type in _KEY_TYPES:
        try:
            return key_type.from_private_key(io.StringIO(text))
        except (paramiko.SSHException, ValueError) as err:
            last_error = err
    raise RemoteError(f"cannot parse SSH key: {last_error}")


def connect(
    host: str,
    user: str,
    key_path: str | os.PathLike[str],
    port: int = 22,
    timeout: float = 30.0,
) -> paramiko.SSHClient:
    """Open an SSH connection authenticated with a private key file."""
    pkey = _load_key(key_path)
    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    try:
        client.connect(
            hostname=host,
            port=port,
            username=user,
            pkey=pkey,
            timeout=timeout,
            allow_agent=False,
            look_for_keys=False,
        )
    except (OSError, paramiko.SSHException) as err:
        client.close()
        raise RemoteError(f"SSH dial failed: {err}") from err
    return client


def run_command(client: paramiko.SSHClient, command: str) -> str:
    """Run a command and return its combined stdout and stderr."""
    transport = client.get_transport()
    if transport is None:
        raise RemoteError("cannot open session: not connected")
    try:
        with transport.open_session() as channel:
            channel.set_combine_stderr(True)
            channel.exec_command(command)
            output = channel.makefile("rb").read().decode("utf-8", errors="replace")
            status = channel.recv_exit_status()
    except (OSError, paramiko.SSHException) as err:
        raise RemoteError(f"cannot run command: {err}") from err
    if status != 0:
        raise RemoteError(f"command exited with status {status}", output)
    return output