"""
Local and remote command execution over bash, ssh and scp.

Fleet members already trust the launch host's key, so ssh/scp run
non-interactively with host-key prompts disabled.
"""

import socket
import subprocess

from .console import print_command, print_output
from .errors import HostResolutionFailed, RemoteOpFailed

LOCALHOST = "localhost"

SSH_OPTIONS = [
    "-o", "StrictHostKeyChecking=no",
    "-o", "UserKnownHostsFile=/dev/null",
    "-o", "LogLevel=ERROR",
    "-o", "BatchMode=yes",
    "-o", "ConnectTimeout=30",
]


def resolve_local_address() -> str:
    """Address of this (launch) host as the rest of the fleet sees it."""
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError as e:
        raise HostResolutionFailed(f"cannot resolve this host's address: {e}") from e


def ssh_cmd(address: str, command: str) -> list[str]:
    return ["ssh"] + SSH_OPTIONS + [address, command]


def scp_cmd(local_path: str, address: str, remote_path: str) -> list[str]:
    return ["scp"] + SSH_OPTIONS + [local_path, f"{address}:{remote_path}"]


class RemoteExecutor:
    """Runs commands and copies files; any non-zero status raises RemoteOpFailed."""

    def __init__(self, echo: bool = True):
        self.echo = echo

    def _run(self, cmd: list[str], address: str, display: str) -> int:
        if self.echo:
            print_command(display, address)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise RemoteOpFailed(address, display, detail=str(e)) from e
        if result.returncode != 0:
            raise RemoteOpFailed(address, display, result.returncode, result.stderr.strip())
        if self.echo:
            print_output(result.stdout)
        return result.returncode

    def run_local(self, command: str) -> int:
        """Run through bash so chained commands and redirects work."""
        return self._run(["bash", "-c", command], LOCALHOST, command)

    def run_remote(self, address: str, command: str) -> int:
        return self._run(ssh_cmd(address, command), address, command)

    def copy_file(self, local_path: str, address: str, remote_dir: str) -> int:
        display = f"scp {local_path} {address}:{remote_dir}"
        return self._run(scp_cmd(local_path, address, remote_dir), address, display)
