"""Static DHT creator invocation (cluster topology and storage metadata)."""

import subprocess

from .config import CloudConfig
from .console import print_command
from .errors import MetadataCreationFailed


class StaticDhtCreator:
    """Runs the external static DHT creator program for a fleet."""

    def __init__(self, config: CloudConfig):
        self.config = config

    def build_args(self, addresses: list[str], replication: int, coordinator_host: str, data_home: str) -> list[str]:
        """Argument list in the order the creator expects."""
        c = self.config
        return [
            "-G", c.cloud_out_dir,
            "-g", c.gc_name,
            "-d", c.deployment_name,
            "-s", ",".join(addresses),
            "-r", str(replication),
            "-z", f"{coordinator_host}:{c.zk_port}",
            "-D", data_home,
            "-L", c.log_path,
            "-k", c.skfs_config_file,
            "-i", str(c.checkpoint_minutes),  # minutes
        ]

    def create(self, addresses: list[str], replication: int, coordinator_host: str, data_home: str):
        cmd = [self.config.creator_program] + self.build_args(addresses, replication, coordinator_host, data_home)
        print_command(" ".join(cmd))
        try:
            result = subprocess.run(cmd)
        except FileNotFoundError:
            # Mirror the shell's "command not found" status
            raise MetadataCreationFailed(cmd, 127) from None
        if result.returncode != 0:
            raise MetadataCreationFailed(cmd, result.returncode)
