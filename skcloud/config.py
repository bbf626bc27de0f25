"""
Cloud configuration: install layout, script names and fixed parameters.

Every path the lifecycle commands touch lives here so that a different
install layout only needs different values, never different code.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ValidationError

# ─────────────────────────────────────────────────────────────────────────────
# CONSTANTS
# ─────────────────────────────────────────────────────────────────────────────

MIN_INSTANCES = 1
MAX_INSTANCES = 1000

DEFAULT_NUM_INSTANCES = 5
DEFAULT_REPLICATION = 1
DEFAULT_DATA_HOME = "/var/tmp/silverking"
DEFAULT_KEY_NAME = "sk_cloud_key"
DEFAULT_SPARK_VERSION_DIR = "spark-2.3.1-bin-hadoop2.7"


# ─────────────────────────────────────────────────────────────────────────────
# CONFIG
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class CloudConfig:
    """Paths and fixed parameters for one SilverKing cloud install."""
    user_home: str = field(default_factory=lambda: str(Path.home()))
    sk_home: str = ""               # defaults to <user_home>/SilverKing
    spark_home: str = ""            # defaults to ~/<spark dir>
    key_name: str = DEFAULT_KEY_NAME
    max_parallel: int = 1           # fan-out width for per-host steps

    # Static DHT creator
    creator_program: str = ""       # defaults to <sk_home>/bin/StaticDHTCreator.sh
    gc_name: str = "GC_SK_cloud"
    deployment_name: str = "SK_cloud"
    zk_port: int = 2181
    log_path: str = "/tmp/silverking"
    checkpoint_minutes: int = 10

    # Spark
    spark_master_port: int = 7077
    spark_workers_tmp_file: str = "/tmp/ips.txt"
    spark_jar: str = "simple-project-1.0.jar"
    skfs_mount_path: str = "/var/tmp/silverking/skfs/skfs_mnt/skfs"

    def __post_init__(self):
        if not self.sk_home:
            self.sk_home = f"{self.user_home}/SilverKing"
        if not self.spark_home:
            self.spark_home = f"~/{DEFAULT_SPARK_VERSION_DIR}"
        if not self.creator_program:
            self.creator_program = f"{self.sk_home}/bin/StaticDHTCreator.sh"
        if self.max_parallel < 1:
            raise ValidationError(f"max_parallel must be >= 1, got {self.max_parallel}")

    @classmethod
    def from_env(cls, **overrides) -> 'CloudConfig':
        env = {}
        if os.environ.get("SKCLOUD_SK_HOME"):
            env["sk_home"] = os.environ["SKCLOUD_SK_HOME"]
        if os.environ.get("SKCLOUD_SPARK_HOME"):
            env["spark_home"] = os.environ["SKCLOUD_SPARK_HOME"]
        if os.environ.get("SKCLOUD_KEY_NAME"):
            env["key_name"] = os.environ["SKCLOUD_KEY_NAME"]
        if os.environ.get("SKCLOUD_MAX_PARALLEL"):
            try:
                env["max_parallel"] = int(os.environ["SKCLOUD_MAX_PARALLEL"])
            except ValueError:
                raise ValidationError(f"SKCLOUD_MAX_PARALLEL must be an integer, got {os.environ['SKCLOUD_MAX_PARALLEL']!r}") from None
        env.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**env)

    # Derived locations

    @property
    def cloud_out_dir(self) -> str:
        return f"{self.sk_home}/bin/cloud_out"

    @property
    def ssh_dir(self) -> str:
        return f"{self.user_home}/.ssh"

    @property
    def private_key_file(self) -> str:
        return f"{self.ssh_dir}/id_rsa"

    @property
    def authorized_keys_file(self) -> str:
        return f"{self.ssh_dir}/authorized_keys"

    @property
    def ips_file(self) -> str:
        return f"{self.cloud_out_dir}/cloud_ip_list.txt"

    @property
    def gc_env_file(self) -> str:
        return f"{self.cloud_out_dir}/{self.gc_name}.env"

    @property
    def skfs_config_file(self) -> str:
        return f"{self.cloud_out_dir}/../lib/skfs.config"

    @property
    def zk_start_script(self) -> str:
        return f"{self.sk_home}/build/aws/zk_start.sh"

    @property
    def zk_stop_script(self) -> str:
        return f"{self.sk_home}/build/aws/zk_stop.sh"

    @property
    def skfsd_target(self) -> str:
        return f"{self.cloud_out_dir}/../../build/skfs-build/skfs-install/arch-output-area/skfsd"

    @property
    def skfsd_link(self) -> str:
        return f"{self.cloud_out_dir}/../skfs/skfsd"

    @property
    def spark_slaves_file(self) -> str:
        return f"{self.spark_home}/conf/slaves"
