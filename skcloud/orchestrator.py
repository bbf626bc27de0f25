"""
Lifecycle command orchestration.

Each requested command runs its fixed pipeline in request order. Any failure
aborts the pipeline and every command after it; nothing is retried or rolled
back. Next-step guidance is reported once, only when every command succeeded.
"""

from pathlib import Path
from typing import Callable

from .advisory import AdvisoryLog, SparkUsageHint, StartNodesHint, TerminateLaunchHostHint, report
from .commands import Command, WorkflowRequest
from .config import CloudConfig
from .console import console, print_done, print_header, print_step
from .errors import InternalError, SkCloudError
from .fanout import for_each_host
from .fleet import FleetView, read_address_list, split_spark_roles, write_address_list
from .remote import resolve_local_address
from .validation import validate


class CloudAdmin:
    """Runs a validated WorkflowRequest against the fleet's collaborators."""

    def __init__(self, request: WorkflowRequest, executor, provisioner, metadata_creator,
                 config: CloudConfig | None = None,
                 local_address_resolver: Callable[[], str] = resolve_local_address):
        validate(request)
        self.request = request
        self.executor = executor
        self.provisioner = provisioner
        self.metadata_creator = metadata_creator
        self.config = config or CloudConfig()
        self.resolve_local_address = local_address_resolver
        self.advisory = AdvisoryLog()

    def run(self):
        """Execute every requested command in order, then report next steps."""
        for command in self.request.commands:
            try:
                self._dispatch(command)
            except SkCloudError as e:
                if e.command is None:
                    e.command = command
                raise
        report(self.advisory, self.config)

    def _dispatch(self, command: Command):
        if command == Command.LAUNCH_INSTANCES:
            self.launch_instances()
        elif command == Command.START_INSTANCES:
            self.start_instances()
        elif command == Command.STOP_INSTANCES:
            self.stop_instances()
        elif command == Command.TERMINATE_INSTANCES:
            self.terminate_instances()
        elif command == Command.START_SPARK:
            self.start_spark()
        elif command == Command.STOP_SPARK:
            self.stop_spark()
        else:
            raise InternalError(f"unreachable command: {command!r}")

    def _for_each_host(self, hosts: list[str], operation: Callable[[str], None]):
        for_each_host(hosts, operation, self.config.max_parallel)

    # ─────────────────────────────────────────────────────────────────────────
    # LAUNCH
    # ─────────────────────────────────────────────────────────────────────────

    def launch_instances(self):
        print_header("LAUNCHING INSTANCES")
        req = self.request
        launch_host = self.resolve_local_address()

        fleet = self.provisioner.create(
            launch_host, req.num_instances, req.ami_id, req.instance_type, req.include_master
        )

        # The launch host holds the fleet's private key; the fleet already
        # trusts its public half, so adding that to our own authorized_keys
        # lets the launch host ssh to itself too.
        self.add_public_key_to_authorized_keys()
        if not fleet.is_master_only:
            self.copy_private_key_to_workers(fleet.worker_addresses)
        self.start_zookeeper()
        self.create_static_dht(launch_host, fleet.all_addresses)
        if not fleet.is_master_only:
            self.copy_gc_to_workers(fleet.worker_addresses)
        self.symlink_skfsd(self._symlink_hosts(fleet, launch_host))

        self.advisory.append(StartNodesHint())

    def add_public_key_to_authorized_keys(self):
        print_step("Generating public key and adding it to authorized_keys")
        c = self.config
        self.executor.run_local(f"ssh-keygen -y -f {c.private_key_file} >> {c.authorized_keys_file}")
        print_done()

    def copy_private_key_to_workers(self, workers: list[str]):
        print_step("Copying private key to workers")
        key, ssh_dir = self.config.private_key_file, self.config.ssh_dir
        self._for_each_host(workers, lambda host: self.executor.copy_file(key, host, ssh_dir))
        print_done()

    def start_zookeeper(self):
        print_step("Starting ZooKeeper")
        self.executor.run_local(self.config.zk_start_script)
        print_done()

    def create_static_dht(self, launch_host: str, addresses: list[str]):
        print_step("Running static DHT creator")
        self.metadata_creator.create(addresses, self.request.replication, launch_host, self.request.data_home)
        print_done()

    def copy_gc_to_workers(self, workers: list[str]):
        print_step("Copying GC to workers")
        out_dir, env_file = self.config.cloud_out_dir, self.config.gc_env_file

        def copy_gc(host: str):
            self.executor.run_remote(host, f"mkdir -p {out_dir}")
            self.executor.copy_file(env_file, host, out_dir)

        self._for_each_host(workers, copy_gc)
        print_done()

    @staticmethod
    def _symlink_hosts(fleet: FleetView, launch_host: str) -> list[str]:
        """Every fleet address plus the launch host.

        skfsd is needed on the launch host when it is in the fleet; when it
        is not, the link is unused.
        """
        hosts = fleet.all_addresses
        return hosts if launch_host in hosts else hosts + [launch_host]

    def symlink_skfsd(self, hosts: list[str]):
        print_step("Symlinking skfsd on all machines")
        target, link = self.config.skfsd_target, self.config.skfsd_link
        command = f"ln -sv {target} {link}; ls {target}; ls {link}"
        self._for_each_host(hosts, lambda host: self.executor.run_remote(host, command))
        print_done()

    # ─────────────────────────────────────────────────────────────────────────
    # START / STOP / TERMINATE
    # ─────────────────────────────────────────────────────────────────────────

    def start_instances(self):
        print_header("STARTING INSTANCES")
        self.provisioner.start(self.config.key_name)

    def stop_instances(self):
        print_header("STOPPING INSTANCES")
        self.provisioner.stop(self.config.key_name)

    def terminate_instances(self):
        print_header("TERMINATING INSTANCES")
        self.provisioner.terminate(self.config.key_name)
        self.stop_zookeeper()
        self.advisory.append(TerminateLaunchHostHint())

    def stop_zookeeper(self):
        print_step("Stopping ZooKeeper")
        self.executor.run_local(self.config.zk_stop_script)
        print_done()

    # ─────────────────────────────────────────────────────────────────────────
    # SPARK
    # ─────────────────────────────────────────────────────────────────────────

    def _spark_roles(self) -> tuple[str, str, list[str]]:
        addresses = read_address_list(self.config.ips_file)
        launch_host = self.resolve_local_address()
        master, workers = split_spark_roles(addresses, launch_host)
        console.print(f"[bold]Spark master:[/bold] {master}")
        return launch_host, master, workers

    def start_spark(self):
        print_header("STARTING SPARK")
        launch_host, master, workers = self._spark_roles()
        sbin = f"{self.config.spark_home}/sbin"

        self.executor.run_remote(master, f"{sbin}/start-master.sh")
        if workers:
            tmp_file = self.config.spark_workers_tmp_file
            write_address_list(Path(tmp_file), workers)
            self.executor.copy_file(tmp_file, master, self.config.spark_slaves_file)
            self.executor.run_remote(master, f"{sbin}/start-slaves.sh")

        self.advisory.append(SparkUsageHint(master_address=master, launch_host=launch_host))

    def stop_spark(self):
        print_header("STOPPING SPARK")
        _, master, workers = self._spark_roles()
        sbin = f"{self.config.spark_home}/sbin"

        self.executor.run_remote(master, f"{sbin}/stop-master.sh")
        if workers:
            self.executor.run_remote(master, f"{sbin}/stop-slaves.sh")
