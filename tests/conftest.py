"""Shared fakes for the orchestrator's collaborators."""

import pytest

from skcloud.config import CloudConfig
from skcloud.errors import RemoteOpFailed
from skcloud.fleet import FleetView

LAUNCH_HOST = "10.0.0.1"


class FakeExecutor:
    """Records every call; ``fail_on(kind, address)`` makes one call fail."""

    def __init__(self):
        self.calls = []
        self._failures = set()

    def fail_on(self, kind: str, address: str):
        self._failures.add((kind, address))

    def _record(self, kind, address, *args):
        self.calls.append((kind, address) + args)
        if (kind, address) in self._failures:
            raise RemoteOpFailed(address, " ".join(str(a) for a in args), 1)
        return 0

    def run_local(self, command):
        return self._record("local", "localhost", command)

    def run_remote(self, address, command):
        return self._record("remote", address, command)

    def copy_file(self, local_path, address, remote_dir):
        return self._record("copy", address, local_path, remote_dir)

    def of_kind(self, kind):
        return [c for c in self.calls if c[0] == kind]


class FakeProvisioner:
    def __init__(self, worker_addresses=("10.0.0.2", "10.0.0.3")):
        self.worker_addresses = list(worker_addresses)
        self.calls = []

    def create(self, launch_host, fleet_size, image_id, instance_class, include_master):
        self.calls.append(("create", launch_host, fleet_size, image_id, instance_class, include_master))
        master = launch_host if include_master else None
        return FleetView(master_address=master, worker_addresses=list(self.worker_addresses))

    def start(self, key_name):
        self.calls.append(("start", key_name))

    def stop(self, key_name):
        self.calls.append(("stop", key_name))

    def terminate(self, key_name):
        self.calls.append(("terminate", key_name))


class FakeCreator:
    def __init__(self):
        self.calls = []

    def create(self, addresses, replication, coordinator_host, data_home):
        self.calls.append((list(addresses), replication, coordinator_host, data_home))


@pytest.fixture
def config(tmp_path):
    return CloudConfig(
        user_home=str(tmp_path / "home"),
        spark_workers_tmp_file=str(tmp_path / "ips.txt"),
    )


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def provisioner():
    return FakeProvisioner()


@pytest.fixture
def creator():
    return FakeCreator()
