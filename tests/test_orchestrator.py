"""Pipeline behaviour of CloudAdmin against recording fakes."""

import pytest

from conftest import LAUNCH_HOST, FakeProvisioner
from skcloud.advisory import SparkUsageHint, StartNodesHint, TerminateLaunchHostHint
from skcloud.commands import Command, WorkflowRequest
from skcloud.errors import (
    AddressListMissing,
    HostResolutionFailed,
    InternalError,
    MetadataCreationFailed,
    RemoteOpFailed,
    ValidationError,
)
from skcloud.fleet import write_address_list
from skcloud.orchestrator import CloudAdmin


def make_admin(commands, executor, provisioner, creator, config, local=LAUNCH_HOST, **kwargs):
    request = WorkflowRequest(commands=commands, **kwargs)
    return CloudAdmin(request, executor, provisioner, creator, config, local_address_resolver=lambda: local)


# ─────────────────────────────────────────────────────────────────────────────
# LAUNCH
# ─────────────────────────────────────────────────────────────────────────────

def test_launch_end_to_end(executor, provisioner, creator, config, capsys):
    admin = make_admin([Command.LAUNCH_INSTANCES], executor, provisioner, creator, config,
                       num_instances=3, replication=2)
    admin.run()

    assert provisioner.calls == [("create", LAUNCH_HOST, 3, None, None, True)]

    keygen = [c for c in executor.of_kind("local") if "ssh-keygen" in c[2]]
    assert len(keygen) == 1
    assert f"-f {config.private_key_file} >> {config.authorized_keys_file}" in keygen[0][2]

    key_copies = [c for c in executor.of_kind("copy") if c[2] == config.private_key_file]
    assert [c[1] for c in key_copies] == ["10.0.0.2", "10.0.0.3"]
    assert all(c[3] == config.ssh_dir for c in key_copies)

    assert creator.calls == [([LAUNCH_HOST, "10.0.0.2", "10.0.0.3"], 2, LAUNCH_HOST, "/var/tmp/silverking")]

    gc_copies = [c for c in executor.of_kind("copy") if c[2] == config.gc_env_file]
    assert [c[1] for c in gc_copies] == ["10.0.0.2", "10.0.0.3"]

    symlinks = [c for c in executor.of_kind("remote") if c[2].startswith("ln -sv")]
    assert [c[1] for c in symlinks] == [LAUNCH_HOST, "10.0.0.2", "10.0.0.3"]

    assert admin.advisory.events == (StartNodesHint(),)
    out = capsys.readouterr().out
    assert "Next steps:" in out
    assert "StartNodes,CreateSKFSns,CheckSKFS" in out


def test_launch_step_order(executor, provisioner, creator, config):
    make_admin([Command.LAUNCH_INSTANCES], executor, provisioner, creator, config, num_instances=3).run()

    def first_index(predicate):
        return next(i for i, c in enumerate(executor.calls) if predicate(c))

    keygen = first_index(lambda c: "ssh-keygen" in c[-1])
    key_copy = first_index(lambda c: c[0] == "copy" and c[2] == config.private_key_file)
    zk = first_index(lambda c: c[-1] == config.zk_start_script)
    gc_copy = first_index(lambda c: c[0] == "copy" and c[2] == config.gc_env_file)
    symlink = first_index(lambda c: c[0] == "remote" and c[2].startswith("ln -sv"))
    assert keygen < key_copy < zk < gc_copy < symlink


def test_gc_copy_creates_remote_dir_first(executor, provisioner, creator, config):
    make_admin([Command.LAUNCH_INSTANCES], executor, provisioner, creator, config, num_instances=3).run()

    worker_calls = [c for c in executor.calls if c[1] == "10.0.0.2" and c[0] in ("remote", "copy")]
    mkdir = worker_calls.index(("remote", "10.0.0.2", f"mkdir -p {config.cloud_out_dir}"))
    copy = worker_calls.index(("copy", "10.0.0.2", config.gc_env_file, config.cloud_out_dir))
    assert mkdir < copy


def test_master_only_launch_skips_worker_copies(executor, creator, config):
    provisioner = FakeProvisioner(worker_addresses=[])
    make_admin([Command.LAUNCH_INSTANCES], executor, provisioner, creator, config, num_instances=1).run()

    assert executor.of_kind("copy") == []
    assert creator.calls[0][0] == [LAUNCH_HOST]
    symlinks = [c for c in executor.of_kind("remote") if c[2].startswith("ln -sv")]
    assert [c[1] for c in symlinks] == [LAUNCH_HOST]


def test_excluded_master_still_symlinks_launch_host(executor, provisioner, creator, config):
    make_admin([Command.LAUNCH_INSTANCES], executor, provisioner, creator, config,
               num_instances=2, include_master=False).run()

    assert creator.calls[0][0] == ["10.0.0.2", "10.0.0.3"]
    symlinks = [c for c in executor.of_kind("remote") if c[2].startswith("ln -sv")]
    assert [c[1] for c in symlinks] == ["10.0.0.2", "10.0.0.3", LAUNCH_HOST]


def test_key_copy_failure_is_fail_fast(executor, creator, config, capsys):
    provisioner = FakeProvisioner(worker_addresses=["10.0.0.2", "10.0.0.3", "10.0.0.4"])
    executor.fail_on("copy", "10.0.0.3")
    admin = make_admin([Command.LAUNCH_INSTANCES, Command.START_SPARK], executor, provisioner, creator, config,
                       num_instances=4)

    with pytest.raises(RemoteOpFailed) as info:
        admin.run()

    assert info.value.address == "10.0.0.3"
    assert info.value.command == Command.LAUNCH_INSTANCES
    assert [c[1] for c in executor.of_kind("copy")] == ["10.0.0.2", "10.0.0.3"]
    assert creator.calls == []
    assert config.zk_start_script not in [c[-1] for c in executor.calls]
    assert "Next steps:" not in capsys.readouterr().out


def test_metadata_failure_aborts_before_gc_copy(executor, provisioner, config):
    class FailingCreator:
        def create(self, *args):
            raise MetadataCreationFailed(["StaticDHTCreator.sh"], 3)

    admin = make_admin([Command.LAUNCH_INSTANCES], executor, provisioner, FailingCreator(), config, num_instances=3)
    with pytest.raises(MetadataCreationFailed):
        admin.run()
    assert not [c for c in executor.of_kind("copy") if c[2] == config.gc_env_file]


def test_unresolvable_launch_host_is_fatal(executor, provisioner, creator, config):
    def resolver():
        raise HostResolutionFailed("no address")

    request = WorkflowRequest(commands=[Command.LAUNCH_INSTANCES], num_instances=3)
    admin = CloudAdmin(request, executor, provisioner, creator, config, local_address_resolver=resolver)
    with pytest.raises(HostResolutionFailed):
        admin.run()
    assert provisioner.calls == []


def test_parallel_fan_out_reaches_every_worker(executor, creator, config):
    config.max_parallel = 4
    provisioner = FakeProvisioner(worker_addresses=[f"10.0.1.{n}" for n in range(1, 9)])
    make_admin([Command.LAUNCH_INSTANCES], executor, provisioner, creator, config, num_instances=9).run()

    key_copies = {c[1] for c in executor.of_kind("copy") if c[2] == config.private_key_file}
    assert key_copies == set(provisioner.worker_addresses)


# ─────────────────────────────────────────────────────────────────────────────
# START / STOP / TERMINATE
# ─────────────────────────────────────────────────────────────────────────────

def test_stop_only_prints_no_next_steps(executor, provisioner, creator, config, capsys):
    admin = make_admin([Command.STOP_INSTANCES], executor, provisioner, creator, config)
    admin.run()

    assert provisioner.calls == [("stop", config.key_name)]
    assert executor.calls == []
    assert len(admin.advisory) == 0
    assert "Next steps:" not in capsys.readouterr().out


def test_start_delegates_to_provisioner(executor, provisioner, creator, config):
    make_admin([Command.START_INSTANCES], executor, provisioner, creator, config).run()
    assert provisioner.calls == [("start", config.key_name)]
    assert executor.calls == []


def test_terminate(executor, provisioner, creator, config, capsys):
    admin = make_admin([Command.TERMINATE_INSTANCES], executor, provisioner, creator, config)
    admin.run()

    assert provisioner.calls == [("terminate", config.key_name)]
    assert executor.calls == [("local", "localhost", config.zk_stop_script)]
    assert creator.calls == []
    assert admin.advisory.events == (TerminateLaunchHostHint(),)
    assert "aws console" in capsys.readouterr().out


def test_commands_run_in_request_order(executor, provisioner, creator, config):
    make_admin([Command.STOP_INSTANCES, Command.START_INSTANCES, Command.STOP_INSTANCES],
               executor, provisioner, creator, config).run()
    assert [c[0] for c in provisioner.calls] == ["stop", "start", "stop"]


def test_unknown_command_is_internal_error(executor, provisioner, creator, config):
    admin = make_admin(["Reboot"], executor, provisioner, creator, config)
    with pytest.raises(InternalError, match="unreachable command"):
        admin.run()


def test_invalid_request_rejected_before_side_effects(executor, provisioner, creator, config):
    with pytest.raises(ValidationError):
        make_admin([], executor, provisioner, creator, config)
    assert executor.calls == provisioner.calls == creator.calls == []


# ─────────────────────────────────────────────────────────────────────────────
# SPARK
# ─────────────────────────────────────────────────────────────────────────────

def test_start_spark_with_launch_host_in_fleet(executor, provisioner, creator, config, capsys):
    write_address_list(config.ips_file, [LAUNCH_HOST, "10.0.0.2", "10.0.0.3"])
    admin = make_admin([Command.START_SPARK], executor, provisioner, creator, config)
    admin.run()

    spark = config.spark_home
    assert executor.calls == [
        ("remote", LAUNCH_HOST, f"{spark}/sbin/start-master.sh"),
        ("copy", LAUNCH_HOST, config.spark_workers_tmp_file, config.spark_slaves_file),
        ("remote", LAUNCH_HOST, f"{spark}/sbin/start-slaves.sh"),
    ]
    with open(config.spark_workers_tmp_file) as f:
        assert f.read().split() == ["10.0.0.2", "10.0.0.3"]

    assert admin.advisory.events == (SparkUsageHint(master_address=LAUNCH_HOST, launch_host=LAUNCH_HOST),)
    out = capsys.readouterr().out
    assert f"spark://{LAUNCH_HOST}:7077" in out
    assert f"ssh {LAUNCH_HOST}" not in out


def test_start_spark_with_excluded_launch_host(executor, provisioner, creator, config, capsys):
    write_address_list(config.ips_file, ["10.0.0.5", "10.0.0.6"])
    make_admin([Command.START_SPARK], executor, provisioner, creator, config).run()

    assert {c[1] for c in executor.calls} == {"10.0.0.5"}
    out = capsys.readouterr().out
    assert "ssh 10.0.0.5" in out
    assert "spark://10.0.0.5:7077" in out


def test_start_spark_single_host_skips_workers(executor, provisioner, creator, config):
    write_address_list(config.ips_file, [LAUNCH_HOST])
    make_admin([Command.START_SPARK], executor, provisioner, creator, config).run()
    assert executor.calls == [("remote", LAUNCH_HOST, f"{config.spark_home}/sbin/start-master.sh")]


def test_stop_spark(executor, provisioner, creator, config, capsys):
    write_address_list(config.ips_file, ["10.0.0.5", "10.0.0.6"])
    admin = make_admin([Command.STOP_SPARK], executor, provisioner, creator, config)
    admin.run()

    spark = config.spark_home
    assert executor.calls == [
        ("remote", "10.0.0.5", f"{spark}/sbin/stop-master.sh"),
        ("remote", "10.0.0.5", f"{spark}/sbin/stop-slaves.sh"),
    ]
    assert len(admin.advisory) == 0
    assert "Next steps:" not in capsys.readouterr().out


def test_spark_without_address_list(executor, provisioner, creator, config):
    admin = make_admin([Command.STOP_SPARK], executor, provisioner, creator, config)
    with pytest.raises(AddressListMissing):
        admin.run()
    assert executor.calls == []
