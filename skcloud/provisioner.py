"""
EC2 fleet provisioning via boto3.

The fleet is identified by its key pair name: every instance is launched with
that key and tagged with it, and start/stop/terminate find the fleet through
the ``key-name`` filter.
"""

import os
import sys
from pathlib import Path

import boto3
from botocore.exceptions import ClientError, ProfileNotFound, WaiterError
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .config import CloudConfig
from .console import console, print_done, print_error, print_step
from .errors import RemoteOpFailed
from .fleet import FleetView, write_address_list

EC2_ENDPOINT = "ec2"


# ─────────────────────────────────────────────────────────────────────────────
# AWS HELPERS
# ─────────────────────────────────────────────────────────────────────────────

def get_aws_session(profile: str | None = None, region: str | None = None) -> boto3.Session:
    try:
        return boto3.Session(profile_name=profile, region_name=region)
    except ProfileNotFound:
        print_error(f"AWS profile '{profile}' not found")
        sys.exit(1)


def _ec2_failure(operation: str, error: Exception) -> RemoteOpFailed:
    return RemoteOpFailed(EC2_ENDPOINT, operation, detail=str(error))


def _instances(response: dict) -> list[dict]:
    return [i for r in response.get('Reservations', []) for i in r.get('Instances', [])]


class Ec2Provisioner:
    """Creates, starts, stops and terminates the fleet's EC2 instances."""

    # Instance states each operation acts on
    START_FROM = ['stopped']
    STOP_FROM = ['pending', 'running']
    TERMINATE_FROM = ['pending', 'running', 'stopping', 'stopped']

    def __init__(self, session: boto3.Session, config: CloudConfig):
        self.config = config
        self.ec2 = session.client('ec2')

    # ─── CREATE ───

    def create(self, launch_host: str, fleet_size: int, image_id: str | None = None,
               instance_class: str | None = None, include_master: bool = True) -> FleetView:
        """Launch the fleet and persist its address list.

        With the master included the launch host counts as one of
        ``fleet_size`` machines, so one fewer instance is created.
        """
        console.print(f"[bold]Launch host:[/bold] {launch_host}")
        self._recreate_key_pair()

        master = launch_host if include_master else None
        count = fleet_size - 1 if include_master else fleet_size

        workers = []
        if count > 0:
            template = self._launch_host_instance(launch_host)
            workers = self._run_instances(count, template, image_id, instance_class)

        fleet = FleetView(master_address=master, worker_addresses=workers)
        write_address_list(self.config.ips_file, fleet.all_addresses)
        console.print(f"[green]✓[/green] Fleet: {', '.join(fleet.all_addresses)}")
        return fleet

    def _recreate_key_pair(self):
        key_name = self.config.key_name
        print_step(f"Creating key pair {key_name}")
        try:
            self.ec2.delete_key_pair(KeyName=key_name)
            key = self.ec2.create_key_pair(KeyName=key_name)
        except ClientError as e:
            raise _ec2_failure("CreateKeyPair", e) from e

        key_file = Path(self.config.private_key_file)
        key_file.parent.mkdir(parents=True, exist_ok=True)
        if key_file.exists():
            key_file.chmod(0o600)
        key_file.write_text(key['KeyMaterial'])
        os.chmod(key_file, 0o600)
        print_done(str(key_file))

    def _launch_host_instance(self, launch_host: str) -> dict:
        """Describe the launch host so workers can copy its image and network."""
        try:
            response = self.ec2.describe_instances(
                Filters=[{'Name': 'private-ip-address', 'Values': [launch_host]}]
            )
        except ClientError as e:
            raise _ec2_failure("DescribeInstances", e) from e
        found = _instances(response)
        return found[0] if found else {}

    def _run_instances(self, count: int, template: dict, image_id: str | None, instance_class: str | None) -> list[str]:
        image_id = image_id or template.get('ImageId')
        instance_class = instance_class or template.get('InstanceType')
        if not image_id or not instance_class:
            raise RemoteOpFailed(
                EC2_ENDPOINT, "RunInstances",
                detail="launch host is not an EC2 instance; pass an AMI id and instance type",
            )

        params = {
            'ImageId': image_id,
            'InstanceType': instance_class,
            'MinCount': count,
            'MaxCount': count,
            'KeyName': self.config.key_name,
            'TagSpecifications': [{
                'ResourceType': 'instance',
                'Tags': [{'Key': 'Name', 'Value': self.config.key_name}],
            }],
        }
        if template.get('SubnetId'):
            params['SubnetId'] = template['SubnetId']
        group_ids = [g['GroupId'] for g in template.get('SecurityGroups', [])]
        if group_ids:
            params['SecurityGroupIds'] = group_ids

        print_step(f"Launching {count} x {instance_class} ({image_id})")
        try:
            launched = self.ec2.run_instances(**params)['Instances']
        except ClientError as e:
            raise _ec2_failure("RunInstances", e) from e
        ids = [i['InstanceId'] for i in launched]

        self._wait('instance_running', ids, "Waiting for instances to run")
        try:
            described = _instances(self.ec2.describe_instances(InstanceIds=ids))
        except ClientError as e:
            raise _ec2_failure("DescribeInstances", e) from e

        by_id = {i['InstanceId']: i.get('PrivateIpAddress') for i in described}
        missing = [i for i in ids if not by_id.get(i)]
        if missing:
            raise RemoteOpFailed(
                EC2_ENDPOINT, "DescribeInstances",
                detail=f"no private address for launched instance(s): {', '.join(missing)}",
            )
        # Keep launch order
        return [by_id[i] for i in ids]

    # ─── START / STOP / TERMINATE ───

    def find_fleet(self, key_name: str, states: list[str]) -> list[str]:
        try:
            response = self.ec2.describe_instances(Filters=[
                {'Name': 'key-name', 'Values': [key_name]},
                {'Name': 'instance-state-name', 'Values': states},
            ])
        except ClientError as e:
            raise _ec2_failure("DescribeInstances", e) from e
        return [i['InstanceId'] for i in _instances(response)]

    def start(self, key_name: str) -> list[str]:
        return self._transition(key_name, self.START_FROM, 'start_instances', 'instance_running', "Starting")

    def stop(self, key_name: str) -> list[str]:
        return self._transition(key_name, self.STOP_FROM, 'stop_instances', 'instance_stopped', "Stopping")

    def terminate(self, key_name: str) -> list[str]:
        ids = self._transition(key_name, self.TERMINATE_FROM, 'terminate_instances', 'instance_terminated', "Terminating")
        try:
            self.ec2.delete_key_pair(KeyName=key_name)
        except ClientError as e:
            raise _ec2_failure("DeleteKeyPair", e) from e
        return ids

    def _transition(self, key_name: str, from_states: list[str], call: str, waiter: str, verb: str) -> list[str]:
        ids = self.find_fleet(key_name, from_states)
        if not ids:
            console.print(f"[yellow]⚠ No instances with key '{key_name}' in state {'/'.join(from_states)}[/yellow]")
            return []

        print_step(f"{verb} {len(ids)} instance(s): {', '.join(ids)}")
        try:
            getattr(self.ec2, call)(InstanceIds=ids)
        except ClientError as e:
            raise _ec2_failure(call, e) from e
        self._wait(waiter, ids, f"{verb} instances")
        print_done()
        return ids

    def _wait(self, waiter_name: str, ids: list[str], description: str):
        with Progress(
            SpinnerColumn(), TextColumn("{task.description}"), TimeElapsedColumn(), console=console
        ) as progress:
            task = progress.add_task(f"{description}...", total=None)
            try:
                self.ec2.get_waiter(waiter_name).wait(InstanceIds=ids)
            except WaiterError as e:
                progress.update(task, description=f"[red]❌ {description} failed[/red]")
                raise _ec2_failure(waiter_name, e) from e
            progress.update(task, description=f"[green]✓ {description}[/green]")
