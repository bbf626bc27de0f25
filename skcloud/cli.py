#!/usr/bin/env python3
"""
SilverKing Cloud Admin command line.

Examples:
  skcloud -c LaunchInstances -n 3
  skcloud -c LaunchInstances,StartSpark -n 5 -e -r 2
  skcloud -c StopSpark,StopInstances
  skcloud -c TerminateInstances --yes
  skcloud --status
"""

import argparse
import sys

import questionary
from botocore.exceptions import NoCredentialsError, NoRegionError
from questionary import Style
from rich.table import Table

from .commands import Command, WorkflowRequest, parse_commands
from .config import DEFAULT_NUM_INSTANCES, DEFAULT_REPLICATION, CloudConfig
from .console import console, print_error
from .errors import AddressListMissing, HostResolutionFailed, SkCloudError
from .fleet import read_address_list, select_spark_master
from .metadata import StaticDhtCreator
from .orchestrator import CloudAdmin
from .provisioner import Ec2Provisioner, get_aws_session
from .remote import RemoteExecutor, resolve_local_address
from .validation import validate

PROMPT_STYLE = Style([
    ('qmark', 'fg:cyan bold'),
    ('question', 'bold'),
    ('answer', 'fg:green'),
    ('pointer', 'fg:cyan bold'),
    ('highlighted', 'fg:cyan'),
    ('selected', 'fg:green'),
])


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got '{text}'") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SilverKing Cloud Admin")
    parser.add_argument('-c', '--command', help='Comma-separated commands: ' + ', '.join(c.value for c in Command))
    parser.add_argument('-n', '--num-instances', type=int, default=DEFAULT_NUM_INSTANCES,
                        help='Number of instances in the fleet, launch host included unless -e')
    parser.add_argument('-a', '--ami-id', help='AMI for new instances (default: the launch host\'s)')
    parser.add_argument('-i', '--instance-type', help='Instance type (default: the launch host\'s)')
    parser.add_argument('-e', '--exclude-master', action='store_true',
                        help='Do not count the launch host as a fleet member')
    parser.add_argument('-r', '--replication', type=int, default=DEFAULT_REPLICATION, help='Replication factor')
    parser.add_argument('-d', '--data-home', help='Data home on each instance (default: /var/tmp/silverking)')
    parser.add_argument('--parallel', type=positive_int, help='Hosts handled at once in per-host steps')
    parser.add_argument('--profile', help='AWS profile to use')
    parser.add_argument('--region', help='AWS region')
    parser.add_argument('--yes', action='store_true', help='Skip the terminate confirmation')
    parser.add_argument('--status', action='store_true', help='Show the persisted fleet and exit')
    return parser


def display_fleet_status(config: CloudConfig):
    """Table of the persisted fleet with Spark roles."""
    try:
        addresses = read_address_list(config.ips_file)
    except AddressListMissing as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        return

    try:
        local = resolve_local_address()
    except HostResolutionFailed:
        local = ""
    master = select_spark_master(addresses, local)

    table = Table(title=f"Fleet ({config.key_name})", border_style="cyan")
    table.add_column("#", style="dim")
    table.add_column("Address", style="green")
    table.add_column("Spark role")
    table.add_column("Note", style="dim")
    for n, address in enumerate(addresses, 1):
        role = "master" if address == master else "worker"
        note = "launch host" if address == local else ""
        table.add_row(str(n), address, role, note)
    console.print(table)


def confirm_terminate(request: WorkflowRequest, assume_yes: bool) -> bool:
    if Command.TERMINATE_INSTANCES not in request.commands or assume_yes:
        return True
    console.print("[bold red]WARNING: TerminateInstances permanently deletes every worker instance.[/bold red]")
    return bool(questionary.confirm("Terminate the fleet?", default=False, style=PROMPT_STYLE).ask())


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = CloudConfig.from_env(max_parallel=args.parallel)
    except SkCloudError as e:
        print_error(str(e))
        sys.exit(1)

    if args.status:
        display_fleet_status(config)
        return

    if not args.command:
        parser.error("-c/--command is required")

    try:
        request = WorkflowRequest(
            commands=parse_commands(args.command),
            num_instances=args.num_instances,
            ami_id=args.ami_id,
            instance_type=args.instance_type,
            include_master=not args.exclude_master,
            replication=args.replication,
            data_home=args.data_home,
        )
        validate(request)
        if not confirm_terminate(request, args.yes):
            console.print("[yellow]Cancelled[/yellow]")
            return

        # Spark-only runs never talk to EC2, so they need no session or region
        provisioner = None
        if request.needs_provisioner:
            session = get_aws_session(args.profile, args.region)
            provisioner = Ec2Provisioner(session, config)
        admin = CloudAdmin(
            request,
            executor=RemoteExecutor(),
            provisioner=provisioner,
            metadata_creator=StaticDhtCreator(config),
            config=config,
        )
        admin.run()
    except SkCloudError as e:
        where = f"{getattr(e.command, 'value', e.command)}: " if e.command is not None else ""
        print_error(f"{where}{e}")
        sys.exit(1)
    except NoCredentialsError:
        print_error("No AWS credentials found")
        sys.exit(1)
    except NoRegionError:
        print_error("No AWS region configured; use --region or set one in your profile")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(1)


if __name__ == '__main__':
    main()
