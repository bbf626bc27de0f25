"""Lifecycle command catalog and the request that carries a run's parameters."""

from dataclasses import dataclass
from enum import Enum

from .config import DEFAULT_DATA_HOME, DEFAULT_NUM_INSTANCES, DEFAULT_REPLICATION
from .errors import ValidationError


class Command(str, Enum):
    """Lifecycle commands accepted on the command line."""
    LAUNCH_INSTANCES = "LaunchInstances"
    START_INSTANCES = "StartInstances"
    STOP_INSTANCES = "StopInstances"
    TERMINATE_INSTANCES = "TerminateInstances"
    START_SPARK = "StartSpark"
    STOP_SPARK = "StopSpark"


LAUNCH_COMMANDS = frozenset({Command.LAUNCH_INSTANCES})

# Commands that go through the EC2 provisioner
PROVISIONER_COMMANDS = frozenset({
    Command.LAUNCH_INSTANCES,
    Command.START_INSTANCES,
    Command.STOP_INSTANCES,
    Command.TERMINATE_INSTANCES,
})


def is_launch_command(command: Command) -> bool:
    return command in LAUNCH_COMMANDS


def parse_commands(text: str) -> tuple[Command, ...]:
    """Parse the comma-separated command list given on the command line.

    Order and repeats are kept as given.
    """
    commands = []
    for name in text.split(","):
        name = name.strip()
        if not name:
            continue
        try:
            commands.append(Command(name))
        except ValueError:
            valid = ", ".join(c.value for c in Command)
            raise ValidationError(f"unknown command '{name}' (valid commands: {valid})") from None
    return tuple(commands)


@dataclass(frozen=True)
class WorkflowRequest:
    """Everything one run needs; read-only to the orchestrator."""
    commands: tuple[Command, ...]
    num_instances: int = DEFAULT_NUM_INSTANCES
    ami_id: str | None = None
    instance_type: str | None = None
    include_master: bool = True
    replication: int = DEFAULT_REPLICATION
    data_home: str | None = None

    def __post_init__(self):
        # Accept any sequence, store an immutable one
        object.__setattr__(self, 'commands', tuple(self.commands))
        if self.data_home is None:
            object.__setattr__(self, 'data_home', DEFAULT_DATA_HOME)

    @property
    def has_launch(self) -> bool:
        return any(is_launch_command(c) for c in self.commands)

    @property
    def needs_provisioner(self) -> bool:
        return any(c in PROVISIONER_COMMANDS for c in self.commands)
