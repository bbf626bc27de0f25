"""Request checks that run before any side effect."""

from .commands import Command, WorkflowRequest
from .config import MAX_INSTANCES, MIN_INSTANCES
from .errors import ValidationError


# The fleet is gone after a terminate; only a relaunch brings it back
FLEET_COMMANDS = frozenset({
    Command.START_INSTANCES,
    Command.STOP_INSTANCES,
    Command.START_SPARK,
    Command.STOP_SPARK,
})


def check_commands(request: WorkflowRequest):
    if not request.commands:
        raise ValidationError("no commands given")

    terminated = False
    for command in request.commands:
        if command == Command.TERMINATE_INSTANCES:
            terminated = True
        elif command == Command.LAUNCH_INSTANCES:
            terminated = False
        elif terminated and command in FLEET_COMMANDS:
            raise ValidationError(f"{command.value} cannot run after TerminateInstances without a LaunchInstances in between")


def check_num_instances(request: WorkflowRequest):
    """Only launches use the instance count; other commands may carry anything."""
    if not request.has_launch:
        return
    n = request.num_instances
    if not MIN_INSTANCES <= n <= MAX_INSTANCES:
        raise ValidationError(f"number of instances must be between {MIN_INSTANCES} and {MAX_INSTANCES}, got {n}")


def check_replication(request: WorkflowRequest):
    if request.replication < 1:
        raise ValidationError(f"replication must be >= 1, got {request.replication}")


def validate(request: WorkflowRequest):
    """Raise ValidationError if the request is inconsistent."""
    check_commands(request)
    check_num_instances(request)
    check_replication(request)
