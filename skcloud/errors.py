"""Failure kinds raised while running lifecycle commands."""


class SkCloudError(Exception):
    """Base class for every fatal cloud-admin failure.

    ``command`` is filled in by the orchestrator with the lifecycle command
    that was running when the failure surfaced.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.command = None


class ValidationError(SkCloudError):
    """Raised when a request is inconsistent, before any side effect."""
    pass


class HostResolutionFailed(SkCloudError):
    """Raised when the launch host's own address cannot be determined."""
    pass


class RemoteOpFailed(SkCloudError):
    """Raised when a local/remote command, a copy or an EC2 call fails."""

    def __init__(self, address: str, command: str, exit_status: int | None = None, detail: str = ""):
        self.address = address
        self.remote_command = command
        self.exit_status = exit_status
        message = f"[{address}] '{command}' failed"
        if exit_status is not None:
            message += f" with exit status {exit_status}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class MetadataCreationFailed(SkCloudError):
    """Raised when the static DHT creator exits non-zero."""

    def __init__(self, command: list[str], exit_status: int):
        self.creator_command = command
        self.exit_status = exit_status
        super().__init__(f"static DHT creator exited with status {exit_status}: {' '.join(command)}")


class AddressListMissing(SkCloudError):
    """Raised when the persisted fleet address list is absent or empty."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"no fleet addresses found in {path} (was the fleet launched from this host?)")


class InternalError(SkCloudError):
    """Unreachable state; indicates a bug."""
    pass
