"""
SilverKing Cloud Admin

Brings a SilverKing cluster (SK/SKFS plus an optional Spark layer) up and down
on EC2 through a small catalog of lifecycle commands:

  LaunchInstances     Create the fleet, distribute keys, start ZooKeeper,
                      write the static DHT metadata, symlink skfsd
  StartInstances      Start a stopped fleet
  StopInstances       Stop a running fleet
  TerminateInstances  Terminate the fleet and stop ZooKeeper
  StartSpark          Start a Spark master and workers on the fleet
  StopSpark           Stop them again
"""

from .commands import Command, WorkflowRequest, parse_commands
from .config import CloudConfig
from .errors import SkCloudError
from .orchestrator import CloudAdmin

__version__ = "0.1.0"
