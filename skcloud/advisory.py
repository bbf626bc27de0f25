"""
Next-step guidance collected during a run.

Pipelines record what happened as typed events; the text is only produced
when the log is reported, once, after every command succeeded.
"""

from dataclasses import dataclass

from .config import CloudConfig
from .console import console

NODE_START_COMMANDS = "StartNodes,CreateSKFSns,CheckSKFS"


@dataclass(frozen=True)
class StartNodesHint:
    """A fleet was launched; SK/SKFS still have to be started on it."""
    pass


@dataclass(frozen=True)
class TerminateLaunchHostHint:
    """Workers were terminated; the launch host is outside the managed fleet."""
    pass


@dataclass(frozen=True)
class SparkUsageHint:
    master_address: str
    launch_host: str


class AdvisoryLog:
    """Append-only, ordered list of advisory events for one run."""

    def __init__(self):
        self._events = []

    def append(self, event):
        self._events.append(event)

    @property
    def events(self) -> tuple:
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)


# ─────────────────────────────────────────────────────────────────────────────
# RENDERING
# ─────────────────────────────────────────────────────────────────────────────

def _render_start_nodes(event: StartNodesHint, config: CloudConfig) -> list[str]:
    return [
        "- To start sk/skfs on all of these instances, you can run:",
        f"\t./SKAdmin.sh -G {config.cloud_out_dir} -g {config.gc_name} -c {NODE_START_COMMANDS}",
        "",
    ]


def _render_terminate(event: TerminateLaunchHostHint, config: CloudConfig) -> list[str]:
    return [
        "- We just terminated all the worker instances. To terminate this instance use the aws console.",
        "",
    ]


def _render_spark(event: SparkUsageHint, config: CloudConfig) -> list[str]:
    spark = config.spark_home
    mount = config.skfs_mount_path
    jar = config.spark_jar
    master_url = f"spark://{event.master_address}:{config.spark_master_port}"

    lines = ["- To submit an app:"]
    if event.master_address != event.launch_host:
        lines.append(f"\t ssh {event.master_address}")
    lines += [
        "\t 1. try spark locally:",
        f'\t\t {spark}/bin/spark-submit --class "SimpleApp" --master local[4] {spark}/target/{jar}',
        "\t 2. try spark on skfs (make sure you started sk/skfs first):",
        f"\t\t cp {spark}/README.md {mount}",
        f"\t\t cp {spark}/target/{jar} {mount}",
        f'\t\t {spark}/bin/spark-submit --class "SimpleAppSkfs" --master {master_url} '
        f"local:{mount}/{jar} --deploy-mode cluster",
    ]
    return lines


RENDERERS = {
    StartNodesHint: _render_start_nodes,
    TerminateLaunchHostHint: _render_terminate,
    SparkUsageHint: _render_spark,
}


def render(events, config: CloudConfig) -> str:
    lines = []
    for event in events:
        lines.extend(RENDERERS[type(event)](event, config))
    return "\n".join(lines)


def report(log: AdvisoryLog, config: CloudConfig) -> bool:
    """Print the "Next steps:" block if anything was recorded."""
    if not len(log):
        return False
    console.print("Next steps:", markup=False, highlight=False)
    console.print(render(log.events, config), markup=False, highlight=False, soft_wrap=True)
    return True
