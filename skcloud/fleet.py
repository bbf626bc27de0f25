"""Fleet membership, the persisted address list and Spark role selection."""

from dataclasses import dataclass, field
from pathlib import Path

from .errors import AddressListMissing


@dataclass
class FleetView:
    """Addresses of one launched fleet.

    ``master_address`` is the launch host when it was included in the fleet,
    None when it was excluded.
    """
    master_address: str | None = None
    worker_addresses: list[str] = field(default_factory=list)

    @property
    def all_addresses(self) -> list[str]:
        master = [self.master_address] if self.master_address else []
        return master + [a for a in self.worker_addresses if a != self.master_address]

    @property
    def is_master_only(self) -> bool:
        return not self.worker_addresses


# ─────────────────────────────────────────────────────────────────────────────
# PERSISTED ADDRESS LIST
# ─────────────────────────────────────────────────────────────────────────────

def read_address_list(path: str | Path) -> list[str]:
    """Read one address per line, keeping order and skipping blank lines."""
    path = Path(path)
    if not path.exists():
        raise AddressListMissing(path)
    addresses = [line.strip() for line in path.read_text().splitlines() if line.strip()]
    if not addresses:
        raise AddressListMissing(path)
    return addresses


def write_address_list(path: str | Path, addresses: list[str]):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{a}\n" for a in addresses))


# ─────────────────────────────────────────────────────────────────────────────
# SPARK ROLES
# ─────────────────────────────────────────────────────────────────────────────

def select_spark_master(addresses: list[str], local_address: str) -> str:
    """Pick the Spark master for a fleet.

    The launch host is the master when it is part of the fleet (launched
    without excluding the master). Otherwise the first address in the list
    is used.
    """
    if not addresses:
        raise ValueError("cannot select a Spark master from an empty fleet")
    if local_address in addresses:
        return local_address
    return addresses[0]


def split_spark_roles(addresses: list[str], local_address: str) -> tuple[str, list[str]]:
    """Return ``(master, workers)`` with the master removed from the workers."""
    master = select_spark_master(addresses, local_address)
    workers = list(addresses)
    workers.remove(master)
    return master, workers
