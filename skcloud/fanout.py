"""
Per-host steps: apply one operation to every host in a set.

A step completes only when every host has been handled. The first failure
fails the whole step; with ``max_workers == 1`` hosts after the failing one
are never touched, with a thread pool queued work is cancelled and the
first error is re-raised once in-flight work has resolved.
"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Iterable


def for_each_host(hosts: Iterable[str], operation: Callable[[str], None], max_workers: int = 1):
    hosts = list(hosts)
    if not hosts:
        return

    if max_workers <= 1 or len(hosts) == 1:
        for host in hosts:
            operation(host)
        return

    with ThreadPoolExecutor(max_workers=min(max_workers, len(hosts))) as executor:
        futures = [executor.submit(operation, host) for host in hosts]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        failed = [f for f in futures if f in done and f.exception() is not None]
        for future in pending:
            future.cancel()
        # In-flight work must resolve before the next step may start
        wait(futures)

    if failed:
        raise failed[0].exception()
