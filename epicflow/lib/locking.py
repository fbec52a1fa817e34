"""
Advisory file locking for shared documents.

The learnings log is the one file every completed epic writes to, so
appends to it hold an exclusive flock on the log itself. Locking the
target file (rather than a sidecar .lock file) keeps the working tree
free of lock artifacts.
"""

import fcntl
import time
from contextlib import contextmanager
from pathlib import Path

from epicflow.lib.errors import EpicflowError


class LockTimeout(EpicflowError):
    """Another writer held the file for longer than the timeout."""


@contextmanager
def locked_open(path: Path, mode: str = "ab+", timeout: float = 30, poll_interval: float = 0.1):
    """
    Open path, hold an exclusive flock on it, yield the file object.

    The lock is released and the file closed on exit.

    Raises:
        LockTimeout: if the lock is not acquired within timeout seconds
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    f = open(path, mode)
    start = time.monotonic()
    try:
        while True:
            try:
                fcntl.flock(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() - start > timeout:
                    raise LockTimeout(f"Could not lock {path} within {timeout}s")
                time.sleep(poll_interval)

        try:
            yield f
        finally:
            f.flush()
            fcntl.flock(f, fcntl.LOCK_UN)
    finally:
        f.close()
