# sakuracloud_plugin/infrastructure/protection/mutex_kv.py
from contextlib import contextmanager
from typing import Dict, IO, Iterator, Optional
import fcntl
import logging
import os
import re
import tempfile
from threading import Lock

DEFAULT_LOCK_DIR = os.path.join(tempfile.gettempdir(), "sakuracloud-plugin-locks")


class MutexKV:
    """
    Table of named locks.

    Operations that modify a shared parent object (a load balancer's VIP
    list, a VPC router's VPN settings, ...) lock on the parent's ID so that
    concurrent read-modify-write cycles do not overwrite each other.

    The host runs one plugin process per operation, so each named lock is a
    thread lock paired with an exclusive ``flock`` on a per-key file in the
    lock directory.
    """

    def __init__(self, lock_dir: Optional[str] = None):
        self._lock = Lock()
        self._store: Dict[str, Lock] = {}
        self._files: Dict[str, IO] = {}
        self._lock_dir = lock_dir
        self._logger = logging.getLogger(__name__)

    @property
    def lock_dir(self) -> str:
        return self._lock_dir or DEFAULT_LOCK_DIR

    def set_lock_dir(self, lock_dir: Optional[str]) -> None:
        self._lock_dir = lock_dir or None

    def lock_path(self, key: str) -> str:
        name = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return os.path.join(self.lock_dir, f"{name}.lock")

    def get(self, key: str) -> Lock:
        """Return the thread lock for key, creating it on first use."""
        with self._lock:
            mutex = self._store.get(key)
            if mutex is None:
                mutex = Lock()
                self._store[key] = mutex
            return mutex

    def lock(self, key: str) -> None:
        self._logger.debug(f"Locking {key!r}")
        mutex = self.get(key)
        mutex.acquire()
        try:
            path = self.lock_path(key)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            f = open(path, "a")
            try:
                # Get exclusive lock
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            except OSError:
                f.close()
                raise
        except OSError:
            mutex.release()
            raise
        self._files[key] = f
        self._logger.debug(f"Locked {key!r}")

    def unlock(self, key: str) -> None:
        self._logger.debug(f"Unlocking {key!r}")
        f = self._files.pop(key, None)
        try:
            if f is not None:
                try:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                finally:
                    f.close()
        finally:
            self.get(key).release()
        self._logger.debug(f"Unlocked {key!r}")

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """Hold the named lock for the duration of the block."""
        self.lock(key)
        try:
            yield
        finally:
            self.unlock(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# Process-wide table shared by every handler
sakura_mutex_kv = MutexKV()
