import logging
import time
from typing import Any, Callable, Dict

from sakuracloud_plugin.infrastructure.exceptions import WaitTimeoutError
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import CopyFailedError

logger = logging.getLogger(__name__)

ReadFunc = Callable[[], Dict[str, Any]]


class StateWaiter:
    """
    Poll a remote object until a predicate holds.

    Args:
        read: Callable returning the current remote object
        timeout: Seconds to wait before giving up
        interval: Seconds between two reads
        sleep: Sleep function, replaceable in tests
        clock: Monotonic clock, replaceable in tests
    """

    def __init__(self, read: ReadFunc, timeout: float, interval: float,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.read = read
        self.timeout = timeout
        self.interval = interval
        self.sleep = sleep
        self.clock = clock

    def wait(self, done: Callable[[Dict[str, Any]], bool], description: str) -> Dict[str, Any]:
        deadline = self.clock() + self.timeout
        while True:
            current = self.read()
            if done(current):
                return current
            if self.clock() >= deadline:
                raise WaitTimeoutError(
                    f"Timed out after {self.timeout}s waiting for {description}",
                    details={"last_state": current},
                )
            logger.debug(f"Waiting for {description}")
            self.sleep(self.interval)


def _availability(obj: Dict[str, Any]) -> str:
    return obj.get("Availability", "")


def _instance_status(obj: Dict[str, Any]) -> str:
    return (obj.get("Instance") or {}).get("Status", "")


def wait_while_copying(waiter: StateWaiter, resource_id: str) -> Dict[str, Any]:
    """
    Wait until the object leaves the ``migrating`` availability.

    Raises:
        CopyFailedError: If the copy ends in the ``failed`` availability
    """
    def finished(obj: Dict[str, Any]) -> bool:
        availability = _availability(obj)
        if availability == "failed":
            raise CopyFailedError(resource_id)
        return availability == "available"

    return waiter.wait(finished, f"resource[{resource_id}] to finish copying")


def wait_until_up(waiter: StateWaiter, resource_id: str) -> Dict[str, Any]:
    return waiter.wait(lambda obj: _instance_status(obj) == "up", f"resource[{resource_id}] to be up")


def wait_until_down(waiter: StateWaiter, resource_id: str) -> Dict[str, Any]:
    return waiter.wait(lambda obj: _instance_status(obj) in ("down", ""),
                       f"resource[{resource_id}] to be down")
