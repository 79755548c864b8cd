import logging
from typing import Any, Callable, Dict, Optional

from sakuracloud_plugin.infrastructure.exceptions import ResourceProvisioningError
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import CopyFailedError

logger = logging.getLogger(__name__)

DEFAULT_RETRY_COUNT = 3


class RetryableSetup:
    """
    Provision a resource whose creation finishes asynchronously.

    The setup runs three phases: ``create`` returns the new object,
    ``wait_for_copy`` blocks until its backing copy finished and
    ``wait_for_up`` until it is running. When the copy fails the object is
    deleted and the whole sequence starts again, at most ``retry_count`` times.
    Errors other than a failed copy abort immediately.
    """

    def __init__(self,
                 create: Callable[[], Dict[str, Any]],
                 wait_for_copy: Callable[[str], Any],
                 delete: Callable[[str], Any],
                 wait_for_up: Optional[Callable[[str], Any]] = None,
                 retry_count: int = DEFAULT_RETRY_COUNT):
        self.create = create
        self.wait_for_copy = wait_for_copy
        self.delete = delete
        self.wait_for_up = wait_for_up
        self.retry_count = retry_count

    def setup(self) -> Dict[str, Any]:
        """
        Run the phases until they succeed.

        Returns:
            The object returned by ``create`` on the successful attempt

        Raises:
            ResourceProvisioningError: If every attempt ended in a failed copy
        """
        for attempt in range(1, self.retry_count + 1):
            created = self.create()
            resource_id = str(created.get("ID", ""))
            if not resource_id:
                raise ResourceProvisioningError("Created resource has no ID", details=created)
            logger.debug(f"Created resource[{resource_id}] (attempt {attempt}/{self.retry_count})")

            try:
                self.wait_for_copy(resource_id)
            except CopyFailedError as e:
                logger.warning(f"Copy of resource[{resource_id}] failed, deleting it: {str(e)}")
                self.delete(resource_id)
                continue

            if self.wait_for_up:
                self.wait_for_up(resource_id)
            return created

        raise ResourceProvisioningError(
            f"Failed to set up resource: copy failed {self.retry_count} times"
        )
