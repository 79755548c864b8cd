import logging
from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import NFSSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError, WaitTimeoutError
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.operations import NFSOp
from sakuracloud_plugin.infrastructure.sakuracloud.retryable_setup import RetryableSetup
from sakuracloud_plugin.infrastructure.sakuracloud.waiters import (
    wait_until_down, wait_until_up, wait_while_copying
)

logger = logging.getLogger(__name__)

NFS_SETUP_RETRY_COUNT = 3


class NFSHandler(ResourceHandler):
    """NFS appliances provisioned through a retryable setup."""

    type_name = "sakuracloud_nfs"
    schema = NFSSchema
    importable = True

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(client, config, **kwargs)
        self.nfs_op = NFSOp(client)

    def _create_body(self, data: ResourceData, plan_id: str) -> Dict[str, Any]:
        body = self.common_body(data)
        body.update({
            "Class": "nfs",
            "Plan": {"ID": int(plan_id)},
            "Remark": {
                "Switch": {"ID": data.get("switch_id")},
                "Network": {
                    "NetworkMaskLen": data.get("nw_mask_len"),
                    "DefaultRoute": data.get("default_route") or "",
                },
                "Servers": [{"IPAddress": data.get("ipaddress")}],
                "Plan": {"ID": int(plan_id)},
            },
        })
        return body

    def create(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        plan = data.get("plan")
        size = data.get("size")

        try:
            plan_id = self.nfs_op.find_plan_id(zone, plan, size)
        except InfrastructureError as e:
            raise self.fail("Failed to create SakuraCloud NFS resource", e)
        if not plan_id:
            raise self.fail(f"Failed to create SakuraCloud NFS resource: plan {plan}/{size}GB is not available")

        body = self._create_body(data, plan_id)

        def reader_for(resource_id: str):
            return lambda: self.nfs_op.read(zone, resource_id)

        setup = RetryableSetup(
            create=lambda: self.nfs_op.create(zone, body),
            wait_for_copy=lambda resource_id: wait_while_copying(self.new_waiter(reader_for(resource_id)), resource_id),
            delete=lambda resource_id: self.nfs_op.delete(zone, resource_id),
            wait_for_up=lambda resource_id: wait_until_up(self.new_waiter(reader_for(resource_id)), resource_id),
            retry_count=NFS_SETUP_RETRY_COUNT,
        )

        try:
            nfs = setup.setup()
        except InfrastructureError as e:
            raise self.fail("Failed to create SakuraCloud NFS resource", e)

        data.set_id(str(nfs["ID"]))
        logger.info(f"Created NFS[{data.id}]")
        self.read(data)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            nfs = self.nfs_op.read(zone, data.id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail("Couldn't find SakuraCloud NFS resource", e)

        if nfs.get("Availability") == "failed":
            raise self.fail(f"NFS[{data.id}] state is failed")

        remark = nfs.get("Remark") or {}
        network = remark.get("Network") or {}
        servers = remark.get("Servers") or [{}]
        data.set("switch_id", str((nfs.get("Switch") or remark.get("Switch") or {}).get("ID", "")))
        data.set("ipaddress", servers[0].get("IPAddress", ""))
        data.set("nw_mask_len", network.get("NetworkMaskLen"))
        data.set("default_route", network.get("DefaultRoute", ""))

        plan, size = "", 0
        plan_id = (nfs.get("Plan") or {}).get("ID")
        if plan_id:
            try:
                plan, size = self.nfs_op.find_plan_by_id(zone, plan_id)
            except InfrastructureError as e:
                logger.warning(f"Failed to read NFS plans: {str(e)}")
        data.set("plan", plan)
        data.set("size", size)

        self.set_common_attributes(data, nfs)
        data.set("graceful_shutdown_timeout", data.get("graceful_shutdown_timeout") or 60)
        data.set("zone", zone)

    def update(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            self.nfs_op.read(zone, data.id)
        except InfrastructureError as e:
            raise self.fail("Couldn't find SakuraCloud NFS resource", e)

        body: Dict[str, Any] = {}
        if data.has_change("name"):
            body["Name"] = data.get("name")
        if data.has_change("icon_id"):
            body["Icon"] = self.expand_icon(data.get("icon_id"))
        if data.has_change("description"):
            body["Description"] = data.get("description") or ""
        if data.has_change("tags"):
            body["Tags"] = self.expand_tags(data.get("tags"))

        if body:
            try:
                self.nfs_op.update(zone, data.id, body)
            except InfrastructureError as e:
                raise self.fail("Error updating SakuraCloud NFS resource", e)
        self.read(data)

    def _shutdown(self, zone: str, nfs_id: str, graceful_timeout: int) -> None:
        """Shut down gracefully, forcing it when graceful_timeout elapses."""
        nfs = self.nfs_op.read(zone, nfs_id)
        if (nfs.get("Instance") or {}).get("Status") != "up":
            return

        def read():
            return self.nfs_op.read(zone, nfs_id)

        self.nfs_op.shutdown(zone, nfs_id)
        try:
            wait_until_down(self.new_waiter(read, graceful_timeout), nfs_id)
            return
        except WaitTimeoutError:
            logger.warning(f"NFS[{nfs_id}] did not shut down in {graceful_timeout}s, forcing shutdown")

        self.nfs_op.shutdown(zone, nfs_id, force=True)
        wait_until_down(self.new_waiter(read), nfs_id)

    def delete(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        graceful_timeout = int(data.get("graceful_shutdown_timeout") or 60)

        try:
            self._shutdown(zone, data.id, graceful_timeout)
        except InfrastructureError as e:
            raise self.fail("Error stopping SakuraCloud NFS resource", e)

        try:
            self.nfs_op.delete(zone, data.id)
        except InfrastructureError as e:
            raise self.fail("Error deleting SakuraCloud NFS resource", e)
        data.set_id("")
