import logging
from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import SIMSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.operations import MobileGatewayOp, SIMOp

logger = logging.getLogger(__name__)


class SIMHandler(ResourceHandler):
    """
    SIM cards, optionally attached to a mobile gateway.

    Attaching and detaching changes the gateway's SIM list, so those calls
    hold the lock named by the gateway ID.
    """

    type_name = "sakuracloud_sim"
    schema = SIMSchema
    importable = True

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(client, config, **kwargs)
        self.sim_op = SIMOp(client)
        self.mgw_op = MobileGatewayOp(client)

    def _attach(self, zone: str, mgw_id: str, sim_id: str, ip: Optional[str]) -> None:
        with self.mutex_kv.locked(mgw_id):
            self.mgw_op.add_sim(zone, mgw_id, sim_id)
            if ip:
                self.sim_op.assign_ip(sim_id, ip)

    def _detach(self, zone: str, mgw_id: str, sim_id: str, has_ip: bool) -> None:
        with self.mutex_kv.locked(mgw_id):
            if has_ip:
                self.sim_op.clear_ip(sim_id)
            self.mgw_op.delete_sim(zone, mgw_id, sim_id)

    def create(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        body = self.common_body(data)
        body.update({
            "Provider": {"Class": "sim"},
            "Status": {"ICCID": data.get("iccid")},
            "Remark": {"PassCode": data.get("passcode")},
        })

        try:
            sim = self.sim_op.create(zone, body)
        except InfrastructureError as e:
            raise self.fail("Failed to create SakuraCloud SIM resource", e)

        sim_id = str(sim["ID"])
        data.set_id(sim_id)
        try:
            if data.get("enabled"):
                self.sim_op.activate(sim_id)
            imei, ok = data.get_ok("imei")
            if ok:
                self.sim_op.imei_lock(sim_id, imei)
            self.sim_op.set_network_operator(sim_id, data.get("carrier"))

            mgw_id, ok = data.get_ok("mobile_gateway_id")
            if ok:
                self._attach(zone, mgw_id, sim_id, data.get("ipaddress"))
        except InfrastructureError as e:
            raise self.fail(f"Failed to set up SakuraCloud SIM[{sim_id}]", e)

        self.read(data)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            sim = self.sim_op.read(zone, data.id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail("Couldn't find SakuraCloud SIM resource", e)

        try:
            status = self.sim_op.status(data.id)
            operators = self.sim_op.get_network_operator(data.id)
        except InfrastructureError as e:
            raise self.fail(f"Couldn't read status of SakuraCloud SIM[{data.id}]", e)

        self.set_common_attributes(data, sim)
        data.set("iccid", (sim.get("Status") or {}).get("ICCID", status.get("iccid", "")))
        data.set("enabled", bool(status.get("activated")))
        if status.get("imei_lock") and status.get("imei"):
            data.set("imei", status["imei"])
        elif not status.get("imei_lock"):
            data.set("imei", "")
        data.set("ipaddress", status.get("ip") or "")
        data.set("mobile_gateway_id", str(status.get("resource_id") or ""))
        data.set("carrier", [op["name"] for op in operators if op.get("allow")])

    def update(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        sim_id = data.id

        body: Dict[str, Any] = {}
        if data.has_change("name"):
            body["Name"] = data.get("name")
        if data.has_change("icon_id"):
            body["Icon"] = self.expand_icon(data.get("icon_id"))
        if data.has_change("description"):
            body["Description"] = data.get("description") or ""
        if data.has_change("tags"):
            body["Tags"] = self.expand_tags(data.get("tags"))

        try:
            if body:
                self.sim_op.update(zone, sim_id, body)

            if data.has_change("enabled"):
                if data.get("enabled"):
                    self.sim_op.activate(sim_id)
                else:
                    self.sim_op.deactivate(sim_id)

            if data.has_change("imei"):
                if data.get_state("imei"):
                    self.sim_op.imei_unlock(sim_id)
                imei, ok = data.get_ok("imei")
                if ok:
                    self.sim_op.imei_lock(sim_id, imei)

            if data.has_change("carrier"):
                self.sim_op.set_network_operator(sim_id, data.get("carrier"))

            if data.has_change("mobile_gateway_id") or data.has_change("ipaddress"):
                old_mgw = data.get_state("mobile_gateway_id")
                if old_mgw:
                    self._detach(zone, old_mgw, sim_id, bool(data.get_state("ipaddress")))
                new_mgw, ok = data.get_ok("mobile_gateway_id")
                if ok:
                    self._attach(zone, new_mgw, sim_id, data.get("ipaddress"))
        except InfrastructureError as e:
            raise self.fail(f"Error updating SakuraCloud SIM[{sim_id}]", e)

        self.read(data)

    def delete(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        sim_id = data.id

        try:
            status = self.sim_op.status(sim_id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail("Couldn't find SakuraCloud SIM resource", e)

        try:
            mgw_id = str(status.get("resource_id") or data.get_state("mobile_gateway_id") or "")
            if mgw_id:
                self._detach(zone, mgw_id, sim_id, bool(status.get("ip")))
            if status.get("activated"):
                self.sim_op.deactivate(sim_id)
            self.sim_op.delete(zone, sim_id)
        except InfrastructureError as e:
            raise self.fail("Error deleting SakuraCloud SIM resource", e)
        data.set_id("")
