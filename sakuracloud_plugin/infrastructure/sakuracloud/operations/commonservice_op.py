from typing import Any, Dict, List, Optional

from sakuracloud_plugin.infrastructure.sakuracloud.api_client import GLOBAL_ZONE
from sakuracloud_plugin.infrastructure.sakuracloud.operations.base import ResourceOp


class CommonServiceItemOp(ResourceOp):
    """Zone-independent services, always addressed through the global zone."""

    path = "commonserviceitem"
    root_key = "CommonServiceItem"
    list_key = "CommonServiceItems"
    provider_class = ""

    def _zone(self, zone: Optional[str]) -> str:
        return GLOBAL_ZONE

    def find(self, zone: Optional[str], conditions: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        conditions = dict(conditions or {})
        conditions["Provider.Class"] = self.provider_class
        return super().find(zone, conditions)


class SIMOp(CommonServiceItemOp):
    provider_class = "sim"

    def _sim_path(self, sim_id: str, action: str) -> str:
        return f"{self.path}/{sim_id}/sim/{action}"

    def activate(self, sim_id: str) -> None:
        self.client.put(GLOBAL_ZONE, self._sim_path(sim_id, "activate"))

    def deactivate(self, sim_id: str) -> None:
        self.client.put(GLOBAL_ZONE, self._sim_path(sim_id, "deactivate"))

    def imei_lock(self, sim_id: str, imei: str) -> None:
        self.client.put(GLOBAL_ZONE, self._sim_path(sim_id, "imeilock"), {"SIM": {"imei": imei}})

    def imei_unlock(self, sim_id: str) -> None:
        self.client.delete(GLOBAL_ZONE, self._sim_path(sim_id, "imeilock"))

    def assign_ip(self, sim_id: str, ip: str) -> None:
        self.client.put(GLOBAL_ZONE, self._sim_path(sim_id, "ip"), {"SIM": {"ip": ip}})

    def clear_ip(self, sim_id: str) -> None:
        self.client.delete(GLOBAL_ZONE, self._sim_path(sim_id, "ip"))

    def set_network_operator(self, sim_id: str, carriers: List[str]) -> None:
        configs = [{"name": carrier, "allow": True} for carrier in carriers]
        self.client.put(GLOBAL_ZONE, self._sim_path(sim_id, "network_operator_config"),
                        {"network_operator_config": configs})

    def get_network_operator(self, sim_id: str) -> List[Dict[str, Any]]:
        response = self.client.get(GLOBAL_ZONE, self._sim_path(sim_id, "network_operator_config"))
        return response.get("network_operator_config") or []

    def status(self, sim_id: str) -> Dict[str, Any]:
        """
        Return the SIM's live status.

        Keys used: activated, imei_lock, imei, ip, resource_id (the mobile
        gateway the SIM is attached to).
        """
        response = self.client.get(GLOBAL_ZONE, self._sim_path(sim_id, "status"))
        return response.get("sim") or {}


class ProxyLBOp(CommonServiceItemOp):
    provider_class = "proxylb"

    def get_certificates(self, proxylb_id: str) -> Dict[str, Any]:
        response = self.client.get(GLOBAL_ZONE, f"{self.path}/{proxylb_id}/proxylb/sslcertificate")
        return response.get("ProxyLB") or {}
