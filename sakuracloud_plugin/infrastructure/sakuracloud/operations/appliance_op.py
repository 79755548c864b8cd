import logging
from typing import Any, Dict, List, Optional, Tuple

from sakuracloud_plugin.infrastructure.sakuracloud.operations.base import ApplianceOp

logger = logging.getLogger(__name__)


class LoadBalancerOp(ApplianceOp):
    appliance_class = "loadbalancer"

    def update_vips(self, zone: Optional[str], lb_id: str, vips: List[Dict[str, Any]],
                    settings_hash: Optional[str] = None) -> Dict[str, Any]:
        """
        Replace the load balancer's whole VIP list.

        Args:
            zone: Target zone
            lb_id: Load balancer ID
            vips: New VIP list
            settings_hash: SettingsHash read with the list; the API rejects
                the write when the settings changed in between
        """
        body: Dict[str, Any] = {"Settings": {"LoadBalancer": vips}}
        if settings_hash:
            body["SettingsHash"] = settings_hash
        return self.update(zone, lb_id, body)


class NFSOp(ApplianceOp):
    appliance_class = "nfs"

    def get_plans(self, zone: Optional[str]) -> Dict[str, List[Dict[str, Any]]]:
        """
        Return the NFS plan catalogue.

        Returns:
            Mapping of plan name ("HDD"/"SSD") to a list of
            {"Size", "PlanID", "Availability"} entries
        """
        response = self.client.get(self._zone(zone), "product/nfs")
        return response.get("NFSPlans") or {}

    def find_plan_id(self, zone: Optional[str], plan: str, size: int) -> Optional[str]:
        for entry in self.get_plans(zone).get(plan.upper()) or []:
            if int(entry.get("Size", 0)) == size and entry.get("Availability", "available") == "available":
                return str(entry["PlanID"])
        return None

    def find_plan_by_id(self, zone: Optional[str], plan_id: str) -> Tuple[str, int]:
        """Reverse-resolve a plan ID into (plan name, size GB); ("", 0) when unknown."""
        for name, entries in self.get_plans(zone).items():
            for entry in entries or []:
                if str(entry.get("PlanID")) == str(plan_id):
                    return name.lower(), int(entry.get("Size", 0))
        return "", 0


class VPCRouterOp(ApplianceOp):
    appliance_class = "vpcrouter"

    def update_settings(self, zone: Optional[str], router_id: str, settings: Dict[str, Any]) -> Dict[str, Any]:
        return self.update(zone, router_id, {"Settings": settings})

    def get_site_to_site_connection_detail(self, zone: Optional[str], router_id: str) -> Dict[str, Any]:
        response = self.client.get(
            self._zone(zone),
            f"{self.path}/{router_id}/vpcrouter/sitetosite/connectiondetail",
        )
        return response.get("Details") or {}


class MobileGatewayOp(ApplianceOp):
    appliance_class = "mobilegateway"

    def add_sim(self, zone: Optional[str], mgw_id: str, sim_id: str) -> None:
        logger.debug(f"Attaching SIM {sim_id} to mobile gateway {mgw_id}")
        self.client.post(
            self._zone(zone),
            f"{self.path}/{mgw_id}/mobilegateway/sims",
            {"SIM": {"resource_id": sim_id}},
        )

    def delete_sim(self, zone: Optional[str], mgw_id: str, sim_id: str) -> None:
        logger.debug(f"Detaching SIM {sim_id} from mobile gateway {mgw_id}")
        self.client.delete(self._zone(zone), f"{self.path}/{mgw_id}/mobilegateway/sims/{sim_id}")
