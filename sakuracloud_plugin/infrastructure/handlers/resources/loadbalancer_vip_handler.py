import logging
from typing import Any, Dict, List, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import LoadBalancerVIPSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.operations import LoadBalancerOp

logger = logging.getLogger(__name__)


def get_vips(load_balancer: Dict[str, Any]) -> List[Dict[str, Any]]:
    settings = load_balancer.get("Settings") or {}
    return [dict(v) for v in settings.get("LoadBalancer") or []]


def is_same_vip(v1: Dict[str, Any], v2: Dict[str, Any]) -> bool:
    """VIP entries have no key of their own; address and port identify them."""
    return (v1.get("VirtualIPAddress") == v2.get("VirtualIPAddress")
            and str(v1.get("Port")) == str(v2.get("Port")))


def find_vip(vips: List[Dict[str, Any]], vip: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for v in vips:
        if is_same_vip(v, vip):
            return v
    return None


def vip_id(load_balancer_id: str, vip: str, port: Any) -> str:
    return f"{load_balancer_id}-{vip}-{port}"


def expand_server(server: Dict[str, Any], port: int) -> Dict[str, Any]:
    health_check: Dict[str, Any] = {"Protocol": server["check_protocol"]}
    if server["check_protocol"] in ("http", "https"):
        health_check["Path"] = server.get("check_path") or ""
        health_check["Status"] = server.get("check_status") or ""
    return {
        "IPAddress": server["ipaddress"],
        "Port": str(port),
        "HealthCheck": health_check,
        "Enabled": "True" if server.get("enabled", True) else "False",
    }


def flatten_server(server: Dict[str, Any]) -> Dict[str, Any]:
    health_check = server.get("HealthCheck") or {}
    return {
        "ipaddress": server.get("IPAddress", ""),
        "check_protocol": health_check.get("Protocol", ""),
        "check_path": health_check.get("Path", ""),
        "check_status": str(health_check.get("Status", "")),
        "enabled": str(server.get("Enabled", "True")).lower() == "true",
    }


class LoadBalancerVIPHandler(ResourceHandler):
    """
    A virtual IP entry inside a load balancer's settings.

    Every change rewrites the load balancer's whole VIP list, so all
    operations hold the lock named by the load balancer ID.
    """

    type_name = "sakuracloud_loadbalancer_vip"
    schema = LoadBalancerVIPSchema

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(client, config, **kwargs)
        self.lb_op = LoadBalancerOp(client)

    def _expand_vip(self, data: ResourceData) -> Dict[str, Any]:
        port = data.get("port")
        return {
            "VirtualIPAddress": data.get("vip"),
            "Port": str(port),
            "DelayLoop": str(data.get("delay_loop") or 10),
            "SorryServer": data.get("sorry_server") or "",
            "Description": data.get("description") or "",
            "Servers": [expand_server(s, port) for s in data.get("servers") or []],
        }

    def create(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        lb_id = data.get("load_balancer_id")

        with self.mutex_kv.locked(lb_id):
            try:
                lb = self.lb_op.read(zone, lb_id)
            except InfrastructureError as e:
                raise self.fail("could not read SakuraCloud LoadBalancer resource", e)

            vip = self._expand_vip(data)
            vips = get_vips(lb)
            existing = find_vip(vips, vip)
            if existing is not None:
                raise self.fail(
                    f"already exists: LoadBalancer VIP: {existing['VirtualIPAddress']}:{existing['Port']}"
                )
            vips.append(vip)

            try:
                self.lb_op.update_vips(zone, lb_id, vips, lb.get("SettingsHash"))
            except InfrastructureError as e:
                raise self.fail("creating SakuraCloud LoadBalancerVIP is failed", e)

        data.set_id(vip_id(lb_id, data.get("vip"), data.get("port")))
        self.read(data)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        lb_id = data.get("load_balancer_id")
        try:
            lb = self.lb_op.read(zone, lb_id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail("could not read SakuraCloud LoadBalancer", e)

        vip = find_vip(get_vips(lb), self._expand_vip(data))
        if vip is None:
            data.set_id("")
            return

        data.set("vip", vip.get("VirtualIPAddress"))
        data.set("port", int(vip.get("Port")))
        data.set("delay_loop", int(vip.get("DelayLoop") or 0))
        data.set("sorry_server", vip.get("SorryServer", ""))
        data.set("description", vip.get("Description", ""))
        data.set("servers", [flatten_server(s) for s in vip.get("Servers") or []])
        data.set("zone", zone)

    def update(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        lb_id = data.get("load_balancer_id")

        with self.mutex_kv.locked(lb_id):
            try:
                lb = self.lb_op.read(zone, lb_id)
            except InfrastructureError as e:
                if is_not_found_error(e):
                    data.set_id("")
                    return
                raise self.fail("could not read SakuraCloud LoadBalancer", e)

            src = self._expand_vip(data)
            vips = get_vips(lb)
            vip = find_vip(vips, src)
            if vip is None:
                data.set_id("")
                return

            for key in ("DelayLoop", "SorryServer", "Description", "Servers"):
                vip[key] = src[key]

            try:
                self.lb_op.update_vips(zone, lb_id, vips, lb.get("SettingsHash"))
            except InfrastructureError as e:
                raise self.fail("updating SakuraCloud LoadBalancerVIP is failed", e)

        self.read(data)

    def delete(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        lb_id = data.get("load_balancer_id")

        with self.mutex_kv.locked(lb_id):
            try:
                lb = self.lb_op.read(zone, lb_id)
            except InfrastructureError as e:
                if is_not_found_error(e):
                    data.set_id("")
                    return
                raise self.fail("could not read SakuraCloud LoadBalancer", e)

            src = self._expand_vip(data)
            vips = [v for v in get_vips(lb) if not is_same_vip(src, v)]

            try:
                self.lb_op.update_vips(zone, lb_id, vips, lb.get("SettingsHash"))
            except InfrastructureError as e:
                raise self.fail("deleting SakuraCloud LoadBalancerVIP is failed", e)
        data.set_id("")
