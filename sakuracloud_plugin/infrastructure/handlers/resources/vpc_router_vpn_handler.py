import logging
import zlib
from typing import Any, Dict, List, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import SiteToSiteVPNSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.operations import VPCRouterOp

logger = logging.getLogger(__name__)

# Connection detail attribute -> (section, key)
CONNECTION_DETAIL_FIELDS = {
    "esp_authentication_protocol": ("ESP", "AuthenticationProtocol"),
    "esp_dh_group": ("ESP", "DHGroup"),
    "esp_encryption_protocol": ("ESP", "EncryptionProtocol"),
    "esp_lifetime": ("ESP", "Lifetime"),
    "esp_mode": ("ESP", "Mode"),
    "esp_perfect_forward_secrecy": ("ESP", "PerfectForwardSecrecy"),
    "ike_authentication_protocol": ("IKE", "AuthenticationProtocol"),
    "ike_encryption_protocol": ("IKE", "EncryptionProtocol"),
    "ike_lifetime": ("IKE", "Lifetime"),
    "ike_mode": ("IKE", "Mode"),
    "ike_perfect_forward_secrecy": ("IKE", "PerfectForwardSecrecy"),
    "ike_pre_shared_secret": ("IKE", "PreSharedSecret"),
    "peer_id": ("Peer", "ID"),
    "peer_inside_networks": ("Peer", "InsideNetworks"),
    "peer_outside_ipaddress": ("Peer", "OutsideIPAddress"),
    "vpc_router_inside_networks": ("VPCRouter", "InsideNetworks"),
    "vpc_router_outside_ipaddress": ("VPCRouter", "OutsideIPAddress"),
}


def expand_tunnel(data: ResourceData) -> Dict[str, Any]:
    return {
        "Peer": data.get("peer"),
        "PreSharedSecret": data.get("pre_shared_secret"),
        "RemoteID": data.get("remote_id"),
        "Routes": list(data.get("routes") or []),
        "LocalPrefix": list(data.get("local_prefix") or []),
    }


def _tunnel_key(tunnel: Dict[str, Any]) -> tuple:
    return (
        tunnel.get("Peer"),
        tunnel.get("PreSharedSecret"),
        tunnel.get("RemoteID"),
        list(tunnel.get("Routes") or []),
        list(tunnel.get("LocalPrefix") or []),
    )


def is_same_tunnel(t1: Dict[str, Any], t2: Dict[str, Any]) -> bool:
    """Tunnels have no key of their own; all identifying values must match."""
    return _tunnel_key(t1) == _tunnel_key(t2)


def tunnel_id(router_id: str, tunnel: Dict[str, Any]) -> str:
    """Decimal CRC32 of the router ID and the tunnel's identifying values."""
    buf = "-".join([
        router_id,
        tunnel["Peer"],
        tunnel["PreSharedSecret"],
        tunnel["RemoteID"],
        "".join(tunnel["Routes"]),
        "".join(tunnel["LocalPrefix"]),
    ])
    return str(zlib.crc32(buf.encode("utf-8")))


def get_tunnels(router: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    """Return the router's tunnel list, None when site-to-site VPN was never configured."""
    settings = router.get("Settings") or {}
    s2s = (settings.get("Router") or {}).get("SiteToSiteIPsecVPN")
    if s2s is None:
        return None
    return list(s2s.get("Config") or [])


def set_tunnels(router: Dict[str, Any], tunnels: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Return router settings holding the given tunnel list."""
    settings = dict(router.get("Settings") or {})
    router_settings = dict(settings.get("Router") or {})
    router_settings["SiteToSiteIPsecVPN"] = {
        "Config": tunnels,
        "Enabled": "True" if tunnels else "False",
    }
    settings["Router"] = router_settings
    return settings


class SiteToSiteVPNHandler(ResourceHandler):
    """
    A site-to-site IPsec tunnel inside a VPC router's settings.

    Tunnels cannot change in place; every field forces a new tunnel.
    """

    type_name = "sakuracloud_vpc_router_site_to_site_vpn"
    schema = SiteToSiteVPNSchema
    supports_update = False

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(client, config, **kwargs)
        self.vpc_router_op = VPCRouterOp(client)

    def _write_settings(self, zone: str, router_id: str, settings: Dict[str, Any], action: str) -> None:
        try:
            self.vpc_router_op.update_settings(zone, router_id, settings)
        except InfrastructureError as e:
            raise self.fail(f"Failed to {action} SakuraCloud VPCRouterSiteToSiteIPsecVPN resource", e)
        try:
            self.vpc_router_op.apply_config(zone, router_id)
        except InfrastructureError as e:
            raise self.fail("Couldn't apply SakuraCloud VPCRouter config", e)

    def create(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        router_id = data.get("vpc_router_id")
        tunnel = expand_tunnel(data)

        with self.mutex_kv.locked(router_id):
            try:
                router = self.vpc_router_op.read(zone, router_id)
            except InfrastructureError as e:
                raise self.fail("Couldn't find SakuraCloud VPCRouter resource", e)

            tunnels = get_tunnels(router) or []
            if any(is_same_tunnel(t, tunnel) for t in tunnels):
                raise self.fail(f"already exists: VPCRouter SiteToSiteIPsecVPN: peer {tunnel['Peer']}")
            tunnels.append(tunnel)

            self._write_settings(zone, router_id, set_tunnels(router, tunnels), "enable")

        data.set_id(tunnel_id(router_id, tunnel))
        self.read(data)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        router_id = data.get("vpc_router_id")
        try:
            router = self.vpc_router_op.read(zone, router_id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail("Couldn't find SakuraCloud VPCRouter resource", e)

        tunnel = expand_tunnel(data)
        tunnels = get_tunnels(router)
        if not tunnels or not any(is_same_tunnel(t, tunnel) for t in tunnels):
            data.set_id("")
            return

        data.set("peer", tunnel["Peer"])
        data.set("pre_shared_secret", tunnel["PreSharedSecret"])
        data.set("remote_id", tunnel["RemoteID"])
        data.set("routes", tunnel["Routes"])
        data.set("local_prefix", tunnel["LocalPrefix"])

        try:
            details = self.vpc_router_op.get_site_to_site_connection_detail(zone, router_id)
        except InfrastructureError as e:
            raise self.fail("Reading VPCRouter SiteToSiteConnectionDetail is failed", e)

        configs = details.get("Config") or []
        if configs:
            conf = configs[0]
            for attr, (section, key) in CONNECTION_DETAIL_FIELDS.items():
                data.set(attr, (conf.get(section) or {}).get(key))

        data.set("zone", zone)

    def delete(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        router_id = data.get("vpc_router_id")
        tunnel = expand_tunnel(data)

        with self.mutex_kv.locked(router_id):
            try:
                router = self.vpc_router_op.read(zone, router_id)
            except InfrastructureError as e:
                if is_not_found_error(e):
                    data.set_id("")
                    return
                raise self.fail("Couldn't find SakuraCloud VPCRouter resource", e)

            tunnels = get_tunnels(router)
            if tunnels is not None:
                remaining = [t for t in tunnels if not is_same_tunnel(t, tunnel)]
                self._write_settings(zone, router_id, set_tunnels(router, remaining), "delete")
        data.set_id("")
