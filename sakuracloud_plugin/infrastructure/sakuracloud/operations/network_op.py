from typing import Any, Dict, List, Optional

from sakuracloud_plugin.infrastructure.sakuracloud.operations.base import ResourceOp


class InternetOp(ResourceOp):
    """Routers ("Internet" objects) and their bandwidth and IPv6 settings."""

    path = "internet"
    root_key = "Internet"
    list_key = "Internet"

    def update_bandwidth(self, zone: Optional[str], internet_id: str, band_width: int) -> Dict[str, Any]:
        """
        Change the router bandwidth.

        The service replaces the router, so the returned object carries a new ID.
        """
        response = self.client.put(
            self._zone(zone),
            f"{self.path}/{internet_id}/bandwidth",
            {self.root_key: {"BandWidthMbps": band_width}},
        )
        return self._unwrap(response)

    def enable_ipv6(self, zone: Optional[str], internet_id: str) -> Dict[str, Any]:
        response = self.client.post(self._zone(zone), f"{self.path}/{internet_id}/ipv6net")
        return response.get("IPv6Net") or {}

    def disable_ipv6(self, zone: Optional[str], internet_id: str, ipv6net_id: str) -> None:
        self.client.delete(self._zone(zone), f"{self.path}/{internet_id}/ipv6net/{ipv6net_id}")


class SwitchOp(ResourceOp):
    path = "switch"
    root_key = "Switch"
    list_key = "Switches"

    def get_servers(self, zone: Optional[str], switch_id: str) -> List[Dict[str, Any]]:
        """Return the servers connected to the switch."""
        response = self.client.get(self._zone(zone), f"{self.path}/{switch_id}/server")
        return response.get("Servers") or []


class BridgeOp(ResourceOp):
    path = "bridge"
    root_key = "Bridge"
    list_key = "Bridges"


class PacketFilterOp(ResourceOp):
    path = "packetfilter"
    root_key = "PacketFilter"
    list_key = "PacketFilters"


class ZoneOp(ResourceOp):
    path = "zone"
    root_key = "Zone"
    list_key = "Zones"
