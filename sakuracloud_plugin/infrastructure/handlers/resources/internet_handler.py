import logging
import time
from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import InternetSchema
from sakuracloud_plugin.helpers.utils import ip_range
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_conflict_error, is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.operations import InternetOp, SwitchOp

logger = logging.getLogger(__name__)


class InternetHandler(ResourceHandler):
    """
    Routers connecting a switch to the internet.

    Changing the bandwidth makes the service replace the router, so the
    object's ID changes during update.
    """

    type_name = "sakuracloud_internet"
    schema = InternetSchema
    importable = True
    default_timeouts = {"create": 3600, "read": 300, "update": 3600, "delete": 1200}

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(client, config, **kwargs)
        self.internet_op = InternetOp(client)
        self.switch_op = SwitchOp(client)

    def create(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        timeout = data.timeout("create", self.default_timeouts["create"])

        body = self.common_body(data)
        body["NetworkMaskLen"] = data.get("netmask")
        body["BandWidthMbps"] = data.get("band_width")
        try:
            internet = self.internet_op.create(zone, body)
            internet_id = str(internet["ID"])
            data.set_id(internet_id)

            waiter = self.new_waiter(lambda: self.internet_op.read(zone, internet_id), timeout)
            internet = waiter.wait(
                lambda obj: bool((obj.get("Switch") or {}).get("ID")),
                f"Internet[{internet_id}] switch to be provisioned",
            )

            if data.get("enable_ipv6"):
                self.internet_op.enable_ipv6(zone, internet_id)
        except InfrastructureError as e:
            raise self.fail("creating SakuraCloud Internet is failed", e)

        logger.info(f"Created Internet[{internet_id}] with switch {internet['Switch']['ID']}")
        self.read(data)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            internet = self.internet_op.read(zone, data.id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail(f"could not read SakuraCloud Internet[{data.id}]", e)

        self._set_internet_attributes(data, zone, internet)

    def _set_internet_attributes(self, data: ResourceData, zone: str, internet: Dict[str, Any]) -> None:
        switch_id = str((internet.get("Switch") or {}).get("ID", ""))
        try:
            switch = self.switch_op.read(zone, switch_id)
        except InfrastructureError as e:
            raise self.fail(f"could not read SakuraCloud Switch[{switch_id}]", e)

        server_ids = []
        if switch.get("ServerCount", 0) > 0:
            try:
                servers = self.switch_op.get_servers(zone, switch_id)
            except InfrastructureError as e:
                raise self.fail("could not find SakuraCloud Servers", e)
            server_ids = [str(s["ID"]) for s in servers]

        ipv6_nets = (internet.get("Switch") or {}).get("IPv6Nets") or []
        ipv6_prefix, ipv6_prefix_len, ipv6_network_address = "", 0, ""
        if ipv6_nets:
            ipv6_prefix = ipv6_nets[0].get("IPv6Prefix", "")
            ipv6_prefix_len = int(ipv6_nets[0].get("IPv6PrefixLen", 0))
            ipv6_network_address = f"{ipv6_prefix}/{ipv6_prefix_len}"

        subnet = (switch.get("Subnets") or [{}])[0]
        addresses = subnet.get("IPAddresses") or {}

        self.set_common_attributes(data, internet)
        data.set("netmask", internet.get("NetworkMaskLen"))
        data.set("band_width", internet.get("BandWidthMbps"))
        data.set("switch_id", switch_id)
        data.set("network_address", subnet.get("NetworkAddress", ""))
        data.set("gateway", subnet.get("DefaultRoute", ""))
        data.set("min_ip_address", addresses.get("Min", ""))
        data.set("max_ip_address", addresses.get("Max", ""))
        data.set("ip_addresses", ip_range(addresses.get("Min", ""), addresses.get("Max", "")))
        data.set("server_ids", server_ids)
        data.set("enable_ipv6", bool(ipv6_nets))
        data.set("ipv6_prefix", ipv6_prefix)
        data.set("ipv6_prefix_len", ipv6_prefix_len)
        data.set("ipv6_network_address", ipv6_network_address)
        data.set("zone", zone)

    def update(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        internet_id = data.id

        with self.mutex_kv.locked(internet_id):
            try:
                internet = self.internet_op.read(zone, internet_id)
            except InfrastructureError as e:
                raise self.fail(f"could not read SakuraCloud Internet[{internet_id}]", e)

            try:
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
                    internet = self.internet_op.update(zone, internet_id, body)

                if internet.get("BandWidthMbps") != data.get("band_width"):
                    internet = self.internet_op.update_bandwidth(zone, internet_id, data.get("band_width"))
                    new_id = str(internet["ID"])
                    logger.info(f"Internet[{internet_id}] was replaced by Internet[{new_id}] on bandwidth change")
                    internet_id = new_id
                    data.set_id(new_id)

                ipv6_nets = (internet.get("Switch") or {}).get("IPv6Nets") or []
                if data.get("enable_ipv6") and not ipv6_nets:
                    self.internet_op.enable_ipv6(zone, internet_id)
                elif not data.get("enable_ipv6") and ipv6_nets:
                    self.internet_op.disable_ipv6(zone, internet_id, str(ipv6_nets[0]["ID"]))
            except InfrastructureError as e:
                raise self.fail(f"updating SakuraCloud Internet[{internet_id}] is failed", e)

        self.read(data)

    def delete(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        internet_id = data.id
        timeout = data.timeout("delete", self.default_timeouts["delete"])

        with self.mutex_kv.locked(internet_id):
            try:
                internet = self.internet_op.read(zone, internet_id)
            except InfrastructureError as e:
                if is_not_found_error(e):
                    data.set_id("")
                    return
                raise self.fail(f"could not read SakuraCloud Internet[{internet_id}]", e)

            switch_id = str((internet.get("Switch") or {}).get("ID", ""))
            deadline = time.monotonic() + timeout
            try:
                if switch_id:
                    waiter = self.new_waiter(lambda: self.switch_op.read(zone, switch_id), timeout)
                    waiter.wait(lambda sw: sw.get("ServerCount", 0) == 0,
                                f"servers to disconnect from Switch[{switch_id}]")
            except InfrastructureError as e:
                raise self.fail(f"waiting deletion is failed: Internet[{internet_id}] still used by others", e)

            self._delete_until_released(zone, internet_id, deadline)
        data.set_id("")

    def _delete_until_released(self, zone: str, internet_id: str, deadline: float) -> None:
        """Delete the router, retrying while the service reports it is still in use."""
        while True:
            try:
                self.internet_op.delete(zone, internet_id)
                return
            except InfrastructureError as e:
                if is_not_found_error(e):
                    return
                if is_conflict_error(e) and time.monotonic() < deadline:
                    logger.debug(f"Internet[{internet_id}] is still in use, retrying delete")
                    time.sleep(self.client.polling_interval)
                    continue
                raise self.fail(f"deleting SakuraCloud Internet[{internet_id}] is failed", e)
