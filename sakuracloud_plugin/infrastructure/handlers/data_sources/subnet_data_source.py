from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import SubnetLookupSchema
from sakuracloud_plugin.helpers.utils import ip_range
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import DataSourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.operations import InternetOp, SwitchOp


class SubnetDataSource(DataSourceHandler):
    """
    Additional subnet routed to a router.

    ``index`` counts only the subnets with a next hop; the router's own
    subnet is never returned.
    """

    type_name = "sakuracloud_subnet"
    schema = SubnetLookupSchema

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.internet_op = InternetOp(client)
        self.switch_op = SwitchOp(client)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        internet_id = data.get("internet_id")
        index = int(data.get("index") or 0)

        try:
            internet = self.internet_op.read(zone, internet_id)
            switch_id = str((internet.get("Switch") or {}).get("ID", ""))
            switch = self.switch_op.read(zone, switch_id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                self.no_result(data, f"Internet[{internet_id}]")
                return
            raise self.fail(f"Couldn't find SakuraCloud Subnet of Internet[{internet_id}]", e)

        subnets = [s for s in switch.get("Subnets") or [] if s.get("NextHop")]
        if index >= len(subnets):
            self.no_result(data, f"Subnet[{index}] of Internet[{internet_id}]")
            return

        subnet = subnets[index]
        addresses = subnet.get("IPAddresses") or {}
        data.set_id(str(subnet["ID"]))
        data.set("switch_id", switch_id)
        data.set("nw_mask_len", int(subnet.get("NetworkMaskLen") or 0))
        data.set("next_hop", subnet.get("NextHop", ""))
        data.set("min_ipaddress", addresses.get("Min", ""))
        data.set("max_ipaddress", addresses.get("Max", ""))
        data.set("ipaddresses", ip_range(addresses.get("Min", ""), addresses.get("Max", "")))
        data.set("zone", zone)
