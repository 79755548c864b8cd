from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import ZoneLookupSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import DataSourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.operations import ZoneOp


class ZoneDataSource(DataSourceHandler):
    """Look up a zone by name, defaulting to the configured zone."""

    type_name = "sakuracloud_zone"
    schema = ZoneLookupSchema

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.zone_op = ZoneOp(client)

    def read(self, data: ResourceData) -> None:
        name = data.get("name") or self.client.default_zone
        try:
            zones = self.zone_op.find(None)
        except InfrastructureError as e:
            raise self.fail("Couldn't find SakuraCloud Zone resource", e)

        zone = next((z for z in zones if z.get("Name") == name), None)
        if zone is None:
            self.no_result(data, f"Zone[{name}]")
            return

        region = zone.get("Region") or {}
        data.set_id(str(zone["ID"]))
        data.set("name", name)
        data.set("zone_id", str(zone["ID"]))
        data.set("description", zone.get("Description", ""))
        data.set("region_id", str(region.get("ID", "")))
        data.set("region_name", region.get("Name", ""))
        data.set("dns_servers", list(region.get("NameServers") or []))
