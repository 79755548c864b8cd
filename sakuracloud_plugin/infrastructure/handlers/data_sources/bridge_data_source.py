from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.handlers.data_sources.lookup import LookupDataSourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.operations import BridgeOp


class BridgeDataSource(LookupDataSourceHandler):
    type_name = "sakuracloud_bridge"
    resource_label = "Bridge"

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.lookup_op = BridgeOp(client)

    def set_attributes(self, data: ResourceData, zone: str, obj: Dict[str, Any]) -> None:
        info = obj.get("Info") or {}
        data.set("name", obj.get("Name", ""))
        data.set("description", obj.get("Description", ""))
        data.set("switch_ids", [str(sw["ID"]) for sw in info.get("Switches") or []])
        data.set("zone", zone)
