from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.handlers.data_sources.lookup import LookupDataSourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.operations import CDROMOp


class CDROMDataSource(LookupDataSourceHandler):
    type_name = "sakuracloud_cdrom"
    resource_label = "CDROM"

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.lookup_op = CDROMOp(client)

    def set_attributes(self, data: ResourceData, zone: str, obj: Dict[str, Any]) -> None:
        self.set_common_attributes(data, obj)
        data.set("size", int(obj.get("SizeMB", 0)) // 1024)
        data.set("zone", zone)
