import logging
from typing import Any, Dict, List, Optional

from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient

logger = logging.getLogger(__name__)


class ResourceOp:
    """
    CRUD calls for one kind of SakuraCloud object.

    Subclasses set ``path`` (URL segment), ``root_key`` (key wrapping a single
    object in request and response bodies) and ``list_key`` (key holding the
    result of a find call).
    """

    path: str = ""
    root_key: str = ""
    list_key: str = ""

    def __init__(self, client: SakuraCloudClient):
        self.client = client

    def _zone(self, zone: Optional[str]) -> str:
        return zone or self.client.default_zone

    def _unwrap(self, response: Dict[str, Any]) -> Dict[str, Any]:
        return response.get(self.root_key) or {}

    def create(self, zone: Optional[str], body: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Creating {self.root_key} in zone {self._zone(zone)}")
        response = self.client.post(self._zone(zone), self.path, {self.root_key: body})
        return self._unwrap(response)

    def read(self, zone: Optional[str], resource_id: str) -> Dict[str, Any]:
        response = self.client.get(self._zone(zone), f"{self.path}/{resource_id}")
        return self._unwrap(response)

    def update(self, zone: Optional[str], resource_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Updating {self.root_key} {resource_id}")
        response = self.client.put(self._zone(zone), f"{self.path}/{resource_id}", {self.root_key: body})
        return self._unwrap(response)

    def delete(self, zone: Optional[str], resource_id: str) -> Dict[str, Any]:
        logger.debug(f"Deleting {self.root_key} {resource_id}")
        response = self.client.delete(self._zone(zone), f"{self.path}/{resource_id}")
        return self._unwrap(response)

    def find(self, zone: Optional[str], conditions: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Search objects.

        Args:
            zone: Target zone
            conditions: Mapping of field name to value, sent as the API's Filter

        Returns:
            Matching objects
        """
        query: Dict[str, Any] = {"Count": 0, "From": 0}
        if conditions:
            query["Filter"] = conditions
        response = self.client.get(self._zone(zone), self.path, query=query)
        return response.get(self.list_key) or []


class ApplianceOp(ResourceOp):
    """Appliances share the ``appliance`` endpoint and its power control."""

    path = "appliance"
    root_key = "Appliance"
    list_key = "Appliances"
    appliance_class = ""

    def find(self, zone: Optional[str], conditions: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        conditions = dict(conditions or {})
        conditions["Class"] = self.appliance_class
        return super().find(zone, conditions)

    def boot(self, zone: Optional[str], resource_id: str) -> None:
        self.client.put(self._zone(zone), f"{self.path}/{resource_id}/power")

    def shutdown(self, zone: Optional[str], resource_id: str, force: bool = False) -> None:
        body = {"Force": True} if force else None
        self.client.delete(self._zone(zone), f"{self.path}/{resource_id}/power", body)

    def apply_config(self, zone: Optional[str], resource_id: str) -> None:
        """Apply pending settings to a running appliance."""
        self.client.put(self._zone(zone), f"{self.path}/{resource_id}/config")
