import logging
from abc import abstractmethod
from typing import Any, Dict, List, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import LookupSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import DataSourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.operations import ResourceOp

logger = logging.getLogger(__name__)


def expand_filters(filters: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    """Turn ``[{name, values}]`` pairs into the API's search filter."""
    conditions: Dict[str, Any] = {}
    for f in filters or []:
        values = [v for v in f.get("values") or [] if v != ""]
        if not values:
            continue
        conditions[f["name"]] = values[0] if len(values) == 1 else values
    return conditions


def has_names(obj: Dict[str, Any], selectors: List[str]) -> bool:
    """Every selector must be a substring of the object's name."""
    name = obj.get("Name", "")
    return all(selector in name for selector in selectors)


def has_tags(obj: Dict[str, Any], selectors: List[str]) -> bool:
    """Every selector must be one of the object's tags."""
    tags = obj.get("Tags") or []
    return all(selector in tags for selector in selectors)


def select(objects: List[Dict[str, Any]],
           name_selectors: Optional[List[str]] = None,
           tag_selectors: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    if name_selectors:
        objects = [o for o in objects if has_names(o, name_selectors)]
    if tag_selectors:
        objects = [o for o in objects if has_tags(o, tag_selectors)]
    return objects


class LookupDataSourceHandler(DataSourceHandler):
    """
    Data source returning the first object matching a filter and selectors.

    Subclasses point ``lookup_op`` at the operation to search and fill the
    attributes in ``set_attributes``.
    """

    schema = LookupSchema
    resource_label = ""
    lookup_op: ResourceOp

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            objects = self.lookup_op.find(zone, expand_filters(data.get("filter")))
        except InfrastructureError as e:
            raise self.fail(f"Couldn't find SakuraCloud {self.resource_label} resource", e)

        targets = select(objects, data.get("name_selectors"), data.get("tag_selectors"))
        if not targets:
            self.no_result(data, self.resource_label)
            return

        target = targets[0]
        data.set_id(str(target["ID"]))
        self.set_attributes(data, zone, target)

    @abstractmethod
    def set_attributes(self, data: ResourceData, zone: str, obj: Dict[str, Any]) -> None:
        pass
