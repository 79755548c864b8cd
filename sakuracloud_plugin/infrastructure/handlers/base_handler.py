import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type

from sakuracloud_plugin.config.defaults import as_bool
from sakuracloud_plugin.domain.core.exceptions import ResourceOperationError
from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import SchemaModel
from sakuracloud_plugin.infrastructure.protection.mutex_kv import MutexKV, sakura_mutex_kv
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.waiters import StateWaiter

logger = logging.getLogger(__name__)

NO_RESULT_MESSAGE = "Your query returned no results. Please change your filters or selectors and try again."


class SakuraCloudHandler(ABC):
    """
    Base class for SakuraCloud handlers.
    Holds the API client and the helpers every handler shares.
    """

    type_name: str = ""
    schema: Type[SchemaModel] = SchemaModel

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None):
        """
        Initialize handler.

        Args:
            client: Configured SakuraCloud API client
            config: Plugin configuration
        """
        self.client = client
        self.config = config or {}

    def get_zone(self, data: ResourceData) -> str:
        """Zone of the object: configured, then prior state, then the client's default."""
        return data.get("zone") or data.get_state("zone") or self.client.default_zone

    def new_waiter(self, read: Callable[[], Dict[str, Any]], timeout: Optional[int] = None) -> StateWaiter:
        return StateWaiter(
            read,
            timeout=timeout or self.client.default_timeout,
            interval=self.client.polling_interval,
        )

    @staticmethod
    def fail(message: str, error: Optional[Exception] = None) -> ResourceOperationError:
        if error is not None:
            message = f"{message}: {str(error)}"
        logger.error(message)
        return ResourceOperationError(message, cause=error)

    @staticmethod
    def flatten_icon(obj: Dict[str, Any]) -> str:
        icon = obj.get("Icon") or {}
        return str(icon["ID"]) if icon.get("ID") else ""

    def set_common_attributes(self, data: ResourceData, obj: Dict[str, Any]) -> None:
        """Set name, icon_id, description and tags from a remote object."""
        data.set("name", obj.get("Name", ""))
        data.set("icon_id", self.flatten_icon(obj))
        data.set("description", obj.get("Description", ""))
        data.set("tags", list(obj.get("Tags") or []))


class ResourceHandler(SakuraCloudHandler):
    """
    Base class for resource handlers.

    Subclasses implement the four CRUD operations against a ResourceData
    holding the desired configuration and the prior state. An operation marks
    the object absent with ``data.set_id("")`` and reports failures by raising
    ResourceOperationError.
    """

    importable: bool = False
    supports_update: bool = True
    default_timeouts: Dict[str, int] = {}

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None,
                 mutex_kv: MutexKV = sakura_mutex_kv):
        super().__init__(client, config)
        self.mutex_kv = mutex_kv

    @abstractmethod
    def create(self, data: ResourceData) -> None:
        pass

    @abstractmethod
    def read(self, data: ResourceData) -> None:
        pass

    def update(self, data: ResourceData) -> None:
        self.read(data)

    @abstractmethod
    def delete(self, data: ResourceData) -> None:
        pass

    def import_state(self, data: ResourceData) -> None:
        """Adopt an existing object by ID."""
        self.read(data)

    # Shared request body helpers

    @staticmethod
    def expand_tags(tags: Optional[List[str]]) -> List[str]:
        return [tag for tag in (tags or []) if tag]

    @staticmethod
    def expand_icon(icon_id: Optional[str]) -> Optional[Dict[str, Any]]:
        return {"ID": int(icon_id)} if icon_id else None

    def common_body(self, data: ResourceData) -> Dict[str, Any]:
        return {
            "Name": data.get("name"),
            "Description": data.get("description") or "",
            "Tags": self.expand_tags(data.get("tags")),
            "Icon": self.expand_icon(data.get("icon_id")),
        }


class DataSourceHandler(SakuraCloudHandler):
    """Base class for read-only lookups."""

    def no_result(self, data: ResourceData, label: str = "") -> None:
        """Handle an empty result: fail when configured to, otherwise mark absent."""
        if as_bool(self.config.get("SAKURACLOUD_FILTER_NO_RESULT_ERROR", False)):
            raise self.fail(NO_RESULT_MESSAGE)
        logger.info(f"No {label or self.type_name} matched the query")
        data.set_id("")

    @abstractmethod
    def read(self, data: ResourceData) -> None:
        pass
