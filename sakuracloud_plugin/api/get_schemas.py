# sakuracloud_plugin/api/get_schemas.py
import logging
from typing import Any, Dict, Optional

from sakuracloud_plugin.infrastructure.handlers.base_handler import DataSourceHandler, ResourceHandler


class GetSchemas:
    """API endpoint describing every resource and data source type."""

    def __init__(self,
                 resource_handlers: Dict[str, ResourceHandler],
                 data_source_handlers: Dict[str, DataSourceHandler]):
        self._resource_handlers = resource_handlers
        self._data_source_handlers = data_source_handlers
        self._logger = logging.getLogger(__name__)

    def execute(self, input_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        resources = {
            name: {
                "schema": handler.schema.model_json_schema(),
                "importable": handler.importable,
                "supports_update": handler.supports_update,
                "timeouts": dict(handler.default_timeouts),
            }
            for name, handler in sorted(self._resource_handlers.items())
        }
        data_sources = {
            name: {"schema": handler.schema.model_json_schema()}
            for name, handler in sorted(self._data_source_handlers.items())
        }
        self._logger.debug(f"Describing {len(resources)} resources and {len(data_sources)} data sources")
        return {"resources": resources, "data_sources": data_sources}
