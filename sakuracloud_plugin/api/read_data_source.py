# sakuracloud_plugin/api/read_data_source.py
import logging
from typing import Any, Dict, Optional

from sakuracloud_plugin.api.apply_resource import build_resource_data
from sakuracloud_plugin.domain.core.exceptions import UnknownResourceTypeError, ValidationError
from sakuracloud_plugin.infrastructure.handlers.base_handler import DataSourceHandler


class ReadDataSource:
    """API endpoint looking up a read-only object."""

    def __init__(self, handlers: Dict[str, DataSourceHandler]):
        self._handlers = handlers
        self._logger = logging.getLogger(__name__)

    def execute(self, input_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Look up the object described by the request's config.

        Returns:
            Dict with the type, id and attributes; an empty id when nothing matched
        """
        if not input_data or not input_data.get("type"):
            raise ValidationError("Input must include 'type' key")

        handler = self._handlers.get(input_data["type"])
        if handler is None:
            raise UnknownResourceTypeError(input_data["type"])

        data = build_resource_data(handler, input_data)
        self._logger.info(f"Reading data source {handler.type_name}")
        handler.read(data)
        return data.to_dict()
