# sakuracloud_plugin/api/apply_resource.py
import logging
from typing import Any, Dict, Optional

import pydantic

from sakuracloud_plugin.domain.core.exceptions import (
    OperationNotSupportedError,
    UnknownResourceTypeError,
    ValidationError,
)
from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler, SakuraCloudHandler


def build_resource_data(handler: SakuraCloudHandler,
                        input_data: Dict[str, Any],
                        validate: bool = True) -> ResourceData:
    """
    Build the ResourceData of a host request.

    The ``config`` block is validated against the handler's schema and
    replaced by the validated values, so defaults are filled in.

    Raises:
        ValidationError: If the configuration does not match the schema
    """
    config = input_data.get("config") or {}
    if validate:
        try:
            config = handler.schema.model_validate(config).model_dump(mode="json")
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid configuration for {handler.type_name}: {e}",
                details=e.errors(include_url=False)
            )
    return ResourceData(
        handler.type_name,
        resource_id=input_data.get("id") or "",
        config=config,
        state=input_data.get("state") or {},
        timeouts=input_data.get("timeouts") or {},
    )


class ApplyResource:
    """
    API endpoint running one CRUD operation on a resource.

    ``create`` and ``update`` always validate the configuration; the other
    operations only validate it when the host sends one, as they may run
    from prior state alone.
    """

    operation = ""
    requires_config = False

    def __init__(self, handlers: Dict[str, ResourceHandler]):
        self._handlers = handlers
        self._logger = logging.getLogger(__name__)

    def _get_handler(self, resource_type: Optional[str]) -> ResourceHandler:
        handler = self._handlers.get(resource_type or "")
        if handler is None:
            raise UnknownResourceTypeError(str(resource_type))
        return handler

    def check_supported(self, handler: ResourceHandler) -> None:
        pass

    def run(self, handler: ResourceHandler, data: ResourceData) -> None:
        raise NotImplementedError

    def execute(self, input_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run the operation.

        Args:
            input_data: Host request holding type, id, config, state and timeouts

        Returns:
            Dict with the type, id and attributes of the resulting state
        """
        if not input_data or not input_data.get("type"):
            raise ValidationError("Input must include 'type' key")

        handler = self._get_handler(input_data["type"])
        self.check_supported(handler)

        validate = self.requires_config or bool(input_data.get("config"))
        data = build_resource_data(handler, input_data, validate=validate)

        self._logger.info(
            f"Running {self.operation} on {handler.type_name}",
            extra={"resource_type": handler.type_name, "resource_id": data.id}
        )
        self.run(handler, data)

        if not data.id:
            self._logger.info(f"{handler.type_name} is absent after {self.operation}")
        return data.to_dict()


class CreateResource(ApplyResource):
    operation = "create"
    requires_config = True

    def run(self, handler: ResourceHandler, data: ResourceData) -> None:
        handler.create(data)


class ReadResource(ApplyResource):
    operation = "read"

    def run(self, handler: ResourceHandler, data: ResourceData) -> None:
        handler.read(data)


class UpdateResource(ApplyResource):
    operation = "update"
    requires_config = True

    def check_supported(self, handler: ResourceHandler) -> None:
        if not handler.supports_update:
            raise OperationNotSupportedError(handler.type_name, self.operation)

    def run(self, handler: ResourceHandler, data: ResourceData) -> None:
        handler.update(data)


class DeleteResource(ApplyResource):
    operation = "delete"

    def run(self, handler: ResourceHandler, data: ResourceData) -> None:
        handler.delete(data)
        data.set_id("")


class ImportResource(ApplyResource):
    operation = "import"

    def check_supported(self, handler: ResourceHandler) -> None:
        if not handler.importable:
            raise OperationNotSupportedError(handler.type_name, self.operation)

    def run(self, handler: ResourceHandler, data: ResourceData) -> None:
        if not data.id:
            raise ValidationError("Import requires the 'id' of the existing object")
        handler.import_state(data)
