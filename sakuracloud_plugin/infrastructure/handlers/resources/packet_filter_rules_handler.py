from typing import Any, Dict, List, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import PacketFilterRulesSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.operations import PacketFilterOp


def expand_expression(expression: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "Protocol": expression["protocol"],
        "SourceNetwork": expression.get("source_network") or "",
        "SourcePort": expression.get("source_port") or "",
        "DestinationPort": expression.get("destination_port") or "",
        "Action": "allow" if expression.get("allow", True) else "deny",
        "Description": expression.get("description") or "",
    }


def flatten_expression(expression: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "protocol": expression.get("Protocol", ""),
        "source_network": expression.get("SourceNetwork", ""),
        "source_port": expression.get("SourcePort", ""),
        "destination_port": expression.get("DestinationPort", ""),
        "allow": expression.get("Action", "allow") == "allow",
        "description": expression.get("Description", ""),
    }


class PacketFilterRulesHandler(ResourceHandler):
    """The ordered expression list of a packet filter, managed as one object."""

    type_name = "sakuracloud_packet_filter_rules"
    schema = PacketFilterRulesSchema

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(client, config, **kwargs)
        self.packet_filter_op = PacketFilterOp(client)

    def _write_expressions(self, zone: str, pf_id: str, expressions: List[Dict[str, Any]]) -> None:
        self.packet_filter_op.update(zone, pf_id, {"Expression": expressions})

    def create(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        pf_id = data.get("packet_filter_id")
        expressions = [expand_expression(e) for e in data.get("expressions") or []]

        with self.mutex_kv.locked(pf_id):
            try:
                self.packet_filter_op.read(zone, pf_id)
                self._write_expressions(zone, pf_id, expressions)
            except InfrastructureError as e:
                raise self.fail("Failed to create SakuraCloud PacketFilterRules resource", e)

        data.set_id(pf_id)
        self.read(data)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        pf_id = data.get("packet_filter_id") or data.id
        try:
            packet_filter = self.packet_filter_op.read(zone, pf_id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail("Couldn't find SakuraCloud PacketFilter resource", e)

        data.set("packet_filter_id", str(packet_filter.get("ID", pf_id)))
        data.set("expressions", [flatten_expression(e) for e in packet_filter.get("Expression") or []])
        data.set("zone", zone)

    def update(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        pf_id = data.get("packet_filter_id")
        expressions = [expand_expression(e) for e in data.get("expressions") or []]

        with self.mutex_kv.locked(pf_id):
            try:
                self._write_expressions(zone, pf_id, expressions)
            except InfrastructureError as e:
                raise self.fail("Error updating SakuraCloud PacketFilterRules resource", e)
        self.read(data)

    def delete(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        pf_id = data.get("packet_filter_id") or data.id

        with self.mutex_kv.locked(pf_id):
            try:
                self._write_expressions(zone, pf_id, [])
            except InfrastructureError as e:
                if not is_not_found_error(e):
                    raise self.fail("Error deleting SakuraCloud PacketFilterRules resource", e)
        data.set_id("")
