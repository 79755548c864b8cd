# sakuracloud_plugin/domain/resource/resource_data.py
from typing import Any, Dict, Optional, Tuple


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


class ResourceData:
    """
    Desired and prior state of one host-managed object.

    Values are looked up in the order: attributes set during the current
    operation, desired configuration, prior state. ``to_dict`` renders the
    result document the host stores as the new state.
    """

    def __init__(self,
                 resource_type: str,
                 resource_id: str = "",
                 config: Optional[Dict[str, Any]] = None,
                 state: Optional[Dict[str, Any]] = None,
                 timeouts: Optional[Dict[str, Any]] = None):
        self.resource_type = resource_type
        self._id = str(resource_id or "")
        self._config = dict(config or {})
        self._state = dict(state or {})
        self._timeouts = dict(timeouts or {})
        self._attributes: Dict[str, Any] = {}

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, resource_id: Any) -> None:
        """Set the object's ID; an empty ID marks the object as absent."""
        self._id = "" if resource_id is None else str(resource_id)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._attributes:
            return self._attributes[key]
        if key in self._config:
            return self._config[key]
        return self._state.get(key, default)

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        """Return the value and whether it is set to a non-empty value."""
        value = self.get(key)
        return value, not _is_empty(value)

    def get_state(self, key: str, default: Any = None) -> Any:
        return self._state.get(key, default)

    def has_change(self, key: str) -> bool:
        """Return True when the desired value differs from the prior state."""
        if key not in self._config:
            return False
        new = self._config.get(key)
        old = self._state.get(key)
        if _is_empty(new) and _is_empty(old):
            return False
        return new != old

    def set(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    def timeout(self, operation: str, default: int) -> int:
        """Return the host-provided timeout in seconds for an operation."""
        value = self._timeouts.get(operation)
        if value is None:
            return default
        return int(value)

    def attributes(self) -> Dict[str, Any]:
        if not self._id:
            return {}
        merged = dict(self._state)
        merged.update(self._config)
        merged.update(self._attributes)
        merged["id"] = self._id
        return merged

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.resource_type,
            "id": self._id,
            "attributes": self.attributes(),
        }
