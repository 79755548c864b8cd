import pytest
from unittest.mock import Mock, patch

from sakuracloud_plugin.domain.core.exceptions import ResourceOperationError
from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.exceptions import WaitTimeoutError
from sakuracloud_plugin.infrastructure.handlers.resources.nfs_handler import NFSHandler

CONFIG = {
    "name": "nfs",
    "switch_id": "200",
    "plan": "hdd",
    "size": 100,
    "ipaddress": "192.168.0.10",
    "nw_mask_len": 24,
    "default_route": "192.168.0.1",
    "graceful_shutdown_timeout": 60,
}


def nfs(nfs_id, availability="available", status="up"):
    return {
        "ID": nfs_id,
        "Name": "nfs",
        "Availability": availability,
        "Instance": {"Status": status},
        "Plan": {"ID": 50},
        "Switch": {"ID": 200},
        "Remark": {
            "Network": {"NetworkMaskLen": 24, "DefaultRoute": "192.168.0.1"},
            "Servers": [{"IPAddress": "192.168.0.10"}],
        },
    }


@pytest.fixture
def handler(client):
    handler = NFSHandler(client)
    handler.nfs_op = Mock()
    handler.nfs_op.find_plan_id.return_value = "50"
    handler.nfs_op.find_plan_by_id.return_value = ("hdd", 100)
    return handler


def test_create_retries_failed_copy(handler):
    handler.nfs_op.create.side_effect = [{"ID": 1}, {"ID": 2}]
    handler.nfs_op.read.side_effect = lambda zone, nfs_id: (
        nfs(1, availability="failed") if nfs_id == "1" else nfs(2)
    )
    data = ResourceData("sakuracloud_nfs", config=CONFIG)

    handler.create(data)

    handler.nfs_op.delete.assert_called_once_with("is1b", "1")
    body = handler.nfs_op.create.call_args.args[1]
    assert body["Class"] == "nfs"
    assert body["Plan"] == {"ID": 50}
    assert body["Remark"]["Servers"] == [{"IPAddress": "192.168.0.10"}]

    attributes = data.to_dict()["attributes"]
    assert data.id == "2"
    assert attributes["plan"] == "hdd"
    assert attributes["size"] == 100
    assert attributes["switch_id"] == "200"


def test_create_fails_after_three_copies(handler):
    handler.nfs_op.create.side_effect = [{"ID": 1}, {"ID": 2}, {"ID": 3}]
    handler.nfs_op.read.side_effect = lambda zone, nfs_id: nfs(int(nfs_id), availability="failed")
    data = ResourceData("sakuracloud_nfs", config=CONFIG)

    with pytest.raises(ResourceOperationError):
        handler.create(data)
    assert handler.nfs_op.delete.call_count == 3
    assert data.id == ""


def test_create_requires_available_plan(handler):
    handler.nfs_op.find_plan_id.return_value = None

    with pytest.raises(ResourceOperationError):
        handler.create(ResourceData("sakuracloud_nfs", config=CONFIG))
    handler.nfs_op.create.assert_not_called()


def test_read_of_failed_nfs_fails(handler):
    handler.nfs_op.read.return_value = nfs(1, availability="failed")
    data = ResourceData("sakuracloud_nfs", resource_id="1", state=CONFIG)

    with pytest.raises(ResourceOperationError) as exc_info:
        handler.read(data)
    assert "NFS[1] state is failed" in str(exc_info.value)


def test_delete_forces_shutdown_after_graceful_timeout(handler):
    handler.nfs_op.read.return_value = nfs(1)
    data = ResourceData("sakuracloud_nfs", resource_id="1", state=CONFIG)

    with patch("sakuracloud_plugin.infrastructure.handlers.resources.nfs_handler.wait_until_down",
               side_effect=[WaitTimeoutError("timed out"), {}]):
        handler.delete(data)

    assert handler.nfs_op.shutdown.call_args_list[0].args == ("is1b", "1")
    assert handler.nfs_op.shutdown.call_args_list[1].kwargs == {"force": True}
    handler.nfs_op.delete.assert_called_once_with("is1b", "1")
    assert data.id == ""


def test_delete_of_stopped_nfs_skips_shutdown(handler):
    handler.nfs_op.read.return_value = nfs(1, status="down")
    data = ResourceData("sakuracloud_nfs", resource_id="1", state=CONFIG)

    handler.delete(data)

    handler.nfs_op.shutdown.assert_not_called()
    handler.nfs_op.delete.assert_called_once_with("is1b", "1")
