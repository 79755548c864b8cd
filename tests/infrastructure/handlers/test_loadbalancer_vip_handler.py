import json
import multiprocessing
import threading
import time

import pytest
from unittest.mock import Mock

from sakuracloud_plugin.domain.core.exceptions import ResourceOperationError
from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.handlers.resources.loadbalancer_vip_handler import (
    LoadBalancerVIPHandler,
    vip_id,
)
from sakuracloud_plugin.infrastructure.protection.mutex_kv import MutexKV
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import ResourceNotFoundError

CONFIG = {
    "load_balancer_id": "123",
    "vip": "192.168.0.10",
    "port": 80,
    "delay_loop": 20,
    "sorry_server": "192.168.0.250",
    "description": "web",
    "servers": [
        {"ipaddress": "192.168.0.101", "check_protocol": "http", "check_path": "/", "check_status": "200",
         "enabled": True},
    ],
}

OTHER_VIP = {"VirtualIPAddress": "192.168.0.11", "Port": "443", "DelayLoop": "10", "Servers": []}


def load_balancer(vips):
    return {"ID": 123, "SettingsHash": "hash", "Settings": {"LoadBalancer": vips}}


class FakeLoadBalancerOp:
    """Keeps the VIP list in memory like the remote settings blob."""

    def __init__(self, vips=None):
        self.vips = list(vips or [])
        self.writes = 0

    def read(self, zone, lb_id):
        return load_balancer([dict(v) for v in self.vips])

    def update_vips(self, zone, lb_id, vips, settings_hash=None):
        # Settings writes take a while on the remote side
        time.sleep(0.05)
        self.vips = [dict(v) for v in vips]
        self.writes += 1


class FileLoadBalancerOp:
    """Keeps the VIP list in a JSON file shared between processes."""

    def __init__(self, path):
        self.path = path

    def read(self, zone, lb_id):
        with open(self.path) as f:
            return load_balancer(json.load(f))

    def update_vips(self, zone, lb_id, vips, settings_hash=None):
        time.sleep(0.2)
        with open(self.path, "w") as f:
            json.dump(vips, f)


def create_vip_in_process(store_path, lock_dir, vip):
    client = Mock(spec=SakuraCloudClient)
    client.default_zone = "is1b"
    handler = LoadBalancerVIPHandler(client, mutex_kv=MutexKV(lock_dir))
    handler.lb_op = FileLoadBalancerOp(store_path)
    handler.create(ResourceData("sakuracloud_loadbalancer_vip", config=dict(CONFIG, vip=vip)))


@pytest.fixture
def handler(client, mutex_kv):
    handler = LoadBalancerVIPHandler(client, mutex_kv=mutex_kv)
    handler.lb_op = FakeLoadBalancerOp([OTHER_VIP])
    return handler


def test_create_appends_vip(handler):
    data = ResourceData("sakuracloud_loadbalancer_vip", config=CONFIG)

    handler.create(data)

    assert data.id == "123-192.168.0.10-80"
    assert len(handler.lb_op.vips) == 2
    created = handler.lb_op.vips[1]
    assert created["Port"] == "80"
    assert created["DelayLoop"] == "20"
    assert created["Servers"][0]["HealthCheck"] == {"Protocol": "http", "Path": "/", "Status": "200"}

    attributes = data.to_dict()["attributes"]
    assert attributes["port"] == 80
    assert attributes["servers"][0]["ipaddress"] == "192.168.0.101"
    assert attributes["servers"][0]["enabled"] is True


def test_create_rejects_duplicate(handler):
    handler.create(ResourceData("sakuracloud_loadbalancer_vip", config=CONFIG))

    with pytest.raises(ResourceOperationError) as exc_info:
        handler.create(ResourceData("sakuracloud_loadbalancer_vip", config=CONFIG))
    assert "already exists: LoadBalancer VIP: 192.168.0.10:80" in str(exc_info.value)


def test_parallel_creates_keep_every_vip(handler):
    configs = [dict(CONFIG, vip=f"192.168.0.{20 + i}") for i in range(5)]
    threads = [
        threading.Thread(target=handler.create, args=(ResourceData("sakuracloud_loadbalancer_vip", config=c),))
        for c in configs
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    addresses = {v["VirtualIPAddress"] for v in handler.lb_op.vips}
    assert addresses == {"192.168.0.11"} | {c["vip"] for c in configs}


def test_parallel_creates_in_separate_processes_keep_every_vip(tmp_path):
    store_path = str(tmp_path / "lb.json")
    with open(store_path, "w") as f:
        json.dump([OTHER_VIP], f)
    vips = [f"192.168.0.{30 + i}" for i in range(3)]

    ctx = multiprocessing.get_context("spawn")
    processes = [
        ctx.Process(target=create_vip_in_process, args=(store_path, str(tmp_path / "locks"), vip))
        for vip in vips
    ]
    for p in processes:
        p.start()
    for p in processes:
        p.join(timeout=30)

    assert [p.exitcode for p in processes] == [0, 0, 0]
    with open(store_path) as f:
        addresses = {v["VirtualIPAddress"] for v in json.load(f)}
    assert addresses == {"192.168.0.11"} | set(vips)


def test_read_marks_missing_vip_absent(handler):
    data = ResourceData("sakuracloud_loadbalancer_vip", resource_id="123-192.168.0.10-80", state=CONFIG)

    handler.read(data)

    assert data.id == ""


def test_read_marks_missing_load_balancer_absent(client, mutex_kv):
    handler = LoadBalancerVIPHandler(client, mutex_kv=mutex_kv)
    handler.lb_op = Mock()
    handler.lb_op.read.side_effect = ResourceNotFoundError(404)
    data = ResourceData("sakuracloud_loadbalancer_vip", resource_id="123-192.168.0.10-80", state=CONFIG)

    handler.read(data)

    assert data.id == ""


def test_update_replaces_settings_of_matching_vip(handler):
    handler.create(ResourceData("sakuracloud_loadbalancer_vip", config=CONFIG))
    config = dict(CONFIG, delay_loop=30, servers=[])
    data = ResourceData("sakuracloud_loadbalancer_vip", resource_id=vip_id("123", "192.168.0.10", 80),
                        config=config, state=CONFIG)

    handler.update(data)

    updated = handler.lb_op.vips[1]
    assert updated["DelayLoop"] == "30"
    assert updated["Servers"] == []
    assert handler.lb_op.vips[0] == OTHER_VIP


def test_delete_keeps_other_vips(handler):
    handler.create(ResourceData("sakuracloud_loadbalancer_vip", config=CONFIG))
    data = ResourceData("sakuracloud_loadbalancer_vip", resource_id=vip_id("123", "192.168.0.10", 80), state=CONFIG)

    handler.delete(data)

    assert handler.lb_op.vips == [OTHER_VIP]
    assert data.id == ""
