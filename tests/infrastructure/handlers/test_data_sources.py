import pytest
from unittest.mock import Mock

from sakuracloud_plugin.domain.core.exceptions import ResourceOperationError
from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.handlers.data_sources.bridge_data_source import BridgeDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.cdrom_data_source import CDROMDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.lookup import expand_filters, select
from sakuracloud_plugin.infrastructure.handlers.data_sources.proxylb_data_source import ProxyLBDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.subnet_data_source import SubnetDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.zone_data_source import ZoneDataSource
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import ResourceNotFoundError

CDROMS = [
    {"ID": 1, "Name": "Ubuntu Server 22.04", "Tags": ["arch-64bit", "os-linux"], "SizeMB": 5120},
    {"ID": 2, "Name": "CentOS Stream 9", "Tags": ["arch-64bit", "os-linux"], "SizeMB": 10240},
]


def test_expand_filters():
    filters = [
        {"name": "Name", "values": ["ubuntu"]},
        {"name": "Tags", "values": ["a", "b"]},
        {"name": "Empty", "values": [""]},
    ]
    assert expand_filters(filters) == {"Name": "ubuntu", "Tags": ["a", "b"]}


def test_select_requires_every_selector():
    assert select(CDROMS, name_selectors=["Ubuntu", "22.04"]) == [CDROMS[0]]
    assert select(CDROMS, tag_selectors=["os-linux", "arch-64bit"]) == CDROMS
    assert select(CDROMS, tag_selectors=["os-windows"]) == []


def test_cdrom_lookup(client):
    source = CDROMDataSource(client)
    source.lookup_op = Mock()
    source.lookup_op.find.return_value = CDROMS
    data = ResourceData("sakuracloud_cdrom", config={
        "filter": [{"name": "Tags", "values": ["os-linux"]}],
        "name_selectors": ["CentOS"],
    })

    source.read(data)

    source.lookup_op.find.assert_called_once_with("is1b", {"Tags": "os-linux"})
    assert data.id == "2"
    assert data.get("size") == 10
    assert data.get("zone") == "is1b"


def test_no_result_leaves_id_empty(client):
    source = CDROMDataSource(client)
    source.lookup_op = Mock()
    source.lookup_op.find.return_value = []
    data = ResourceData("sakuracloud_cdrom", config={})

    source.read(data)

    assert data.id == ""


def test_no_result_fails_when_configured(client):
    source = CDROMDataSource(client, {"SAKURACLOUD_FILTER_NO_RESULT_ERROR": "true"})
    source.lookup_op = Mock()
    source.lookup_op.find.return_value = []

    with pytest.raises(ResourceOperationError) as exc_info:
        source.read(ResourceData("sakuracloud_cdrom", config={}))
    assert "Your query returned no results" in str(exc_info.value)


def test_bridge_lookup(client):
    source = BridgeDataSource(client)
    source.lookup_op = Mock()
    source.lookup_op.find.return_value = [
        {"ID": 10, "Name": "bridge", "Info": {"Switches": [{"ID": 20}, {"ID": 21}]}},
    ]
    data = ResourceData("sakuracloud_bridge", config={"zone": "tk1a"})

    source.read(data)

    assert data.id == "10"
    assert data.get("switch_ids") == ["20", "21"]
    assert data.get("zone") == "tk1a"


def test_proxylb_lookup(client):
    source = ProxyLBDataSource(client)
    source.lookup_op = Mock()
    source.lookup_op.find.return_value = [{
        "ID": 30,
        "Name": "proxy",
        "ServiceClass": "cloud/proxylb/plain/1000",
        "Settings": {"ProxyLB": {
            "HealthCheck": {"Protocol": "http", "DelayLoop": 10, "Path": "/"},
            "BindPorts": [{"ProxyMode": "https", "Port": 443, "SupportHTTP2": True,
                           "AddResponseHeader": [{"Header": "Cache-Control", "Value": "no-cache"}]}],
            "Servers": [{"IPAddress": "198.51.100.5", "Port": 80, "Enabled": True}],
            "StickySession": {"Enabled": True},
            "Timeout": {"InactiveSec": 30},
        }},
        "Status": {"FQDN": "site.proxylb.example.jp", "VirtualIPAddress": "203.0.113.100",
                   "ProxyNetworks": ["133.242.0.0/24"], "UseVIPFailover": True},
    }]
    source.lookup_op.get_certificates.return_value = {
        "PrimaryCert": {"ServerCertificate": "server", "PrivateKey": "key"},
        "AdditionalCerts": [{"ServerCertificate": "extra"}],
    }
    data = ResourceData("sakuracloud_proxylb", config={"name_selectors": ["proxy"]})

    source.read(data)

    source.lookup_op.get_certificates.assert_called_once_with("30")
    assert data.get("plan") == 1000
    assert data.get("sticky_session") is True
    assert data.get("timeout") == 30
    assert data.get("bind_ports")[0]["response_header"] == [{"header": "Cache-Control", "value": "no-cache"}]
    assert data.get("certificate")[0]["additional_certificates"][0]["server_cert"] == "extra"
    assert data.get("sorry_server") == []
    assert data.get("fqdn") == "site.proxylb.example.jp"
    assert data.get("zone") == "is1a"


def test_zone_lookup_defaults_to_client_zone(client):
    source = ZoneDataSource(client)
    source.zone_op = Mock()
    source.zone_op.find.return_value = [
        {"ID": 31001, "Name": "is1a"},
        {"ID": 31002, "Name": "is1b", "Description": "Ishikari 2",
         "Region": {"ID": 310, "Name": "Ishikari", "NameServers": ["133.242.0.3", "133.242.0.4"]}},
    ]
    data = ResourceData("sakuracloud_zone", config={})

    source.read(data)

    assert data.id == "31002"
    assert data.get("name") == "is1b"
    assert data.get("region_name") == "Ishikari"
    assert data.get("dns_servers") == ["133.242.0.3", "133.242.0.4"]


@pytest.fixture
def subnet_source(client):
    source = SubnetDataSource(client)
    source.internet_op = Mock()
    source.switch_op = Mock()
    source.internet_op.read.return_value = {"ID": 100, "Switch": {"ID": 200}}
    source.switch_op.read.return_value = {"ID": 200, "Subnets": [
        {"ID": 1, "NetworkMaskLen": 28, "IPAddresses": {"Min": "203.0.113.4", "Max": "203.0.113.14"}},
        {"ID": 2, "NetworkMaskLen": 30, "NextHop": "203.0.113.5",
         "IPAddresses": {"Min": "198.51.100.1", "Max": "198.51.100.2"}},
    ]}
    return source


def test_subnet_index_skips_router_subnet(subnet_source):
    data = ResourceData("sakuracloud_subnet", config={"internet_id": "100", "index": 0})

    subnet_source.read(data)

    assert data.id == "2"
    assert data.get("switch_id") == "200"
    assert data.get("next_hop") == "203.0.113.5"
    assert data.get("ipaddresses") == ["198.51.100.1", "198.51.100.2"]


def test_subnet_index_out_of_range(subnet_source):
    data = ResourceData("sakuracloud_subnet", config={"internet_id": "100", "index": 1})

    subnet_source.read(data)

    assert data.id == ""


def test_subnet_of_missing_router(subnet_source):
    subnet_source.internet_op.read.side_effect = ResourceNotFoundError(404)
    data = ResourceData("sakuracloud_subnet", config={"internet_id": "100", "index": 0})

    subnet_source.read(data)

    assert data.id == ""
