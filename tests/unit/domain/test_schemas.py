import pytest
from pydantic import ValidationError

from sakuracloud_plugin.domain.resource.schemas import (
    ArchiveSchema,
    InternetSchema,
    LoadBalancerVIPSchema,
    NFSSchema,
    PacketFilterRulesSchema,
    SIMSchema,
    SiteToSiteVPNSchema,
)


def test_archive_defaults_and_size():
    archive = ArchiveSchema(name="a", archive_file="/tmp/a.img")
    assert archive.size == 20
    with pytest.raises(ValidationError):
        ArchiveSchema(name="a", archive_file="/tmp/a.img", size=30)


def test_internet_bandwidth_and_netmask():
    internet = InternetSchema(name="router")
    assert (internet.netmask, internet.band_width, internet.enable_ipv6) == (28, 100, False)
    with pytest.raises(ValidationError):
        InternetSchema(name="router", band_width=123)
    with pytest.raises(ValidationError):
        InternetSchema(name="router", netmask=24)


def test_zone_must_be_known():
    with pytest.raises(ValidationError):
        InternetSchema(name="router", zone="xx1a")


def test_icon_id_must_be_numeric():
    with pytest.raises(ValidationError):
        InternetSchema(name="router", icon_id="abc")


def test_vip_limits():
    base = {"load_balancer_id": "1", "vip": "192.168.0.10"}
    assert LoadBalancerVIPSchema(port=80, **base).delay_loop == 10
    with pytest.raises(ValidationError):
        LoadBalancerVIPSchema(port=0, **base)
    with pytest.raises(ValidationError):
        LoadBalancerVIPSchema(port=80, delay_loop=5, **base)
    servers = [{"ipaddress": f"192.168.0.{i}", "check_protocol": "ping"} for i in range(41)]
    with pytest.raises(ValidationError):
        LoadBalancerVIPSchema(port=80, servers=servers, **base)


def test_nfs_ssd_sizes():
    base = {"name": "nfs", "switch_id": "1", "ipaddress": "192.168.0.10", "nw_mask_len": 24}
    assert NFSSchema(plan="hdd", size=8192, **base).size == 8192
    with pytest.raises(ValidationError):
        NFSSchema(plan="ssd", size=8192, **base)
    with pytest.raises(ValidationError):
        NFSSchema(nw_mask_len=30, **{k: v for k, v in base.items() if k != "nw_mask_len"})


def test_vpn_secret_length():
    base = {"vpc_router_id": "1", "peer": "10.0.0.1", "remote_id": "10.0.0.1",
            "routes": ["10.1.0.0/16"], "local_prefix": ["192.168.0.0/24"]}
    assert SiteToSiteVPNSchema(pre_shared_secret="s" * 40, **base)
    with pytest.raises(ValidationError):
        SiteToSiteVPNSchema(pre_shared_secret="s" * 41, **base)


def test_sim_carrier():
    base = {"name": "sim", "iccid": "1234", "passcode": "pass"}
    assert SIMSchema(carrier=["softbank", "docomo"], **base).enabled is True
    with pytest.raises(ValidationError):
        SIMSchema(carrier=[], **base)
    with pytest.raises(ValidationError):
        SIMSchema(carrier=["softbank", "softbank"], **base)
    with pytest.raises(ValidationError):
        SIMSchema(carrier=["unknown"], **base)


def test_packet_filter_expression_limit():
    expressions = [{"protocol": "tcp"}] * 31
    with pytest.raises(ValidationError):
        PacketFilterRulesSchema(packet_filter_id="1", expressions=expressions)


def test_json_schema_marks_force_new_and_sensitive():
    schema = SIMSchema.model_json_schema()
    assert schema["properties"]["iccid"]["force_new"] is True
    assert schema["properties"]["passcode"]["sensitive"] is True
