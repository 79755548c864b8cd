from unittest.mock import Mock

import pytest

from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.operations import (
    ArchiveOp,
    InternetOp,
    LoadBalancerOp,
    MobileGatewayOp,
    NFSOp,
    ProxyLBOp,
    SIMOp,
    VPCRouterOp,
)

NFS_PLANS = {
    "NFSPlans": {
        "HDD": [{"Size": 100, "PlanID": 50, "Availability": "available"},
                {"Size": 500, "PlanID": 51, "Availability": "discontinued"}],
        "SSD": [{"Size": 100, "PlanID": 60, "Availability": "available"}],
    }
}


@pytest.fixture
def api():
    api = Mock(spec=SakuraCloudClient)
    api.default_zone = "is1b"
    return api


def test_create_wraps_body_in_root_key(api):
    api.post.return_value = {"Archive": {"ID": 1}}

    assert ArchiveOp(api).create(None, {"Name": "a"}) == {"ID": 1}
    api.post.assert_called_once_with("is1b", "archive", {"Archive": {"Name": "a"}})


def test_find_adds_appliance_class(api):
    api.get.return_value = {"Appliances": [{"ID": 1}]}

    assert LoadBalancerOp(api).find("is1a", {"Name": "lb"}) == [{"ID": 1}]
    api.get.assert_called_once_with("is1a", "appliance", query={
        "Count": 0, "From": 0, "Filter": {"Name": "lb", "Class": "loadbalancer"},
    })


def test_common_service_items_use_global_zone(api):
    api.get.return_value = {"CommonServiceItems": []}

    ProxyLBOp(api).find("tk1a")
    SIMOp(api).activate("500")

    assert api.get.call_args.args[0] == "is1a"
    assert api.get.call_args.kwargs["query"]["Filter"] == {"Provider.Class": "proxylb"}
    api.put.assert_called_once_with("is1a", "commonserviceitem/500/sim/activate")


def test_update_bandwidth_returns_new_router(api):
    api.put.return_value = {"Internet": {"ID": 101}}

    assert InternetOp(api).update_bandwidth("is1a", "100", 250) == {"ID": 101}
    api.put.assert_called_once_with("is1a", "internet/100/bandwidth", {"Internet": {"BandWidthMbps": 250}})


def test_nfs_plan_lookup(api):
    api.get.return_value = NFS_PLANS
    op = NFSOp(api)

    assert op.find_plan_id("is1a", "hdd", 100) == "50"
    assert op.find_plan_id("is1a", "hdd", 500) is None
    assert op.find_plan_by_id("is1a", 60) == ("ssd", 100)
    assert op.find_plan_by_id("is1a", 99) == ("", 0)


def test_lb_update_vips_sends_settings_hash(api):
    LoadBalancerOp(api).update_vips("is1a", "1", [{"Port": "80"}], "hash")

    api.put.assert_called_once_with("is1a", "appliance/1", {
        "Appliance": {"Settings": {"LoadBalancer": [{"Port": "80"}]}, "SettingsHash": "hash"},
    })


def test_shutdown_force(api):
    NFSOp(api).shutdown("is1a", "1", force=True)
    api.delete.assert_called_once_with("is1a", "appliance/1/power", {"Force": True})


def test_vpc_router_connection_detail(api):
    api.get.return_value = {"Details": {"Config": []}}
    assert VPCRouterOp(api).get_site_to_site_connection_detail(None, "300") == {"Config": []}
    api.get.assert_called_once_with("is1b", "appliance/300/vpcrouter/sitetosite/connectiondetail")


def test_mobile_gateway_sim_attachment(api):
    op = MobileGatewayOp(api)
    op.add_sim("is1a", "400", "500")
    op.delete_sim("is1a", "400", "500")

    api.post.assert_called_once_with("is1a", "appliance/400/mobilegateway/sims", {"SIM": {"resource_id": "500"}})
    api.put.assert_not_called()
    api.delete.assert_called_once_with("is1a", "appliance/400/mobilegateway/sims/500")


def test_open_ftp(api):
    api.put.return_value = {"FTPServer": {"HostName": "ftp.example.jp"}}
    assert ArchiveOp(api).open_ftp("is1a", "1") == {"HostName": "ftp.example.jp"}
    api.put.assert_called_once_with("is1a", "archive/1/ftp", {"ChangePassword": False})
