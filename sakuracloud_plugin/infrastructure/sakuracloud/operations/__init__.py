from sakuracloud_plugin.infrastructure.sakuracloud.operations.base import ResourceOp, ApplianceOp
from sakuracloud_plugin.infrastructure.sakuracloud.operations.archive_op import ArchiveOp, CDROMOp
from sakuracloud_plugin.infrastructure.sakuracloud.operations.network_op import (
    InternetOp, SwitchOp, BridgeOp, PacketFilterOp, ZoneOp
)
from sakuracloud_plugin.infrastructure.sakuracloud.operations.appliance_op import (
    LoadBalancerOp, NFSOp, VPCRouterOp, MobileGatewayOp
)
from sakuracloud_plugin.infrastructure.sakuracloud.operations.commonservice_op import (
    CommonServiceItemOp, SIMOp, ProxyLBOp
)

__all__ = [
    'ResourceOp', 'ApplianceOp',
    'ArchiveOp', 'CDROMOp',
    'InternetOp', 'SwitchOp', 'BridgeOp', 'PacketFilterOp', 'ZoneOp',
    'LoadBalancerOp', 'NFSOp', 'VPCRouterOp', 'MobileGatewayOp',
    'CommonServiceItemOp', 'SIMOp', 'ProxyLBOp',
]
