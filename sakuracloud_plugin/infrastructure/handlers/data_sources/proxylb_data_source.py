from typing import Any, Dict, List, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.data_sources.lookup import LookupDataSourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import GLOBAL_ZONE, SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.operations import ProxyLBOp


def _plan_from_service_class(service_class: str) -> int:
    # e.g. "cloud/proxylb/plain/1000"
    try:
        return int(service_class.rsplit("/", 1)[-1])
    except ValueError:
        return 0


def flatten_bind_ports(bind_ports: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    results = []
    for bind_port in bind_ports:
        results.append({
            "proxy_mode": bind_port.get("ProxyMode", ""),
            "port": int(bind_port.get("Port") or 0),
            "redirect_to_https": bool(bind_port.get("RedirectToHTTPS")),
            "support_http2": bool(bind_port.get("SupportHTTP2")),
            "response_header": [
                {"header": h.get("Header", ""), "value": h.get("Value", "")}
                for h in bind_port.get("AddResponseHeader") or []
            ],
        })
    return results


def flatten_certificate(cert: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "server_cert": cert.get("ServerCertificate", ""),
        "intermediate_cert": cert.get("IntermediateCertificate", ""),
        "private_key": cert.get("PrivateKey", ""),
    }


class ProxyLBDataSource(LookupDataSourceHandler):
    type_name = "sakuracloud_proxylb"
    resource_label = "ProxyLB"

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.lookup_op = ProxyLBOp(client)

    def set_attributes(self, data: ResourceData, zone: str, obj: Dict[str, Any]) -> None:
        settings = (obj.get("Settings") or {}).get("ProxyLB") or {}
        status = obj.get("Status") or {}
        health_check = settings.get("HealthCheck") or {}
        sorry_server = settings.get("SorryServer") or {}

        try:
            certs = self.lookup_op.get_certificates(data.id)
        except InfrastructureError as e:
            raise self.fail(f"Couldn't read certificates of SakuraCloud ProxyLB[{data.id}]", e)

        certificate: List[Dict[str, Any]] = []
        primary = certs.get("PrimaryCert") or {}
        if primary.get("ServerCertificate"):
            entry = flatten_certificate(primary)
            entry["additional_certificates"] = [
                flatten_certificate(c) for c in certs.get("AdditionalCerts") or []
            ]
            certificate.append(entry)

        self.set_common_attributes(data, obj)
        data.set("plan", _plan_from_service_class(obj.get("ServiceClass", "")))
        data.set("vip_failover", bool(status.get("UseVIPFailover")))
        data.set("sticky_session", bool((settings.get("StickySession") or {}).get("Enabled")))
        data.set("timeout", int((settings.get("Timeout") or {}).get("InactiveSec") or 10))
        data.set("bind_ports", flatten_bind_ports(settings.get("BindPorts") or []))
        data.set("health_check", [{
            "protocol": health_check.get("Protocol", ""),
            "delay_loop": int(health_check.get("DelayLoop") or 0),
            "host_header": health_check.get("Host", ""),
            "path": health_check.get("Path", ""),
        }])
        if sorry_server.get("IPAddress"):
            data.set("sorry_server", [{
                "ipaddress": sorry_server.get("IPAddress", ""),
                "port": int(sorry_server.get("Port") or 0),
            }])
        else:
            data.set("sorry_server", [])
        data.set("certificate", certificate)
        data.set("servers", [
            {
                "ipaddress": s.get("IPAddress", ""),
                "port": int(s.get("Port") or 0),
                "enabled": bool(s.get("Enabled")),
            }
            for s in settings.get("Servers") or []
        ])
        data.set("fqdn", status.get("FQDN", ""))
        data.set("vip", status.get("VirtualIPAddress", ""))
        data.set("proxy_networks", list(status.get("ProxyNetworks") or []))
        data.set("zone", GLOBAL_ZONE)
