"""Input schemas of every resource and data source.

Models validate the ``config`` block of a host request before any remote call.
Fields that cannot change in place carry ``force_new`` in their JSON schema;
secrets carry ``sensitive``.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Zone = Literal["is1a", "is1b", "tk1a", "tk1v"]

ID_PATTERN = r"^\d+$"

FORCE_NEW = {"force_new": True}
SENSITIVE = {"sensitive": True}

ARCHIVE_SIZES = (20, 40, 60, 80, 100, 250, 500, 750, 1024)
INTERNET_NETMASKS = (26, 27, 28)
INTERNET_BANDWIDTHS = (100, 250, 500, 1000, 1500, 2000, 2500, 3000, 5000)
NFS_SIZES = (100, 500, 1024, 2048, 4096, 8192, 12288)
NFS_SSD_SIZES = (100, 500, 1024, 2048, 4096)
MAX_PACKET_FILTER_EXPRESSIONS = 30
MAX_VIP_SERVERS = 40


def _one_of(value: int, allowed, field: str) -> int:
    if value not in allowed:
        raise ValueError(f"{field} must be one of {', '.join(str(v) for v in allowed)}: got {value}")
    return value


class SchemaModel(BaseModel):
    """Base model for resource inputs."""

    model_config = ConfigDict(
        extra="ignore",  # Computed attributes from prior state are passed back unchanged
        populate_by_name=True,
    )


class ZonedModel(SchemaModel):
    zone: Optional[Zone] = Field(default=None, json_schema_extra=FORCE_NEW,
                                 description="Target SakuraCloud zone")


class TaggedModel(ZonedModel):
    icon_id: Optional[str] = Field(default=None, pattern=ID_PATTERN)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


# Resources

class ArchiveSchema(TaggedModel):
    name: str
    size: int = Field(default=20, json_schema_extra=FORCE_NEW, description="Size in GB")
    archive_file: str
    hash: Optional[str] = Field(default=None, description="MD5 hex digest of archive_file")

    @field_validator("size")
    @classmethod
    def validate_size(cls, v: int) -> int:
        return _one_of(v, ARCHIVE_SIZES, "size")


class InternetSchema(TaggedModel):
    name: str
    netmask: int = Field(default=28, json_schema_extra=FORCE_NEW)
    band_width: int = Field(default=100, description="Bandwidth in Mbps")
    enable_ipv6: bool = False

    @field_validator("netmask")
    @classmethod
    def validate_netmask(cls, v: int) -> int:
        return _one_of(v, INTERNET_NETMASKS, "netmask")

    @field_validator("band_width")
    @classmethod
    def validate_band_width(cls, v: int) -> int:
        return _one_of(v, INTERNET_BANDWIDTHS, "band_width")


class VIPServerSchema(SchemaModel):
    ipaddress: str
    check_protocol: Literal["http", "https", "ping", "tcp"]
    check_path: Optional[str] = None
    check_status: Optional[str] = None
    enabled: bool = True


class LoadBalancerVIPSchema(ZonedModel):
    load_balancer_id: str = Field(pattern=ID_PATTERN, json_schema_extra=FORCE_NEW)
    vip: str = Field(json_schema_extra=FORCE_NEW)
    port: int = Field(ge=1, le=65535, json_schema_extra=FORCE_NEW)
    delay_loop: int = Field(default=10, ge=10, le=2147483647)
    sorry_server: Optional[str] = None
    description: Optional[str] = None
    servers: List[VIPServerSchema] = Field(default_factory=list, max_length=MAX_VIP_SERVERS)


class NFSSchema(TaggedModel):
    name: str
    switch_id: str = Field(pattern=ID_PATTERN, json_schema_extra=FORCE_NEW)
    plan: Literal["hdd", "ssd"] = Field(default="hdd", json_schema_extra=FORCE_NEW)
    size: int = Field(default=100, json_schema_extra=FORCE_NEW, description="Size in GB")
    ipaddress: str = Field(json_schema_extra=FORCE_NEW)
    nw_mask_len: int = Field(ge=8, le=29, json_schema_extra=FORCE_NEW)
    default_route: Optional[str] = Field(default=None, json_schema_extra=FORCE_NEW)
    graceful_shutdown_timeout: int = Field(default=60, ge=0, description="Seconds before forcing shutdown")

    @field_validator("size")
    @classmethod
    def validate_size(cls, v: int) -> int:
        return _one_of(v, NFS_SIZES, "size")

    @model_validator(mode="after")
    def validate_ssd_size(self) -> "NFSSchema":
        if self.plan == "ssd":
            _one_of(self.size, NFS_SSD_SIZES, "size")
        return self


class SiteToSiteVPNSchema(ZonedModel):
    vpc_router_id: str = Field(pattern=ID_PATTERN, json_schema_extra=FORCE_NEW)
    peer: str = Field(json_schema_extra=FORCE_NEW)
    remote_id: str = Field(json_schema_extra=FORCE_NEW)
    pre_shared_secret: str = Field(max_length=40, json_schema_extra={**FORCE_NEW, **SENSITIVE})
    routes: List[str] = Field(json_schema_extra=FORCE_NEW)
    local_prefix: List[str] = Field(json_schema_extra=FORCE_NEW)


class SIMSchema(TaggedModel):
    name: str
    iccid: str = Field(json_schema_extra=FORCE_NEW)
    passcode: str = Field(json_schema_extra={**FORCE_NEW, **SENSITIVE})
    imei: Optional[str] = None
    carrier: List[Literal["softbank", "docomo", "kddi"]] = Field(min_length=1, max_length=3)
    enabled: bool = True
    mobile_gateway_id: Optional[str] = Field(default=None, pattern=ID_PATTERN)
    ipaddress: Optional[str] = None

    @field_validator("carrier")
    @classmethod
    def validate_unique_carrier(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("carrier must not contain duplicates")
        return v


class PacketFilterExpressionSchema(SchemaModel):
    protocol: Literal["http", "https", "tcp", "udp", "icmp", "fragment", "ip"]
    source_network: Optional[str] = None
    source_port: Optional[str] = None
    destination_port: Optional[str] = None
    allow: bool = True
    description: Optional[str] = None


class PacketFilterRulesSchema(ZonedModel):
    packet_filter_id: str = Field(pattern=ID_PATTERN, json_schema_extra=FORCE_NEW)
    expressions: List[PacketFilterExpressionSchema] = Field(
        default_factory=list, max_length=MAX_PACKET_FILTER_EXPRESSIONS
    )


# Data sources

class FilterSchema(SchemaModel):
    name: str
    values: List[str]


class LookupSchema(ZonedModel):
    filter: List[FilterSchema] = Field(default_factory=list)
    name_selectors: List[str] = Field(default_factory=list)
    tag_selectors: List[str] = Field(default_factory=list)


class ZoneLookupSchema(SchemaModel):
    name: Optional[Zone] = None


class SubnetLookupSchema(ZonedModel):
    internet_id: str = Field(pattern=ID_PATTERN)
    index: int = Field(ge=0)


class BucketObjectLookupSchema(SchemaModel):
    bucket: str
    key: str
    access_key: Optional[str] = Field(default=None, json_schema_extra=SENSITIVE)
    secret_key: Optional[str] = Field(default=None, json_schema_extra=SENSITIVE)
