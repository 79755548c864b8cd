"""SakuraCloud Provider Plugin - Root Package.

This package exposes SakuraCloud resources (networks, load balancers, NFS
appliances, archives, SIMs, VPC router VPN tunnels) as declarative
configuration entities to an external orchestration host.

The host calls the plugin once per operation with a JSON document describing
the desired configuration and the last known state. The plugin translates the
document into SakuraCloud API calls and answers with the refreshed state.

Key Components:
    - api: host-facing endpoints (resource CRUD, data sources, schemas)
    - domain: state records, schemas and domain exceptions
    - infrastructure: SakuraCloud API client, operations and handlers
    - config: configuration defaults and loading
    - helpers: logging and small utilities

Usage:
    >>> sakuracloud-plugin getSchemas
    >>> sakuracloud-plugin createResource -f archive.json
"""

__version__ = "1.0.0"
