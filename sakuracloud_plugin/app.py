# sakuracloud_plugin/app.py
import argparse
import json
import sys
from typing import Dict, Any, Optional

# API endpoint imports
from sakuracloud_plugin.api.apply_resource import (
    CreateResource,
    DeleteResource,
    ImportResource,
    ReadResource,
    UpdateResource,
)
from sakuracloud_plugin.api.get_schemas import GetSchemas
from sakuracloud_plugin.api.read_data_source import ReadDataSource

# Infrastructure imports
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.handlers.base_handler import DataSourceHandler, ResourceHandler
from sakuracloud_plugin.infrastructure.handlers.resources.archive_handler import ArchiveHandler
from sakuracloud_plugin.infrastructure.handlers.resources.internet_handler import InternetHandler
from sakuracloud_plugin.infrastructure.handlers.resources.loadbalancer_vip_handler import LoadBalancerVIPHandler
from sakuracloud_plugin.infrastructure.handlers.resources.nfs_handler import NFSHandler
from sakuracloud_plugin.infrastructure.handlers.resources.packet_filter_rules_handler import PacketFilterRulesHandler
from sakuracloud_plugin.infrastructure.handlers.resources.sim_handler import SIMHandler
from sakuracloud_plugin.infrastructure.handlers.resources.vpc_router_vpn_handler import SiteToSiteVPNHandler
from sakuracloud_plugin.infrastructure.handlers.data_sources.bridge_data_source import BridgeDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.bucket_object_data_source import BucketObjectDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.cdrom_data_source import CDROMDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.proxylb_data_source import ProxyLBDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.subnet_data_source import SubnetDataSource
from sakuracloud_plugin.infrastructure.handlers.data_sources.zone_data_source import ZoneDataSource
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.protection.mutex_kv import sakura_mutex_kv

# Helper imports
from sakuracloud_plugin.helpers.logger import setup_logging
from sakuracloud_plugin.helpers.utils import load_json_data

# Configuration imports
from sakuracloud_plugin.config.defaults import ConfigurationManager

ACTIONS = [
    "createResource",
    "readResource",
    "updateResource",
    "deleteResource",
    "importResource",
    "readDataSource",
    "getSchemas",
]

# Actions that only describe the plugin and need no credentials
OFFLINE_ACTIONS = ("getSchemas",)


class Application:
    """Main application class that handles initialization and routing."""

    def __init__(self, config_file: Optional[str] = None):
        # Initialize configuration
        self.config_manager = ConfigurationManager(config_file)
        self.config = self.config_manager.get_config()

        # Set up logging
        self.logger = setup_logging(self.config)

        # Initialize infrastructure
        self.client = self._create_client()

        # Lock files are shared with the plugin processes of concurrent operations
        sakura_mutex_kv.set_lock_dir(self.config.get("SAKURACLOUD_LOCK_DIR"))

        # Initialize handlers
        self.resource_handlers = self._create_resource_handlers()
        self.data_source_handlers = self._create_data_source_handlers()

        # Initialize API endpoints
        self.endpoints = {
            "createResource": CreateResource(self.resource_handlers),
            "readResource": ReadResource(self.resource_handlers),
            "updateResource": UpdateResource(self.resource_handlers),
            "deleteResource": DeleteResource(self.resource_handlers),
            "importResource": ImportResource(self.resource_handlers),
            "readDataSource": ReadDataSource(self.data_source_handlers),
            "getSchemas": GetSchemas(self.resource_handlers, self.data_source_handlers),
        }

    def _create_client(self) -> SakuraCloudClient:
        """Create SakuraCloud API client with configuration."""
        try:
            config = self.config
            zone = config.get('SAKURACLOUD_ZONE')
            self.logger.info(f"Initializing SakuraCloud client with zone: {zone}")

            return SakuraCloudClient(
                access_token=config.get('SAKURACLOUD_ACCESS_TOKEN', ''),
                access_token_secret=config.get('SAKURACLOUD_ACCESS_TOKEN_SECRET', ''),
                default_zone=zone,
                config=config
            )

        except Exception as e:
            self.logger.error(f"Failed to create SakuraCloud client: {str(e)}")
            raise InfrastructureError(f"Failed to create SakuraCloud client: {str(e)}")

    def _create_resource_handlers(self) -> Dict[str, ResourceHandler]:
        """Create resource handler instances keyed by type name."""
        handlers = [
            ArchiveHandler(self.client, self.config),
            InternetHandler(self.client, self.config),
            LoadBalancerVIPHandler(self.client, self.config),
            NFSHandler(self.client, self.config),
            SiteToSiteVPNHandler(self.client, self.config),
            SIMHandler(self.client, self.config),
            PacketFilterRulesHandler(self.client, self.config),
        ]
        return {handler.type_name: handler for handler in handlers}

    def _create_data_source_handlers(self) -> Dict[str, DataSourceHandler]:
        """Create data source handler instances keyed by type name."""
        handlers = [
            ZoneDataSource(self.client, self.config),
            ProxyLBDataSource(self.client, self.config),
            BridgeDataSource(self.client, self.config),
            CDROMDataSource(self.client, self.config),
            SubnetDataSource(self.client, self.config),
            BucketObjectDataSource(self.client, self.config),
        ]
        return {handler.type_name: handler for handler in handlers}

    def run(self, args: argparse.Namespace) -> None:
        """
        Run the application with the given arguments.

        Args:
            args: Parsed command line arguments
        """
        try:
            if args.action not in OFFLINE_ACTIONS:
                self.config_manager.validate_credentials()

            # Load input data if provided
            input_data = None
            if args.data or args.file:
                input_data = load_json_data(json_str=args.data, json_file=args.file)

            # Get the appropriate endpoint
            endpoint = self.endpoints.get(args.action)
            if not endpoint:
                raise ValueError(f"Unknown action: {args.action}")

            # Execute the endpoint
            result = endpoint.execute(input_data=input_data)

            # Print the result
            print(json.dumps(result, indent=2))

        except Exception as e:
            self.logger.error(f"Error executing {args.action}: {e}", exc_info=True)
            print(json.dumps({
                "error": str(e),
                "message": f"Failed to execute {args.action}"
            }, indent=2))
            sys.exit(1)


def main(argv=None):
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(description="SakuraCloud Provider Plugin")

    # Add action argument
    parser.add_argument(
        "action",
        choices=ACTIONS,
        help="Action to perform"
    )

    # Add common arguments
    parser.add_argument("--data", help="JSON string input")
    parser.add_argument("-f", "--file", help="Path to JSON file input")
    parser.add_argument("--config", help="Path to configuration file")

    args = parser.parse_args(argv)

    # Run the application
    app = Application(config_file=args.config)
    app.run(args)


if __name__ == "__main__":
    main()
