"""Configuration package for the SakuraCloud provider plugin."""
from sakuracloud_plugin.config.defaults import ConfigurationManager, DEFAULT_CONFIG

__all__ = ["ConfigurationManager", "DEFAULT_CONFIG"]
