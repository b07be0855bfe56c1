"""
Core infrastructure shared by the client, admin API and CLI layers.

Exposes logging helpers, the execution context handed to commands, and the
plugin catalogue.
"""

from .logging import configure_logging, get_logger, log_event
from .context import ExecutionContext, ExecutionOptions
from .catalogue import CatalogueLoadError, PluginCatalogue, PluginDescriptor

__all__ = [
    "CatalogueLoadError",
    "ExecutionContext",
    "ExecutionOptions",
    "PluginCatalogue",
    "PluginDescriptor",
    "configure_logging",
    "get_logger",
    "log_event",
]
