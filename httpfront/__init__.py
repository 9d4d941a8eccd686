"""
HTTP front-end component for multi-process application servers.

Turns a declarative listener configuration into a running FastAPI/uvicorn
listener with a fixed filter and route pipeline. Workers of one server type
can share a cluster port pattern ("3000++") and each bind base + worker index.

Example:
    from httpfront import StaticApplication, create_component

    app = StaticApplication(base=".", server_type="connector",
                            server_id="connector-0")
    component = create_component(app, {"port": 3000})
    await component.start()
"""

from .application import Application, StaticApplication
from .config import DEFAULT_HOST, DEFAULT_PORT, ServerConfig, load_config
from .exceptions import (
    ConfigError,
    HttpFrontError,
    LifecycleError,
    RouteLoadError,
    TLSError,
)
from .filters import FilterChain, FilterRegistry, default_filters
from .lifecycle import HttpComponent, ListenerState, create_component
from .log import LoggerLike, create_console_logger
from .ports import PortResolver, resolve_port
from .routes import ROUTE_FACTORY_NAME, RouteLoader, RouteTable
from .tls import TLSConfigurator, TLSCredentials

__version__ = "0.1.0"

__all__ = [
    # Lifecycle
    "HttpComponent",
    "ListenerState",
    "create_component",
    # Configuration
    "ServerConfig",
    "load_config",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "PortResolver",
    "resolve_port",
    "TLSConfigurator",
    "TLSCredentials",
    # Pipeline
    "FilterRegistry",
    "FilterChain",
    "default_filters",
    "RouteLoader",
    "RouteTable",
    "ROUTE_FACTORY_NAME",
    # Collaborators
    "Application",
    "StaticApplication",
    "LoggerLike",
    "create_console_logger",
    # Errors
    "HttpFrontError",
    "ConfigError",
    "TLSError",
    "RouteLoadError",
    "LifecycleError",
]
