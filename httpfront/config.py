"""
Server configuration for the HTTP component.

ServerConfig is built once per process and never mutated. It can come from
keyword arguments, from a mapping (with either snake_case keys or the camelCase
keys older deployments use), or from a YAML file:

    # etc/http.yaml
    http:
      host: 0.0.0.0
      port: "3000++"
      isCluster: true
      useSSL: true
      keyFile: config/ssl/server.key
      certFile: config/ssl/server.crt

    config = load_config("etc/http.yaml", section="http")
"""

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigError
from .ports import MAX_PORT, is_cluster_pattern

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8087

# Maximum config file size (10MB)
MAX_CONFIG_SIZE_BYTES = 10 * 1024 * 1024

_KEY_ALIASES = {
    "isCluster": "is_cluster",
    "useSSL": "use_ssl",
    "keyFile": "key_file",
    "certFile": "cert_file",
    "trustProxy": "trust_proxy",
    "methodOverride": "method_override",
    "compressionMinSize": "compression_min_size",
    "logLevel": "log_level",
}


@dataclass(frozen=True)
class ServerConfig:
    """
    Immutable HTTP listener configuration.

    Attributes:
        host: Bind address (default: "127.0.0.1")
        port: Bind port, or "<digits>++" when is_cluster (default: 8087).
            0 lets the OS pick a free port.
        is_cluster: Offset the port by the worker index in the server id
        use_ssl: Serve HTTPS; requires key_file and cert_file
        key_file: TLS private key path, relative to the application base
        cert_file: TLS certificate path, relative to the application base
        trust_proxy: Honour X-Forwarded-* headers from a fronting proxy
        compression: Gzip responses
        compression_min_size: Smallest response body worth compressing
        method_override: Let POST requests carry X-HTTP-Method-Override
        log_level: Level for uvicorn's own loggers
    """

    host: str = DEFAULT_HOST
    port: int | str = DEFAULT_PORT
    is_cluster: bool = False
    use_ssl: bool = False
    key_file: str | None = None
    cert_file: str | None = None
    trust_proxy: bool = True
    compression: bool = True
    compression_min_size: int = 500
    method_override: bool = True
    log_level: str = "warning"

    def __post_init__(self) -> None:
        if not self.host:
            raise ConfigError("host must not be empty")

        if self.is_cluster:
            if not is_cluster_pattern(self.port):
                raise ConfigError(
                    'http cluster expects http port format like "3000++"',
                    port=self.port,
                )
        else:
            self._check_plain_port()

        if self.use_ssl and not (self.key_file and self.cert_file):
            raise ConfigError(
                "useSSL requires both keyFile and certFile",
                key_file=self.key_file,
                cert_file=self.cert_file,
            )

        if self.compression_min_size < 0:
            raise ConfigError(
                "compression_min_size must not be negative",
                compression_min_size=self.compression_min_size,
            )

    def _check_plain_port(self) -> None:
        port = self.port
        if isinstance(port, str) and port.isascii() and port.isdigit():
            # Frozen dataclass: normalise through object.__setattr__
            port = int(port)
            object.__setattr__(self, "port", port)
        if isinstance(port, bool) or not isinstance(port, int):
            raise ConfigError("port must be an integer", port=self.port)
        if not 0 <= port <= MAX_PORT:
            raise ConfigError(f"port out of range 0..{MAX_PORT}", port=port)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ServerConfig":
        """
        Build a config from a mapping.

        Both snake_case and camelCase keys (isCluster, useSSL, keyFile,
        certFile, ...) are accepted. Keys set to None fall back to defaults.

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(
                "http options must be a mapping", type=type(data).__name__
            )

        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in known:
                raise ConfigError("unknown http option", option=key)
            if value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a plain dict with snake_case keys."""
        return dataclasses.asdict(self)

    @property
    def scheme(self) -> str:
        """URL scheme served by the listener."""
        return "https" if self.use_ssl else "http"


def _check_file_size(path: Path) -> None:
    size = os.path.getsize(path)
    if size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            "configuration file exceeds maximum size",
            path=path,
            size=size,
            limit=MAX_CONFIG_SIZE_BYTES,
        )


def load_config(
    path: str | os.PathLike[str], section: str | None = None
) -> ServerConfig:
    """
    Load a ServerConfig from a YAML file.

    Args:
        path: YAML file path
        section: Optional top-level key holding the http options

    Returns:
        Parsed ServerConfig

    Raises:
        ConfigError: If the file is missing, too large, malformed, or does not
            hold a mapping of http options
    """
    fname = Path(path)
    if not fname.is_file():
        raise ConfigError("configuration file not found", path=fname)
    _check_file_size(fname)

    with open(fname, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError("invalid YAML in configuration file", path=fname) from e

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigError("configuration file must contain a mapping", path=fname)

    if section is not None:
        if section not in data:
            raise ConfigError(
                "configuration section not found", path=fname, section=section
            )
        data = data[section]

    return ServerConfig.from_dict(data)
