"""
Listen port derivation for clustered deployments.

Several workers of the same server type share one configured base port written
as "<digits>++". Each worker adds the numeric index at the end of its server id
("connector-2" -> 2), so "3000++" yields 3000, 3001, 3002, ... across the
cluster without any coordination between processes.
"""

import re

from .exceptions import ConfigError

CLUSTER_SUFFIX = "++"
MAX_PORT = 65535

_CLUSTER_PORT_RE = re.compile(r"([0-9]+)\+\+")
_WORKER_INDEX_RE = re.compile(r"[0-9]+")


def is_cluster_pattern(port: object) -> bool:
    """Check whether a configured port is written as "<digits>++"."""
    return isinstance(port, str) and _CLUSTER_PORT_RE.fullmatch(port) is not None


def parse_cluster_port(port: object) -> int:
    """
    Strip the "++" suffix from a cluster port pattern.

    Raises:
        ConfigError: If the value is not "<digits>++"
    """
    match = _CLUSTER_PORT_RE.fullmatch(port) if isinstance(port, str) else None
    if match is None:
        raise ConfigError(
            'http cluster expects http port format like "3000++"', port=port
        )
    return int(match.group(1))


def worker_index(server_id: str | None) -> int:
    """
    Extract the worker index from a server id.

    The index is the last "-"-separated segment and must be a non-negative
    integer.

    Raises:
        ConfigError: If the id is empty or its last segment is not numeric
    """
    if not server_id:
        raise ConfigError("http cluster requires a server id", server_id=server_id)

    segment = server_id.split("-")[-1]
    if _WORKER_INDEX_RE.fullmatch(segment) is None:
        raise ConfigError(
            "server id must end with a numeric worker index like 'connector-2'",
            server_id=server_id,
        )
    return int(segment)


def _check_range(port: int, **context: object) -> int:
    if not 0 <= port <= MAX_PORT:
        raise ConfigError(f"port out of range 0..{MAX_PORT}", port=port, **context)
    return port


def resolve_port(
    base_port: int | str, server_id: str | None, is_cluster: bool
) -> int:
    """
    Derive the effective listen port.

    Args:
        base_port: Configured port, or "<digits>++" when clustered
        server_id: Server identifier assigned by cluster membership
        is_cluster: Whether index arithmetic applies

    Returns:
        base_port unchanged when not clustered, otherwise base + worker index

    Raises:
        ConfigError: If the cluster pattern or server id is malformed, or the
            resulting port is out of range
    """
    if not is_cluster:
        if isinstance(base_port, bool) or not isinstance(base_port, int):
            raise ConfigError("port must be an integer", port=base_port)
        return _check_range(base_port)

    base = parse_cluster_port(base_port)
    idx = worker_index(server_id)
    return _check_range(base + idx, base_port=base_port, server_id=server_id)


class PortResolver:
    """
    Resolves the effective port for one process.

    Example:
        resolver = PortResolver(is_cluster=True)
        resolver.resolve("3000++", "connector-2")  # 3002
    """

    def __init__(self, is_cluster: bool = False) -> None:
        self.is_cluster = is_cluster

    def resolve(self, base_port: int | str, server_id: str | None) -> int:
        """Resolve base_port for server_id; see resolve_port()."""
        return resolve_port(base_port, server_id, self.is_cluster)
