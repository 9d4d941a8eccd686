"""
Pytest configuration and shared fixtures.

This module provides custom markers and the fixtures shared by the httpfront
test suite: throwaway application trees, a capturing logger, a filter registry
isolated from the module-level default, and a self-signed TLS pair.
"""

import ipaddress
import logging
import shutil
import socket
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from httpfront.application import StaticApplication
from httpfront.filters import FilterRegistry

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (bind sockets, use the filesystem)"
    )
    config.addinivalue_line("markers", "property: Property-based tests (hypothesis)")


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Provide a temporary directory that is cleaned up after the test.

    Yields:
        Path: Temporary directory path
    """
    temp_path = Path(tempfile.mkdtemp(prefix="httpfront-test-"))
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def route_dir(temp_dir: Path) -> Path:
    """Empty route directory for the "connector" server type."""
    path = temp_dir / "app" / "servers" / "connector" / "routers"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_route(route_dir: Path) -> Callable[[str, str], Path]:
    """
    Return a helper writing a route module into the route directory.

    Usage:
        write_route("status.py", "def create_router(app, http, c): ...")
    """

    def _write(file_name: str, source: str) -> Path:
        path = route_dir / file_name
        path.write_text(source)
        return path

    return _write


@pytest.fixture
def app(temp_dir: Path, route_dir: Path) -> StaticApplication:
    """Application rooted at temp_dir with a route directory in place."""
    return StaticApplication(
        base=temp_dir, server_type="connector", server_id="connector-0"
    )


@pytest.fixture
def bare_app(temp_dir: Path) -> StaticApplication:
    """Application rooted at temp_dir without any route directory."""
    return StaticApplication(
        base=temp_dir, server_type="connector", server_id="connector-0"
    )


@pytest.fixture
def filters() -> FilterRegistry:
    """Filter registry isolated from httpfront.filters.default_filters."""
    return FilterRegistry()


@pytest.fixture
def lg() -> logging.Logger:
    """Propagating logger so caplog sees component messages."""
    logger = logging.getLogger("test.httpfront")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def free_port() -> int:
    """A localhost port nothing was listening on a moment ago."""
    with socket.create_server(("127.0.0.1", 0)) as sock:
        return sock.getsockname()[1]


def _self_signed_pair() -> tuple[bytes, bytes]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "localhost")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(
            x509.SubjectAlternativeName(
                [
                    x509.DNSName("localhost"),
                    x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
                ]
            ),
            critical=False,
        )
        .sign(key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return key_pem, cert.public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def tls_pair(temp_dir: Path) -> tuple[str, str]:
    """
    Write a self-signed localhost key and certificate under <base>/ssl.

    Returns:
        (key path, cert path) relative to temp_dir
    """
    key_pem, cert_pem = _self_signed_pair()
    ssl_dir = temp_dir / "ssl"
    ssl_dir.mkdir()
    (ssl_dir / "server.key").write_bytes(key_pem)
    (ssl_dir / "server.crt").write_bytes(cert_pem)
    return "ssl/server.key", "ssl/server.crt"
