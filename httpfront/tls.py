"""
TLS material loading.

Key and certificate are read eagerly, relative to the application base
directory, when the component is constructed, and the listener serves exactly
those bytes: later changes to the files on disk do not reach a component that
was already built. An unreadable or mismatched pair stops construction, so a
listener configured for HTTPS never falls back to plain HTTP.
"""

import ssl
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import TLSError


@dataclass(frozen=True)
class TLSCredentials:
    """
    Key and certificate material for an HTTPS listener.

    Attributes:
        key_path: Resolved private key path
        cert_path: Resolved certificate path
        key: Raw key bytes
        cert: Raw certificate bytes
    """

    key_path: Path
    cert_path: Path
    key: bytes = field(repr=False)
    cert: bytes = field(repr=False)

    def ssl_context(self) -> ssl.SSLContext:
        """
        Build a server-side SSLContext from the loaded key and certificate.

        Raises:
            TLSError: If the bytes are not a matching PEM key and certificate
        """
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)

        # load_cert_chain only reads files; the directory is private to this user
        with tempfile.TemporaryDirectory(prefix="httpfront-tls-") as tmp:
            key_file = Path(tmp) / "key.pem"
            cert_file = Path(tmp) / "cert.pem"
            key_file.write_bytes(self.key)
            cert_file.write_bytes(self.cert)
            try:
                ctx.load_cert_chain(
                    certfile=cert_file, keyfile=key_file, password=b""
                )
            except ssl.SSLError as e:
                raise TLSError(
                    "invalid TLS key or certificate",
                    key_path=self.key_path,
                    cert_path=self.cert_path,
                ) from e
        return ctx


def _read(path: Path, kind: str) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise TLSError(f"cannot read TLS {kind} file", path=path) from e


class TLSConfigurator:
    """
    Loads TLS credentials for the listener.

    Example:
        creds = TLSConfigurator("/srv/game").configure("ssl/server.key",
                                                       "ssl/server.crt")
    """

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def resolve(self, relpath: str | Path) -> Path:
        """Resolve a key/cert path against the application base directory."""
        return self.base_dir / relpath

    def configure(self, key_path: str | Path, cert_path: str | Path) -> TLSCredentials:
        """
        Read key and certificate as raw bytes.

        Raises:
            TLSError: If either file is missing or unreadable
        """
        key_file = self.resolve(key_path)
        cert_file = self.resolve(cert_path)
        return TLSCredentials(
            key_path=key_file,
            cert_path=cert_file,
            key=_read(key_file, "key"),
            cert=_read(cert_file, "certificate"),
        )
