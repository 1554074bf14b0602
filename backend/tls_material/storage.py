"""
Certificate file access and inspection.

Reads operator-supplied TLS files from the service home directory and
extracts display info from certificates. File contents are returned
byte-for-byte; nothing here re-encodes PEM data.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from cryptography import x509
from cryptography.x509.oid import NameOID

from .settings import CONFIG_DIR


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateSummary:
    """Subject, issuer and expiry of a certificate, or why it could not be read."""

    subject: str = ""
    issuer: str = ""
    not_after: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def readable(self) -> bool:
        return self.error is None

    def days_until_expiry(self) -> int:
        """Whole days left before expiry, 0 once expired."""
        return max(0, (self.not_after - datetime.now()).days)


class CertificateFileReader:
    """Reads TLS files relative to a fixed home directory."""

    def __init__(self, home_dir: Optional[Path] = None):
        self.home_dir = Path(home_dir or CONFIG_DIR)

    def resolve(self, path: str) -> Path:
        """Resolve a configured path against the home directory."""
        return (self.home_dir / path).resolve()

    def read(self, path: Optional[str]) -> Optional[bytes]:
        """
        Read a TLS file.

        Args:
            path: Path relative to the home directory, or None

        Returns:
            File contents, or None if unset, missing or outside the home directory

        Raises:
            OSError: On I/O errors other than the file being absent
        """
        if path is None:
            return None

        resolved = self.resolve(path)
        home_resolved = self.home_dir.resolve()
        if resolved != home_resolved and home_resolved not in resolved.parents:
            logger.warning("[TLS-STORAGE] Refusing to read %s: outside %s", path, home_resolved)
            return None

        if not resolved.is_file():
            logger.debug("[TLS-STORAGE] No file at %s", resolved)
            return None

        return resolved.read_bytes()


def _common_name(name: x509.Name) -> str:
    attrs = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    return attrs[0].value if attrs else ""


def summarize_certificate(cert_pem: bytes) -> CertificateSummary:
    """Summarize the first certificate in a PEM buffer for status display."""
    try:
        cert = x509.load_pem_x509_certificate(cert_pem)
    except ValueError as e:
        logger.error("[TLS-STORAGE] Failed to parse certificate: %s", e)
        return CertificateSummary(error=str(e))

    return CertificateSummary(
        subject=_common_name(cert.subject),
        issuer=_common_name(cert.issuer),
        not_after=cert.not_valid_after_utc.replace(tzinfo=None),
    )
