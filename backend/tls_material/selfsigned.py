"""
Self-signed certificate generation.

Used when no operator certificate is configured.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from .errors import CertGenerationError


logger = logging.getLogger(__name__)

KEY_SIZE = 2048
COMMON_NAME = "localhost"


@dataclass(frozen=True)
class SelfSignedPair:
    """PEM-encoded private key and its self-signed certificate."""

    key: bytes
    cert: bytes


def create_self_signed(days: int) -> SelfSignedPair:
    """
    Create an RSA key and a certificate signed by it. Blocking.

    Args:
        days: Validity window starting now

    Raises:
        CertGenerationError: If key or certificate creation fails
    """
    try:
        private_key = rsa.generate_private_key(
            public_exponent=65537,
            key_size=KEY_SIZE,
        )

        subject = issuer = x509.Name([
            x509.NameAttribute(NameOID.COMMON_NAME, COMMON_NAME),
        ])
        now = datetime.now(timezone.utc)

        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + timedelta(days=days))
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(COMMON_NAME)]),
                critical=False,
            )
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .sign(private_key, hashes.SHA256())
        )

        key_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    except Exception as e:
        raise CertGenerationError(f"Failed to generate self-signed certificate: {e}") from e

    return SelfSignedPair(key=key_pem, cert=cert_pem)


class SelfSignedCertGenerator:
    """Generates self-signed key/certificate pairs off the event loop."""

    async def generate(self, days: int) -> SelfSignedPair:
        loop = asyncio.get_event_loop()
        pair = await loop.run_in_executor(None, create_self_signed, days)
        logger.info("[TLS-CERT] Generated self-signed certificate valid for %s days", days)
        return pair
