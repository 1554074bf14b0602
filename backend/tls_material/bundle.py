"""Splitting of combined leaf + chain certificate files."""
from typing import Optional

CERT_BEGIN = b"-----BEGIN CERTIFICATE-----"
CERT_END = b"-----END CERTIFICATE-----"


def split_certificate_bundle(
    cert: bytes,
    ca: Optional[bytes] = None,
) -> tuple[bytes, Optional[bytes]]:
    """
    Separate a chain appended to a leaf certificate.

    Applies only when no CA was supplied separately and the buffer holds
    more than one certificate. The chain runs from the last BEGIN marker to
    the end of the buffer; the leaf runs from the start through the first
    END marker. Both are slices of the input, so the bytes are unchanged.

    Args:
        cert: Certificate file contents
        ca: Separately supplied chain, if any

    Returns:
        Tuple of (cert, ca)
    """
    if ca or cert.find(CERT_BEGIN) == cert.rfind(CERT_BEGIN):
        return cert, ca

    chain = cert[cert.rfind(CERT_BEGIN):]
    leaf = cert[:cert.find(CERT_END) + len(CERT_END)]
    return leaf, chain
