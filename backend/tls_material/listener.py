"""
TLS listener setup from provisioned material.

The ssl module only loads keys, certificates and DH parameters from files,
so the material is written to a private temporary directory while the
context is built and removed afterwards.
"""
import logging
import os
import ssl
import tempfile
from pathlib import Path

from .provisioner import TLSMaterial


logger = logging.getLogger(__name__)

SERVER_CIPHERS = "ECDHE+AESGCM:ECDHE+CHACHA20:DHE+AESGCM:DHE+CHACHA20"


def _write_private(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    os.chmod(path, 0o600)
    return path


def full_chain(material: TLSMaterial) -> bytes:
    """Leaf certificate followed by the chain, as served to clients."""
    if not material.ca:
        return material.cert
    return material.cert + b"\n" + material.ca


def create_server_context(material: TLSMaterial) -> ssl.SSLContext:
    """
    Create a TLS server context holding the material.

    Raises:
        ssl.SSLError: If the key, certificates or DH parameters are rejected
    """
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    ctx.set_ciphers(SERVER_CIPHERS)

    with tempfile.TemporaryDirectory(prefix="tls-material-") as tmp:
        tmp_dir = Path(tmp)
        cert_path = _write_private(tmp_dir / "fullchain.pem", full_chain(material))
        key_path = _write_private(tmp_dir / "key.pem", material.key)
        dh_path = _write_private(tmp_dir / "dhparam.pem", material.dhparam)

        ctx.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
        ctx.load_dh_params(str(dh_path))

    logger.info(
        "[TLS-LISTENER] Server context ready (self-signed: %s, chain: %s)",
        material.self_signed, material.ca is not None,
    )
    return ctx
