"""
TLS material provisioning module.

Provides the credentials a TLS listener needs to start:
- Operator-supplied key, certificate and chain files
- Self-signed certificate generation when none are configured
- DH parameters with a minimum strength, cached across restarts
"""

from .errors import (
    TLSProvisioningError,
    MissingFileError,
    MissingKeyFile,
    MissingCertFile,
    MissingCAFile,
    MissingDHParamFile,
    DHInspectionError,
    DHGenerationError,
    CertGenerationError,
)
from .kvstore import PersistentKV, JSONFileStore, MemoryStore
from .provisioner import TLSMaterial, TLSMaterialProvisioner
from .settings import (
    TLSConfig,
    get_tls_config,
    save_tls_config,
    clear_tls_config_cache,
)
from .listener import create_server_context

__all__ = [
    "TLSProvisioningError",
    "MissingFileError",
    "MissingKeyFile",
    "MissingCertFile",
    "MissingCAFile",
    "MissingDHParamFile",
    "DHInspectionError",
    "DHGenerationError",
    "CertGenerationError",
    "PersistentKV",
    "JSONFileStore",
    "MemoryStore",
    "TLSMaterial",
    "TLSMaterialProvisioner",
    "TLSConfig",
    "get_tls_config",
    "save_tls_config",
    "clear_tls_config_cache",
    "create_server_context",
]
