"""
TLS material configuration settings.

Manages the operator-supplied TLS file paths (key, certificate, CA chain
and DH parameters). Paths are relative to the service home directory.
"""
import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, field_validator


logger = logging.getLogger(__name__)

# Service home directory; configured TLS paths resolve against it
CONFIG_DIR = Path(os.environ.get("CONFIG_DIR", "/config"))
TLS_CONFIG_FILE = CONFIG_DIR / "tls_settings.json"
TLS_STORE_FILE = CONFIG_DIR / "tls_store.json"


class TLSConfig(BaseModel):
    """TLS file configuration. Without both key and cert, a self-signed pair is used."""

    key: Optional[str] = None
    cert: Optional[str] = None
    ca: Optional[str] = None
    dhparam: Optional[str] = None

    @field_validator("key", "cert", "ca", "dhparam")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace and treat empty paths as unset."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v

    @property
    def uses_user_files(self) -> bool:
        """Check if operator-supplied key and certificate are configured."""
        return self.key is not None and self.cert is not None


# In-memory cache of TLS config
_cached_tls_config: Optional[TLSConfig] = None


def _ensure_config_dir() -> bool:
    """Ensure config directory exists. Returns True if successful."""
    try:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        return True
    except (PermissionError, OSError) as e:
        logger.warning("[TLS-SETTINGS] Cannot create config directory %s: %s", CONFIG_DIR, e)
        return False


def load_tls_config() -> TLSConfig:
    """Load TLS config from file or return defaults."""
    global _cached_tls_config

    if _cached_tls_config is not None:
        return _cached_tls_config

    logger.info("[TLS-SETTINGS] Loading TLS settings from %s", TLS_CONFIG_FILE)

    if TLS_CONFIG_FILE.exists():
        try:
            data = json.loads(TLS_CONFIG_FILE.read_text())
            _cached_tls_config = TLSConfig(**data)
            logger.info(
                "[TLS-SETTINGS] Loaded TLS settings, user files: %s",
                _cached_tls_config.uses_user_files,
            )
            return _cached_tls_config
        except Exception as e:
            logger.error("[TLS-SETTINGS] Failed to load TLS settings: %s", e)

    logger.info("[TLS-SETTINGS] Using default TLS settings (self-signed)")
    _cached_tls_config = TLSConfig()
    return _cached_tls_config


def save_tls_config(config: TLSConfig) -> bool:
    """Save TLS config to file. Returns True if successful."""
    global _cached_tls_config

    if not _ensure_config_dir():
        _cached_tls_config = config
        return False

    try:
        TLS_CONFIG_FILE.write_text(json.dumps(config.model_dump(), indent=2))
        os.chmod(TLS_CONFIG_FILE, 0o600)
        _cached_tls_config = config
        logger.info("[TLS-SETTINGS] TLS settings saved to %s", TLS_CONFIG_FILE)
        return True
    except (PermissionError, OSError) as e:
        logger.warning("[TLS-SETTINGS] Cannot save TLS settings to %s: %s", TLS_CONFIG_FILE, e)
        _cached_tls_config = config
        return False


def clear_tls_config_cache() -> None:
    """Clear the cached TLS config (forces reload)."""
    global _cached_tls_config
    _cached_tls_config = None
    logger.info("[TLS-SETTINGS] TLS settings cache cleared")


def get_tls_config() -> TLSConfig:
    """Get the current TLS config."""
    return load_tls_config()
