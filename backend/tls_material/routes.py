"""
TLS API endpoints.

Provides REST endpoints for:
- Status of the currently provisioned TLS material
- Administrative reload of TLS material from the current settings
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from .dhparam import inspect_dhparam
from .errors import TLSProvisioningError
from .listener import create_server_context
from .provisioner import TLSMaterial, TLSMaterialProvisioner
from .settings import clear_tls_config_cache, get_tls_config
from .storage import summarize_certificate


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tls", tags=["TLS"])


class TLSStatusResponse(BaseModel):
    """Status of the provisioned TLS material."""

    provisioned: bool
    self_signed: Optional[bool] = None
    has_ca: bool = False
    dhparam_bits: Optional[int] = None
    cert_subject: Optional[str] = None
    cert_issuer: Optional[str] = None
    cert_expires_at: Optional[str] = None
    days_until_expiry: Optional[int] = None


def get_provisioner(request: Request) -> TLSMaterialProvisioner:
    """Get the application's provisioner."""
    provisioner = getattr(request.app.state, "tls_provisioner", None)
    if provisioner is None:
        raise HTTPException(status_code=503, detail="TLS provisioning not initialized")
    return provisioner


def build_status(material: Optional[TLSMaterial]) -> TLSStatusResponse:
    """Summarize material for the status endpoint."""
    if material is None:
        return TLSStatusResponse(provisioned=False)

    response = TLSStatusResponse(
        provisioned=True,
        self_signed=material.self_signed,
        has_ca=material.ca is not None,
        dhparam_bits=inspect_dhparam(material.dhparam).size_bits,
    )

    info = summarize_certificate(material.cert)
    if info.readable:
        response.cert_subject = info.subject
        response.cert_issuer = info.issuer
        response.cert_expires_at = info.not_after.isoformat()
        response.days_until_expiry = info.days_until_expiry()

    return response


@router.get("/status", response_model=TLSStatusResponse)
async def get_tls_status(request: Request):
    """Get the status of the TLS material currently in use."""
    return build_status(getattr(request.app.state, "tls_material", None))


@router.post("/reload", response_model=TLSStatusResponse)
async def reload_tls_material(request: Request):
    """
    Provision TLS material again from the current settings.

    The previous material stays in use if provisioning fails.
    """
    provisioner = get_provisioner(request)

    clear_tls_config_cache()
    config = get_tls_config()

    started = datetime.now()
    try:
        material = await provisioner.provision(config)
        context = create_server_context(material)
    except (TLSProvisioningError, OSError) as e:
        logger.error("[TLS-PROVISION] Reload failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    request.app.state.tls_material = material
    request.app.state.tls_context = context
    logger.info(
        "[TLS-PROVISION] TLS material reloaded in %.1fs",
        (datetime.now() - started).total_seconds(),
    )
    return build_status(material)
