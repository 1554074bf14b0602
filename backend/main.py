"""
TLS material service.

Provisions TLS material on startup and exposes its status and an
administrative reload over HTTP.
"""
import asyncio
import logging
import os
from typing import Optional

from fastapi import FastAPI

from tls_material.errors import TLSProvisioningError
from tls_material.kvstore import JSONFileStore
from tls_material.listener import create_server_context
from tls_material.provisioner import TLSMaterial, TLSMaterialProvisioner
from tls_material.routes import router as tls_router
from tls_material.settings import TLS_STORE_FILE, get_tls_config


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def set_log_level(level: Optional[str] = None) -> None:
    """Configure root logging from the given level or LOG_LEVEL."""
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))


app = FastAPI(title="TLS Material Provisioner")
app.include_router(tls_router)
app.state.tls_material = None
app.state.tls_context = None
app.state.tls_provisioner = None
app.state.tls_task = None


async def provision_tls_material(application: FastAPI) -> Optional[TLSMaterial]:
    """Provision material with the current settings and publish it on the app."""
    provisioner = application.state.tls_provisioner
    try:
        material = await provisioner.provision(get_tls_config())
        context = create_server_context(material)
    except (TLSProvisioningError, OSError) as e:
        logger.error("[TLS-PROVISION] Failed to provision TLS material: %s", e)
        return None

    application.state.tls_material = material
    application.state.tls_context = context
    return material


@app.on_event("startup")
async def startup_event():
    """Start TLS provisioning without holding up the HTTP API."""
    set_log_level()

    app.state.tls_provisioner = TLSMaterialProvisioner(store=JSONFileStore(TLS_STORE_FILE))
    app.state.tls_task = asyncio.create_task(provision_tls_material(app))
    logger.info("[TLS-PROVISION] TLS provisioning started")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop waiting on unfinished provisioning."""
    task = app.state.tls_task
    if task and not task.done():
        task.cancel()
        logger.info("[TLS-PROVISION] TLS provisioning cancelled")
