"""
TLS material provisioning.

Resolves the key, certificate, chain and DH parameters a TLS listener
needs. Operator files are used when both a key and a certificate are
configured; otherwise a self-signed pair is generated. DH parameters are
taken from the operator's file or from the persistent store, and are
regenerated whenever they are missing or weaker than DHPARAM_MIN_BITS.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .bundle import split_certificate_bundle
from .dhparam import DHParamGenerator, DHParamInspector
from .errors import (
    MissingCAFile,
    MissingCertFile,
    MissingDHParamFile,
    MissingKeyFile,
)
from .kvstore import PersistentKV
from .selfsigned import SelfSignedCertGenerator
from .settings import TLSConfig
from .storage import CertificateFileReader


logger = logging.getLogger(__name__)

DHPARAM_BITS = 2048
DHPARAM_MIN_BITS = 1024
CERT_DAYS = 365

# Name of the persisted DH parameter entry
DHPARAM_STORE_KEY = "dhparam"


@dataclass(frozen=True)
class TLSMaterial:
    """Finished TLS material, PEM encoded. Provision again to rotate."""

    self_signed: bool
    key: bytes
    cert: bytes
    dhparam: bytes
    ca: Optional[bytes] = None


@dataclass(frozen=True)
class UserFiles:
    """Operator files read for one provisioning call."""

    key: bytes
    cert: bytes
    ca: Optional[bytes] = None
    dhparam: Optional[bytes] = None


class TLSMaterialProvisioner:
    """
    Produces TLSMaterial from a TLSConfig.

    Collaborators are injected so the store, file access and the slow
    generators can be replaced in tests.
    """

    def __init__(
        self,
        store: PersistentKV,
        reader: Optional[CertificateFileReader] = None,
        dh_inspector: Optional[DHParamInspector] = None,
        dh_generator: Optional[DHParamGenerator] = None,
        cert_generator: Optional[SelfSignedCertGenerator] = None,
    ):
        self.store = store
        self.reader = reader or CertificateFileReader()
        self.dh_inspector = dh_inspector or DHParamInspector()
        self.dh_generator = dh_generator or DHParamGenerator()
        self.cert_generator = cert_generator or SelfSignedCertGenerator()

    async def provision(self, config: TLSConfig) -> TLSMaterial:
        """
        Provision TLS material for the given config.

        Raises:
            TLSProvisioningError: If material cannot be read or generated
        """
        if config.uses_user_files:
            return await self.resolve_user_files(config)
        return await self.generate_self_signed()

    async def read_user_files(self, config: TLSConfig) -> UserFiles:
        """
        Read the configured files concurrently and check they are present.

        Raises:
            MissingFileError: For the first absent file, in the order key, cert, ca, dhparam
        """
        loop = asyncio.get_event_loop()
        paths = [config.key, config.cert, config.ca, config.dhparam]
        key, cert, ca, dhparam = await asyncio.gather(*[
            loop.run_in_executor(None, self.reader.read, path)
            for path in paths
        ])

        if not key:
            raise MissingKeyFile(self.reader.resolve(config.key))
        if not cert:
            raise MissingCertFile(self.reader.resolve(config.cert))
        if config.ca and not ca:
            raise MissingCAFile(self.reader.resolve(config.ca))
        if config.dhparam and not dhparam:
            raise MissingDHParamFile(self.reader.resolve(config.dhparam))

        return UserFiles(key=key, cert=cert, ca=ca, dhparam=dhparam)

    async def resolve_user_files(self, config: TLSConfig) -> TLSMaterial:
        """Build material from operator-supplied files."""
        files = await self.read_user_files(config)

        if files.dhparam:
            dhparam = await self.ensure_dhparam(files.dhparam, persist=False)
        else:
            dhparam = await self.load_persisted_dhparam()

        cert, ca = split_certificate_bundle(files.cert, files.ca)
        if ca is not None and files.ca is None:
            logger.info("[TLS-PROVISION] Split intermediate certificate from %s", config.cert)

        logger.info("[TLS-PROVISION] Using TLS certificate %s", config.cert)
        return TLSMaterial(
            self_signed=False,
            key=files.key,
            cert=cert,
            ca=ca,
            dhparam=dhparam,
        )

    async def generate_self_signed(self) -> TLSMaterial:
        """Build material from a freshly generated self-signed pair."""
        pair = await self.cert_generator.generate(CERT_DAYS)
        dhparam = await self.load_persisted_dhparam()

        logger.info("[TLS-PROVISION] Using self-signed TLS certificate")
        return TLSMaterial(
            self_signed=True,
            key=pair.key,
            cert=pair.cert,
            ca=None,
            dhparam=dhparam,
        )

    async def load_persisted_dhparam(self) -> bytes:
        """Get DH parameters from the store, regenerating and storing them if needed."""
        loop = asyncio.get_event_loop()
        saved = await loop.run_in_executor(None, self.store.get, DHPARAM_STORE_KEY)
        if isinstance(saved, str):
            saved = saved.encode("ascii")
        return await self.ensure_dhparam(saved or None, persist=True)

    async def ensure_dhparam(self, candidate: Optional[bytes], persist: bool) -> bytes:
        """
        Return the candidate if strong enough, otherwise fresh parameters.

        Args:
            candidate: Current DH parameters, or None
            persist: Write regenerated parameters to the store

        Raises:
            DHInspectionError: If the candidate cannot be parsed
            DHGenerationError: If regeneration fails
        """
        if not candidate:
            return await self.regenerate_dhparam(persist)

        info = self.dh_inspector.inspect(candidate)
        if info.size_bits < DHPARAM_MIN_BITS:
            logger.warning(
                "[TLS-DHPARAM] DH parameters key too short (%s bits), regenerating",
                info.size_bits,
            )
            if not persist:
                logger.warning("[TLS-DHPARAM] Configured DH parameter file is left unchanged on disk")
            return await self.regenerate_dhparam(persist)

        return candidate

    async def regenerate_dhparam(self, persist: bool) -> bytes:
        """Generate DHPARAM_BITS parameters, storing them when persist is set."""
        logger.info(
            "[TLS-DHPARAM] Generating %s bit DH parameters. This will take a long time.",
            DHPARAM_BITS,
        )
        dhparam = await self.dh_generator.generate(DHPARAM_BITS)
        if persist:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(
                None, self.store.set, DHPARAM_STORE_KEY, dhparam.decode("ascii")
            )
        return dhparam
