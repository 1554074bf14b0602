"""
Shared fixtures for TLS material tests.

DH parameters are built from well-known MODP primes so tests never run
the slow 2048 bit generation.
"""
import asyncio

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dh

from tls_material.kvstore import MemoryStore
from tls_material.provisioner import TLSMaterialProvisioner
from tls_material.selfsigned import SelfSignedPair, create_self_signed
from tls_material.storage import CertificateFileReader


# RFC 3526 2048-bit MODP group
MODP_2048 = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE45B3D"
    "C2007CB8A163BF0598DA48361C55D39A69163FA8FD24CF5F"
    "83655D23DCA3AD961C62F356208552BB9ED529077096966D"
    "670C354E4ABC9804F1746C08CA18217C32905E462E36CE3B"
    "E39E772C180E86039B2783A2EC07A28FB5C55DF06F4C52C9"
    "DE2BCBF6955817183995497CEA956AE515D2261898FA0510"
    "15728E5A8AACAA68FFFFFFFFFFFFFFFF",
    16,
)

# RFC 2409 768-bit MODP group (Oakley group 1)
MODP_768 = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A63A3620FFFFFFFFFFFFFFFF",
    16,
)


def dhparam_pem(p: int) -> bytes:
    """PEM encode DH parameters with generator 2 and the given prime."""
    params = dh.DHParameterNumbers(p, 2).parameters()
    return params.parameter_bytes(
        serialization.Encoding.PEM,
        serialization.ParameterFormat.PKCS3,
    )


STRONG_DHPARAM = dhparam_pem(MODP_2048)
WEAK_DHPARAM = dhparam_pem(MODP_768)


class FakeDHGenerator:
    """Returns 2048 bit parameters immediately and counts calls."""

    def __init__(self, result: bytes = STRONG_DHPARAM, error: Exception = None):
        self.result = result
        self.error = error
        self.calls = []

    async def generate(self, bits: int) -> bytes:
        self.calls.append(bits)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.result


class FakeCertGenerator:
    """Returns a fixed self-signed pair and counts calls."""

    def __init__(self, pair: SelfSignedPair):
        self.pair = pair
        self.calls = []

    async def generate(self, days: int) -> SelfSignedPair:
        self.calls.append(days)
        await asyncio.sleep(0)
        return self.pair


@pytest.fixture(scope="session")
def self_signed_pair():
    """One real self-signed pair shared across tests."""
    return create_self_signed(1)


@pytest.fixture
def strong_dhparam():
    return STRONG_DHPARAM


@pytest.fixture
def weak_dhparam():
    return WEAK_DHPARAM


@pytest.fixture
def fake_dh_generator_cls():
    return FakeDHGenerator


@pytest.fixture
def home_dir(tmp_path):
    """Service home directory for configured TLS paths."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def dh_generator():
    return FakeDHGenerator()


@pytest.fixture
def cert_generator(self_signed_pair):
    return FakeCertGenerator(self_signed_pair)


@pytest.fixture
def provisioner(store, home_dir, dh_generator, cert_generator):
    """Provisioner with in-memory store and instant generators."""
    return TLSMaterialProvisioner(
        store=store,
        reader=CertificateFileReader(home_dir),
        dh_generator=dh_generator,
        cert_generator=cert_generator,
    )


@pytest.fixture(autouse=True)
def reset_tls_config_cache():
    """Keep cached settings from leaking between tests."""
    from tls_material.settings import clear_tls_config_cache
    clear_tls_config_cache()
    yield
    clear_tls_config_cache()


@pytest_asyncio.fixture
async def async_client():
    """HTTP client bound to the app, with TLS state reset around each test."""
    from main import app

    app.state.tls_material = None
    app.state.tls_context = None
    app.state.tls_provisioner = None
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.state.tls_material = None
    app.state.tls_context = None
    app.state.tls_provisioner = None
