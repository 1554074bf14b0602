"""
Diffie-Hellman parameter inspection and generation.

Generation is CPU-bound and can take minutes at 2048 bits, so the async
generator runs it in the event loop's default executor.
"""
import asyncio
import logging
from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dh

from .errors import DHGenerationError, DHInspectionError


logger = logging.getLogger(__name__)

DH_GENERATOR = 2


@dataclass(frozen=True)
class DHParamInfo:
    """Properties of a set of DH parameters."""

    size_bits: int


def inspect_dhparam(pem: bytes) -> DHParamInfo:
    """
    Read the modulus size of PEM-encoded DH parameters.

    Raises:
        DHInspectionError: If the data is not PEM DH parameters
    """
    try:
        params = serialization.load_pem_parameters(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise DHInspectionError(f"Unable to parse DH parameters: {e}") from e

    if not isinstance(params, dh.DHParameters):
        raise DHInspectionError(f"Not DH parameters: {type(params).__name__}")

    return DHParamInfo(size_bits=params.parameter_numbers().p.bit_length())


def generate_dhparam(bits: int) -> bytes:
    """Generate DH parameters and return them PEM encoded (PKCS#3). Blocking."""
    try:
        params = dh.generate_parameters(generator=DH_GENERATOR, key_size=bits)
        return params.parameter_bytes(
            serialization.Encoding.PEM,
            serialization.ParameterFormat.PKCS3,
        )
    except Exception as e:
        raise DHGenerationError(f"Failed to generate {bits} bit DH parameters: {e}") from e


class DHParamInspector:
    """Reports the strength of DH parameters."""

    def inspect(self, pem: bytes) -> DHParamInfo:
        return inspect_dhparam(pem)


class DHParamGenerator:
    """Generates DH parameters off the event loop."""

    async def generate(self, bits: int) -> bytes:
        """
        Generate DH parameters.

        Runs to completion once started; cancelling the awaiting task
        does not stop the computation.

        Raises:
            DHGenerationError: If generation fails
        """
        loop = asyncio.get_event_loop()
        pem = await loop.run_in_executor(None, generate_dhparam, bits)
        logger.info("[TLS-DHPARAM] Generated %s bit DH parameters", bits)
        return pem
