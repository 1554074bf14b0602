"""
Errors raised while provisioning TLS material.

Every error is terminal for the provisioning call that raised it; the
caller decides whether to abort startup or retry the whole call.
"""


class TLSProvisioningError(Exception):
    """Base class for TLS provisioning failures."""

    pass


class MissingFileError(TLSProvisioningError):
    """A configured TLS file could not be read."""

    description = "TLS file"

    def __init__(self, path):
        self.path = path
        super().__init__(f"Unable to read {self.description}: {path}")


class MissingKeyFile(MissingFileError):
    description = "TLS key"


class MissingCertFile(MissingFileError):
    description = "TLS certificate"


class MissingCAFile(MissingFileError):
    description = "TLS intermediate certificate"


class MissingDHParamFile(MissingFileError):
    description = "TLS DH parameter file"


class DHInspectionError(TLSProvisioningError):
    """DH parameters could not be parsed."""

    pass


class DHGenerationError(TLSProvisioningError):
    """DH parameter generation failed."""

    pass


class CertGenerationError(TLSProvisioningError):
    """Self-signed certificate generation failed."""

    pass
