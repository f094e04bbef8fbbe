"""
Error Taxonomy

Structural failures (bad configuration, unwritable store, missing
instance, malformed certificate, corrupt instance file) are raised as
exceptions. A well-formed certificate whose witness does not hold is
NOT an error: it is reported as an INVALID verdict.
"""


class CertVerifyError(Exception):
    """Base class for all input and I/O errors raised by certverify."""

    kind = "error"


class InvalidConfiguration(CertVerifyError, ValueError):
    """Generator configuration is structurally invalid."""

    kind = "InvalidConfiguration"


class WriteError(CertVerifyError, OSError):
    """The instance store could not be written."""

    kind = "WriteError"


class InstanceNotFound(CertVerifyError, LookupError):
    """A certificate references an instance the store does not hold."""

    kind = "InstanceNotFound"

    def __init__(self, instance_id: str, where: str = "store"):
        self.instance_id = instance_id
        super().__init__(f"instance '{instance_id}' not found in {where}")


class MalformedCertificate(CertVerifyError, ValueError):
    """The certificate or its witness does not match the claim's schema."""

    kind = "MalformedCertificate"


class CorruptInstance(CertVerifyError, ValueError):
    """A stored instance fails to parse or its content hash does not match."""

    kind = "CorruptInstance"


class UnsupportedFormat(CorruptInstance):
    """A stored record was written with an unknown format version."""

    kind = "UnsupportedFormat"
