"""
Nitrite Error Taxonomy

Every verification failure is raised as a subclass of AttestationError.
Stage base classes let callers match a whole group:

    EnvelopeError      - the COSE_Sign1 envelope could not be used
    DocumentError      - the attestation document could not be decoded
    ValidationError    - a document field broke its schema (subclass of DocumentError)
    CertificateError   - certificate parsing, algorithm or chain failures

FAIL-CLOSED: nothing here is recovered internally. The first failure aborts
the call and is raised to the caller.
"""

from typing import Optional


class AttestationError(Exception):
    """Raised when attestation verification fails."""

    message = "Attestation verification failed"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message or self.message)


class RootConfigurationError(Exception):
    """The trusted root bundle could not be loaded. Fatal at import time."""


# =============================================================================
# ENVELOPE ERRORS
# =============================================================================

class EnvelopeError(AttestationError):
    message = "Bad COSE_Sign1 envelope"


class MalformedEnvelope(EnvelopeError):
    message = "Data is not a COSE_Sign1 array"


class EmptyProtectedSection(EnvelopeError):
    message = "COSE_Sign1 protected section is nil or empty"


class EmptyPayloadSection(EnvelopeError):
    message = "COSE_Sign1 payload section is nil or empty"


class EmptySignatureSection(EnvelopeError):
    message = "COSE_Sign1 signature section is nil or empty"


class UnsupportedAlgorithm(EnvelopeError):
    message = "COSE_Sign1 algorithm not ECDSA384"

    def __init__(self, algorithm: Optional[str] = None):
        self.algorithm = algorithm
        super().__init__(f"{self.message} (got {algorithm!r})")


# =============================================================================
# DOCUMENT ERRORS
# =============================================================================

class DocumentError(AttestationError):
    message = "Bad attestation document"


class MalformedDocument(DocumentError):
    message = "Bad attestation document"


class ValidationError(DocumentError):
    """A decoded document field failed its schema check."""

    field = ""


class MissingMandatoryFields(ValidationError):
    message = "One or more of mandatory fields missing"

    def __init__(self, message: Optional[str] = None, fields=()):
        self.fields = tuple(fields)
        if message is None and self.fields:
            message = f"{self.message}: {', '.join(self.fields)}"
        super().__init__(message)


class BadDigest(ValidationError):
    field = "digest"
    message = "Payload 'digest' is not SHA384"


class BadTimestamp(ValidationError):
    field = "timestamp"
    message = "Payload 'timestamp' is 0 or less"


class BadPCRCount(ValidationError):
    field = "pcrs"
    message = "Payload 'pcrs' is less than 1 or more than 32"


class BadPCRIndex(ValidationError):
    field = "pcrs"
    message = "Payload 'pcrs' key index is not in [0, 32)"

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"{self.message} (index {index})")


class BadPCRValue(ValidationError):
    field = "pcrs"
    message = "Payload 'pcrs' value is nil or not of length {32,48,64}"

    def __init__(self, index: int, length: Optional[int]):
        self.index = index
        self.length = length
        super().__init__(f"{self.message} (index {index}, length {length})")


class EmptyCABundle(ValidationError):
    field = "cabundle"
    message = "Payload 'cabundle' has 0 elements"


class BadCABundleEntry(ValidationError):
    field = "cabundle"
    message = "Payload 'cabundle' has a nil item or of length not in [1, 1024]"

    def __init__(self, position: int, length: Optional[int]):
        self.position = position
        self.length = length
        super().__init__(f"{self.message} (entry {position}, length {length})")


class BadPublicKey(ValidationError):
    field = "public_key"
    message = "Payload 'public_key' has a value of length not in [1, 1024]"


class BadUserData(ValidationError):
    field = "user_data"
    message = "Payload 'user_data' has a value of length not in [1, 512]"


class BadNonce(ValidationError):
    field = "nonce"
    message = "Payload 'nonce' has a value of length not in [1, 512]"


# =============================================================================
# CERTIFICATE ERRORS
# =============================================================================

class CertificateError(AttestationError):
    message = "Certificate verification failed"


class CertificateParseError(CertificateError):
    message = "Payload certificate could not be parsed"

    def __init__(self, position: int, cause: Optional[BaseException] = None):
        # position 0 is the leaf, n is cabundle[n - 1]
        self.position = position
        super().__init__(f"{self.message} (position {position}): {cause}", cause=cause)


class BadCertificatePublicKeyAlgorithm(CertificateError):
    message = "Payload 'certificate' has a bad public key algorithm (not ECDSA)"


class BadCertificateSigningAlgorithm(CertificateError):
    message = "Payload 'certificate' has a bad public key signing algorithm (not ECDSAWithSHA384)"


class ChainVerificationError(CertificateError):
    message = "Certificate chain verification failed"

    def __init__(self, cause: BaseException):
        super().__init__(f"{self.message}: {cause}", cause=cause)


class SignatureVerificationError(CertificateError):
    message = "COSE signature verification failed - attestation may be forged"
