"""
Nitrite AWS Nitro Attestation Verification

VERIFICATION ORDER (MANDATORY):
1. Parse COSE_Sign1 envelope and check its algorithm is ECDSA384
2. Decode the attestation document from the payload
3. Validate every document field against the Nitro schema
4. Verify the certificate chain to a trusted root (pinned AWS root by default)
5. Optionally verify the COSE signature with the leaf certificate key

FAIL-CLOSED: every step raises an AttestationError subclass on failure and
nothing after it runs. There is no partial result.

Nothing here keeps state between calls: the same input and options always
produce the same result.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from cryptography import x509

from nitrite.certificates import Roots, verify_certificate_chain, verify_envelope_signature
from nitrite.cose import decode_envelope, decode_sign1
from nitrite.document import AttestationDocument, decode_document
from nitrite.errors import AttestationError, BadTimestamp, MissingMandatoryFields
from nitrite.validation import validate_document

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class VerifyOptions:
    """
    Options for verifying an attestation payload.

    If `roots` is None the embedded AWS Nitro root is used. If `current_time`
    is None the wall-clock time at call time is used; passing it explicitly
    is strongly recommended.
    """

    roots: Optional[Roots] = None
    current_time: Optional[datetime] = None
    verify_signature: bool = False


@dataclass
class VerificationResult:
    """A successful verification of an attestation payload."""

    document: AttestationDocument
    certificates: List[x509.Certificate] = field(default_factory=list)

    protected: bytes = b""
    unprotected: bytes = b""
    payload: bytes = b""
    signature: bytes = b""


def verify(data: bytes, options: Optional[VerifyOptions] = None) -> VerificationResult:
    """
    Verify an AWS Nitro attestation payload.

    Args:
        data: CBOR-encoded COSE_Sign1 attestation (raw bytes, not base64)
        options: Trusted roots, reference time and signature checking

    Returns:
        VerificationResult with the validated document, the parsed chain
        (leaf first, then the cabundle in order) and the raw envelope sections

    Raises:
        AttestationError: the specific subclass for the first failed check
    """
    if options is None:
        options = VerifyOptions()

    try:
        envelope = decode_envelope(data)
        document = decode_document(envelope.payload)
        validate_document(document)
        certificates = verify_certificate_chain(
            document, roots=options.roots, current_time=options.current_time
        )
        if options.verify_signature:
            verify_envelope_signature(envelope, certificates[0])
    except AttestationError as e:
        logger.warning(f"[NITRITE] Attestation rejected ({type(e).__name__}): {e}")
        raise

    logger.info(
        f"[NITRITE] Attestation verified: module_id={document.module_id} "
        f"pcrs={len(document.pcrs)} chain={len(certificates)}"
    )

    return VerificationResult(
        document=document,
        certificates=certificates,
        protected=envelope.protected,
        unprotected=envelope.unprotected,
        payload=envelope.payload,
        signature=envelope.signature,
    )


def timestamp(data: bytes) -> datetime:
    """
    Extract the attestation creation time WITHOUT verifying the document.

    Only the envelope structure and document encoding are checked. Use this
    to pick a reference time or reject stale documents cheaply, never as a
    substitute for verify().

    Returns:
        Document timestamp as a UTC-aware datetime (millisecond precision)

    Raises:
        MalformedEnvelope: data is not a COSE_Sign1 array
        MalformedDocument: payload is not an attestation document
        MissingMandatoryFields: document has no timestamp
    """
    envelope = decode_sign1(data)
    document = decode_document(envelope.payload)

    if document.timestamp == 0:
        raise MissingMandatoryFields("Attestation document has no timestamp", fields=("timestamp",))

    try:
        return _EPOCH + timedelta(milliseconds=document.timestamp)
    except OverflowError as e:
        raise BadTimestamp(f"Payload 'timestamp' {document.timestamp} is out of range") from e
