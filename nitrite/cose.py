"""
Nitrite COSE_Sign1 Envelope Decoding

AWS Nitro wraps every attestation document in a COSE_Sign1 structure:

    [
        protected   (bytes - CBOR map, key 1 = signing algorithm),
        unprotected (header map or bytes, never validated),
        payload     (bytes - CBOR attestation document),
        signature   (bytes - raw r || s ECDSA signature),
    ]

The array may arrive bare or wrapped in CBOR tag 18.
"""

import logging
from dataclasses import dataclass
from typing import Any, List

import cbor2

from nitrite.constants import (
    COSE_HEADER_ALGORITHM,
    COSE_SIGN1_LENGTH,
    COSE_SIGN1_TAG,
    SUPPORTED_ALGORITHM,
)
from nitrite.errors import (
    EmptyPayloadSection,
    EmptyProtectedSection,
    EmptySignatureSection,
    MalformedEnvelope,
    UnsupportedAlgorithm,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Envelope:
    """The four raw sections of a COSE_Sign1 envelope."""

    protected: bytes
    unprotected: bytes
    payload: bytes
    signature: bytes


def _load_sign1_array(data: bytes) -> List[Any]:
    try:
        cose_sign1 = cbor2.loads(data)
    except Exception as e:
        raise MalformedEnvelope(f"Failed to parse COSE_Sign1: {e}", cause=e) from e

    # Handle CBOR tagged value (tag 18 = COSE_Sign1)
    if isinstance(cose_sign1, cbor2.CBORTag):
        if cose_sign1.tag != COSE_SIGN1_TAG:
            raise MalformedEnvelope(f"Unexpected CBOR tag {cose_sign1.tag}, expected {COSE_SIGN1_TAG}")
        cose_sign1 = cose_sign1.value

    # cbor2 6.x decodes tagged arrays as tuples
    if not isinstance(cose_sign1, (list, tuple)):
        raise MalformedEnvelope(f"Unexpected COSE structure type: {type(cose_sign1).__name__}")

    if len(cose_sign1) != COSE_SIGN1_LENGTH:
        raise MalformedEnvelope(
            f"Invalid COSE_Sign1: expected {COSE_SIGN1_LENGTH} elements, got {len(cose_sign1)}"
        )

    return list(cose_sign1)


def _section_bytes(value: Any, name: str) -> bytes:
    # null is treated as an absent section
    if value is None:
        return b""
    if not isinstance(value, bytes):
        raise MalformedEnvelope(f"COSE_Sign1 {name} section is {type(value).__name__}, not bytes")
    return value


def _unprotected_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    # Nitro sends an empty header map here; keep its encoding for the caller
    return cbor2.dumps(value)


def decode_sign1(data: bytes) -> Envelope:
    """
    Decode the four COSE_Sign1 sections without checking their contents.

    Raises:
        MalformedEnvelope: data is not a 4-element CBOR array of byte strings
    """
    protected, unprotected, payload, signature = _load_sign1_array(data)

    return Envelope(
        protected=_section_bytes(protected, "protected"),
        unprotected=_unprotected_bytes(unprotected),
        payload=_section_bytes(payload, "payload"),
        signature=_section_bytes(signature, "signature"),
    )


def decode_protected_header(protected: bytes) -> str:
    """
    Decode the protected header and return its signing algorithm.

    A header without key 1 yields the empty string.

    Raises:
        MalformedEnvelope: the header is not a CBOR map or the algorithm is not text
    """
    try:
        header = cbor2.loads(protected)
    except Exception as e:
        raise MalformedEnvelope(f"Failed to parse COSE_Sign1 protected header: {e}", cause=e) from e

    if not isinstance(header, dict):
        raise MalformedEnvelope(f"COSE_Sign1 protected header is {type(header).__name__}, not a map")

    algorithm = header.get(COSE_HEADER_ALGORITHM, "")
    if not isinstance(algorithm, str):
        raise MalformedEnvelope(
            f"COSE_Sign1 protected header algorithm is {type(algorithm).__name__}, not text"
        )
    return algorithm


def decode_envelope(data: bytes) -> Envelope:
    """
    Decode and check a COSE_Sign1 envelope.

    Checks, in order:
        1. 4-element CBOR array          -> MalformedEnvelope
        2. protected section non-empty   -> EmptyProtectedSection
        3. payload section non-empty     -> EmptyPayloadSection
        4. signature section non-empty   -> EmptySignatureSection
        5. protected header decodes      -> MalformedEnvelope
        6. algorithm is ECDSA384         -> UnsupportedAlgorithm

    The unprotected section is never checked.
    """
    envelope = decode_sign1(data)

    if not envelope.protected:
        raise EmptyProtectedSection()
    if not envelope.payload:
        raise EmptyPayloadSection()
    if not envelope.signature:
        raise EmptySignatureSection()

    algorithm = decode_protected_header(envelope.protected)
    if algorithm != SUPPORTED_ALGORITHM:
        raise UnsupportedAlgorithm(algorithm)

    logger.debug(
        f"[NITRITE] COSE_Sign1 parsed: protected={len(envelope.protected)}B "
        f"payload={len(envelope.payload)}B signature={len(envelope.signature)}B"
    )
    return envelope
