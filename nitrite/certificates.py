"""
Nitrite Certificate Chain Verification

AWS Nitro attestation certificate chain structure:
- cabundle[0] = Root CA (aws.nitro-enclaves, self-signed)
- cabundle[1] = Regional CA (signed by root)
- cabundle[2] = Zonal CA (signed by regional)
- cabundle[3] = Instance CA (signed by zonal) - signs the leaf
- certificate = Enclave cert (signed by instance CA)

The leaf must be an ECDSA key signed with ECDSA-SHA384. Path building,
signature and validity-period checks are delegated to cryptography's X.509
verifier; this module only prepares its inputs and classifies failures.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

import cbor2
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature
from cryptography.x509.oid import PublicKeyAlgorithmOID, SignatureAlgorithmOID
from cryptography.x509.verification import (
    ExtensionPolicy,
    PolicyBuilder,
    Store,
    VerificationError,
)

from nitrite.constants import SIG_STRUCTURE_CONTEXT
from nitrite.cose import Envelope
from nitrite.document import AttestationDocument
from nitrite.errors import (
    BadCertificatePublicKeyAlgorithm,
    BadCertificateSigningAlgorithm,
    CertificateParseError,
    ChainVerificationError,
    SignatureVerificationError,
)
from nitrite.roots import DEFAULT_ROOTS, load_roots

logger = logging.getLogger(__name__)

Roots = Union[Store, Sequence[x509.Certificate]]


def _parse_certificate(der: bytes, position: int) -> x509.Certificate:
    try:
        return x509.load_der_x509_certificate(der)
    except ValueError as e:
        raise CertificateParseError(position, cause=e) from e


def _resolve_roots(roots: Optional[Roots]) -> Store:
    if roots is None:
        return DEFAULT_ROOTS
    if isinstance(roots, Store):
        return roots
    return load_roots(list(roots))


def _resolve_time(current_time: Optional[datetime]) -> datetime:
    """UTC reference time as a naive datetime, which is what the verifier reads."""
    if current_time is None:
        current_time = datetime.now(timezone.utc)
    if current_time.tzinfo is not None:
        current_time = current_time.astimezone(timezone.utc).replace(tzinfo=None)
    return current_time


def check_leaf_algorithms(leaf: x509.Certificate) -> None:
    """
    Require an EC public key signed with ECDSA-SHA384.

    Raises:
        BadCertificatePublicKeyAlgorithm: leaf key is not elliptic-curve
        BadCertificateSigningAlgorithm: leaf signature is not ECDSA-SHA384
    """
    if leaf.public_key_algorithm_oid != PublicKeyAlgorithmOID.EC_PUBLIC_KEY:
        raise BadCertificatePublicKeyAlgorithm()

    if leaf.signature_algorithm_oid != SignatureAlgorithmOID.ECDSA_WITH_SHA384:
        raise BadCertificateSigningAlgorithm()


def verify_certificate_chain(
    doc: AttestationDocument,
    roots: Optional[Roots] = None,
    current_time: Optional[datetime] = None,
) -> List[x509.Certificate]:
    """
    Verify the document's certificate chains to a trusted root.

    Args:
        doc: A validated attestation document
        roots: Trusted roots. If None, the embedded AWS Nitro root is used.
        current_time: Reference time for validity periods. If None, now.
                      Naive datetimes are read as UTC.

    Returns:
        [leaf, cabundle[0], cabundle[1], ...] as parsed certificates

    Raises:
        CertificateParseError: leaf or a cabundle entry is not DER X.509
        BadCertificatePublicKeyAlgorithm / BadCertificateSigningAlgorithm
        ChainVerificationError: no valid path to a trusted root
    """
    leaf = _parse_certificate(doc.certificate, 0)
    check_leaf_algorithms(leaf)

    certificates = [leaf]
    intermediates = []
    for position, item in enumerate(doc.cabundle, start=1):
        ca_cert = _parse_certificate(item, position)
        intermediates.append(ca_cert)
        certificates.append(ca_cert)

    store = _resolve_roots(roots)
    reference_time = _resolve_time(current_time)

    # Nitro leaves carry no SAN and no EKU; accept any key usage on the leaf
    verifier = (
        PolicyBuilder()
        .store(store)
        .time(reference_time)
        .extension_policies(
            ca_policy=ExtensionPolicy.webpki_defaults_ca(),
            ee_policy=ExtensionPolicy.permit_all(),
        )
        .build_client_verifier()
    )

    try:
        verifier.verify(leaf, intermediates)
    except VerificationError as e:
        raise ChainVerificationError(e) from e

    logger.debug(
        f"[NITRITE] Certificate chain verified at {reference_time.isoformat()}Z: "
        f"{leaf.subject.rfc4514_string()} via {len(intermediates)} CA certificate(s)"
    )
    return certificates


def sig_structure(envelope: Envelope) -> bytes:
    """Sig_structure = ["Signature1", protected, external_aad, payload]"""
    return cbor2.dumps([SIG_STRUCTURE_CONTEXT, envelope.protected, b"", envelope.payload])


def verify_envelope_signature(envelope: Envelope, leaf: x509.Certificate) -> None:
    """
    Verify the COSE_Sign1 signature with the leaf certificate's public key.

    Raises:
        SignatureVerificationError: signature does not match protected || payload
    """
    public_key = leaf.public_key()
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise BadCertificatePublicKeyAlgorithm()

    # COSE signatures are raw (r || s); cryptography wants DER for ECDSA
    signature = envelope.signature
    if len(signature) % 2:
        raise SignatureVerificationError(f"COSE signature has odd length {len(signature)}")
    half = len(signature) // 2
    r = int.from_bytes(signature[:half], "big")
    s = int.from_bytes(signature[half:], "big")
    der_signature = encode_dss_signature(r, s)

    try:
        # AWS Nitro uses ECDSA with SHA-384 (algorithm ES384 in COSE)
        public_key.verify(der_signature, sig_structure(envelope), ec.ECDSA(hashes.SHA384()))
    except InvalidSignature as e:
        raise SignatureVerificationError(cause=e) from e

    logger.debug("[NITRITE] COSE signature verified")
