"""
Attestation test fixtures.

Builds a throwaway P-384 PKI shaped like AWS Nitro's
(root -> intermediate -> enclave leaf) plus factories for attestation
documents and COSE_Sign1 envelopes around them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import cbor2
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID
from cryptography.x509.verification import Store

NOT_BEFORE = datetime(2024, 1, 1, tzinfo=timezone.utc)
NOT_AFTER = datetime(2034, 1, 1, tzinfo=timezone.utc)

# Reference time inside every fixture certificate's validity period
NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)

_UNSET = object()


def make_name(common_name: str) -> x509.Name:
    return x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Amazon"),
        x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, "AWS"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])


def issue_certificate(
    subject: x509.Name,
    public_key,
    issuer: x509.Name,
    issuer_key,
    ca: bool,
    algorithm=None,
    not_before: datetime = NOT_BEFORE,
    not_after: datetime = NOT_AFTER,
) -> x509.Certificate:
    """Sign a v3 certificate with the extensions Nitro CA/leaf certificates carry."""
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=ca,
                crl_sign=ca,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
            critical=False,
        )
    )
    return builder.sign(issuer_key, algorithm or hashes.SHA384())


def der(certificate: x509.Certificate) -> bytes:
    return certificate.public_bytes(Encoding.DER)


@dataclass
class NitroTestPKI:
    root_key: ec.EllipticCurvePrivateKey
    root: x509.Certificate
    intermediate_key: ec.EllipticCurvePrivateKey
    intermediate: x509.Certificate
    leaf_key: ec.EllipticCurvePrivateKey
    leaf: x509.Certificate

    @property
    def roots(self) -> Store:
        return Store([self.root])

    @property
    def cabundle(self) -> List[bytes]:
        # Nitro orders the bundle root first
        return [der(self.root), der(self.intermediate)]

    def issue_leaf(self, public_key=None, algorithm=None, **kwargs) -> x509.Certificate:
        """Another enclave leaf signed by the intermediate."""
        if public_key is None:
            public_key = self.leaf_key.public_key()
        return issue_certificate(
            make_name("i-0123456789abcdef0-enc0123456789abcdef.us-east-1.aws"),
            public_key,
            self.intermediate.subject,
            self.intermediate_key,
            ca=False,
            algorithm=algorithm,
            **kwargs,
        )


def build_pki() -> NitroTestPKI:
    root_key = ec.generate_private_key(ec.SECP384R1())
    root_name = make_name("aws.nitro-enclaves")
    root = issue_certificate(root_name, root_key.public_key(), root_name, root_key, ca=True)

    intermediate_key = ec.generate_private_key(ec.SECP384R1())
    intermediate = issue_certificate(
        make_name("zonal.us-east-1.aws.nitro-enclaves"),
        intermediate_key.public_key(),
        root_name,
        root_key,
        ca=True,
    )

    leaf_key = ec.generate_private_key(ec.SECP384R1())
    pki = NitroTestPKI(root_key, root, intermediate_key, intermediate, leaf_key, None)
    pki.leaf = pki.issue_leaf()
    return pki


def rsa_public_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048).public_key()


def build_document(pki: NitroTestPKI, **overrides: Any) -> Dict[str, Any]:
    """
    A valid attestation document map. Pass field=value to override a field
    and field=None to drop it from the map.
    """
    doc: Dict[str, Any] = {
        "module_id": "i-0123456789abcdef0-enc0123456789abcdef",
        "digest": "SHA384",
        "timestamp": NOW_MS,
        "pcrs": {index: bytes([index]) * 48 for index in range(16)},
        "certificate": der(pki.leaf),
        "cabundle": pki.cabundle,
    }
    for key, value in overrides.items():
        if value is None:
            doc.pop(key, None)
        else:
            doc[key] = value
    return doc


def encode_envelope(
    payload: Any,
    algorithm: Any = "ECDSA384",
    signature: Optional[bytes] = b"\x5a" * 32,
    unprotected: Any = _UNSET,
    protected: Any = _UNSET,
    tagged: bool = False,
) -> bytes:
    """CBOR-encode a COSE_Sign1 envelope. A dict payload is CBOR-encoded first."""
    if isinstance(payload, dict):
        payload = cbor2.dumps(payload)
    if protected is _UNSET:
        protected = cbor2.dumps({1: algorithm})
    if unprotected is _UNSET:
        unprotected = {}

    sign1 = [protected, unprotected, payload, signature]
    if tagged:
        return cbor2.dumps(cbor2.CBORTag(18, sign1))
    return cbor2.dumps(sign1)


def encode_signed_envelope(payload: Dict[str, Any], key: ec.EllipticCurvePrivateKey) -> bytes:
    """A COSE_Sign1 envelope with a real ES384 signature over the payload."""
    protected = cbor2.dumps({1: "ECDSA384"})
    payload_bytes = cbor2.dumps(payload)
    to_sign = cbor2.dumps(["Signature1", protected, b"", payload_bytes])

    r, s = decode_dss_signature(key.sign(to_sign, ec.ECDSA(hashes.SHA384())))
    signature = r.to_bytes(48, "big") + s.to_bytes(48, "big")
    return cbor2.dumps([protected, {}, payload_bytes, signature])
