"""
Nitrite Attestation Document Decoding

Attestation Document (COSE_Sign1 payload):
    {
        "module_id": enclave ID,
        "timestamp": milliseconds since epoch,
        "digest": "SHA384",
        "pcrs": {0: bytes, 1: bytes, 2: bytes, ...},
        "certificate": DER-encoded X.509 cert,
        "cabundle": [DER-encoded CA certs],
        "public_key": optional enclave public key,
        "user_data": optional user data,
        "nonce": optional nonce
    }

Decoding only checks CBOR types. Missing keys become zero values ("", 0,
None) so the validator can report them as missing fields; schema bounds are
enforced in nitrite.validation.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import cbor2

from nitrite.errors import MalformedDocument

logger = logging.getLogger(__name__)


@dataclass
class AttestationDocument:
    """A decoded (not yet validated) Nitro attestation document."""

    module_id: str = ""
    timestamp: int = 0
    digest: str = ""
    pcrs: Optional[Dict[int, Optional[bytes]]] = None
    certificate: Optional[bytes] = None
    cabundle: Optional[List[Optional[bytes]]] = None

    # None means absent, b"" means present but empty
    public_key: Optional[bytes] = None
    user_data: Optional[bytes] = None
    nonce: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-ready view of the document.

        Bytes are standard base64, PCR indices become string keys and absent
        optional fields are omitted.
        """
        result: Dict[str, Any] = {
            "module_id": self.module_id,
            "timestamp": self.timestamp,
            "digest": self.digest,
            "pcrs": None if self.pcrs is None else {
                str(index): _b64(value) for index, value in self.pcrs.items()
            },
            "certificate": _b64(self.certificate),
            "cabundle": None if self.cabundle is None else [_b64(item) for item in self.cabundle],
        }
        for name in ("public_key", "user_data", "nonce"):
            value = getattr(self, name)
            if value:
                result[name] = _b64(value)
        return result


def _b64(value: Optional[bytes]) -> Optional[str]:
    if value is None:
        return None
    return base64.b64encode(value).decode("ascii")


def _expect_text(doc: Dict[Any, Any], key: str) -> str:
    value = doc.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedDocument(f"Payload '{key}' is {type(value).__name__}, not text")
    return value


def _is_uint(value: Any) -> bool:
    # bool is an int subclass but CBOR true/false are not integers
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _expect_bytes(value: Any, key: str) -> Optional[bytes]:
    if value is None:
        return None
    if not isinstance(value, bytes):
        raise MalformedDocument(f"Payload '{key}' is {type(value).__name__}, not bytes")
    return value


def _decode_pcrs(value: Any) -> Optional[Dict[int, Optional[bytes]]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise MalformedDocument(f"Payload 'pcrs' is {type(value).__name__}, not a map")

    pcrs = {}
    for index, measurement in value.items():
        if not _is_uint(index):
            raise MalformedDocument(f"Payload 'pcrs' has a non unsigned integer key: {index!r}")
        pcrs[index] = _expect_bytes(measurement, f"pcrs[{index}]")

    # Index order keeps validation errors deterministic
    return dict(sorted(pcrs.items()))


def _decode_cabundle(value: Any) -> Optional[List[Optional[bytes]]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise MalformedDocument(f"Payload 'cabundle' is {type(value).__name__}, not an array")
    return [_expect_bytes(item, f"cabundle[{i}]") for i, item in enumerate(value)]


def decode_document(payload: bytes) -> AttestationDocument:
    """
    Decode a COSE_Sign1 payload into an AttestationDocument.

    Raises:
        MalformedDocument: payload is not CBOR, not a map, or a field has the wrong type
    """
    try:
        doc = cbor2.loads(payload)
    except Exception as e:
        raise MalformedDocument(f"Failed to parse attestation payload: {e}", cause=e) from e

    if not isinstance(doc, dict):
        raise MalformedDocument(f"Attestation payload is {type(doc).__name__}, not a map")

    timestamp = doc.get("timestamp")
    if timestamp is None:
        timestamp = 0
    elif not _is_uint(timestamp):
        raise MalformedDocument(f"Payload 'timestamp' is not an unsigned integer: {timestamp!r}")

    document = AttestationDocument(
        module_id=_expect_text(doc, "module_id"),
        timestamp=timestamp,
        digest=_expect_text(doc, "digest"),
        pcrs=_decode_pcrs(doc.get("pcrs")),
        certificate=_expect_bytes(doc.get("certificate"), "certificate"),
        cabundle=_decode_cabundle(doc.get("cabundle")),
        public_key=_expect_bytes(doc.get("public_key"), "public_key"),
        user_data=_expect_bytes(doc.get("user_data"), "user_data"),
        nonce=_expect_bytes(doc.get("nonce"), "nonce"),
    )

    logger.debug(
        f"[NITRITE] Attestation document parsed: module_id={document.module_id!r} "
        f"timestamp={document.timestamp}"
    )
    return document
