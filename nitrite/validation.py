"""
Nitrite Attestation Document Validation

Applies the AWS Nitro attestation document schema to a decoded document.
Checks run in a fixed order and the first failure is raised, so a document
with several problems always reports the same error.

VALIDATION ORDER:
1.  mandatory fields present          -> MissingMandatoryFields
2.  digest is SHA384                  -> BadDigest
3.  timestamp >= 1                    -> BadTimestamp
4.  1 <= len(pcrs) <= 32              -> BadPCRCount
5.  pcr index in [0, 31]              -> BadPCRIndex
    pcr value length in {32, 48, 64}  -> BadPCRValue
6.  cabundle not empty                -> EmptyCABundle
7.  cabundle entries in [1, 1024]     -> BadCABundleEntry
8.  public_key in [1, 1024]           -> BadPublicKey   (if present)
9.  user_data in [1, 512]             -> BadUserData    (if present)
10. nonce in [1, 512]                 -> BadNonce       (if present)
"""

from typing import List, Optional

from nitrite.constants import (
    MAX_CABUNDLE_ENTRY_LENGTH,
    MAX_NONCE_LENGTH,
    MAX_PCR_COUNT,
    MAX_PCR_INDEX,
    MAX_PUBLIC_KEY_LENGTH,
    MAX_USER_DATA_LENGTH,
    MIN_CABUNDLE_ENTRY_LENGTH,
    MIN_PCR_COUNT,
    PCR_VALUE_LENGTHS,
    SUPPORTED_DIGEST,
)
from nitrite.document import AttestationDocument
from nitrite.errors import (
    BadCABundleEntry,
    BadDigest,
    BadNonce,
    BadPCRCount,
    BadPCRIndex,
    BadPCRValue,
    BadPublicKey,
    BadTimestamp,
    BadUserData,
    EmptyCABundle,
    MissingMandatoryFields,
)


def missing_mandatory_fields(doc: AttestationDocument) -> List[str]:
    """Names of the mandatory fields that are absent from the document."""
    missing = []
    if not doc.module_id:
        missing.append("module_id")
    if not doc.digest:
        missing.append("digest")
    if doc.timestamp == 0:
        missing.append("timestamp")
    if doc.pcrs is None:
        missing.append("pcrs")
    if not doc.certificate:
        missing.append("certificate")
    if doc.cabundle is None:
        missing.append("cabundle")
    return missing


def _length_in(value: Optional[bytes], low: int, high: int) -> bool:
    return value is not None and low <= len(value) <= high


def validate_document(doc: AttestationDocument) -> None:
    """
    Validate every field of a decoded attestation document.

    Raises:
        ValidationError: the first failing check, see module docstring for the order
    """
    missing = missing_mandatory_fields(doc)
    if missing:
        raise MissingMandatoryFields(fields=missing)

    if doc.digest != SUPPORTED_DIGEST:
        raise BadDigest()

    if doc.timestamp < 1:
        raise BadTimestamp()

    if not MIN_PCR_COUNT <= len(doc.pcrs) <= MAX_PCR_COUNT:
        raise BadPCRCount()

    for index in sorted(doc.pcrs):
        if not 0 <= index <= MAX_PCR_INDEX:
            raise BadPCRIndex(index)

        value = doc.pcrs[index]
        # Set membership, not a range: only 32, 48 and 64 are valid
        if value is None or len(value) not in PCR_VALUE_LENGTHS:
            raise BadPCRValue(index, None if value is None else len(value))

    if len(doc.cabundle) < 1:
        raise EmptyCABundle()

    for position, item in enumerate(doc.cabundle):
        if not _length_in(item, MIN_CABUNDLE_ENTRY_LENGTH, MAX_CABUNDLE_ENTRY_LENGTH):
            raise BadCABundleEntry(position, None if item is None else len(item))

    if doc.public_key is not None and not _length_in(doc.public_key, 1, MAX_PUBLIC_KEY_LENGTH):
        raise BadPublicKey()

    if doc.user_data is not None and not _length_in(doc.user_data, 1, MAX_USER_DATA_LENGTH):
        raise BadUserData()

    if doc.nonce is not None and not _length_in(doc.nonce, 1, MAX_NONCE_LENGTH):
        raise BadNonce()
