"""
Nitrite - AWS Nitro Enclave Attestation Verification

Verifies attestation documents produced by AWS Nitro Enclaves before a
relying party exchanges secrets with code running inside the enclave.

Module Structure:
    constants.py     - Algorithm allow-lists and document field bounds
    errors.py        - AttestationError taxonomy (envelope, document, certificate)
    cose.py          - decode_envelope (COSE_Sign1 envelope + protected header)
    document.py      - decode_document, AttestationDocument
    validation.py    - validate_document (ordered schema checks)
    roots.py         - DEFAULT_ROOTS (pinned AWS Nitro root), load_roots
    certificates.py  - verify_certificate_chain, verify_envelope_signature
    verifier.py      - verify, timestamp (public entry points)
    cli.py           - `nitrite` command line tool

Usage:
    from nitrite import verify, VerifyOptions

    result = verify(attestation_bytes, VerifyOptions(current_time=now))
    pcr0 = result.document.pcrs[0]

Security Model:
    - The certificate chain must reach a trusted root (AWS Nitro Root-G1 by default)
    - PCR values are validated for shape only; comparing them against expected
      measurements is the caller's decision
    - The COSE signature is only checked when VerifyOptions.verify_signature is set
"""

__version__ = "1.0.0"

from nitrite.document import AttestationDocument
from nitrite.errors import AttestationError
from nitrite.verifier import VerificationResult, VerifyOptions, timestamp, verify

__all__ = [
    "__version__",
    "AttestationDocument",
    "AttestationError",
    "VerificationResult",
    "VerifyOptions",
    "timestamp",
    "verify",
]
