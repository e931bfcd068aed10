"""
Nitrite Constants

Single source of truth for the protocol values and field bounds used when
decoding and validating AWS Nitro Enclave attestation documents.

Security Note: these bounds are the schema the attestation document is held
to. Loosening any of them widens what the verifier accepts as a genuine
Nitro attestation.
"""

# =============================================================================
# COSE_Sign1 ENVELOPE
# =============================================================================

# COSE_Sign1 = [protected, unprotected, payload, signature]
COSE_SIGN1_LENGTH = 4

# CBOR tag for COSE_Sign1 (RFC 8152). Nitro documents may or may not carry it.
COSE_SIGN1_TAG = 18

# Protected header key holding the signing algorithm
COSE_HEADER_ALGORITHM = 1

# The only accepted signing algorithm (hard allow-list)
SUPPORTED_ALGORITHM = "ECDSA384"


# =============================================================================
# ATTESTATION DOCUMENT
# =============================================================================

# The only accepted PCR digest algorithm
SUPPORTED_DIGEST = "SHA384"

# PCR map bounds
MIN_PCR_COUNT = 1
MAX_PCR_COUNT = 32
MAX_PCR_INDEX = 31

# PCR values must be exactly one of these lengths (SHA-256/384/512)
PCR_VALUE_LENGTHS = frozenset({32, 48, 64})

# CA bundle entry length bounds (DER bytes)
MIN_CABUNDLE_ENTRY_LENGTH = 1
MAX_CABUNDLE_ENTRY_LENGTH = 1024

# Optional field bounds, when present
MAX_PUBLIC_KEY_LENGTH = 1024
MAX_USER_DATA_LENGTH = 512
MAX_NONCE_LENGTH = 512


# =============================================================================
# COSE SIGNATURE
# =============================================================================

# Context string of a COSE_Sign1 Sig_structure
SIG_STRUCTURE_CONTEXT = "Signature1"
