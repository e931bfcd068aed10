"""
Nitrite Trusted Roots

The default trust anchor is the AWS Nitro Enclaves Root-G1 certificate.

PINNED (not fetched at runtime) to prevent MITM attacks.
Source: https://aws-nitro-enclaves.amazonaws.com/AWS_NitroEnclaves_Root-G1.zip
Check its SHA-256 against https://docs.aws.amazon.com/enclaves/latest/user/verify-root.html
Certificate valid: 2019-10-28 to 2049-10-28

DEFAULT_ROOTS is built once at import and never mutated, so concurrent
verifications can share it without locking. If the bundle cannot be parsed
the import fails; there is no per-call retry.
"""

import logging
from pathlib import Path
from typing import List, Union

from cryptography import x509
from cryptography.x509.verification import Store

from nitrite import config
from nitrite.errors import RootConfigurationError

logger = logging.getLogger(__name__)


AWS_NITRO_ROOT_G1_PEM: bytes = b"""-----BEGIN CERTIFICATE-----
MIICETCCAZagAwIBAgIRAPkxdWgbkK/hHUbMtOTn+FYwCgYIKoZIzj0EAwMwSTEL
MAkGA1UEBhMCVVMxDzANBgNVBAoMBkFtYXpvbjEMMAoGA1UECwwDQVdTMRswGQYD
VQQDDBJhd3Mubml0cm8tZW5jbGF2ZXMwHhcNMTkxMDI4MTMyODA1WhcNNDkxMDI4
MTQyODA1WjBJMQswCQYDVQQGEwJVUzEPMA0GA1UECgwGQW1hem9uMQwwCgYDVQQL
DANBV1MxGzAZBgNVBAMMEmF3cy5uaXRyby1lbmNsYXZlczB2MBAGByqGSM49AgEG
BSuBBAAiA2IABPwCVOumCMHzaHDimtqQvkY4MpJzbolL//Zy2YlES1BR5TSksfbb
48C8WBoyt7F2Bw7eEtaaP+ohG2bnUs990d0JX28TcPQXCEPZ3BABIeTPYwEoCWZE
h8l5YoQwTcU/9KNCMEAwDwYDVR0TAQH/BAUwAwEB/zAdBgNVHQ4EFgQUkCW1DdkF
R+eWw5b6cp3PmanfS5YwDgYDVR0PAQH/BAQDAgGGMAoGCCqGSM49BAMDA2kAMGYC
MQCjfy+Rocm9Xue4YnwWmNJVA44fA0P5W2OpYow9OYCVRaEevL8uO1XYru5xtMPW
rfMCMQCi85sWBbJwKKXdS6BptQFuZbT73o/gBh1qUxl/nNr12UO8Yfwr6wPLb+6N
IwLz3/Y=
-----END CERTIFICATE-----
"""


def load_certificates(data: bytes) -> List[x509.Certificate]:
    """
    Parse one or more root certificates from PEM or DER bytes.

    Raises:
        RootConfigurationError: no certificate could be parsed
    """
    try:
        if b"-----BEGIN" in data:
            return x509.load_pem_x509_certificates(data)
        return [x509.load_der_x509_certificate(data)]
    except ValueError as e:
        raise RootConfigurationError(f"Invalid root certificate bundle: {e}") from e


def load_roots(data: Union[bytes, List[x509.Certificate]]) -> Store:
    """Build a root Store from PEM/DER bytes or parsed certificates."""
    if isinstance(data, (bytes, bytearray)):
        certificates = load_certificates(bytes(data))
    else:
        certificates = list(data)

    if not certificates:
        raise RootConfigurationError("Root certificate bundle is empty")
    return Store(certificates)


def load_roots_file(path: Union[str, Path]) -> Store:
    """Build a root Store from a PEM or DER file."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise RootConfigurationError(f"Cannot read root bundle {path}: {e}") from e
    return load_roots(data)


def _create_default_roots() -> Store:
    if config.CA_ROOTS_FILE:
        logger.info(f"[NITRITE] Using trusted roots from {config.CA_ROOTS_FILE}")
        return load_roots_file(config.CA_ROOTS_FILE)
    return load_roots(AWS_NITRO_ROOT_G1_PEM)


DEFAULT_ROOTS: Store = _create_default_roots()
