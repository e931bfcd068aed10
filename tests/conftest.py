"""
Pytest configuration and shared fixtures for nitrite tests.

This conftest.py:
1. Adds project root and tests root to sys.path for imports
2. Provides the test PKI and attestation factories as fixtures
"""

import sys
from pathlib import Path

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

from fixtures.attestation import build_document, build_pki  # noqa: E402


@pytest.fixture(scope="session")
def pki():
    """Root -> intermediate -> leaf P-384 chain. Key generation is slow, build it once."""
    return build_pki()


@pytest.fixture
def document(pki):
    """A valid attestation document map."""
    return build_document(pki)
