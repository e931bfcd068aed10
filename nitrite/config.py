"""
Nitrite Configuration
=====================

Reads environment variables for the verifier.

The library only reads the process environment. The `nitrite` command also
loads a .env file from the working directory (see load_env_file); programs
embedding the library load their own .env if they want one.
"""

import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv


def load_env_file() -> None:
    """Load .env from the working directory into os.environ. Existing variables win."""
    load_dotenv(find_dotenv(usecwd=True))


def ca_roots_file() -> Optional[str]:
    return os.getenv("NITRITE_CA_ROOTS_FILE") or None


def log_level() -> str:
    return os.getenv("NITRITE_LOG_LEVEL", "WARNING").upper()


# ============================================================
# Trust Roots
# ============================================================
# PEM or DER bundle replacing the embedded AWS Nitro root.
# Read once at import; an unreadable bundle aborts start-up.
CA_ROOTS_FILE = ca_roots_file()
