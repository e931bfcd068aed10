"""
CLI for Nitrite
===============

Verifies a base64-encoded AWS Nitro attestation document and prints the
attestation document as JSON.

Usage:
    nitrite --attestation <base64>
    nitrite -a <base64> --roots my_roots.pem --time 2024-01-15T12:30:45Z

Exit codes:
    0  verified, JSON document printed
    1  missing --attestation (usage printed)
    2  bad base64 or verification failure
"""

import base64
import binascii
import json
import logging
import sys
from datetime import datetime
from typing import Optional

import click

from nitrite import __version__, config
from nitrite.errors import AttestationError, RootConfigurationError
from nitrite.roots import load_roots_file
from nitrite.verifier import VerifyOptions, verify


@click.command()
@click.version_option(version=__version__)
@click.option(
    "--attestation", "-a",
    default=None,
    help="Attestation document in standard Base64 encoding",
)
@click.option(
    "--roots", "-r",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="PEM or DER root bundle (default: NITRITE_CA_ROOTS_FILE or pinned AWS Nitro root)",
)
@click.option(
    "--time", "-t", "current_time",
    default=None,
    help="Reference time for certificate validity, ISO 8601 (default: now)",
)
@click.option(
    "--verify-signature",
    is_flag=True,
    default=False,
    help="Also verify the COSE signature with the leaf certificate key",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (default: NITRITE_LOG_LEVEL or WARNING)",
)
@click.pass_context
def main(
    ctx: click.Context,
    attestation: Optional[str],
    roots: Optional[str],
    current_time: Optional[str],
    verify_signature: bool,
    log_level: Optional[str],
):
    """
    Verify an AWS Nitro Enclave attestation document.

    Examples:
        nitrite --attestation hEShATgioFkQ...
        nitrite -a "$(base64 -w0 attestation.bin)" --verify-signature
    """
    config.load_env_file()
    roots = roots or config.ca_roots_file()

    logging.basicConfig(
        level=(log_level or config.log_level()).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not attestation:
        click.echo(ctx.get_help())
        ctx.exit(1)

    try:
        document = base64.b64decode(attestation, validate=True)
    except (binascii.Error, ValueError):
        click.echo("Provided attestation document is not encoded as a valid standard Base64 string")
        ctx.exit(2)

    try:
        options = VerifyOptions(
            roots=load_roots_file(roots) if roots else None,
            current_time=datetime.fromisoformat(current_time.replace("Z", "+00:00")) if current_time else None,
            verify_signature=verify_signature,
        )
    except (RootConfigurationError, ValueError) as e:
        click.echo(f"Invalid verification options: {e}")
        ctx.exit(2)

    try:
        result = verify(document, options)
    except AttestationError as e:
        click.echo(f"Attestation verification failed with error {e}")
        ctx.exit(2)

    click.echo(json.dumps(result.document.to_dict()))


if __name__ == "__main__":
    main()
