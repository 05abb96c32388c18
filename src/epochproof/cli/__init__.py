"""epochproof CLI - verify that outputs were committed in an epoch.

Commands:
    verify      - Verify a proof bundle with stable exit codes
    build       - Commit an epoch's outputs and write proof bundles
    epoch-hash  - Compute an epoch hash from its three roots
    replay-key  - Encode or decode a replay-protection key
"""
from __future__ import annotations

import logging

import click

from .tools import build_command, epoch_hash_command, replay_key_command
from .verify import verify_command


@click.group()
@click.version_option(version="0.1.0", prog_name="epochproof")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Check voucher and notice validity proofs against epoch hashes.

    \b
    Quick Start:
        epochproof build outputs.json --out bundles/
        epochproof verify bundles/voucher_0_0.json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


cli.add_command(verify_command, name="verify")
cli.add_command(build_command, name="build")
cli.add_command(epoch_hash_command, name="epoch-hash")
cli.add_command(replay_key_command, name="replay-key")


def main() -> None:
    cli()


__all__ = ["cli", "main"]
