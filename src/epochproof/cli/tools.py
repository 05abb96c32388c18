"""Small helper commands: replay keys, epoch hashes and proof generation."""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from ..builder import build_epoch
from ..errors import LayoutError
from ..replay import decode_replay_key, encode_replay_key
from ..validation import compute_epoch_hash
from .exit_codes import EXIT_MALFORMED
from .schema import EpochOutputsDocument, bundles_for_epoch, parse_hex, to_hex
from .verify import load_layout


def _parse_int(value: str) -> int:
    return int(value, 0)


@click.command("replay-key")
@click.argument("first")
@click.argument("second", required=False)
@click.option("--decode", is_flag=True, help="Split FIRST (a key) into output and input indices.")
def replay_key_command(first: str, second: Optional[str], decode: bool) -> None:
    """Compute the replay key for OUTPUT_INDEX INPUT_INDEX, or decode a key."""
    try:
        if decode:
            output_index, input_index = decode_replay_key(_parse_int(first))
            click.echo(f"output_index: {output_index}")
            click.echo(f"input_index:  {input_index}")
            return
        if second is None:
            raise click.UsageError("INPUT_INDEX is required unless --decode is given")
        output_index, input_index = _parse_int(first), _parse_int(second)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    if output_index < 0 or input_index < 0:
        raise click.BadParameter("indices must be non-negative")
    key = encode_replay_key(output_index, input_index)
    click.echo(f"{key}")
    click.echo(f"0x{key:064x}")


@click.command("epoch-hash")
@click.argument("vouchers_root")
@click.argument("notices_root")
@click.argument("machine_state_hash")
def epoch_hash_command(vouchers_root: str, notices_root: str, machine_state_hash: str) -> None:
    """Print keccak256(VOUCHERS_ROOT || NOTICES_ROOT || MACHINE_STATE_HASH)."""
    parts = []
    for name, value in (
        ("VOUCHERS_ROOT", vouchers_root),
        ("NOTICES_ROOT", notices_root),
        ("MACHINE_STATE_HASH", machine_state_hash),
    ):
        try:
            raw = parse_hex(value)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint=name) from exc
        if len(raw) != 32:
            raise click.BadParameter("must be 32 bytes", param_hint=name)
        parts.append(raw)
    click.echo(to_hex(compute_epoch_hash(*parts)))


@click.command("build")
@click.argument("outputs", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("bundles"),
    show_default=True,
    help="Directory receiving one bundle per output.",
)
@click.option(
    "--layout",
    "layout_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with machine layout overrides.",
)
def build_command(outputs: Path, out_dir: Path, layout_path: Optional[Path]) -> None:
    """Commit an epoch's raw OUTPUTS and write a proof bundle for each output."""
    try:
        layout = load_layout(layout_path)
        document = EpochOutputsDocument.model_validate_json(outputs.read_text())
        commitment = build_epoch(
            [item.to_outputs() for item in document.inputs],
            parse_hex(document.machine_state_hash),
            layout,
        )
    except (LayoutError, ValidationError, UnicodeDecodeError, OSError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_MALFORMED)

    out_dir.mkdir(parents=True, exist_ok=True)
    bundles = bundles_for_epoch(commitment, document.epoch)
    for bundle in bundles:
        name = f"{bundle.category.value}_{bundle.proof.epoch_input_index}_{bundle.proof.output_index}.json"
        (out_dir / name).write_text(json.dumps(bundle.model_dump(mode="json"), indent=2))
    click.echo(f"epoch_hash: {to_hex(commitment.epoch_hash)}")
    click.echo(f"wrote {len(bundles)} bundle(s) to {out_dir}")
