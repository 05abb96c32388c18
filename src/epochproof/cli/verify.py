"""epochproof verify - check a proof bundle with stable exit codes.

Usage:
    epochproof verify <bundle.json> [--category voucher|notice] [--layout FILE] [--json]

Exit codes:
    0  - Output verified
    10 - Proof roots do not match the epoch hash
    11 - Input metadata root not in the epoch root
    12 - Output hash not in the input metadata root
    20 - Malformed bundle or proof
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Tuple

import click
from pydantic import ValidationError

from ..errors import E110_MALFORMED_PROOF, LayoutError, ProofValidationError
from ..layout import MachineLayout
from ..proof import OutputCategory
from ..validation import validate_output
from .exit_codes import EXIT_MALFORMED, EXIT_VERIFIED, error_to_exit_code, exit_code_description
from .schema import ProofBundle, parse_hex

LOGGER = logging.getLogger(__name__)


def load_layout(path: Optional[Path]) -> MachineLayout:
    """Layout from a JSON file, or the environment-adjusted canonical one."""
    if path is None:
        return MachineLayout.from_env()
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise LayoutError(f"layout file is not valid JSON: {path}") from exc
    except OSError as exc:
        raise LayoutError(f"cannot read layout file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise LayoutError(f"layout file must hold a JSON object: {path}")
    return MachineLayout.from_mapping(data)


def verify_bundle(
    bundle_path: Path,
    *,
    category: Optional[OutputCategory] = None,
    layout: MachineLayout,
) -> Tuple[int, dict[str, Any]]:
    try:
        bundle = ProofBundle.model_validate_json(bundle_path.read_text())
    except (UnicodeDecodeError, OSError) as exc:
        return EXIT_MALFORMED, {
            "status": "REJECT",
            "error_code": E110_MALFORMED_PROOF,
            "message": f"cannot read bundle {bundle_path}: {exc}",
        }
    except ValidationError as exc:
        return EXIT_MALFORMED, {
            "status": "REJECT",
            "error_code": E110_MALFORMED_PROOF,
            "message": f"invalid bundle: {exc.error_count()} validation error(s)",
            "details": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()],
        }

    effective = category or bundle.category
    report: dict[str, Any] = {
        "category": effective.value,
        "epoch_input_index": bundle.proof.epoch_input_index,
        "output_index": bundle.proof.output_index,
        "epoch_hash": bundle.epoch_hash,
    }
    if bundle.epoch is not None:
        state = bundle.epoch.to_state()
        report["dapp_contract_address"] = state.address_hex
        report["epoch_number"] = state.epoch_number

    try:
        validate_output(
            effective,
            bundle.proof.to_proof(),
            parse_hex(bundle.output),
            parse_hex(bundle.epoch_hash),
            layout,
        )
    except ProofValidationError as exc:
        exit_code = error_to_exit_code(exc.code)
        LOGGER.debug("bundle %s rejected: %s", bundle_path, exc)
        return exit_code, {
            "status": "REJECT",
            "error_code": exc.code,
            "message": str(exc),
            "exit_code": exit_code,
            "exit_description": exit_code_description(exit_code),
            **report,
        }
    return EXIT_VERIFIED, {"status": "VERIFIED", **report}


def _print_report(result: dict[str, Any]) -> None:
    from rich.console import Console
    from rich.table import Table

    console = Console()
    verified = result.get("status") == "VERIFIED"
    table = Table(title="Output validity", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in result.items():
        if key in ("status", "details"):
            continue
        table.add_row(key, str(value))
    console.print(table)
    for detail in result.get("details", []):
        console.print(f"  [dim]{detail}[/dim]")
    if verified:
        console.print("[green]VERIFIED[/green]")
    else:
        console.print(f"[red]REJECT[/red] {result.get('error_code', '')}")


@click.command("verify")
@click.argument("bundle", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--category",
    type=click.Choice([c.value for c in OutputCategory]),
    default=None,
    help="Override the bundle's output category.",
)
@click.option(
    "--layout",
    "layout_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with machine layout overrides.",
)
@click.option("--json", "output_json", is_flag=True, help="Emit a JSON report.")
def verify_command(bundle: Path, category: Optional[str], layout_path: Optional[Path], output_json: bool) -> None:
    """Verify that a bundle's output is committed in its epoch hash."""
    try:
        layout = load_layout(layout_path)
    except LayoutError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_MALFORMED)

    selected = OutputCategory(category) if category else None
    exit_code, result = verify_bundle(bundle, category=selected, layout=layout)

    if output_json:
        click.echo(json.dumps(result, indent=2))
    else:
        _print_report(result)
    sys.exit(exit_code)
