from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from epochproof.cli import cli
from epochproof.merkle import keccak256
from epochproof.validation import compute_epoch_hash

LAYOUT = {
    "epoch_voucher_log2_size": 9,
    "epoch_notice_log2_size": 9,
    "voucher_metadata_log2_size": 8,
    "notice_metadata_log2_size": 8,
}


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "layout.json").write_text(json.dumps(LAYOUT))
    outputs = {
        "machine_state_hash": "0x" + "42" * 32,
        "epoch": {"dapp_contract_address": "0x" + "ab" * 20, "epoch_number": 3},
        "inputs": [
            {"vouchers": ["0x" + b"pay:alice:5".hex()], "notices": ["0x" + b"ok".hex()]},
            {"vouchers": [], "notices": ["0x" + b"second".hex()]},
        ],
    }
    (tmp_path / "outputs.json").write_text(json.dumps(outputs))
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "build",
            str(tmp_path / "outputs.json"),
            "--out",
            str(tmp_path / "bundles"),
            "--layout",
            str(tmp_path / "layout.json"),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "wrote 3 bundle(s)" in result.output
    return tmp_path


def _verify(workspace: Path, bundle: Path, *extra: str):
    runner = CliRunner()
    return runner.invoke(
        cli,
        ["verify", str(bundle), "--layout", str(workspace / "layout.json"), "--json", *extra],
    )


def _edit_bundle(workspace: Path, name: str, edit) -> Path:
    data = json.loads((workspace / "bundles" / name).read_text())
    edit(data)
    path = workspace / f"edited_{name}"
    path.write_text(json.dumps(data))
    return path


def test_build_writes_one_bundle_per_output(workspace: Path) -> None:
    names = sorted(p.name for p in (workspace / "bundles").iterdir())
    assert names == ["notice_0_0.json", "notice_1_0.json", "voucher_0_0.json"]


def test_verify_accepts_built_bundles(workspace: Path) -> None:
    for bundle in (workspace / "bundles").iterdir():
        result = _verify(workspace, bundle)
        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        assert report["status"] == "VERIFIED"
        assert report["epoch_number"] == 3


def test_verify_plain_report(workspace: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["verify", str(workspace / "bundles" / "voucher_0_0.json"), "--layout", str(workspace / "layout.json")],
    )
    assert result.exit_code == 0
    assert "VERIFIED" in result.output


def test_verify_reports_commitment_mismatch(workspace: Path) -> None:
    path = _edit_bundle(
        workspace, "voucher_0_0.json", lambda d: d["proof"].update(machine_state_hash="0x" + "43" * 32)
    )
    result = _verify(workspace, path)
    assert result.exit_code == 10
    assert json.loads(result.output)["error_code"] == "E101_COMMITMENT_MISMATCH"


def test_verify_reports_outputs_root_mismatch(workspace: Path) -> None:
    def edit(data):
        data["proof"]["output_hashes_in_epoch_siblings"][0] = "0x" + "00" * 32

    result = _verify(workspace, _edit_bundle(workspace, "notice_1_0.json", edit))
    assert result.exit_code == 11


def test_verify_reports_output_hashes_root_mismatch(workspace: Path) -> None:
    path = _edit_bundle(workspace, "voucher_0_0.json", lambda d: d.update(output="0x" + b"pay:alice:500".hex()))
    result = _verify(workspace, path)
    assert result.exit_code == 12
    report = json.loads(result.output)
    assert report["error_code"] == "E103_OUTPUT_HASHES_ROOT_MISMATCH"


def test_category_override_rejects_notice_as_voucher(workspace: Path) -> None:
    result = _verify(workspace, workspace / "bundles" / "notice_1_0.json", "--category", "voucher")
    assert result.exit_code == 11


def test_malformed_bundle(workspace: Path) -> None:
    bad = workspace / "bad.json"
    bad.write_text(json.dumps({"category": "voucher", "epoch_hash": "0x1234"}))
    result = _verify(workspace, bad)
    assert result.exit_code == 20
    assert json.loads(result.output)["error_code"] == "E110_MALFORMED_PROOF"

    bad.write_text("not json")
    assert _verify(workspace, bad).exit_code == 20


def test_short_sibling_list_is_malformed(workspace: Path) -> None:
    path = _edit_bundle(workspace, "voucher_0_0.json", lambda d: d["proof"]["keccak_in_hashes_siblings"].pop())
    assert _verify(workspace, path).exit_code == 20


def test_invalid_layout_file(workspace: Path) -> None:
    layout = workspace / "bad_layout.json"
    layout.write_text(json.dumps({"keccak_log2_size": 1}))
    runner = CliRunner()
    result = runner.invoke(cli, ["verify", str(workspace / "bundles" / "voucher_0_0.json"), "--layout", str(layout)])
    assert result.exit_code == 20


def test_replay_key_encode_and_decode() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["replay-key", "1", "2"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == str((1 << 128) | 2)
    assert lines[1] == "0x" + format((1 << 128) | 2, "064x")

    result = runner.invoke(cli, ["replay-key", "--decode", lines[1]])
    assert result.exit_code == 0
    assert "output_index: 1" in result.output
    assert "input_index:  2" in result.output


def test_replay_key_requires_both_indices() -> None:
    result = CliRunner().invoke(cli, ["replay-key", "1"])
    assert result.exit_code != 0


def test_epoch_hash_command() -> None:
    roots = [keccak256(tag) for tag in (b"v", b"n", b"s")]
    result = CliRunner().invoke(cli, ["epoch-hash", *("0x" + r.hex() for r in roots)])
    assert result.exit_code == 0
    assert result.output.strip() == "0x" + compute_epoch_hash(*roots).hex()

    result = CliRunner().invoke(cli, ["epoch-hash", "0x00", "0x00", "0x00"])
    assert result.exit_code != 0


def test_undecodable_bundle_is_malformed(workspace: Path) -> None:
    bad = workspace / "binary.json"
    bad.write_bytes(b"\xff\xfe\x00garbage")
    result = _verify(workspace, bad)
    assert result.exit_code == 20
    assert json.loads(result.output)["error_code"] == "E110_MALFORMED_PROOF"


def test_undecodable_layout_file(workspace: Path) -> None:
    layout = workspace / "binary_layout.json"
    layout.write_bytes(b"\xff\xfe\x00")
    runner = CliRunner()
    result = runner.invoke(cli, ["verify", str(workspace / "bundles" / "voucher_0_0.json"), "--layout", str(layout)])
    assert result.exit_code == 20


def test_build_rejects_undecodable_outputs(tmp_path: Path) -> None:
    outputs = tmp_path / "outputs.json"
    outputs.write_bytes(b"\xff\xfe\x00")
    result = CliRunner().invoke(cli, ["build", str(outputs), "--out", str(tmp_path / "bundles")])
    assert result.exit_code == 20
