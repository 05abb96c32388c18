"""Pytest configuration and fixtures for epochproof tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT / "src"))

from epochproof.builder import InputOutputs, build_epoch  # noqa: E402
from epochproof.layout import MachineLayout  # noqa: E402

STATE_HASH = bytes(range(32))


@pytest.fixture
def small_layout() -> MachineLayout:
    """Shallow drives: 16 voucher inputs, 8 notice inputs, 8 vouchers and 4 notices per input."""
    return MachineLayout(
        epoch_voucher_log2_size=9,
        epoch_notice_log2_size=8,
        voucher_metadata_log2_size=8,
        notice_metadata_log2_size=7,
    )


@pytest.fixture
def epoch_inputs() -> list[InputOutputs]:
    return [
        InputOutputs(vouchers=[b"transfer:alice:10", b"transfer:bob:7"], notices=[b"hello"]),
        InputOutputs(vouchers=[], notices=[b"n-1-0", b"n-1-1", b"n-1-2"]),
        InputOutputs(vouchers=[b"\x00" * 64, b"", b"mint:carol:1"], notices=[]),
    ]


@pytest.fixture
def small_epoch(small_layout, epoch_inputs):
    return build_epoch(epoch_inputs, STATE_HASH, small_layout)
