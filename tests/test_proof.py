from __future__ import annotations

import pytest

from epochproof.errors import MalformedProof
from epochproof.proof import EpochInitialState, OutputCategory, OutputValidityProof

H = b"\x11" * 32


def _proof(**overrides) -> OutputValidityProof:
    fields = dict(
        epoch_input_index=0,
        output_index=0,
        output_hashes_root_hash=H,
        vouchers_epoch_root_hash=b"\x22" * 32,
        notices_epoch_root_hash=b"\x33" * 32,
        machine_state_hash=H,
    )
    fields.update(overrides)
    return OutputValidityProof(**fields)


def test_proof_normalises_sequences() -> None:
    proof = _proof(keccak_in_hashes_siblings=[bytearray(H)], output_hashes_in_epoch_siblings=[H, H])
    assert proof.keccak_in_hashes_siblings == (H,)
    assert isinstance(proof.keccak_in_hashes_siblings[0], bytes)
    assert len(proof.output_hashes_in_epoch_siblings) == 2


def test_category_selects_root() -> None:
    proof = _proof()
    assert proof.epoch_root_hash(OutputCategory.VOUCHER) == b"\x22" * 32
    assert proof.epoch_root_hash(OutputCategory.NOTICE) == b"\x33" * 32


@pytest.mark.parametrize(
    "overrides",
    [
        {"epoch_input_index": -1},
        {"output_index": 1 << 64},
        {"output_index": 1.0},
        {"machine_state_hash": b"\x00" * 31},
        {"vouchers_epoch_root_hash": "00" * 32},
        {"keccak_in_hashes_siblings": [b"\x00" * 33]},
    ],
)
def test_malformed_fields_are_rejected(overrides) -> None:
    with pytest.raises(MalformedProof):
        _proof(**overrides)


def test_proof_is_immutable() -> None:
    proof = _proof()
    with pytest.raises(AttributeError):
        proof.output_index = 3  # type: ignore[misc]


def test_epoch_initial_state() -> None:
    state = EpochInitialState(dapp_contract_address=b"\xab" * 20, epoch_number=7)
    assert state.address_hex == "0x" + "ab" * 20
    with pytest.raises(ValueError):
        EpochInitialState(dapp_contract_address=b"\xab" * 19, epoch_number=7)
    with pytest.raises(ValueError):
        EpochInitialState(dapp_contract_address=b"\xab" * 20, epoch_number=-1)
