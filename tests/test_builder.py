from __future__ import annotations

import pytest

from epochproof.builder import InputOutputs, build_epoch
from epochproof.layout import MachineLayout
from epochproof.merkle import pristine_hash, root_after_replacement
from epochproof.proof import OutputCategory
from epochproof.validation import compute_epoch_hash, output_hash_root

STATE_HASH = bytes(range(32))


def test_epoch_hash_binds_both_category_roots(small_epoch) -> None:
    expected = compute_epoch_hash(
        small_epoch.root(OutputCategory.VOUCHER),
        small_epoch.root(OutputCategory.NOTICE),
        STATE_HASH,
    )
    assert small_epoch.epoch_hash == expected


def test_inputs_without_outputs_commit_pristine_metadata(small_epoch, small_layout) -> None:
    vouchers_of_second = small_epoch.metadata[OutputCategory.VOUCHER][1]
    assert vouchers_of_second.root == pristine_hash(small_layout.voucher_metadata_log2_size)
    notices_of_third = small_epoch.metadata[OutputCategory.NOTICE][2]
    assert notices_of_third.root == pristine_hash(small_layout.notice_metadata_log2_size)


def test_metadata_slots_hold_output_hash_roots(small_epoch, small_layout) -> None:
    tree = small_epoch.metadata[OutputCategory.VOUCHER][0]
    assert tree.leaf(1) == output_hash_root(b"transfer:bob:7", small_layout)


def test_proof_paths_lead_to_proof_roots(small_epoch, small_layout) -> None:
    proof = small_epoch.proof(OutputCategory.NOTICE, 1, 2)
    assert proof.epoch_input_index == 1
    assert proof.output_index == 2
    root = root_after_replacement(
        1 << small_layout.keccak_log2_size,
        small_layout.keccak_log2_size,
        small_layout.epoch_notice_log2_size,
        proof.output_hashes_root_hash,
        proof.output_hashes_in_epoch_siblings,
    )
    assert root == proof.notices_epoch_root_hash


def test_unknown_outputs_have_no_proof(small_epoch) -> None:
    with pytest.raises(IndexError):
        small_epoch.proof(OutputCategory.VOUCHER, 1, 0)
    with pytest.raises(IndexError):
        small_epoch.proof(OutputCategory.NOTICE, 3, 0)
    with pytest.raises(IndexError):
        small_epoch.proof(OutputCategory.NOTICE, -1, 0)


def test_capacity_is_enforced() -> None:
    tiny = MachineLayout(
        epoch_voucher_log2_size=5,
        epoch_notice_log2_size=5,
        voucher_metadata_log2_size=6,
        notice_metadata_log2_size=6,
    )
    with pytest.raises(ValueError):
        build_epoch([InputOutputs(), InputOutputs()], STATE_HASH, tiny)
    with pytest.raises(ValueError):
        build_epoch([InputOutputs(vouchers=[b"a", b"b", b"c"])], STATE_HASH, tiny)


def test_machine_state_hash_must_be_32_bytes() -> None:
    with pytest.raises(ValueError):
        build_epoch([], b"short")


def test_empty_epoch_has_pristine_roots() -> None:
    commitment = build_epoch([], STATE_HASH)
    assert commitment.root(OutputCategory.VOUCHER) == pristine_hash(37)
    assert commitment.root(OutputCategory.NOTICE) == pristine_hash(37)
