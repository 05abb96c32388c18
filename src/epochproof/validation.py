"""Output validation against a trusted epoch hash."""
from __future__ import annotations

import logging
from typing import Sequence, Type

from .errors import (
    CommitmentMismatch,
    InclusionProofInvalid,
    MalformedProof,
    OutputHashesRootMismatch,
    OutputsRootMismatch,
)
from .layout import CANONICAL_LAYOUT, MachineLayout
from .merkle import HASH_SIZE, keccak256, root_after_replacement, root_from_bytes
from .proof import OutputCategory, OutputValidityProof

LOGGER = logging.getLogger(__name__)


def compute_epoch_hash(vouchers_root: bytes, notices_root: bytes, machine_state_hash: bytes) -> bytes:
    return keccak256(vouchers_root, notices_root, machine_state_hash)


def check_epoch_hash(proof: OutputValidityProof, epoch_hash: bytes) -> None:
    """Raise ``CommitmentMismatch`` unless the proof's roots hash to ``epoch_hash``."""
    if not isinstance(epoch_hash, (bytes, bytearray, memoryview)) or len(epoch_hash) != HASH_SIZE:
        raise MalformedProof("epoch hash must be 32 bytes")
    computed = compute_epoch_hash(
        proof.vouchers_epoch_root_hash,
        proof.notices_epoch_root_hash,
        proof.machine_state_hash,
    )
    if computed != bytes(epoch_hash):
        LOGGER.debug("epoch hash mismatch: computed=%s expected=%s", computed.hex(), bytes(epoch_hash).hex())
        raise CommitmentMismatch("proof roots do not hash to the trusted epoch hash")


def output_hash_root(output: bytes, layout: MachineLayout = CANONICAL_LAYOUT) -> bytes:
    """Root of ``keccak256(output)`` stored as machine words in a hash-sized slot.

    Metadata drives are written word by word, so the output hash is itself
    split into words and summarised before it is compared at slot positions.
    """
    return root_from_bytes(
        keccak256(output),
        layout.word_log2_size,
        log2_size=layout.keccak_log2_size,
    )


def verify_drive_inclusion(
    *,
    index: int,
    replacement: bytes,
    drive_log2_size: int,
    siblings: Sequence[bytes],
    expected_root: bytes,
    layout: MachineLayout,
    error: Type[InclusionProofInvalid],
) -> None:
    """Check that ``replacement`` sits in slot ``index`` of a drive rooted at ``expected_root``."""
    depth = drive_log2_size - layout.keccak_log2_size
    if len(siblings) != depth:
        raise MalformedProof(f"{error.level} proof has {len(siblings)} siblings, drive depth is {depth}")
    if index >= layout.slot_count(drive_log2_size):
        LOGGER.debug("%s inclusion: slot %d outside drive 2**%d", error.level, index, drive_log2_size)
        raise error(f"slot {index} is outside the {error.level} drive")
    computed = root_after_replacement(
        layout.position(index, layout.keccak_log2_size),
        layout.keccak_log2_size,
        drive_log2_size,
        replacement,
        siblings,
    )
    if computed != expected_root:
        LOGGER.debug(
            "%s inclusion mismatch at slot %d: computed=%s expected=%s",
            error.level,
            index,
            computed.hex(),
            expected_root.hex(),
        )
        raise error(
            f"{error.level} inclusion proof for slot {index} does not match the expected root",
            computed=computed,
            expected=expected_root,
        )


def validate_output(
    category: OutputCategory,
    proof: OutputValidityProof,
    output: bytes,
    epoch_hash: bytes,
    layout: MachineLayout = CANONICAL_LAYOUT,
) -> None:
    """Raise unless ``output`` is output ``proof.output_index`` of input
    ``proof.epoch_input_index`` in the epoch committed by ``epoch_hash``.
    """
    if not isinstance(output, (bytes, bytearray, memoryview)):
        raise TypeError("output must be bytes-like")
    check_epoch_hash(proof, epoch_hash)

    verify_drive_inclusion(
        index=proof.epoch_input_index,
        replacement=proof.output_hashes_root_hash,
        drive_log2_size=category.epoch_log2_size(layout),
        siblings=proof.output_hashes_in_epoch_siblings,
        expected_root=proof.epoch_root_hash(category),
        layout=layout,
        error=OutputsRootMismatch,
    )

    verify_drive_inclusion(
        index=proof.output_index,
        replacement=output_hash_root(bytes(output), layout),
        drive_log2_size=category.metadata_log2_size(layout),
        siblings=proof.keccak_in_hashes_siblings,
        expected_root=proof.output_hashes_root_hash,
        layout=layout,
        error=OutputHashesRootMismatch,
    )
    LOGGER.debug(
        "%s %d of input %d verified", category.value, proof.output_index, proof.epoch_input_index
    )


def validate_voucher(
    proof: OutputValidityProof,
    voucher: bytes,
    epoch_hash: bytes,
    layout: MachineLayout = CANONICAL_LAYOUT,
) -> None:
    validate_output(OutputCategory.VOUCHER, proof, voucher, epoch_hash, layout)


def validate_notice(
    proof: OutputValidityProof,
    notice: bytes,
    epoch_hash: bytes,
    layout: MachineLayout = CANONICAL_LAYOUT,
) -> None:
    validate_output(OutputCategory.NOTICE, proof, notice, epoch_hash, layout)


__all__ = [
    "compute_epoch_hash",
    "check_epoch_hash",
    "output_hash_root",
    "verify_drive_inclusion",
    "validate_output",
    "validate_voucher",
    "validate_notice",
]
