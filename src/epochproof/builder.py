"""Producer side: commit an epoch's outputs and emit validity proofs."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .layout import CANONICAL_LAYOUT, MachineLayout
from .merkle import HASH_SIZE, DriveTree
from .proof import OutputCategory, OutputValidityProof
from .validation import compute_epoch_hash, output_hash_root

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputOutputs:
    """Raw outputs emitted while processing one input, in emission order."""

    vouchers: Sequence[bytes] = field(default_factory=tuple)
    notices: Sequence[bytes] = field(default_factory=tuple)

    def outputs(self, category: OutputCategory) -> Sequence[bytes]:
        return self.vouchers if category is OutputCategory.VOUCHER else self.notices


class EpochCommitment:
    """Metadata and epoch drives for every input of one epoch."""

    def __init__(
        self,
        inputs: Sequence[InputOutputs],
        machine_state_hash: bytes,
        layout: MachineLayout = CANONICAL_LAYOUT,
    ) -> None:
        if len(machine_state_hash) != HASH_SIZE:
            raise ValueError("machine_state_hash must be 32 bytes")
        self.layout = layout
        self.inputs = list(inputs)
        self.machine_state_hash = bytes(machine_state_hash)
        self.metadata: Dict[OutputCategory, List[DriveTree]] = {}
        self.epoch_trees: Dict[OutputCategory, DriveTree] = {}
        for category in OutputCategory:
            self._commit_category(category)
        self.epoch_hash = compute_epoch_hash(
            self.epoch_trees[OutputCategory.VOUCHER].root,
            self.epoch_trees[OutputCategory.NOTICE].root,
            self.machine_state_hash,
        )
        LOGGER.info(
            "committed epoch of %d inputs (%d vouchers, %d notices): %s",
            len(self.inputs),
            sum(len(item.vouchers) for item in self.inputs),
            sum(len(item.notices) for item in self.inputs),
            self.epoch_hash.hex(),
        )

    def _commit_category(self, category: OutputCategory) -> None:
        layout = self.layout
        epoch_size = category.epoch_log2_size(layout)
        metadata_size = category.metadata_log2_size(layout)
        if len(self.inputs) > layout.slot_count(epoch_size):
            raise ValueError(f"{len(self.inputs)} inputs do not fit the {category.value} epoch drive")
        trees: List[DriveTree] = []
        for input_index, item in enumerate(self.inputs):
            outputs = item.outputs(category)
            if len(outputs) > layout.slot_count(metadata_size):
                raise ValueError(
                    f"input {input_index} has {len(outputs)} {category.value}s, "
                    f"more than the metadata drive holds"
                )
            leaves = {j: output_hash_root(output, layout) for j, output in enumerate(outputs)}
            trees.append(self._drive(leaves, metadata_size))
        self.metadata[category] = trees
        self.epoch_trees[category] = self._drive(
            {i: tree.root for i, tree in enumerate(trees)}, epoch_size
        )

    def _drive(self, leaves: Dict[int, bytes], drive_log2_size: int) -> DriveTree:
        return DriveTree(
            leaves,
            leaf_log2_size=self.layout.keccak_log2_size,
            drive_log2_size=drive_log2_size,
            word_log2_size=self.layout.word_log2_size,
        )

    def root(self, category: OutputCategory) -> bytes:
        return self.epoch_trees[category].root

    def output(self, category: OutputCategory, input_index: int, output_index: int) -> bytes:
        return bytes(self.inputs[input_index].outputs(category)[output_index])

    def proof(self, category: OutputCategory, input_index: int, output_index: int) -> OutputValidityProof:
        if not 0 <= input_index < len(self.inputs):
            raise IndexError(f"input {input_index} not in epoch")
        outputs = self.inputs[input_index].outputs(category)
        if not 0 <= output_index < len(outputs):
            raise IndexError(f"input {input_index} has no {category.value} {output_index}")
        metadata = self.metadata[category][input_index]
        return OutputValidityProof(
            epoch_input_index=input_index,
            output_index=output_index,
            output_hashes_root_hash=metadata.root,
            vouchers_epoch_root_hash=self.root(OutputCategory.VOUCHER),
            notices_epoch_root_hash=self.root(OutputCategory.NOTICE),
            machine_state_hash=self.machine_state_hash,
            keccak_in_hashes_siblings=tuple(metadata.prove(output_index)),
            output_hashes_in_epoch_siblings=tuple(self.epoch_trees[category].prove(input_index)),
        )


def build_epoch(
    inputs: Sequence[InputOutputs],
    machine_state_hash: bytes,
    layout: MachineLayout = CANONICAL_LAYOUT,
) -> EpochCommitment:
    return EpochCommitment(inputs, machine_state_hash, layout)


__all__ = ["InputOutputs", "EpochCommitment", "build_epoch"]
