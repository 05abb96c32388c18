"""Proof data structures handed to the output validator."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Tuple

from .errors import MalformedProof
from .layout import MachineLayout
from .merkle import HASH_SIZE

UINT64_LIMIT = 1 << 64
UINT256_LIMIT = 1 << 256
ADDRESS_SIZE = 20


class OutputCategory(enum.Enum):
    VOUCHER = "voucher"
    NOTICE = "notice"

    def epoch_log2_size(self, layout: MachineLayout) -> int:
        if self is OutputCategory.VOUCHER:
            return layout.epoch_voucher_log2_size
        return layout.epoch_notice_log2_size

    def metadata_log2_size(self, layout: MachineLayout) -> int:
        if self is OutputCategory.VOUCHER:
            return layout.voucher_metadata_log2_size
        return layout.notice_metadata_log2_size


def _check_index(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedProof(f"{name} must be an integer")
    if value < 0 or value >= UINT64_LIMIT:
        raise MalformedProof(f"{name}={value} is not a uint64")


def _check_hash(name: str, value: bytes) -> None:
    if not isinstance(value, (bytes, bytearray)) or len(value) != HASH_SIZE:
        raise MalformedProof(f"{name} must be {HASH_SIZE} bytes")


@dataclass(frozen=True)
class OutputValidityProof:
    """Everything needed to tie one output to an epoch hash.

    ``keccak_in_hashes_siblings`` is the path of the output hash inside
    ``output_hashes_root_hash``; ``output_hashes_in_epoch_siblings`` is the path
    of ``output_hashes_root_hash`` inside the voucher or notice epoch root.
    """

    epoch_input_index: int
    output_index: int
    output_hashes_root_hash: bytes
    vouchers_epoch_root_hash: bytes
    notices_epoch_root_hash: bytes
    machine_state_hash: bytes
    keccak_in_hashes_siblings: Tuple[bytes, ...] = field(default_factory=tuple)
    output_hashes_in_epoch_siblings: Tuple[bytes, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        _check_index("epoch_input_index", self.epoch_input_index)
        _check_index("output_index", self.output_index)
        for name in (
            "output_hashes_root_hash",
            "vouchers_epoch_root_hash",
            "notices_epoch_root_hash",
            "machine_state_hash",
        ):
            _check_hash(name, getattr(self, name))
            object.__setattr__(self, name, bytes(getattr(self, name)))
        for name in ("keccak_in_hashes_siblings", "output_hashes_in_epoch_siblings"):
            siblings = tuple(getattr(self, name))
            for i, sibling in enumerate(siblings):
                _check_hash(f"{name}[{i}]", sibling)
            object.__setattr__(self, name, tuple(bytes(s) for s in siblings))

    def epoch_root_hash(self, category: OutputCategory) -> bytes:
        if category is OutputCategory.VOUCHER:
            return self.vouchers_epoch_root_hash
        return self.notices_epoch_root_hash


@dataclass(frozen=True)
class EpochInitialState:
    """Which application's epoch a proof refers to."""

    dapp_contract_address: bytes
    epoch_number: int

    def __post_init__(self) -> None:
        if not isinstance(self.dapp_contract_address, (bytes, bytearray)) or len(self.dapp_contract_address) != ADDRESS_SIZE:
            raise ValueError(f"dapp_contract_address must be {ADDRESS_SIZE} bytes")
        if not isinstance(self.epoch_number, int) or not 0 <= self.epoch_number < UINT256_LIMIT:
            raise ValueError("epoch_number must be a uint256")
        object.__setattr__(self, "dapp_contract_address", bytes(self.dapp_contract_address))

    @property
    def address_hex(self) -> str:
        return "0x" + self.dapp_contract_address.hex()


__all__ = [
    "OutputCategory",
    "OutputValidityProof",
    "EpochInitialState",
]
