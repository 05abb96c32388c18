"""Machine memory layout: drive sizes and slot offset arithmetic.

All sizes are log2 of a byte count. The canonical values match the machine
that produces the epoch trees; tests and tooling may build smaller layouts.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

from .errors import LayoutError

MACHINE_LOG2_SIZE = 64
WORD_LOG2_SIZE = 3
KECCAK_LOG2_SIZE = 5
EPOCH_VOUCHER_LOG2_SIZE = 37
EPOCH_NOTICE_LOG2_SIZE = 37
VOUCHER_METADATA_LOG2_SIZE = 21
NOTICE_METADATA_LOG2_SIZE = 21

ENV_PREFIX = "EPOCHPROOF_"


@dataclass(frozen=True)
class MachineLayout:
    word_log2_size: int = WORD_LOG2_SIZE
    keccak_log2_size: int = KECCAK_LOG2_SIZE
    epoch_voucher_log2_size: int = EPOCH_VOUCHER_LOG2_SIZE
    epoch_notice_log2_size: int = EPOCH_NOTICE_LOG2_SIZE
    voucher_metadata_log2_size: int = VOUCHER_METADATA_LOG2_SIZE
    notice_metadata_log2_size: int = NOTICE_METADATA_LOG2_SIZE

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise LayoutError(f"{f.name} must be an integer, got {value!r}")
        # a slot holds exactly one 32-byte Keccak digest
        if self.keccak_log2_size != KECCAK_LOG2_SIZE:
            raise LayoutError(f"keccak_log2_size must be {KECCAK_LOG2_SIZE}")
        if not WORD_LOG2_SIZE <= self.word_log2_size <= self.keccak_log2_size:
            raise LayoutError(
                f"word_log2_size must be in [{WORD_LOG2_SIZE}, {self.keccak_log2_size}]"
            )
        for name in (
            "epoch_voucher_log2_size",
            "epoch_notice_log2_size",
            "voucher_metadata_log2_size",
            "notice_metadata_log2_size",
        ):
            value = getattr(self, name)
            if value < self.keccak_log2_size or value > MACHINE_LOG2_SIZE:
                raise LayoutError(
                    f"{name}={value} outside [{self.keccak_log2_size}, {MACHINE_LOG2_SIZE}]"
                )

    @staticmethod
    def position(index: int, log2_size: int) -> int:
        """Byte offset of slot ``index`` when slots are ``2**log2_size`` bytes."""
        return index << log2_size

    @staticmethod
    def size_of(log2_size: int) -> int:
        return 1 << log2_size

    def slot_count(self, drive_log2_size: int) -> int:
        """Number of hash-sized slots in a drive."""
        return self.size_of(drive_log2_size - self.keccak_log2_size)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MachineLayout":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise LayoutError(f"unknown layout fields: {', '.join(unknown)}")
        try:
            values = {key: int(value) for key, value in data.items()}
        except (TypeError, ValueError) as exc:
            raise LayoutError(f"layout values must be integers: {exc}") from exc
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MachineLayout":
        """Canonical layout with ``EPOCHPROOF_<FIELD>`` overrides applied."""
        env = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is not None and raw.strip():
                overrides[f.name] = raw.strip()
        return cls.from_mapping(overrides)

    def as_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


CANONICAL_LAYOUT = MachineLayout()


__all__ = [
    "MACHINE_LOG2_SIZE",
    "WORD_LOG2_SIZE",
    "KECCAK_LOG2_SIZE",
    "EPOCH_VOUCHER_LOG2_SIZE",
    "EPOCH_NOTICE_LOG2_SIZE",
    "VOUCHER_METADATA_LOG2_SIZE",
    "NOTICE_METADATA_LOG2_SIZE",
    "MachineLayout",
    "CANONICAL_LAYOUT",
]
