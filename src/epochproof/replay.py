"""Replay-protection key for executed outputs.

The key packs an output index and an input index into one 256-bit integer.
It is injective only while both indices stay below ``2**128``; callers must
enforce that bound, it is not checked here.
"""
from __future__ import annotations

from typing import Tuple

INDEX_BITS = 128
_LOW_MASK = (1 << INDEX_BITS) - 1


def encode_replay_key(output_index: int, input_index: int) -> int:
    return (output_index << INDEX_BITS) | input_index


def decode_replay_key(key: int) -> Tuple[int, int]:
    """Return ``(output_index, input_index)`` packed by ``encode_replay_key``."""
    return key >> INDEX_BITS, key & _LOW_MASK


__all__ = ["INDEX_BITS", "encode_replay_key", "decode_replay_key"]
