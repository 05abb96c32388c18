"""Keccak Merkle primitives over fixed-size machine drives.

A drive is a ``2**log2_size`` byte region whose tree leaves are
``2**word_log2_size`` byte words hashed with Keccak-256. Interior nodes hash
the concatenation of their two children. Regions that were never written are
represented by pristine (all-zero) subtree hashes.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Mapping, Sequence

from Crypto.Hash import keccak

from .errors import MalformedProof
from .layout import MACHINE_LOG2_SIZE, WORD_LOG2_SIZE

HASH_SIZE = 32


def keccak256(*chunks: bytes) -> bytes:
    """Keccak-256 (Ethereum padding, not NIST SHA3) of the concatenated chunks."""
    h = keccak.new(digest_bits=256)
    for chunk in chunks:
        h.update(chunk)
    return h.digest()


def _hash_pair(left: bytes, right: bytes) -> bytes:
    return keccak256(left, right)


@lru_cache(maxsize=None)
def pristine_hash(log2_size: int, word_log2_size: int = WORD_LOG2_SIZE) -> bytes:
    """Root hash of an all-zero region of ``2**log2_size`` bytes."""
    if log2_size < word_log2_size:
        raise ValueError(f"log2_size {log2_size} smaller than word size {word_log2_size}")
    if log2_size == word_log2_size:
        return keccak256(bytes(1 << word_log2_size))
    child = pristine_hash(log2_size - 1, word_log2_size)
    return _hash_pair(child, child)


def root_after_replacement(
    position: int,
    replacement_log2_size: int,
    drive_log2_size: int,
    replacement: bytes,
    siblings: Sequence[bytes],
) -> bytes:
    """Root of a drive whose subtree at ``position`` hashes to ``replacement``.

    ``siblings`` lists the sibling of each node on the path, starting next to
    the replaced subtree and ending below the root.
    """
    if not (WORD_LOG2_SIZE <= replacement_log2_size <= drive_log2_size <= MACHINE_LOG2_SIZE):
        raise MalformedProof(
            f"require {WORD_LOG2_SIZE} <= replacement ({replacement_log2_size}) "
            f"<= drive ({drive_log2_size}) <= {MACHINE_LOG2_SIZE}"
        )
    if position < 0:
        raise MalformedProof("position must be non-negative")
    size = 1 << replacement_log2_size
    if position & (size - 1):
        raise MalformedProof(f"position {position} is not aligned to {size} bytes")
    depth = drive_log2_size - replacement_log2_size
    if len(siblings) != depth:
        raise MalformedProof(f"proof has {len(siblings)} siblings, drive depth is {depth}")
    if len(replacement) != HASH_SIZE:
        raise MalformedProof("replacement hash must be 32 bytes")

    node = bytes(replacement)
    for i, sibling in enumerate(siblings):
        if len(sibling) != HASH_SIZE:
            raise MalformedProof(f"sibling {i} must be 32 bytes")
        if position & (size << i):
            node = _hash_pair(sibling, node)
        else:
            node = _hash_pair(node, sibling)
    return node


def root_from_bytes(
    data: bytes,
    leaf_log2_size: int = WORD_LOG2_SIZE,
    *,
    log2_size: int | None = None,
) -> bytes:
    """Merkle root of ``data`` split into ``2**leaf_log2_size`` byte leaves.

    The tree spans ``2**log2_size`` bytes; by default it is the smallest power
    of two holding ``data``. A trailing partial leaf is zero padded and the
    remainder of the tree is pristine.
    """
    data = bytes(data)
    word = 1 << leaf_log2_size
    if log2_size is None:
        words = max(1, -(-len(data) // word))
        log2_size = leaf_log2_size + (words - 1).bit_length()
    if not (WORD_LOG2_SIZE <= leaf_log2_size <= log2_size <= MACHINE_LOG2_SIZE):
        raise ValueError(f"invalid tree sizes: leaf={leaf_log2_size}, tree={log2_size}")
    if len(data) > (1 << log2_size):
        raise ValueError(f"{len(data)} bytes do not fit a tree of 2**{log2_size} bytes")
    if not data:
        return pristine_hash(log2_size, leaf_log2_size)

    level: List[bytes] = [
        keccak256(data[i : i + word].ljust(word, b"\x00")) for i in range(0, len(data), word)
    ]
    for depth in range(log2_size - leaf_log2_size):
        if len(level) % 2:
            level.append(pristine_hash(leaf_log2_size + depth, leaf_log2_size))
        level = [_hash_pair(level[i], level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


class DriveTree:
    """Sparse Merkle tree over the slots of a drive.

    Slots are ``2**leaf_log2_size`` bytes wide and each populated slot holds
    the hash of its subtree. Only populated paths are materialised; everything
    else resolves to pristine hashes.
    """

    def __init__(
        self,
        leaves: Mapping[int, bytes],
        *,
        leaf_log2_size: int,
        drive_log2_size: int,
        word_log2_size: int = WORD_LOG2_SIZE,
    ) -> None:
        if not (word_log2_size <= leaf_log2_size <= drive_log2_size <= MACHINE_LOG2_SIZE):
            raise ValueError(
                f"invalid drive sizes: word={word_log2_size}, leaf={leaf_log2_size}, drive={drive_log2_size}"
            )
        self.leaf_log2_size = leaf_log2_size
        self.drive_log2_size = drive_log2_size
        self.word_log2_size = word_log2_size
        self.depth = drive_log2_size - leaf_log2_size
        capacity = 1 << self.depth
        base: Dict[int, bytes] = {}
        for slot, value in leaves.items():
            if slot < 0 or slot >= capacity:
                raise ValueError(f"slot {slot} out of range (capacity {capacity})")
            if len(value) != HASH_SIZE:
                raise ValueError(f"slot {slot} hash must be 32 bytes")
            base[slot] = bytes(value)
        self._levels = self._build_levels(base)

    def _empty(self, depth: int) -> bytes:
        return pristine_hash(self.leaf_log2_size + depth, self.word_log2_size)

    def _build_levels(self, base: Dict[int, bytes]) -> List[Dict[int, bytes]]:
        levels = [base]
        current = base
        for depth in range(self.depth):
            empty = self._empty(depth)
            nxt: Dict[int, bytes] = {}
            for parent in sorted({idx // 2 for idx in current}):
                left = current.get(2 * parent, empty)
                right = current.get(2 * parent + 1, empty)
                nxt[parent] = _hash_pair(left, right)
            levels.append(nxt)
            current = nxt
        return levels

    @property
    def root(self) -> bytes:
        return self._levels[-1].get(0, self._empty(self.depth))

    def leaf(self, slot: int) -> bytes:
        return self._levels[0].get(slot, self._empty(0))

    def prove(self, slot: int) -> List[bytes]:
        """Sibling path for ``slot``, in the order ``root_after_replacement`` reads it."""
        if slot < 0 or slot >= (1 << self.depth):
            raise ValueError(f"slot {slot} out of range")
        proof: List[bytes] = []
        idx = slot
        for depth, level in enumerate(self._levels[:-1]):
            proof.append(level.get(idx ^ 1, self._empty(depth)))
            idx //= 2
        return proof


__all__ = [
    "HASH_SIZE",
    "keccak256",
    "pristine_hash",
    "root_after_replacement",
    "root_from_bytes",
    "DriveTree",
]
