"""epochproof - output validity proofs for rollup epochs.

Public API:
    from epochproof import validate_voucher, validate_notice, encode_replay_key

    validate_voucher(proof, voucher_bytes, epoch_hash)  # raises on failure
"""
from __future__ import annotations

from epochproof.builder import EpochCommitment, InputOutputs, build_epoch
from epochproof.errors import (
    CommitmentMismatch,
    InclusionProofInvalid,
    LayoutError,
    MalformedProof,
    OutputHashesRootMismatch,
    OutputsRootMismatch,
    ProofValidationError,
)
from epochproof.layout import CANONICAL_LAYOUT, MachineLayout
from epochproof.merkle import keccak256, root_after_replacement, root_from_bytes
from epochproof.proof import EpochInitialState, OutputCategory, OutputValidityProof
from epochproof.replay import decode_replay_key, encode_replay_key
from epochproof.validation import (
    compute_epoch_hash,
    validate_notice,
    validate_output,
    validate_voucher,
)

__version__ = "0.1.0"

__all__ = [
    # Validation
    "validate_output",
    "validate_voucher",
    "validate_notice",
    "compute_epoch_hash",
    # Data
    "OutputCategory",
    "OutputValidityProof",
    "EpochInitialState",
    "MachineLayout",
    "CANONICAL_LAYOUT",
    # Errors
    "ProofValidationError",
    "CommitmentMismatch",
    "InclusionProofInvalid",
    "OutputsRootMismatch",
    "OutputHashesRootMismatch",
    "MalformedProof",
    "LayoutError",
    # Replay protection
    "encode_replay_key",
    "decode_replay_key",
    # Merkle primitives and producer side
    "keccak256",
    "root_after_replacement",
    "root_from_bytes",
    "build_epoch",
    "EpochCommitment",
    "InputOutputs",
]
