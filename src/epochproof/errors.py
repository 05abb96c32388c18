"""Verification failures raised while checking output validity proofs.

Every failure means "the claim is false"; none of them are transient. Each
class carries a stable ``code`` so reports and exit codes do not depend on
exception messages.
"""
from __future__ import annotations

E101_COMMITMENT_MISMATCH = "E101_COMMITMENT_MISMATCH"
E102_OUTPUTS_ROOT_MISMATCH = "E102_OUTPUTS_ROOT_MISMATCH"
E103_OUTPUT_HASHES_ROOT_MISMATCH = "E103_OUTPUT_HASHES_ROOT_MISMATCH"
E110_MALFORMED_PROOF = "E110_MALFORMED_PROOF"


class LayoutError(ValueError):
    """Raised when a machine layout configuration is inconsistent."""


class ProofValidationError(RuntimeError):
    """Base class for every verification failure."""

    code = "E100_PROOF_INVALID"


class CommitmentMismatch(ProofValidationError):
    """Recomputed epoch hash disagrees with the trusted epoch hash."""

    code = E101_COMMITMENT_MISMATCH


class InclusionProofInvalid(ProofValidationError):
    """A drive inclusion path does not lead to the expected root."""

    level = "unknown"

    def __init__(self, message: str, *, computed: bytes | None = None, expected: bytes | None = None) -> None:
        super().__init__(message)
        self.computed = computed
        self.expected = expected


class OutputsRootMismatch(InclusionProofInvalid):
    """The per-input metadata root is not in the category's epoch root."""

    code = E102_OUTPUTS_ROOT_MISMATCH
    level = "epoch"


class OutputHashesRootMismatch(InclusionProofInvalid):
    """The output's hash is not in the per-input metadata root."""

    code = E103_OUTPUT_HASHES_ROOT_MISMATCH
    level = "metadata"


class MalformedProof(ProofValidationError):
    """Proof shape is inconsistent with the configured tree depths."""

    code = E110_MALFORMED_PROOF


__all__ = [
    "E101_COMMITMENT_MISMATCH",
    "E102_OUTPUTS_ROOT_MISMATCH",
    "E103_OUTPUT_HASHES_ROOT_MISMATCH",
    "E110_MALFORMED_PROOF",
    "LayoutError",
    "ProofValidationError",
    "CommitmentMismatch",
    "InclusionProofInvalid",
    "OutputsRootMismatch",
    "OutputHashesRootMismatch",
    "MalformedProof",
]
