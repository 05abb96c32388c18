"""Stable exit codes for the command line tool."""
from __future__ import annotations

from ..errors import (
    E101_COMMITMENT_MISMATCH,
    E102_OUTPUTS_ROOT_MISMATCH,
    E103_OUTPUT_HASHES_ROOT_MISMATCH,
    E110_MALFORMED_PROOF,
)

EXIT_VERIFIED = 0
EXIT_COMMITMENT_MISMATCH = 10
EXIT_OUTPUTS_ROOT_MISMATCH = 11
EXIT_OUTPUT_HASHES_ROOT_MISMATCH = 12
EXIT_MALFORMED = 20

_ERROR_TO_EXIT = {
    E101_COMMITMENT_MISMATCH: EXIT_COMMITMENT_MISMATCH,
    E102_OUTPUTS_ROOT_MISMATCH: EXIT_OUTPUTS_ROOT_MISMATCH,
    E103_OUTPUT_HASHES_ROOT_MISMATCH: EXIT_OUTPUT_HASHES_ROOT_MISMATCH,
    E110_MALFORMED_PROOF: EXIT_MALFORMED,
}

_DESCRIPTIONS = {
    EXIT_VERIFIED: "Output verified",
    EXIT_COMMITMENT_MISMATCH: "Proof roots do not match the epoch hash",
    EXIT_OUTPUTS_ROOT_MISMATCH: "Input metadata root not in the epoch root",
    EXIT_OUTPUT_HASHES_ROOT_MISMATCH: "Output hash not in the input metadata root",
    EXIT_MALFORMED: "Malformed bundle or proof",
}


def error_to_exit_code(error_code: str) -> int:
    return _ERROR_TO_EXIT.get(error_code, EXIT_MALFORMED)


def exit_code_description(exit_code: int) -> str:
    return _DESCRIPTIONS.get(exit_code, "Unknown")
