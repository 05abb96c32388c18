"""Pydantic models for the JSON documents the command line tool reads and writes."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..builder import EpochCommitment, InputOutputs
from ..proof import EpochInitialState, OutputCategory, OutputValidityProof


def parse_hex(value: str) -> bytes:
    if not isinstance(value, str):
        raise ValueError("expected a hex string")
    text = value[2:] if value[:2] in ("0x", "0X") else value
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"invalid hex string: {value!r}") from exc


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def _hash_hex(value: str) -> str:
    if len(parse_hex(value)) != 32:
        raise ValueError("hash must be 32 bytes")
    return value


class EpochRef(BaseModel):
    """Application and epoch a bundle belongs to."""

    dapp_contract_address: str
    epoch_number: int = Field(ge=0)

    @field_validator("dapp_contract_address")
    @classmethod
    def _address(cls, value: str) -> str:
        if len(parse_hex(value)) != 20:
            raise ValueError("address must be 20 bytes")
        return value

    def to_state(self) -> EpochInitialState:
        return EpochInitialState(
            dapp_contract_address=parse_hex(self.dapp_contract_address),
            epoch_number=self.epoch_number,
        )


class ProofModel(BaseModel):
    epoch_input_index: int = Field(ge=0, lt=1 << 64)
    output_index: int = Field(ge=0, lt=1 << 64)
    output_hashes_root_hash: str
    vouchers_epoch_root_hash: str
    notices_epoch_root_hash: str
    machine_state_hash: str
    keccak_in_hashes_siblings: List[str] = Field(default_factory=list)
    output_hashes_in_epoch_siblings: List[str] = Field(default_factory=list)

    @field_validator(
        "output_hashes_root_hash",
        "vouchers_epoch_root_hash",
        "notices_epoch_root_hash",
        "machine_state_hash",
    )
    @classmethod
    def _check_hashes(cls, value: str) -> str:
        return _hash_hex(value)

    @field_validator("keccak_in_hashes_siblings", "output_hashes_in_epoch_siblings")
    @classmethod
    def _check_siblings(cls, values: List[str]) -> List[str]:
        return [_hash_hex(value) for value in values]

    def to_proof(self) -> OutputValidityProof:
        return OutputValidityProof(
            epoch_input_index=self.epoch_input_index,
            output_index=self.output_index,
            output_hashes_root_hash=parse_hex(self.output_hashes_root_hash),
            vouchers_epoch_root_hash=parse_hex(self.vouchers_epoch_root_hash),
            notices_epoch_root_hash=parse_hex(self.notices_epoch_root_hash),
            machine_state_hash=parse_hex(self.machine_state_hash),
            keccak_in_hashes_siblings=tuple(parse_hex(s) for s in self.keccak_in_hashes_siblings),
            output_hashes_in_epoch_siblings=tuple(parse_hex(s) for s in self.output_hashes_in_epoch_siblings),
        )

    @classmethod
    def from_proof(cls, proof: OutputValidityProof) -> "ProofModel":
        return cls(
            epoch_input_index=proof.epoch_input_index,
            output_index=proof.output_index,
            output_hashes_root_hash=to_hex(proof.output_hashes_root_hash),
            vouchers_epoch_root_hash=to_hex(proof.vouchers_epoch_root_hash),
            notices_epoch_root_hash=to_hex(proof.notices_epoch_root_hash),
            machine_state_hash=to_hex(proof.machine_state_hash),
            keccak_in_hashes_siblings=[to_hex(s) for s in proof.keccak_in_hashes_siblings],
            output_hashes_in_epoch_siblings=[to_hex(s) for s in proof.output_hashes_in_epoch_siblings],
        )


class ProofBundle(BaseModel):
    """A claimed output, its proof and the epoch hash it is checked against."""

    category: OutputCategory
    epoch_hash: str
    output: str
    proof: ProofModel
    epoch: Optional[EpochRef] = None

    @field_validator("epoch_hash")
    @classmethod
    def _epoch_hash(cls, value: str) -> str:
        return _hash_hex(value)

    @field_validator("output")
    @classmethod
    def _output(cls, value: str) -> str:
        parse_hex(value)
        return value


class InputModel(BaseModel):
    vouchers: List[str] = Field(default_factory=list)
    notices: List[str] = Field(default_factory=list)

    @field_validator("vouchers", "notices")
    @classmethod
    def _outputs(cls, values: List[str]) -> List[str]:
        for value in values:
            parse_hex(value)
        return values

    def to_outputs(self) -> InputOutputs:
        return InputOutputs(
            vouchers=tuple(parse_hex(v) for v in self.vouchers),
            notices=tuple(parse_hex(n) for n in self.notices),
        )


class EpochOutputsDocument(BaseModel):
    """Raw outputs of one epoch, grouped by input."""

    machine_state_hash: str
    inputs: List[InputModel] = Field(default_factory=list)
    epoch: Optional[EpochRef] = None

    @field_validator("machine_state_hash")
    @classmethod
    def _state(cls, value: str) -> str:
        return _hash_hex(value)


def bundles_for_epoch(commitment: EpochCommitment, epoch: Optional[EpochRef] = None) -> List[ProofBundle]:
    """One bundle per output of ``commitment``, vouchers first within each input."""
    bundles: List[ProofBundle] = []
    for input_index, item in enumerate(commitment.inputs):
        for category in OutputCategory:
            for output_index, output in enumerate(item.outputs(category)):
                bundles.append(
                    ProofBundle(
                        category=category,
                        epoch_hash=to_hex(commitment.epoch_hash),
                        output=to_hex(bytes(output)),
                        proof=ProofModel.from_proof(commitment.proof(category, input_index, output_index)),
                        epoch=epoch,
                    )
                )
    return bundles


__all__ = [
    "parse_hex",
    "to_hex",
    "EpochRef",
    "ProofModel",
    "ProofBundle",
    "InputModel",
    "EpochOutputsDocument",
    "bundles_for_epoch",
]
