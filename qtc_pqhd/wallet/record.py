# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/wallet/record.py

WalletRecord: the only artifact a run persists or emits.

JSON layout (key order is part of the export format):
    address, method, witness_version, master_entropy_b64,
    kyber_public_b64, kyber_private_b64, dilithium_public_b64,
    dilithium_private_b64, kyber_shared_secret_b64, combined_input_b64,
    algorithm, quantum_safe, version, description
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Mapping

from qtc_pqhd.protocol.config import ALGORITHM, DESCRIPTION, FORMAT_VERSION, METHOD
from qtc_pqhd.protocol.errors import RecordVerificationError

_BINARY_FIELDS = (
    "master_entropy",
    "kyber_public",
    "kyber_private",
    "dilithium_public",
    "dilithium_private",
    "kyber_shared_secret",
    "combined_input",
)


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def _unb64(name: str, s: Any) -> bytes:
    if not isinstance(s, str):
        raise RecordVerificationError(f"{name}_b64 missing or not a string")
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise RecordVerificationError(f"{name}_b64 is not valid base64") from e


@dataclass(frozen=True)
class WalletRecord:
    address: str
    witness_version: int
    master_entropy: bytes
    kyber_public: bytes
    kyber_private: bytes
    dilithium_public: bytes
    dilithium_private: bytes
    kyber_shared_secret: bytes
    combined_input: bytes

    method: str = METHOD
    algorithm: str = ALGORITHM
    quantum_safe: bool = True
    version: str = FORMAT_VERSION
    description: str = DESCRIPTION

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "method": self.method,
            "witness_version": self.witness_version,
            "master_entropy_b64": _b64(self.master_entropy),
            "kyber_public_b64": _b64(self.kyber_public),
            "kyber_private_b64": _b64(self.kyber_private),
            "dilithium_public_b64": _b64(self.dilithium_public),
            "dilithium_private_b64": _b64(self.dilithium_private),
            "kyber_shared_secret_b64": _b64(self.kyber_shared_secret),
            "combined_input_b64": _b64(self.combined_input),
            "algorithm": self.algorithm,
            "quantum_safe": self.quantum_safe,
            "version": self.version,
            "description": self.description,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "WalletRecord":
        if not isinstance(d, Mapping):
            raise RecordVerificationError("wallet record must be a JSON object")

        address = d.get("address")
        if not isinstance(address, str) or not address:
            raise RecordVerificationError("address missing")
        wv = d.get("witness_version")
        if isinstance(wv, bool) or not isinstance(wv, int):
            raise RecordVerificationError("witness_version missing or not an int")

        blobs = {name: _unb64(name, d.get(f"{name}_b64")) for name in _BINARY_FIELDS}

        return WalletRecord(
            address=address,
            witness_version=wv,
            method=str(d.get("method", METHOD)),
            algorithm=str(d.get("algorithm", ALGORITHM)),
            quantum_safe=bool(d.get("quantum_safe", True)),
            version=str(d.get("version", FORMAT_VERSION)),
            description=str(d.get("description", DESCRIPTION)),
            **blobs,
        )

    @staticmethod
    def from_json(s: str) -> "WalletRecord":
        try:
            d = json.loads(s)
        except json.JSONDecodeError as e:
            raise RecordVerificationError(f"wallet file is not valid JSON: {e}") from e
        return WalletRecord.from_dict(d)
