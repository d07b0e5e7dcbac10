# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/crypto/sig_backends.py

Signature backends (keygen only; signing is out of scope here):
- ml-dsa-65 : dilithium-py (FIPS 204 / Dilithium3), imported lazily INSIDE the class.
              Fail-closed: missing package -> SigError, no stub fallback.
- toy_sig   : hash-based test double (NOT secure), only when explicitly selected.

keygen(seed) MUST be deterministic in seed; the PQ-HD chain relies on it.
"""

from __future__ import annotations

from dataclasses import dataclass

from qtc_pqhd.crypto.hashes import sha3_256, sha3_512
from qtc_pqhd.protocol.errors import SeedLengthError, SigError


@dataclass(frozen=True)
class SigKeyPair:
    public_key: bytes
    secret_key: bytes


class SigBackend:
    name: str
    seed_size: int = 32

    def keygen(self, seed: bytes) -> SigKeyPair:
        raise NotImplementedError

    def _check_seed(self, seed: bytes) -> bytes:
        seed = bytes(seed)
        if len(seed) != self.seed_size:
            raise SeedLengthError(
                f"{self.name} keygen requires a {self.seed_size}-byte seed, got {len(seed)}"
            )
        return seed


class _MLDSA65Sig(SigBackend):
    """
    ML-DSA-65 via dilithium-py.

    seed is the 32-byte xi of ML-DSA.KeyGen_internal, same as noble's
    ml_dsa65.keygen(seed).
    """

    def __init__(self) -> None:
        self.name = "ml-dsa-65"
        try:
            from dilithium_py.ml_dsa import ML_DSA_65
        except ImportError as e:
            raise SigError("dilithium-py is not installed (required for ml-dsa-65)") from e
        self._dsa = ML_DSA_65

    def keygen(self, seed: bytes) -> SigKeyPair:
        seed = self._check_seed(seed)
        try:
            pk, sk = self._dsa.key_derive(seed)
        except ValueError as e:
            raise SeedLengthError(f"ml-dsa-65 rejected seed: {e}") from e
        return SigKeyPair(public_key=bytes(pk), secret_key=bytes(sk))


class _ToySig(SigBackend):
    """
    STUB keygen (NOT secure).
    pk = SHA3-512(seed || "pk"), sk = seed || pk
    """

    def __init__(self) -> None:
        self.name = "toy_sig"

    def keygen(self, seed: bytes) -> SigKeyPair:
        seed = self._check_seed(seed)
        pk = sha3_512(seed, b"pk") + sha3_256(seed, b"pk-tail")
        return SigKeyPair(public_key=pk, secret_key=seed + pk)


def get_sig_backend(name: str) -> SigBackend:
    """
    Factory.
    NOTE: This function MUST be importable even if PQC libs are missing.
    """
    n = name.strip().lower()

    if n in (
        "ml-dsa-65",
        "mldsa65",
        "ml_dsa_65",
        "dilithium",
        "dilithium3",
    ):
        return _MLDSA65Sig()  # fail-closed inside ctor

    if n in ("toy_sig", "toy-sig"):
        return _ToySig()

    raise SigError(f"unknown signature backend: {name!r}")
