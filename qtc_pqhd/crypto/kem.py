# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/crypto/kem.py

Unified KEM backend interface:
    keygen(seed) -> KemKeyPair
    encapsulate(public_key, coins=None) -> KemEncapResult
    decapsulate(ciphertext, secret_key) -> shared_secret

Backends:
- ml-kem-1024 : kyber-py (FIPS 203), fail-closed if the package is missing
- toy_kem     : hash-based, reproducible test double (NOT secure)

keygen is deterministic in `seed` for both backends.
encapsulate is deterministic when `coins` (32 bytes) is given.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Optional

from qtc_pqhd.crypto.entropy import random_bytes
from qtc_pqhd.crypto.hashes import sha3_256
from qtc_pqhd.protocol.errors import KemError, SeedLengthError


@dataclass(frozen=True)
class KemKeyPair:
    public_key: bytes
    secret_key: bytes


@dataclass(frozen=True)
class KemEncapResult:
    ciphertext: bytes
    shared_secret: bytes


class KemBackend:
    name: str
    seed_size: int = 64
    coins_size: int = 32
    shared_secret_size: int = 32

    def keygen(self, seed: bytes) -> KemKeyPair:
        raise NotImplementedError

    def encapsulate(self, public_key: bytes, coins: Optional[bytes] = None) -> KemEncapResult:
        raise NotImplementedError

    def decapsulate(self, ciphertext: bytes, secret_key: bytes) -> bytes:
        raise NotImplementedError

    def _check_seed(self, seed: bytes) -> bytes:
        seed = bytes(seed)
        if len(seed) != self.seed_size:
            raise SeedLengthError(
                f"{self.name} keygen requires a {self.seed_size}-byte seed, got {len(seed)}"
            )
        return seed

    def _check_coins(self, coins: Optional[bytes]) -> bytes:
        if coins is None:
            return random_bytes(self.coins_size)
        coins = bytes(coins)
        if len(coins) != self.coins_size:
            raise SeedLengthError(
                f"{self.name} encapsulation requires {self.coins_size} bytes of coins, got {len(coins)}"
            )
        return coins


class _MLKEM1024(KemBackend):
    """
    ML-KEM-1024 (Kyber1024) via kyber-py.

    seed = d || z (64 bytes), same layout as noble's ml_kem1024.keygen(seed),
    so a replayed seed yields the same keypair in both implementations.
    """

    def __init__(self) -> None:
        self.name = "ml-kem-1024"
        try:
            from kyber_py.ml_kem import ML_KEM_1024
        except ImportError as e:
            raise KemError("kyber-py is not installed (required for ml-kem-1024)") from e
        self._kem = ML_KEM_1024

    def keygen(self, seed: bytes) -> KemKeyPair:
        seed = self._check_seed(seed)
        try:
            ek, dk = self._kem.key_derive(seed)
        except ValueError as e:
            raise SeedLengthError(f"ml-kem-1024 rejected seed: {e}") from e
        return KemKeyPair(public_key=bytes(ek), secret_key=bytes(dk))

    def encapsulate(self, public_key: bytes, coins: Optional[bytes] = None) -> KemEncapResult:
        m = self._check_coins(coins)
        try:
            # ML-KEM.Encaps_internal (FIPS 203, Alg. 17): deterministic in m
            ss, ct = self._kem._encaps_internal(bytes(public_key), m)
        except ValueError as e:
            raise KemError(f"ml-kem-1024 encapsulation failed: {e}") from e
        return KemEncapResult(ciphertext=bytes(ct), shared_secret=bytes(ss))

    def decapsulate(self, ciphertext: bytes, secret_key: bytes) -> bytes:
        try:
            ss = self._kem.decaps(bytes(secret_key), bytes(ciphertext))
        except ValueError as e:
            raise KemError(f"ml-kem-1024 decapsulation failed: {e}") from e
        return bytes(ss)


class _ToyKEM(KemBackend):
    """
    NOT secure. Test double only.

      sk = SHA3-256(seed || "sk")
      pk = SHA3-256(sk || "pk")
      ct = SHA3-256(coins || pk || "ct")
      ss = SHA3-256(ct || pk || "ss")
    """

    def __init__(self) -> None:
        self.name = "toy_kem"

    def keygen(self, seed: bytes) -> KemKeyPair:
        seed = self._check_seed(seed)
        sk = sha3_256(seed, b"sk")
        return KemKeyPair(public_key=sha3_256(sk, b"pk"), secret_key=sk)

    def encapsulate(self, public_key: bytes, coins: Optional[bytes] = None) -> KemEncapResult:
        m = self._check_coins(coins)
        pk = bytes(public_key)
        ct = sha3_256(m, pk, b"ct")
        return KemEncapResult(ciphertext=ct, shared_secret=sha3_256(ct, pk, b"ss"))

    def decapsulate(self, ciphertext: bytes, secret_key: bytes) -> bytes:
        pk = sha3_256(bytes(secret_key), b"pk")
        return sha3_256(bytes(ciphertext), pk, b"ss")


def shared_secrets_match(a: bytes, b: bytes) -> bool:
    return hmac.compare_digest(bytes(a), bytes(b))


def get_kem_backend(name: str) -> KemBackend:
    n = name.strip().lower()
    if n in ("ml-kem-1024", "mlkem1024", "ml_kem_1024", "kyber1024", "kyber"):
        return _MLKEM1024()
    if n in ("toy_kem", "toy-kem"):
        return _ToyKEM()
    raise KemError(f"unknown KEM backend: {name!r}")
