# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/wallet/stages.py

The four PQ-HD derivation stages as pure functions.

  1. encapsulation_stage     seed -> KEM keypair, shared secret
  2. signature_stage         shared secret -> signature seed -> signature keypair
  3. entropy_address_stage   shared secret, sig pk -> master entropy -> address
  4. assemble_record         all artifacts -> WalletRecord

Each stage raises on failure (fail-closed); nothing is recovered here.
"""

from __future__ import annotations

from dataclasses import dataclass

from qtc_pqhd.crypto.hashes import SHA3_256_SIZE, SHA3_512_SIZE, domain_hash, sha3_256, sha3_512
from qtc_pqhd.crypto.kem import KemBackend, KemKeyPair, shared_secrets_match
from qtc_pqhd.crypto.sig_backends import SigBackend, SigKeyPair
from qtc_pqhd.protocol.config import ENCAPS_TAG
from qtc_pqhd.protocol.errors import EncodingError, KemConsistencyError, SeedLengthError
from qtc_pqhd.wallet.address import PROGRAM_SIZE, encode_address
from qtc_pqhd.wallet.record import WalletRecord


@dataclass(frozen=True)
class EncapsulationOutput:
    kem_keypair: KemKeyPair
    ciphertext: bytes
    shared_secret: bytes


@dataclass(frozen=True)
class SignatureOutput:
    signature_seed: bytes
    sig_keypair: SigKeyPair


@dataclass(frozen=True)
class EntropyOutput:
    combined_input: bytes
    master_entropy: bytes
    address_hash: bytes
    address_bytes: bytes
    address: str


def encapsulation_coins(seed: bytes) -> bytes:
    return sha3_256(bytes(seed), ENCAPS_TAG)


def encapsulation_stage(seed: bytes, kem: KemBackend) -> EncapsulationOutput:
    seed = bytes(seed)
    if len(seed) != kem.seed_size:
        raise SeedLengthError(
            f"seed must be {kem.seed_size} bytes for {kem.name}, got {len(seed)}"
        )

    kp = kem.keygen(seed)
    enc = kem.encapsulate(kp.public_key, coins=encapsulation_coins(seed))
    ss_b = kem.decapsulate(enc.ciphertext, kp.secret_key)

    if not shared_secrets_match(enc.shared_secret, ss_b):
        raise KemConsistencyError(
            f"{kem.name}: decapsulated shared secret does not match encapsulated one"
        )
    if len(enc.shared_secret) != kem.shared_secret_size:
        raise KemConsistencyError(
            f"{kem.name}: shared secret is {len(enc.shared_secret)} bytes, "
            f"expected {kem.shared_secret_size}"
        )

    return EncapsulationOutput(
        kem_keypair=kp,
        ciphertext=bytes(enc.ciphertext),
        shared_secret=bytes(enc.shared_secret),
    )


def signature_seed(shared_secret: bytes, domain_tag: bytes) -> bytes:
    return domain_hash(bytes(shared_secret), bytes(domain_tag))


def signature_stage(shared_secret: bytes, sig: SigBackend, domain_tag: bytes) -> SignatureOutput:
    seed = signature_seed(shared_secret, domain_tag)
    if len(seed) != sig.seed_size:
        # fixed SHA3-256 output vs. backend seed size: a version mismatch, not bad input
        raise SeedLengthError(
            f"{sig.name} requires a {sig.seed_size}-byte seed but SHA3-256 yields {len(seed)}"
        )
    return SignatureOutput(signature_seed=seed, sig_keypair=sig.keygen(seed))


def master_entropy(shared_secret: bytes, sig_public_key: bytes) -> tuple[bytes, bytes]:
    """Returns (combined_input, SHA3-512(combined_input))."""
    combined = bytes(shared_secret) + bytes(sig_public_key)
    return combined, sha3_512(combined)


def entropy_address_stage(
    shared_secret: bytes,
    sig_public_key: bytes,
    *,
    hrp: str,
    witness_version: int,
) -> EntropyOutput:
    combined, entropy = master_entropy(shared_secret, sig_public_key)
    if len(entropy) != SHA3_512_SIZE:
        raise EncodingError(f"master entropy must be {SHA3_512_SIZE} bytes")

    address_hash = sha3_256(entropy)
    if len(address_hash) != SHA3_256_SIZE:
        raise EncodingError(f"address hash must be {SHA3_256_SIZE} bytes")

    address_bytes = address_hash[:PROGRAM_SIZE]
    address = encode_address(hrp, witness_version, address_bytes)

    return EntropyOutput(
        combined_input=combined,
        master_entropy=entropy,
        address_hash=address_hash,
        address_bytes=address_bytes,
        address=address,
    )


def assemble_record(
    enc: EncapsulationOutput,
    sig: SignatureOutput,
    ent: EntropyOutput,
    *,
    witness_version: int,
) -> WalletRecord:
    for name, v in (("encapsulation", enc), ("signature", sig), ("entropy", ent)):
        if v is None:
            raise ValueError(f"missing {name} stage output")

    return WalletRecord(
        address=ent.address,
        witness_version=int(witness_version),
        master_entropy=ent.master_entropy,
        kyber_public=enc.kem_keypair.public_key,
        kyber_private=enc.kem_keypair.secret_key,
        dilithium_public=sig.sig_keypair.public_key,
        dilithium_private=sig.sig_keypair.secret_key,
        kyber_shared_secret=enc.shared_secret,
        combined_input=ent.combined_input,
    )
