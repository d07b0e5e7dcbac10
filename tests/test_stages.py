# MIT License © 2025 Motohiro Suzuki
import hashlib

import pytest

from qtc_pqhd.protocol.config import DOMAIN_TAG, HRP, WITNESS_VERSION_PQHD
from qtc_pqhd.protocol.errors import KemConsistencyError, SeedLengthError
from qtc_pqhd.wallet.address import decode_address
from qtc_pqhd.wallet.stages import (
    encapsulation_coins,
    encapsulation_stage,
    entropy_address_stage,
    master_entropy,
    signature_seed,
    signature_stage,
)


def test_encapsulation_stage_is_reproducible(toy_suite, fixed_seed):
    a = encapsulation_stage(fixed_seed, toy_suite.kem)
    b = encapsulation_stage(fixed_seed, toy_suite.kem)
    assert a == b
    assert len(a.shared_secret) == 32


def test_encapsulation_coins_are_domain_separated_from_seed(fixed_seed):
    coins = encapsulation_coins(fixed_seed)
    assert len(coins) == 32
    assert coins != fixed_seed[:32]
    assert coins != encapsulation_coins(bytes(64))


def test_kem_round_trip_mismatch_raises(broken_suite, fixed_seed):
    with pytest.raises(KemConsistencyError):
        encapsulation_stage(fixed_seed, broken_suite.kem)


@pytest.mark.parametrize("n", [0, 32, 63, 65])
def test_seed_length_rejected(toy_suite, n):
    with pytest.raises(SeedLengthError):
        encapsulation_stage(b"\x01" * n, toy_suite.kem)


def test_signature_seed_matches_sha3_256_of_secret_then_tag():
    ss = bytes(range(32))
    expected = hashlib.sha3_256(ss + b"QTC_PQHD_DILITHIUM").digest()
    assert signature_seed(ss, DOMAIN_TAG) == expected


def test_signature_stage_is_deterministic(toy_suite):
    ss = hashlib.sha3_256(b"shared").digest()
    a = signature_stage(ss, toy_suite.sig, DOMAIN_TAG)
    b = signature_stage(ss, toy_suite.sig, DOMAIN_TAG)
    assert a.signature_seed == b.signature_seed
    assert a.sig_keypair == b.sig_keypair


def test_domain_separation_changes_seed():
    tags = [DOMAIN_TAG] + [f"QTC_PQHD_TAG_{i}".encode() for i in range(32)]
    for j in range(16):
        ss = hashlib.sha3_256(j.to_bytes(4, "big")).digest()
        seeds = {signature_seed(ss, t) for t in tags}
        assert len(seeds) == len(tags)


def test_empty_domain_tag_rejected():
    with pytest.raises(ValueError):
        signature_seed(bytes(32), b"")


def test_master_entropy_concatenation_order():
    ss, pk = b"\xaa" * 32, b"\xbb" * 100
    combined, entropy = master_entropy(ss, pk)
    assert combined == ss + pk
    assert entropy == hashlib.sha3_512(ss + pk).digest()


@pytest.mark.parametrize("pk_len", [1, 32, 1952, 5000])
def test_entropy_widths_independent_of_input_size(pk_len):
    ent = entropy_address_stage(
        b"\x11" * 32, b"\x22" * pk_len, hrp=HRP, witness_version=WITNESS_VERSION_PQHD
    )
    assert len(ent.master_entropy) == 64
    assert len(ent.address_hash) == 32
    assert ent.address_hash == hashlib.sha3_256(ent.master_entropy).digest()
    assert ent.address_bytes == ent.address_hash[:20]


def test_entropy_address_stage_deterministic_and_decodable():
    ss, pk = b"\x01" * 32, b"\x02" * 1952
    a = entropy_address_stage(ss, pk, hrp=HRP, witness_version=WITNESS_VERSION_PQHD)
    b = entropy_address_stage(ss, pk, hrp=HRP, witness_version=WITNESS_VERSION_PQHD)
    assert a == b

    parts = decode_address(a.address, HRP, WITNESS_VERSION_PQHD)
    assert parts.program == a.address_bytes


def test_different_public_key_changes_address():
    ss = b"\x01" * 32
    a = entropy_address_stage(ss, b"\x02" * 64, hrp=HRP, witness_version=WITNESS_VERSION_PQHD)
    b = entropy_address_stage(ss, b"\x03" * 64, hrp=HRP, witness_version=WITNESS_VERSION_PQHD)
    assert a.address != b.address
    assert a.master_entropy != b.master_entropy
