# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

import hashlib

SHA3_256_SIZE = 32
SHA3_512_SIZE = 64


def sha3_256(*parts: bytes) -> bytes:
    h = hashlib.sha3_256()
    for p in parts:
        h.update(p)
    return h.digest()


def sha3_512(*parts: bytes) -> bytes:
    h = hashlib.sha3_512()
    for p in parts:
        h.update(p)
    return h.digest()


def domain_hash(data: bytes, tag: bytes) -> bytes:
    """
    SHA3-256(data || tag)

    The tag goes last so the digest matches the wallets already exported by
    the JS tool (update(sharedSecret).update(tag)).
    """
    if not tag:
        raise ValueError("domain tag must be non-empty")
    return sha3_256(data, tag)
