# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

import os

from qtc_pqhd.protocol.errors import RandomSourceError


def random_bytes(n: int) -> bytes:
    """CSPRNG read from the OS; fails closed."""
    if n <= 0:
        raise ValueError("n must be > 0")
    try:
        b = os.urandom(n)
    except (OSError, NotImplementedError) as e:
        raise RandomSourceError(f"system random source unavailable: {e}") from e
    if len(b) != n:
        raise RandomSourceError(f"short read from random source: {len(b)} != {n}")
    return b
