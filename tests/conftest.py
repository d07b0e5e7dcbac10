# MIT License © 2025 Motohiro Suzuki
import pytest

from qtc_pqhd.crypto.algorithms import AlgorithmSuite
from qtc_pqhd.crypto.kem import _ToyKEM
from qtc_pqhd.protocol.config import ENV_PREFIX


class BrokenKEM(_ToyKEM):
    """Decapsulation returns a different secret than encapsulation."""

    def __init__(self) -> None:
        super().__init__()
        self.name = "broken_kem"

    def decapsulate(self, ciphertext: bytes, secret_key: bytes) -> bytes:
        ss = super().decapsulate(ciphertext, secret_key)
        return bytes([ss[0] ^ 0x01]) + ss[1:]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    import os

    for k in list(os.environ):
        if k.startswith(ENV_PREFIX):
            monkeypatch.delenv(k, raising=False)


@pytest.fixture
def fixed_seed() -> bytes:
    return bytes(range(64))


@pytest.fixture
def toy_suite() -> AlgorithmSuite:
    return AlgorithmSuite.from_names("toy_kem", "toy_sig")


@pytest.fixture
def broken_suite() -> AlgorithmSuite:
    return AlgorithmSuite(kem=BrokenKEM(), sig=AlgorithmSuite.from_names("toy_kem", "toy_sig").sig)


@pytest.fixture(scope="session")
def real_suite() -> AlgorithmSuite:
    return AlgorithmSuite.from_names("ml-kem-1024", "ml-dsa-65")
