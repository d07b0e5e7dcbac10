# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/crypto/algorithms.py

AlgorithmSuite bundles the KEM and signature backends used for one run.
Backend modules are imported lazily so a missing PQC package only fails
when that backend is actually requested.
"""

from __future__ import annotations

from dataclasses import dataclass

from qtc_pqhd.crypto.kem import KemBackend
from qtc_pqhd.crypto.sig_backends import SigBackend


@dataclass(frozen=True)
class AlgorithmSuite:
    kem: KemBackend
    sig: SigBackend

    @staticmethod
    def from_names(kem_alg: str, sig_alg: str) -> "AlgorithmSuite":
        from qtc_pqhd.crypto.kem import get_kem_backend
        from qtc_pqhd.crypto.sig_backends import get_sig_backend

        return AlgorithmSuite(kem=get_kem_backend(kem_alg), sig=get_sig_backend(sig_alg))

    @property
    def names(self) -> tuple[str, str]:
        return self.kem.name, self.sig.name
