# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

from typing import Optional


class WalletError(Exception):
    # name of the pipeline stage that raised; filled in by the pipeline
    stage: Optional[str] = None


class ConfigError(WalletError):
    pass


class RandomSourceError(WalletError):
    pass


class KemError(WalletError):
    """KEM backend could not be loaded or an operation failed."""
    pass


class SigError(WalletError):
    """Signature backend could not be loaded or keygen failed."""
    pass


class KemConsistencyError(KemError):
    """encapsulate/decapsulate round-trip produced different shared secrets."""
    pass


class SeedLengthError(WalletError):
    pass


class EncodingError(WalletError):
    pass


class PersistenceError(WalletError):
    pass


class RecordVerificationError(WalletError):
    pass
