# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from qtc_pqhd.protocol.errors import (
    ConfigError,
    EncodingError,
    KemConsistencyError,
    PersistenceError,
    RandomSourceError,
    RecordVerificationError,
    SeedLengthError,
    WalletError,
)


class FailureStage(str, Enum):
    CONFIG = "config"
    ENCAPSULATION = "encapsulation"
    SIGNATURE_SEED = "signature_seed"
    ENTROPY_ADDRESS = "entropy_address"
    RECORD = "record"
    PERSISTENCE = "persistence"
    VERIFY = "verify"


class FailureCode(str, Enum):
    ERR_CONFIG = "ERR_CONFIG"
    ERR_RANDOM_SOURCE = "ERR_RANDOM_SOURCE"
    ERR_KEM_CONSISTENCY = "ERR_KEM_CONSISTENCY"
    ERR_SEED_LENGTH = "ERR_SEED_LENGTH"
    ERR_ENCODING = "ERR_ENCODING"
    ERR_PERSISTENCE = "ERR_PERSISTENCE"
    ERR_VERIFY = "ERR_VERIFY"
    ERR_INTERNAL = "ERR_INTERNAL"

    @staticmethod
    def from_exception(exc: BaseException) -> "FailureCode":
        # order matters: most specific classes first
        m = (
            (KemConsistencyError, FailureCode.ERR_KEM_CONSISTENCY),
            (RandomSourceError, FailureCode.ERR_RANDOM_SOURCE),
            (SeedLengthError, FailureCode.ERR_SEED_LENGTH),
            (EncodingError, FailureCode.ERR_ENCODING),
            (PersistenceError, FailureCode.ERR_PERSISTENCE),
            (RecordVerificationError, FailureCode.ERR_VERIFY),
            (ConfigError, FailureCode.ERR_CONFIG),
        )
        for cls, code in m:
            if isinstance(exc, cls):
                return code
        return FailureCode.ERR_INTERNAL


@dataclass(frozen=True)
class Failure:
    """
    Unified error carrier for the top-level driver.
    detail is a human-readable diagnostic; it never contains key material.
    """
    stage: FailureStage
    code: FailureCode
    detail: Optional[str] = None

    @staticmethod
    def from_exception(stage: FailureStage, exc: BaseException) -> "Failure":
        if isinstance(exc, WalletError):
            detail = str(exc) or type(exc).__name__
        else:
            detail = f"{type(exc).__name__}: {exc}"
        return Failure(stage=stage, code=FailureCode.from_exception(exc), detail=detail)

    def describe(self) -> str:
        s = f"{self.stage.value} stage failed ({self.code.value})"
        if self.detail:
            s += f": {self.detail}"
        return s


class ExitCode(int, Enum):
    """
    Process exit status. Keep values stable once published.
    """
    OK = 0
    INTERNAL = 1
    CONFIG = 2
    RANDOM_SOURCE = 3
    KEM_CONSISTENCY = 4
    SEED_LENGTH = 5
    ENCODING = 6
    PERSISTENCE = 7
    VERIFY = 8

    @staticmethod
    def from_failure_code(code: FailureCode) -> "ExitCode":
        m = {
            FailureCode.ERR_CONFIG: ExitCode.CONFIG,
            FailureCode.ERR_RANDOM_SOURCE: ExitCode.RANDOM_SOURCE,
            FailureCode.ERR_KEM_CONSISTENCY: ExitCode.KEM_CONSISTENCY,
            FailureCode.ERR_SEED_LENGTH: ExitCode.SEED_LENGTH,
            FailureCode.ERR_ENCODING: ExitCode.ENCODING,
            FailureCode.ERR_PERSISTENCE: ExitCode.PERSISTENCE,
            FailureCode.ERR_VERIFY: ExitCode.VERIFY,
            FailureCode.ERR_INTERNAL: ExitCode.INTERNAL,
        }
        return m.get(code, ExitCode.INTERNAL)
