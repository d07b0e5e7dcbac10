# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/protocol/result.py

What the wallet drivers (try_derive_wallet / generate_wallet) hand back:
  - Ok(WalletRecord)   all four stages passed (and the file was written)
  - Err(Failure)       the stage that aborted the run and its FailureCode

Nothing partial is ever carried: an Err holds no record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from qtc_pqhd.protocol.failure import Failure

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    failure: Optional[Failure] = None

    @staticmethod
    def Ok(v: T) -> "Result[T]":
        return Result(ok=True, value=v, failure=None)

    @staticmethod
    def Err(f: Failure) -> "Result[T]":
        return Result(ok=False, value=None, failure=f)

    def unwrap(self) -> T:
        if not self.ok or self.value is None:
            detail = self.failure.describe() if self.failure is not None else "no value"
            raise RuntimeError(f"unwrap() on a failed run: {detail}")
        return self.value

    def unwrap_err(self) -> Failure:
        if self.ok or self.failure is None:
            raise RuntimeError("unwrap_err() on a successful run")
        return self.failure
