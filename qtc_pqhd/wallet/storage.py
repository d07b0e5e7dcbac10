# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

import os
import tempfile
from pathlib import Path

from qtc_pqhd.protocol.errors import PersistenceError
from qtc_pqhd.wallet.record import WalletRecord


def write_record(record: WalletRecord, path: str | Path) -> Path:
    """
    Write the wallet JSON next to `path` and atomically replace it.
    Either the complete document lands at `path` or nothing does.
    """
    p = Path(path)
    doc = record.to_json()
    tmp_name = None
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(doc)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, p)
        tmp_name = None
    except OSError as e:
        raise PersistenceError(f"could not write wallet file {p}: {e}") from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    return p


def read_record(path: str | Path) -> WalletRecord:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"could not read wallet file {p}: {e}") from e
    return WalletRecord.from_json(text)
