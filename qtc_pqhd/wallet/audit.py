# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/wallet/audit.py

Progress / evidence sink for a derivation run.

- events go to an optional callback (the CLI prints them to stderr)
- and, when a path is set, are appended as JSON lines
- a broken sink must never break the pipeline
- events never carry key material
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Optional


@dataclass(frozen=True)
class AuditEvent:
    event: str
    stage: str
    detail: str
    ts: float = field(default_factory=time.time)


class AuditLog:
    def __init__(
        self,
        path: Optional[str] = None,
        on_event: Optional[Callable[[AuditEvent], None]] = None,
    ) -> None:
        self.path = Path(path) if isinstance(path, str) and path.strip() else None
        self.on_event = on_event
        self.events: list[AuditEvent] = []

    def _emit(self, ev: AuditEvent) -> None:
        self.events.append(ev)
        # Must NOT break derivation due to logging; each sink fails on its own
        if self.on_event is not None:
            try:
                self.on_event(ev)
            except Exception:
                pass
        if self.path is not None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as f:
                    json.dump(asdict(ev), f, ensure_ascii=False)
                    f.write("\n")
            except Exception:
                pass

    def ok(self, stage: str, detail: str) -> None:
        self._emit(AuditEvent(event="ok", stage=stage, detail=detail))

    def info(self, stage: str, detail: str) -> None:
        self._emit(AuditEvent(event="info", stage=stage, detail=detail))

    def error(self, stage: str, detail: str) -> None:
        self._emit(AuditEvent(event="error", stage=stage, detail=detail))


class NullAudit(AuditLog):
    def __init__(self) -> None:
        super().__init__(path=None, on_event=None)

    def _emit(self, ev: AuditEvent) -> None:
        return
