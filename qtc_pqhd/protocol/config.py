# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/protocol/config.py

WalletConfig:
- protocol constants for the PQ-HD method (HRP, witness version, domain tag)
- backend selection (kem_alg / sig_alg)
- output locations (wallet file, optional JSONL audit log)

Sources, later overriding earlier:
    defaults -> YAML file -> env QTC_PQHD_* -> explicit overrides (CLI flags)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from qtc_pqhd.protocol.errors import ConfigError

HRP = "qtc"

# Witness versions are reserved per derivation method.
WITNESS_VERSION_PRIMARY = 1
WITNESS_VERSION_PQHD = 2

METHOD_BY_WITNESS_VERSION = {
    WITNESS_VERSION_PRIMARY: "Primary",
    WITNESS_VERSION_PQHD: "PQ-HD",
}

DOMAIN_TAG = b"QTC_PQHD_DILITHIUM"
ENCAPS_TAG = b"QTC_PQHD_KYBER_ENCAPS"

METHOD = "PQ-HD"
ALGORITHM = "Kyber1024-KEM + Dilithium3-DSA (Deterministic PQ-HD)"
FORMAT_VERSION = "QTC-PQHD-1.0"
DESCRIPTION = "QTC PQ-HD Wallet for External Wallet Integration"

DEFAULT_OUTPUT = "qti3_pqhd_wallet.json"

ENV_PREFIX = "QTC_PQHD_"

_ENV_KEYS = {
    "KEM": "kem_alg",
    "SIG": "sig_alg",
    "HRP": "hrp",
    "WITNESS_VERSION": "witness_version",
    "DOMAIN_TAG": "domain_tag",
    "OUTPUT": "output_path",
    "AUDIT_LOG": "audit_log_path",
}


@dataclass(frozen=True)
class WalletConfig:
    kem_alg: str = "ml-kem-1024"
    sig_alg: str = "ml-dsa-65"
    hrp: str = HRP
    witness_version: int = WITNESS_VERSION_PQHD
    domain_tag: bytes = DOMAIN_TAG
    output_path: str = DEFAULT_OUTPUT
    audit_log_path: Optional[str] = None
    write_file: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.kem_alg, str) or not self.kem_alg.strip():
            raise ConfigError("kem_alg must be a non-empty string")
        if not isinstance(self.sig_alg, str) or not self.sig_alg.strip():
            raise ConfigError("sig_alg must be a non-empty string")
        if not isinstance(self.hrp, str) or not self.hrp or self.hrp != self.hrp.lower():
            raise ConfigError(f"hrp must be a non-empty lowercase string, got {self.hrp!r}")
        if isinstance(self.witness_version, bool) or not isinstance(self.witness_version, int):
            raise ConfigError("witness_version must be an int")
        if not 0 <= self.witness_version <= 16:
            raise ConfigError(f"witness_version out of range 0..16: {self.witness_version}")
        if self.witness_version == WITNESS_VERSION_PRIMARY:
            raise ConfigError(
                f"witness_version {WITNESS_VERSION_PRIMARY} is reserved for the Primary method"
            )
        if not isinstance(self.domain_tag, bytes) or not self.domain_tag:
            raise ConfigError("domain_tag must be non-empty bytes")
        if not isinstance(self.output_path, str) or not self.output_path.strip():
            raise ConfigError("output_path must be a non-empty string")


def _coerce(raw: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(WalletConfig)}
    out: dict[str, Any] = {}
    for k, v in raw.items():
        if k not in known:
            raise ConfigError(f"unknown config key: {k}")
        if k == "witness_version" and isinstance(v, str):
            try:
                v = int(v.strip())
            except ValueError as e:
                raise ConfigError(f"witness_version is not an integer: {v!r}") from e
        elif k == "domain_tag" and isinstance(v, str):
            try:
                v = v.encode("ascii")
            except UnicodeEncodeError as e:
                raise ConfigError("domain_tag must be ASCII") from e
        elif k == "write_file" and isinstance(v, str):
            v = v.strip().lower() in ("1", "true", "yes", "on")
        out[k] = v
    return out


def config_from_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config file: {p}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"config file is not valid YAML: {p}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file must contain a mapping: {p}")
    # allow both flat and nested {"wallet": {...}} layouts
    if "wallet" in data and isinstance(data["wallet"], dict):
        data = data["wallet"]
    return _coerce(data)


def config_from_env(env: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    e = os.environ if env is None else env
    raw: dict[str, Any] = {}
    for suffix, key in _ENV_KEYS.items():
        v = e.get(ENV_PREFIX + suffix, "").strip()
        if v:
            raw[key] = v
    return _coerce(raw)


def load_config(
    path: str | Path | None = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> WalletConfig:
    merged: dict[str, Any] = {}
    if path is not None:
        merged.update(config_from_yaml(path))
    merged.update(config_from_env(env))
    merged.update(_coerce({k: v for k, v in overrides.items() if v is not None}))
    try:
        return WalletConfig(**merged)
    except TypeError as e:
        raise ConfigError(str(e)) from e
