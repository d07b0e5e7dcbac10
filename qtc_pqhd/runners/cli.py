# MIT License © 2025 Motohiro Suzuki
"""
qtc-pqhd command line.

    qtc-pqhd [generate] [--output PATH] [--no-file] [--seed-hex HEX] ...
    qtc-pqhd verify WALLET.json
    qtc-pqhd inspect ADDRESS

stdout carries ONLY the wallet JSON (generate) or the requested report.
Progress and diagnostics go to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

from qtc_pqhd.crypto.sig_backends import get_sig_backend
from qtc_pqhd.protocol.config import WITNESS_VERSION_PQHD, WITNESS_VERSION_PRIMARY, load_config
from qtc_pqhd.protocol.errors import ConfigError, WalletError
from qtc_pqhd.protocol.failure import ExitCode, Failure, FailureStage
from qtc_pqhd.wallet.address import decode_address
from qtc_pqhd.wallet.audit import AuditEvent, AuditLog
from qtc_pqhd.wallet.pipeline import generate_wallet, verify_record
from qtc_pqhd.wallet.storage import read_record


def _err(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_event(ev: AuditEvent) -> None:
    tag = {"ok": "[OK]", "error": "[ERROR]"}.get(ev.event, "[INFO]")
    _err(f"{tag} {ev.detail}")


def _fail(f: Failure) -> int:
    _err(f"[ERROR] {f.describe()}")
    return int(ExitCode.from_failure_code(f.code))


def _parse_seed(s: Optional[str]) -> Optional[bytes]:
    if s is None:
        return None
    try:
        return bytes.fromhex(s.strip())
    except ValueError as e:
        raise ConfigError(f"--seed-hex is not valid hex: {e}") from e


def cmd_generate(args: argparse.Namespace) -> int:
    try:
        cfg = load_config(
            args.config,
            kem_alg=args.kem,
            sig_alg=args.sig,
            output_path=args.output,
            audit_log_path=args.audit_log,
            write_file=False if args.no_file else None,
        )
        seed = _parse_seed(args.seed_hex)
    except ConfigError as e:
        return _fail(Failure.from_exception(FailureStage.CONFIG, e))

    _err("--- Starting Quantum-Safe PQ-HD Wallet Generation (External Wallet Method) ---")

    audit = AuditLog(path=cfg.audit_log_path, on_event=_print_event)
    r = generate_wallet(cfg, seed=seed, audit=audit)
    if not r.ok:
        return _fail(r.unwrap_err())

    print(r.unwrap().to_json())
    _err("--- PQ-HD Wallet Generation Complete ---")
    _err(f"[INFO] Address uses witness version {cfg.witness_version} "
         f"(different from Primary method version {WITNESS_VERSION_PRIMARY})")
    return int(ExitCode.OK)


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        cfg = load_config(args.config, sig_alg=args.sig)
        rec = read_record(args.wallet)
        bad = verify_record(
            rec,
            sig=get_sig_backend(cfg.sig_alg),
            hrp=cfg.hrp,
            witness_version=cfg.witness_version,
            domain_tag=cfg.domain_tag,
        )
    except ConfigError as e:
        return _fail(Failure.from_exception(FailureStage.CONFIG, e))
    except WalletError as e:
        return _fail(Failure.from_exception(FailureStage.VERIFY, e))

    report = {
        "address": rec.address,
        "valid": not bad,
        "mismatches": [{"field": m.field, "detail": m.detail} for m in bad],
    }
    print(json.dumps(report, indent=2))
    if bad:
        for m in bad:
            _err(f"[FAIL] {m.field}: {m.detail}")
        return int(ExitCode.VERIFY)
    _err(f"[OK] wallet record is consistent: {rec.address}")
    return int(ExitCode.OK)


def cmd_inspect(args: argparse.Namespace) -> int:
    try:
        cfg = load_config(args.config)
        parts = decode_address(args.address, cfg.hrp)
    except ConfigError as e:
        return _fail(Failure.from_exception(FailureStage.CONFIG, e))
    except WalletError as e:
        return _fail(Failure.from_exception(FailureStage.ENTROPY_ADDRESS, e))

    print(json.dumps({
        "address": args.address,
        "hrp": parts.hrp,
        "witness_version": parts.witness_version,
        "program_hex": parts.program.hex(),
        "method": parts.method or "unknown",
        "pqhd": parts.witness_version == WITNESS_VERSION_PQHD,
    }, indent=2))
    return int(ExitCode.OK)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="qtc-pqhd",
        description="QTC quantum-safe PQ-HD wallet (Kyber1024 + Dilithium3)",
    )
    p.add_argument("--config", default=None, help="YAML config file")
    sub = p.add_subparsers(dest="command")

    g = sub.add_parser("generate", help="generate a new PQ-HD wallet (default)")
    g.add_argument("--output", "-o", default=None, help="wallet file path")
    g.add_argument("--no-file", action="store_true", help="emit JSON only, do not write a file")
    g.add_argument("--seed-hex", default=None, help="replay a fixed 64-byte KEM seed (hex)")
    g.add_argument("--audit-log", default=None, help="append JSONL progress events here")
    g.add_argument("--kem", default=None, help="KEM backend (ml-kem-1024 | toy_kem)")
    g.add_argument("--sig", default=None, help="signature backend (ml-dsa-65 | toy_sig)")
    g.set_defaults(func=cmd_generate)

    v = sub.add_parser("verify", help="re-derive and check a stored wallet record")
    v.add_argument("wallet")
    v.add_argument("--sig", default=None, help="signature backend (ml-dsa-65 | toy_sig)")
    v.set_defaults(func=cmd_verify)

    i = sub.add_parser("inspect", help="decode an address")
    i.add_argument("address")
    i.set_defaults(func=cmd_inspect)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # "generate" is the default subcommand
    if not argv or argv[0].startswith("-") and argv[0] not in ("-h", "--help", "--config"):
        argv = ["generate"] + argv
    elif argv[0] == "--config" and (len(argv) < 3 or argv[2] not in ("generate", "verify", "inspect")):
        argv = argv[:2] + ["generate"] + argv[2:]

    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except Exception as e:
        _err("\n--- An unexpected error occurred ---")
        _err(f"{type(e).__name__}: {e}")
        return int(ExitCode.INTERNAL)


if __name__ == "__main__":
    sys.exit(main())
