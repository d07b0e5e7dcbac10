# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/wallet/pipeline.py

derive_wallet(seed) -> WalletRecord        pure, raises WalletError subclasses
try_derive_wallet(seed, cfg) -> Result     error-union for drivers
generate_wallet(cfg) -> Result             fresh seed + derive + persist
verify_record(record) -> [RecordMismatch]  re-run stages 2..3 from a stored record

No partial record ever leaves this module: persistence happens only after
all four stages succeeded.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Callable, Optional

from qtc_pqhd.crypto.algorithms import AlgorithmSuite
from qtc_pqhd.crypto.entropy import random_bytes
from qtc_pqhd.crypto.sig_backends import SigBackend
from qtc_pqhd.protocol.config import DOMAIN_TAG, HRP, METHOD, WITNESS_VERSION_PQHD, WalletConfig
from qtc_pqhd.protocol.errors import EncodingError, WalletError
from qtc_pqhd.protocol.failure import Failure, FailureStage
from qtc_pqhd.protocol.result import Result
from qtc_pqhd.wallet.address import decode_address
from qtc_pqhd.wallet.audit import AuditLog, NullAudit
from qtc_pqhd.wallet.record import WalletRecord
from qtc_pqhd.wallet.stages import (
    assemble_record,
    encapsulation_stage,
    entropy_address_stage,
    master_entropy,
    signature_stage,
)
from qtc_pqhd.wallet.storage import write_record


def derive_wallet(
    seed: bytes,
    *,
    suite: AlgorithmSuite,
    hrp: str = HRP,
    witness_version: int = WITNESS_VERSION_PQHD,
    domain_tag: bytes = DOMAIN_TAG,
    audit: Optional[AuditLog] = None,
) -> WalletRecord:
    log = audit if audit is not None else NullAudit()
    stage = FailureStage.ENCAPSULATION
    try:
        enc = encapsulation_stage(seed, suite.kem)
        log.ok(stage.value, f"{suite.kem.name} KEM completed, shared secret established")

        stage = FailureStage.SIGNATURE_SEED
        sig = signature_stage(enc.shared_secret, suite.sig, domain_tag)
        log.ok(stage.value, f"{suite.sig.name} deterministic keypair generated (PQ-HD method)")

        stage = FailureStage.ENTROPY_ADDRESS
        ent = entropy_address_stage(
            enc.shared_secret,
            sig.sig_keypair.public_key,
            hrp=hrp,
            witness_version=witness_version,
        )
        log.ok(stage.value, f"master entropy derived (SHA3-512, {len(ent.master_entropy)} bytes)")
        log.ok(stage.value, f"generated PQ-HD address: {ent.address}")

        stage = FailureStage.RECORD
        return assemble_record(enc, sig, ent, witness_version=witness_version)
    except WalletError as e:
        if e.stage is None:
            e.stage = stage.value
        log.error(stage.value, str(e) or type(e).__name__)
        raise


def _stage_of(e: WalletError, default: FailureStage) -> FailureStage:
    try:
        return FailureStage(e.stage) if e.stage else default
    except ValueError:
        return default


def try_derive_wallet(
    seed: bytes,
    cfg: WalletConfig,
    *,
    suite: Optional[AlgorithmSuite] = None,
    audit: Optional[AuditLog] = None,
) -> Result[WalletRecord]:
    try:
        s = suite if suite is not None else AlgorithmSuite.from_names(cfg.kem_alg, cfg.sig_alg)
    except WalletError as e:
        return Result.Err(Failure.from_exception(FailureStage.CONFIG, e))

    try:
        rec = derive_wallet(
            seed,
            suite=s,
            hrp=cfg.hrp,
            witness_version=cfg.witness_version,
            domain_tag=cfg.domain_tag,
            audit=audit,
        )
    except WalletError as e:
        return Result.Err(Failure.from_exception(_stage_of(e, FailureStage.ENCAPSULATION), e))
    return Result.Ok(rec)


def generate_wallet(
    cfg: WalletConfig,
    *,
    suite: Optional[AlgorithmSuite] = None,
    seed: Optional[bytes] = None,
    audit: Optional[AuditLog] = None,
    rng: Callable[[int], bytes] = random_bytes,
) -> Result[WalletRecord]:
    """
    One full run: seed (fresh unless replayed) -> record -> wallet file.
    """
    log = audit if audit is not None else NullAudit()
    try:
        s = suite if suite is not None else AlgorithmSuite.from_names(cfg.kem_alg, cfg.sig_alg)
    except WalletError as e:
        log.error(FailureStage.CONFIG.value, str(e))
        return Result.Err(Failure.from_exception(FailureStage.CONFIG, e))
    log.info(FailureStage.CONFIG.value, "backends: kem=%s sig=%s" % s.names)

    if seed is None:
        try:
            seed = rng(s.kem.seed_size)
        except WalletError as e:
            log.error(FailureStage.ENCAPSULATION.value, str(e))
            return Result.Err(Failure.from_exception(FailureStage.ENCAPSULATION, e))
    else:
        log.info(
            FailureStage.ENCAPSULATION.value,
            "replaying a fixed seed: output is reproducible, do not use for real funds",
        )

    r = try_derive_wallet(seed, cfg, suite=s, audit=log)
    if not r.ok or not cfg.write_file:
        return r

    rec = r.unwrap()
    try:
        p = write_record(rec, cfg.output_path)
    except WalletError as e:
        log.error(FailureStage.PERSISTENCE.value, str(e))
        return Result.Err(Failure.from_exception(FailureStage.PERSISTENCE, e))
    log.ok(FailureStage.PERSISTENCE.value, f"PQ-HD wallet saved to '{p}'")
    return r


# -------------------------
# verification of stored records
# -------------------------
@dataclass(frozen=True)
class RecordMismatch:
    field: str
    detail: str


def verify_record(
    record: WalletRecord,
    *,
    sig: SigBackend,
    hrp: str = HRP,
    witness_version: int = WITNESS_VERSION_PQHD,
    domain_tag: bytes = DOMAIN_TAG,
) -> list[RecordMismatch]:
    """
    Re-derive everything downstream of the shared secret and compare.

    The address is checked at the expected witness_version, not at the one
    the record claims: a PQ-HD record carrying an address of another method
    is rejected. The KEM keypair cannot be re-derived without the original
    seed and is not checked.
    """
    out: list[RecordMismatch] = []

    if record.witness_version != witness_version:
        out.append(RecordMismatch(
            "witness_version",
            f"expected {witness_version} ({METHOD}), record says {record.witness_version}",
        ))
    if record.method != METHOD:
        out.append(RecordMismatch("method", f"expected {METHOD!r}, got {record.method!r}"))

    try:
        parts = decode_address(record.address, hrp, witness_version)
    except EncodingError as e:
        out.append(RecordMismatch("address", f"not a {METHOD} address: {e}"))
        parts = None

    sig_out = signature_stage(record.kyber_shared_secret, sig, domain_tag)
    if not hmac.compare_digest(sig_out.sig_keypair.public_key, record.dilithium_public):
        out.append(RecordMismatch("dilithium_public", "does not derive from the shared secret"))
    if not hmac.compare_digest(sig_out.sig_keypair.secret_key, record.dilithium_private):
        out.append(RecordMismatch("dilithium_private", "does not derive from the shared secret"))

    combined, entropy = master_entropy(record.kyber_shared_secret, record.dilithium_public)
    if combined != record.combined_input:
        out.append(RecordMismatch("combined_input", "is not shared_secret || dilithium_public"))
    if not hmac.compare_digest(entropy, record.master_entropy):
        out.append(RecordMismatch("master_entropy", "is not SHA3-512(combined_input)"))

    if parts is not None:
        ent = entropy_address_stage(
            record.kyber_shared_secret,
            record.dilithium_public,
            hrp=hrp,
            witness_version=witness_version,
        )
        if parts.program != ent.address_bytes:
            out.append(RecordMismatch("address", "program is not SHA3-256(master_entropy)[:20]"))

    return out
