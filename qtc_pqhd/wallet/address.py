# MIT License © 2025 Motohiro Suzuki
"""
qtc_pqhd/wallet/address.py

Segwit-style address codec on top of the `bech32` package:
    payload  = [witness_version] || convertbits(program, 8 -> 5)
    address  = bech32_encode(hrp, payload)

The witness version is the first data symbol, so it is covered by the
checksum: an address minted at one version never decodes as another.
Same layout as the JS wallet tool (`bech32.encode("qtc", [2, ...words])`).

Fail-closed: every rejection raises EncodingError, never returns None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bech32 import bech32_decode, bech32_encode, convertbits, decode

from qtc_pqhd.protocol.config import METHOD_BY_WITNESS_VERSION
from qtc_pqhd.protocol.errors import EncodingError

PROGRAM_SIZE = 20
MAX_ADDRESS_LEN = 90


@dataclass(frozen=True)
class AddressParts:
    hrp: str
    witness_version: int
    program: bytes

    @property
    def method(self) -> Optional[str]:
        return METHOD_BY_WITNESS_VERSION.get(self.witness_version)


def _check_hrp(hrp: str) -> None:
    if not isinstance(hrp, str) or not 1 <= len(hrp) <= 83:
        raise EncodingError(f"invalid hrp length: {hrp!r}")
    if any(ord(c) < 33 or ord(c) > 126 for c in hrp):
        raise EncodingError(f"hrp contains characters outside US-ASCII 33..126: {hrp!r}")
    if hrp != hrp.lower():
        raise EncodingError(f"hrp must be lowercase: {hrp!r}")


def address_payload(witness_version: int, program: bytes) -> list[int]:
    """[witness_version] || 5-bit groups of program, as handed to the checksum."""
    words = convertbits(list(bytes(program)), 8, 5)
    if words is None:
        raise EncodingError("cannot regroup witness program into 5-bit words")
    return [int(witness_version)] + words


def encode_address(hrp: str, witness_version: int, program: bytes) -> str:
    _check_hrp(hrp)
    if not 0 <= int(witness_version) <= 16:
        raise EncodingError(f"witness version out of range 0..16: {witness_version}")
    program = bytes(program)
    if len(program) != PROGRAM_SIZE:
        raise EncodingError(
            f"witness program must be {PROGRAM_SIZE} bytes, got {len(program)}"
        )

    addr = bech32_encode(hrp, address_payload(witness_version, program))
    if len(addr) > MAX_ADDRESS_LEN:
        raise EncodingError(f"address exceeds {MAX_ADDRESS_LEN} characters")

    # the encoder's own segwit rules must accept what we produced
    ver, prog = decode(hrp, addr)
    if ver != int(witness_version) or prog is None or bytes(prog) != program:
        raise EncodingError(
            f"encoder rejected hrp={hrp!r} witness_version={witness_version}"
        )
    return addr


def decode_address(
    address: str,
    hrp: str,
    witness_version: Optional[int] = None,
) -> AddressParts:
    """
    Decode and fully validate an address.

    witness_version: when given, the address MUST carry exactly this version
    (an address minted for one method is never accepted as another's).
    """
    _check_hrp(hrp)
    if not isinstance(address, str):
        raise EncodingError("address must be a string")

    hrp_got, data = bech32_decode(address)
    if hrp_got is None or data is None:
        raise EncodingError("invalid bech32 string or checksum")
    if hrp_got != hrp:
        raise EncodingError(f"hrp mismatch: expected {hrp!r}, got {hrp_got!r}")
    if not data:
        raise EncodingError("empty data part")

    ver, prog = decode(hrp, address)
    if ver is None or prog is None:
        raise EncodingError("invalid witness program")

    program = bytes(prog)
    if len(program) != PROGRAM_SIZE:
        raise EncodingError(
            f"witness program must be {PROGRAM_SIZE} bytes, got {len(program)}"
        )
    if witness_version is not None and ver != int(witness_version):
        raise EncodingError(
            f"witness version mismatch: expected {witness_version}, got {ver}"
        )
    return AddressParts(hrp=hrp_got, witness_version=ver, program=program)


def is_valid_address(address: str, hrp: str, witness_version: Optional[int] = None) -> bool:
    try:
        decode_address(address, hrp, witness_version)
    except EncodingError:
        return False
    return True
