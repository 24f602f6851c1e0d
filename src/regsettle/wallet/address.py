"""
Bitcoin address derivation from locking scripts.

Pure functions of (script, network): no node access. Ownership is never
inferred here, only the canonical address form of a scriptPubKey.
"""

from __future__ import annotations

import base58
import bech32

from regsettle.config import NetworkType
from regsettle.errors import DecodeError

# BIP350 checksum constant for witness version 1+
BECH32M_CONST = 0x2BC830A3

SEGWIT_HRP = {
    NetworkType.MAINNET: "bc",
    NetworkType.TESTNET: "tb",
    NetworkType.SIGNET: "tb",
    NetworkType.REGTEST: "bcrt",
}

# (P2PKH, P2SH) version bytes
BASE58_VERSIONS = {
    NetworkType.MAINNET: (0x00, 0x05),
    NetworkType.TESTNET: (0x6F, 0xC4),
    NetworkType.SIGNET: (0x6F, 0xC4),
    NetworkType.REGTEST: (0x6F, 0xC4),
}

OP_0 = 0x00
OP_1 = 0x51
OP_16 = 0x60
OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_CHECKSIG = 0xAC


def bech32m_encode(hrp: str, witver: int, witprog: bytes) -> str:
    """Encode a segwit v1+ address (BIP350)."""
    data = [witver] + bech32.convertbits(witprog, 8, 5)
    values = bech32.bech32_hrp_expand(hrp) + data
    polymod = bech32.bech32_polymod(values + [0, 0, 0, 0, 0, 0]) ^ BECH32M_CONST
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
    return hrp + "1" + "".join(bech32.CHARSET[d] for d in data + checksum)


def _witness_program(script: bytes) -> tuple[int, bytes] | None:
    """Return (version, program) if script is a segwit output, else None."""
    if len(script) < 4 or len(script) > 42:
        return None
    if script[0] != OP_0 and not (OP_1 <= script[0] <= OP_16):
        return None
    if script[1] != len(script) - 2:
        return None
    version = 0 if script[0] == OP_0 else script[0] - OP_1 + 1
    return version, script[2:]


def script_to_address(script: bytes, network: NetworkType = NetworkType.REGTEST) -> str:
    """
    Convert a scriptPubKey to its address.

    Supports:
    - P2PKH  (OP_DUP OP_HASH160 <20> OP_EQUALVERIFY OP_CHECKSIG)
    - P2SH   (OP_HASH160 <20> OP_EQUAL)
    - P2WPKH / P2WSH (witness v0, bech32)
    - P2TR and future witness versions (bech32m)

    Raises:
        DecodeError: For scripts with no address form (P2PK, OP_RETURN, bare multisig)
    """
    if (
        len(script) == 25
        and script[0] == OP_DUP
        and script[1] == OP_HASH160
        and script[2] == 0x14
        and script[23] == OP_EQUALVERIFY
        and script[24] == OP_CHECKSIG
    ):
        version = BASE58_VERSIONS[network][0]
        return base58.b58encode_check(bytes([version]) + script[3:23]).decode()

    if (
        len(script) == 23
        and script[0] == OP_HASH160
        and script[1] == 0x14
        and script[22] == OP_EQUAL
    ):
        version = BASE58_VERSIONS[network][1]
        return base58.b58encode_check(bytes([version]) + script[2:22]).decode()

    witness = _witness_program(script)
    if witness is not None:
        version, program = witness
        hrp = SEGWIT_HRP[network]
        if version == 0:
            if len(program) not in (20, 32):
                raise DecodeError(f"Invalid witness v0 program length: {len(program)}")
            result = bech32.encode(hrp, 0, program)
            if result is None:
                raise DecodeError(f"Failed to encode witness v0 address: {script.hex()}")
            return result
        return bech32m_encode(hrp, version, program)

    raise DecodeError(f"Unsupported scriptPubKey: {script.hex()}")
