"""
Raw transaction and block decoding.

The node hands us consensus-serialized bytes (getblock verbosity 0,
getrawtransaction non-verbose). Everything the attribution step needs
(txids, output scripts, output values in sats, coinbase height) is
derived locally from those bytes.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field

from regsettle.errors import DecodeError

NULL_TXID = "00" * 32
NULL_VOUT = 0xFFFFFFFF
BLOCK_HEADER_SIZE = 80


def double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


@dataclass(frozen=True)
class TxIn:
    txid: str
    vout: int
    script_sig: bytes
    sequence: int
    witness: tuple[bytes, ...] = ()


@dataclass(frozen=True)
class TxOut:
    value: int  # sats
    script_pubkey: bytes


@dataclass(frozen=True)
class Transaction:
    txid: str
    version: int
    inputs: tuple[TxIn, ...]
    outputs: tuple[TxOut, ...]
    locktime: int

    @property
    def is_coinbase(self) -> bool:
        return (
            len(self.inputs) == 1
            and self.inputs[0].txid == NULL_TXID
            and self.inputs[0].vout == NULL_VOUT
        )

    @property
    def total_out(self) -> int:
        return sum(out.value for out in self.outputs)


@dataclass(frozen=True)
class Block:
    hash: str
    version: int
    prev_hash: str
    merkle_root: str
    time: int
    bits: int
    nonce: int
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)

    @property
    def height(self) -> int:
        """Height committed in the coinbase scriptSig (BIP34)."""
        if not self.transactions or not self.transactions[0].is_coinbase:
            raise DecodeError(f"Block {self.hash} has no coinbase transaction")
        return coinbase_height(self.transactions[0].inputs[0].script_sig)

    def find_transaction(self, txid: str) -> Transaction | None:
        for tx in self.transactions:
            if tx.txid == txid:
                return tx
        return None


class _Reader:
    """Cursor over serialized bytes with bounds checking."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    def read(self, size: int) -> bytes:
        end = self.offset + size
        if size < 0 or end > len(self.data):
            raise DecodeError(
                f"Unexpected end of data: need {size} bytes at offset {self.offset}, "
                f"have {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def read_uint32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def read_int32(self) -> int:
        return struct.unpack("<i", self.read(4))[0]

    def read_uint64(self) -> int:
        return struct.unpack("<Q", self.read(8))[0]

    def read_varint(self) -> int:
        first = self.read(1)[0]
        if first < 0xFD:
            return first
        elif first == 0xFD:
            return struct.unpack("<H", self.read(2))[0]
        elif first == 0xFE:
            return struct.unpack("<I", self.read(4))[0]
        else:
            return struct.unpack("<Q", self.read(8))[0]

    def read_varbytes(self) -> bytes:
        return self.read(self.read_varint())


def _read_transaction(reader: _Reader) -> Transaction:
    start = reader.offset
    version = reader.read_int32()

    # SegWit marker and flag
    has_witness = False
    if reader.data[reader.offset : reader.offset + 2] == b"\x00\x01":
        reader.read(2)
        has_witness = True

    body_start = reader.offset
    input_count = reader.read_varint()
    raw_inputs = []
    for _ in range(input_count):
        txid = reader.read(32)[::-1].hex()
        vout = reader.read_uint32()
        script_sig = reader.read_varbytes()
        sequence = reader.read_uint32()
        raw_inputs.append((txid, vout, script_sig, sequence))

    output_count = reader.read_varint()
    outputs = []
    for _ in range(output_count):
        value = reader.read_uint64()
        script_pubkey = reader.read_varbytes()
        outputs.append(TxOut(value=value, script_pubkey=script_pubkey))
    body_end = reader.offset

    witnesses: list[tuple[bytes, ...]] = [()] * input_count
    if has_witness:
        for i in range(input_count):
            item_count = reader.read_varint()
            witnesses[i] = tuple(reader.read_varbytes() for _ in range(item_count))

    locktime_bytes = reader.read(4)
    locktime = struct.unpack("<I", locktime_bytes)[0]

    # txid commits to the serialization without marker, flag and witnesses
    stripped = (
        reader.data[start : start + 4] + reader.data[body_start:body_end] + locktime_bytes
    )
    txid = double_sha256(stripped)[::-1].hex()

    inputs = tuple(
        TxIn(txid=txid_in, vout=vout, script_sig=script_sig, sequence=sequence, witness=wit)
        for (txid_in, vout, script_sig, sequence), wit in zip(raw_inputs, witnesses)
    )
    return Transaction(
        txid=txid,
        version=version,
        inputs=inputs,
        outputs=tuple(outputs),
        locktime=locktime,
    )


def _to_bytes(raw: bytes | str) -> bytes:
    if isinstance(raw, bytes):
        return raw
    try:
        return bytes.fromhex(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Expected hex-encoded data, got {str(raw)[:32]!r}") from e


def parse_transaction(raw: bytes | str) -> Transaction:
    """
    Decode a consensus-serialized transaction (legacy or SegWit).

    Raises:
        DecodeError: On invalid hex, truncated data or trailing bytes
    """
    data = _to_bytes(raw)
    reader = _Reader(data)
    tx = _read_transaction(reader)
    if reader.offset != len(data):
        raise DecodeError(f"{len(data) - reader.offset} trailing bytes after transaction {tx.txid}")
    return tx


def parse_block(raw: bytes | str) -> Block:
    """
    Decode a consensus-serialized block.

    Raises:
        DecodeError: On invalid hex, truncated data or trailing bytes
    """
    data = _to_bytes(raw)
    reader = _Reader(data)

    header = reader.read(BLOCK_HEADER_SIZE)
    header_reader = _Reader(header)
    version = header_reader.read_int32()
    prev_hash = header_reader.read(32)[::-1].hex()
    merkle_root = header_reader.read(32)[::-1].hex()
    time = header_reader.read_uint32()
    bits = header_reader.read_uint32()
    nonce = header_reader.read_uint32()

    tx_count = reader.read_varint()
    transactions = tuple(_read_transaction(reader) for _ in range(tx_count))
    if reader.offset != len(data):
        raise DecodeError(f"{len(data) - reader.offset} trailing bytes after block")

    return Block(
        hash=double_sha256(header)[::-1].hex(),
        version=version,
        prev_hash=prev_hash,
        merkle_root=merkle_root,
        time=time,
        bits=bits,
        nonce=nonce,
        transactions=transactions,
    )


def coinbase_height(script_sig: bytes) -> int:
    """
    Extract the block height from a coinbase scriptSig (BIP34).

    The height is the first script element: OP_0, OP_1..OP_16 for small
    heights, otherwise a minimally-encoded little-endian number push.

    Raises:
        DecodeError: If the script does not start with a height push
    """
    if not script_sig:
        raise DecodeError("Empty coinbase scriptSig")

    opcode = script_sig[0]
    if opcode == 0x00:
        return 0
    if 0x51 <= opcode <= 0x60:
        return opcode - 0x50
    if not 1 <= opcode <= 8:
        raise DecodeError(f"Coinbase scriptSig does not start with a height push: {opcode:#04x}")
    if len(script_sig) < 1 + opcode:
        raise DecodeError("Truncated height push in coinbase scriptSig")

    num = script_sig[1 : 1 + opcode]
    if num[-1] & 0x80:
        raise DecodeError("Negative block height in coinbase scriptSig")
    return int.from_bytes(num, "little")
