"""Bounded little-endian reader for bincode-encoded account data.

Every read checks the remaining length first, and every length prefix is
checked against both a fixed maximum and the bytes actually left, so a
truncated or hostile payload fails with `DecodeFailure` instead of reading
past the buffer or allocating a huge list.
"""

import struct
from collections.abc import Callable
from typing import TypeVar

from solders.pubkey import Pubkey

from ..constants import MAX_ACCOUNT_DATA_LEN
from ..errors import MalformedAccountDataError, WrongOwnerError
from ..rpc.types import Account

T = TypeVar("T")

PUBKEY_SIZE = 32


class DecodeFailure(ValueError):
    """Raised by `ByteReader` when the payload does not match the layout."""

    pass


class ByteReader:
    """Sequential reader over a byte buffer."""

    def __init__(self, data: bytes, limit: int = MAX_ACCOUNT_DATA_LEN):
        if len(data) > limit:
            raise DecodeFailure(f"payload of {len(data)} bytes exceeds limit of {limit}")
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _unpack(self, fmt: str, size: int) -> int:
        if self.remaining < size:
            raise DecodeFailure(
                f"need {size} bytes at offset {self._offset}, only {self.remaining} left"
            )
        (value,) = struct.unpack_from(fmt, self._data, self._offset)
        self._offset += size
        return value

    def u8(self) -> int:
        return self._unpack("<B", 1)

    def u16(self) -> int:
        return self._unpack("<H", 2)

    def u32(self) -> int:
        return self._unpack("<I", 4)

    def u64(self) -> int:
        return self._unpack("<Q", 8)

    def i64(self) -> int:
        return self._unpack("<q", 8)

    def f64(self) -> float:
        return self._unpack("<d", 8)

    def bool(self) -> bool:
        value = self.u8()
        if value > 1:
            raise DecodeFailure(f"invalid bool byte {value} at offset {self._offset - 1}")
        return value == 1

    def raw(self, size: int) -> bytes:
        if self.remaining < size:
            raise DecodeFailure(
                f"need {size} bytes at offset {self._offset}, only {self.remaining} left"
            )
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def skip(self, size: int) -> None:
        self.raw(size)

    def pubkey(self) -> Pubkey:
        return Pubkey.from_bytes(self.raw(PUBKEY_SIZE))

    def option(self, read: Callable[[], T]) -> T | None:
        tag = self.u8()
        if tag == 0:
            return None
        if tag != 1:
            raise DecodeFailure(f"invalid option tag {tag} at offset {self._offset - 1}")
        return read()

    def vec_len(self, item_size: int, max_len: int) -> int:
        """Read a u64 length prefix and bound it before any item is read."""
        length = self.u64()
        if length > max_len:
            raise DecodeFailure(f"sequence length {length} exceeds maximum {max_len}")
        if length * item_size > self.remaining:
            raise DecodeFailure(
                f"sequence of {length} x {item_size} bytes does not fit in {self.remaining} bytes"
            )
        return length

    def vec(self, read: Callable[[], T], item_size: int, max_len: int) -> list[T]:
        return [read() for _ in range(self.vec_len(item_size, max_len))]


def check_owner(pubkey: Pubkey, account: Account, expected: Pubkey) -> None:
    """Raise `WrongOwnerError` unless `account` is owned by `expected`."""
    if account.owner != expected:
        raise WrongOwnerError(pubkey, expected, account.owner)


def decode_with(
    pubkey: Pubkey, data: bytes, kind: str, decode: Callable[[ByteReader], T], limit: int = MAX_ACCOUNT_DATA_LEN
) -> T:
    """Run `decode` over `data`, mapping any layout failure to `MalformedAccountDataError`."""
    try:
        return decode(ByteReader(data, limit))
    except DecodeFailure as e:
        raise MalformedAccountDataError(pubkey, kind, str(e)) from e
