"""
Primitive big-endian reader over a forward-only byte source.

The reader never seeks and never calls ``tell()``; it counts consumed bytes
itself so every error can name the absolute offset where decoding stopped.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")

# Upper bound on a single source read, whatever length a header declares
_READ_CHUNK = 64 * 1024


class DecodeError(Exception):
    """Base class for header decode failures."""


class TruncatedInputError(DecodeError):
    """Stream ended before a field could be fully read."""

    def __init__(self, field: str, offset: int, expected: int, got: int) -> None:
        self.field = field
        self.offset = offset
        self.expected = expected
        self.got = got
        super().__init__(
            f"Truncated input reading {field} at offset {offset}: "
            f"expected {expected} bytes, got {got}"
        )


class MalformedHeaderError(DecodeError):
    """A magic identifier or declared length is inconsistent."""


class UnsupportedFormatError(DecodeError):
    """An unknown compression, encoding or document type code was found."""


class StreamReader:
    """Sequential big-endian field reader.

    Usage:
        reader = StreamReader(open("book.mobi", "rb"))
        name = reader.read_cstring(32, "latin-1", "name")
        count = reader.read_u16("num_records")
    """

    def __init__(self, source: BinaryIO, offset: int = 0) -> None:
        self._source = source
        self._offset = offset

    @property
    def offset(self) -> int:
        """Absolute number of bytes consumed so far."""
        return self._offset

    def read_bytes(self, n: int, field: str = "bytes") -> bytes:
        if n < 0:
            raise MalformedHeaderError(
                f"Negative length {n} for {field} at offset {self._offset}"
            )
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._source.read(min(remaining, _READ_CHUNK))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b"".join(chunks)
        if len(data) < n:
            raise TruncatedInputError(field, self._offset, n, len(data))
        self._offset += n
        return data

    def read_string(self, n: int, encoding: str, field: str = "string") -> str:
        """Read exactly ``n`` bytes and decode them as text."""
        return self.read_bytes(n, field).decode(encoding, errors="replace")

    def read_cstring(self, n: int, encoding: str, field: str = "string") -> str:
        """Read exactly ``n`` bytes, decode the prefix before the first NUL.

        A buffer with no NUL byte decodes in full.
        """
        data = self.read_bytes(n, field)
        end = data.find(b"\x00")
        if end != -1:
            data = data[:end]
        return data.decode(encoding, errors="replace")

    def read_u8(self, field: str = "u8") -> int:
        return self.read_bytes(1, field)[0]

    def read_u16(self, field: str = "u16") -> int:
        return _U16.unpack(self.read_bytes(2, field))[0]

    def read_u24(self, field: str = "u24") -> int:
        # widened to 32 bits with a zero top byte
        return _U32.unpack(b"\x00" + self.read_bytes(3, field))[0]

    def read_u32(self, field: str = "u32") -> int:
        return _U32.unpack(self.read_bytes(4, field))[0]

    def read_i32(self, field: str = "i32") -> int:
        return _I32.unpack(self.read_bytes(4, field))[0]

    def skip(self, n: int, field: str = "padding") -> None:
        """Discard exactly ``n`` bytes."""
        self.read_bytes(n, field)
