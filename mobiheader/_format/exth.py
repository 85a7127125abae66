"""
EXTH extended-metadata block.

Layout:
    "EXTH"(4)  header_length(4)  record_count(4)
    record_count x [type_code(4) length(4) payload(length - 8)]
    NUL padding up to the next multiple of 4 (not counted in header_length)

Record lengths include their own 8-byte prefix. Unknown type codes are kept.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from mobiheader import EXTH_MAGIC
from mobiheader._format.spec import NUMERIC_EXTH_TYPES, TextEncoding, exth_label
from mobiheader._format.stream import MalformedHeaderError, StreamReader

log = logging.getLogger(__name__)

EXTH_RECORD_PREFIX_SIZE = 8

_INT_FORMATS = {1: ">B", 2: ">H", 4: ">L", 8: ">Q"}


def exth_padding(header_length: int) -> int:
    """NUL bytes that follow an EXTH block of ``header_length`` bytes."""
    return (4 - header_length % 4) % 4


@dataclass(frozen=True)
class ExthRecord:
    """A single EXTH record.

    Attributes:
        type_code: Numeric record type (see ``ExthRecordType``).
        label: Symbolic name of the type, ``UNKNOWN`` if unrecognized.
        length: Declared length including the 8-byte prefix.
        data: Raw payload bytes.
        value: Payload decoded as text.
    """

    type_code: int
    label: str
    length: int
    data: bytes
    value: str

    @property
    def is_numeric(self) -> bool:
        return self.type_code in NUMERIC_EXTH_TYPES

    def as_int(self) -> int:
        """Interpret the payload as a big-endian unsigned integer."""
        fmt = _INT_FORMATS.get(len(self.data))
        if fmt is None:
            raise ValueError(
                f"EXTH {self.type_code} payload of {len(self.data)} bytes is not an integer"
            )
        return struct.unpack(fmt, self.data)[0]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type_code": self.type_code,
            "label": self.label,
            "length": self.length,
        }
        if self.is_numeric and len(self.data) in _INT_FORMATS:
            data["value"] = self.as_int()
        else:
            data["value"] = self.value
        return data


@dataclass(frozen=True)
class ExthHeader:
    """Decoded EXTH block with a type-code lookup.

    The lookup keeps the last record for a repeated type code; use
    ``get_all`` to see every occurrence.
    """

    identifier: str
    header_length: int
    record_count: int
    records: tuple[ExthRecord, ...]
    _by_type: Mapping[int, ExthRecord] = field(
        init=False, repr=False, compare=False, hash=False,
    )

    def __post_init__(self) -> None:
        index: dict[int, ExthRecord] = {}
        for record in self.records:
            index[record.type_code] = record
        object.__setattr__(self, "_by_type", MappingProxyType(index))

    @property
    def lookup(self) -> Mapping[int, ExthRecord]:
        return self._by_type

    def get(self, type_code: int) -> ExthRecord | None:
        return self._by_type.get(type_code)

    def get_all(self, type_code: int) -> list[ExthRecord]:
        return [r for r in self.records if r.type_code == type_code]

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "header_length": self.header_length,
            "record_count": self.record_count,
            "records": [r.to_dict() for r in self.records],
        }


def read_exth_record(reader: StreamReader, codec: str) -> ExthRecord:
    offset = reader.offset
    type_code = reader.read_u32("exth.record.type_code")
    length = reader.read_u32("exth.record.length")
    if length < EXTH_RECORD_PREFIX_SIZE:
        raise MalformedHeaderError(
            f"EXTH record {type_code} at offset {offset} declares length {length}, "
            f"less than its {EXTH_RECORD_PREFIX_SIZE}-byte prefix"
        )
    data = reader.read_bytes(length - EXTH_RECORD_PREFIX_SIZE, "exth.record.data")
    return ExthRecord(
        type_code=type_code,
        label=exth_label(type_code),
        length=length,
        data=data,
        value=data.decode(codec, errors="replace"),
    )


def read_exth_header(
    reader: StreamReader,
    encoding: TextEncoding = TextEncoding.UTF8,
) -> ExthHeader:
    """Decode an EXTH block starting at the reader's position."""
    start = reader.offset
    identifier = reader.read_string(4, "latin-1", "exth.identifier")
    if identifier != EXTH_MAGIC:
        raise MalformedHeaderError(
            f"Expected EXTH identifier {EXTH_MAGIC!r} at offset {start}, got {identifier!r}"
        )
    header_length = reader.read_u32("exth.header_length")
    record_count = reader.read_u32("exth.record_count")

    records = tuple(read_exth_record(reader, encoding.codec) for _ in range(record_count))

    consumed = reader.offset - start
    if consumed != header_length:
        log.warning(
            "EXTH at offset %d declares %d bytes but records span %d",
            start, header_length, consumed,
        )

    reader.skip(exth_padding(header_length), "exth.padding")
    log.debug("EXTH: %d records, %d bytes", record_count, header_length)

    return ExthHeader(
        identifier=identifier,
        header_length=header_length,
        record_count=record_count,
        records=records,
    )
