"""
PalmDOC sub-header and MOBI format header.

Record 0 begins with the 16-byte PalmDOC header:
    compression(2) unused(2) text_length(4) record_count(2) record_size(2)
    encryption_type(2) unknown(2)

followed by the MOBI header, whose ``header_length`` counts from the "MOBI"
identifier. Fields past the modeled prefix (DRM offsets, FDST, FCIS, ...) are
skipped by length, so larger headers from newer generators decode unchanged.
An EXTH block follows when bit 0x40 of the EXTH flags word is set.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

from mobiheader import EXTH_FLAG, MOBI_MAGIC, MOBI_MODELED_SIZE, UNSET_INDEX
from mobiheader._format.exth import ExthHeader, read_exth_header
from mobiheader._format.pdb import PDBHeader, read_pdb_header
from mobiheader._format.spec import CompressionType, MobiType, TextEncoding
from mobiheader._format.stream import DecodeError, MalformedHeaderError, StreamReader

log = logging.getLogger(__name__)

EXTRA_INDEX_COUNT = 6


@dataclass(frozen=True)
class MobiHeader:
    """Decoded MOBI header, embedding the PDB header and optional EXTH block.

    Index fields holding ``0xFFFFFFFF`` are unset. ``full_name_offset`` is
    relative to record 0's payload, not to the start of the file.
    """

    pdb_header: PDBHeader
    # PalmDOC
    compression: CompressionType
    text_length: int
    record_count: int
    record_size: int
    encryption_type: int
    # MOBI
    identifier: str
    header_length: int
    mobi_type: MobiType
    encoding: TextEncoding
    unique_id: int
    file_version: int
    orthographic_index: int
    inflection_index: int
    index_names: int
    index_keys: int
    extra_index: tuple[int, ...]
    first_non_book_index: int
    full_name_offset: int
    full_name_length: int
    locale: int
    input_language: int
    output_language: int
    min_version: int
    first_image_index: int
    huffman_record_offset: int
    huffman_record_count: int
    huffman_table_offset: int
    huffman_table_length: int
    exth_flags: int
    exth_header: ExthHeader | None = None

    @property
    def has_exth(self) -> bool:
        return bool(self.exth_flags & EXTH_FLAG)

    @property
    def is_encrypted(self) -> bool:
        return self.encryption_type != 0

    @property
    def is_dictionary(self) -> bool:
        return self.orthographic_index != UNSET_INDEX

    @property
    def language_id(self) -> int:
        return self.locale & 0xFF

    @property
    def sublanguage_id(self) -> int:
        return (self.locale >> 10) & 0xFF

    def to_dict(self, include_records: bool = False) -> dict[str, Any]:
        return {
            "pdb_header": self.pdb_header.to_dict(include_records=include_records),
            "compression": self.compression.name,
            "text_length": self.text_length,
            "record_count": self.record_count,
            "record_size": self.record_size,
            "encryption_type": self.encryption_type,
            "identifier": self.identifier,
            "header_length": self.header_length,
            "mobi_type": self.mobi_type.name,
            "encoding": self.encoding.codec,
            "unique_id": self.unique_id,
            "file_version": self.file_version,
            "orthographic_index": self.orthographic_index,
            "inflection_index": self.inflection_index,
            "index_names": self.index_names,
            "index_keys": self.index_keys,
            "extra_index": list(self.extra_index),
            "first_non_book_index": self.first_non_book_index,
            "full_name_offset": self.full_name_offset,
            "full_name_length": self.full_name_length,
            "locale": self.locale,
            "input_language": self.input_language,
            "output_language": self.output_language,
            "min_version": self.min_version,
            "first_image_index": self.first_image_index,
            "huffman_record_offset": self.huffman_record_offset,
            "huffman_record_count": self.huffman_record_count,
            "huffman_table_offset": self.huffman_table_offset,
            "huffman_table_length": self.huffman_table_length,
            "has_exth": self.has_exth,
            "exth_header": self.exth_header.to_dict() if self.exth_header else None,
        }


def read_mobi_header(reader: StreamReader) -> MobiHeader:
    """Decode PDB header, PalmDOC header, MOBI header and EXTH, in order."""
    pdb_header = read_pdb_header(reader)

    if pdb_header.records and pdb_header.records[0].data_offset != reader.offset:
        log.warning(
            "Record 0 declared at offset %d but header table ends at %d; reading linearly",
            pdb_header.records[0].data_offset, reader.offset,
        )

    # PalmDOC header
    compression = CompressionType.convert(reader.read_u16("palmdoc.compression"))
    reader.skip(2, "palmdoc.unused")
    text_length = reader.read_u32("palmdoc.text_length")
    record_count = reader.read_u16("palmdoc.record_count")
    record_size = reader.read_u16("palmdoc.record_size")
    encryption_type = reader.read_u16("palmdoc.encryption_type")
    reader.skip(2, "palmdoc.unknown")

    # MOBI header
    start = reader.offset
    identifier = reader.read_string(4, "latin-1", "mobi.identifier")
    if identifier != MOBI_MAGIC:
        raise MalformedHeaderError(
            f"Expected MOBI identifier {MOBI_MAGIC!r} at offset {start}, got {identifier!r}"
        )
    header_length = reader.read_u32("mobi.header_length")
    mobi_type = MobiType.convert(reader.read_u32("mobi.mobi_type"))
    encoding = TextEncoding.convert(reader.read_u32("mobi.encoding"))
    unique_id = reader.read_i32("mobi.unique_id")
    file_version = reader.read_u32("mobi.file_version")
    orthographic_index = reader.read_u32("mobi.orthographic_index")
    inflection_index = reader.read_u32("mobi.inflection_index")
    index_names = reader.read_u32("mobi.index_names")
    index_keys = reader.read_u32("mobi.index_keys")
    extra_index = tuple(
        reader.read_u32(f"mobi.extra_index[{i}]") for i in range(EXTRA_INDEX_COUNT)
    )
    first_non_book_index = reader.read_u32("mobi.first_non_book_index")
    full_name_offset = reader.read_u32("mobi.full_name_offset")
    full_name_length = reader.read_u32("mobi.full_name_length")
    locale = reader.read_u32("mobi.locale")
    input_language = reader.read_u32("mobi.input_language")
    output_language = reader.read_u32("mobi.output_language")
    min_version = reader.read_u32("mobi.min_version")
    first_image_index = reader.read_u32("mobi.first_image_index")
    huffman_record_offset = reader.read_u32("mobi.huffman_record_offset")
    huffman_record_count = reader.read_u32("mobi.huffman_record_count")
    huffman_table_offset = reader.read_u32("mobi.huffman_table_offset")
    huffman_table_length = reader.read_u32("mobi.huffman_table_length")
    exth_flags = reader.read_u32("mobi.exth_flags")

    # Unmodeled tail of the declared header (DRM fields and newer additions)
    if header_length < MOBI_MODELED_SIZE:
        raise MalformedHeaderError(
            f"MOBI header length {header_length} is shorter than the "
            f"{MOBI_MODELED_SIZE} bytes of required fields"
        )
    tail = header_length - MOBI_MODELED_SIZE
    reader.skip(tail, "mobi.tail")
    log.debug(
        "MOBI %s v%d, %s, %s: header %d bytes (%d skipped)",
        mobi_type.name, file_version, compression.name, encoding.codec, header_length, tail,
    )

    exth_header = None
    if exth_flags & EXTH_FLAG:
        exth_header = read_exth_header(reader, encoding)

    return MobiHeader(
        pdb_header=pdb_header,
        compression=compression,
        text_length=text_length,
        record_count=record_count,
        record_size=record_size,
        encryption_type=encryption_type,
        identifier=identifier,
        header_length=header_length,
        mobi_type=mobi_type,
        encoding=encoding,
        unique_id=unique_id,
        file_version=file_version,
        orthographic_index=orthographic_index,
        inflection_index=inflection_index,
        index_names=index_names,
        index_keys=index_keys,
        extra_index=extra_index,
        first_non_book_index=first_non_book_index,
        full_name_offset=full_name_offset,
        full_name_length=full_name_length,
        locale=locale,
        input_language=input_language,
        output_language=output_language,
        min_version=min_version,
        first_image_index=first_image_index,
        huffman_record_offset=huffman_record_offset,
        huffman_record_count=huffman_record_count,
        huffman_table_offset=huffman_table_offset,
        huffman_table_length=huffman_table_length,
        exth_flags=exth_flags,
        exth_header=exth_header,
    )


def decode_header(source: BinaryIO | bytes | bytearray) -> MobiHeader:
    """Decode a MOBI header from a stream positioned at the start of the file.

    The stream is read but not closed.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    return read_mobi_header(StreamReader(source))


def parse_header(data: bytes) -> MobiHeader:
    """Decode a MOBI header from an in-memory file image."""
    return decode_header(data)


def read_header(path: str | Path) -> MobiHeader:
    """Open ``path`` and decode its MOBI header. The file is always closed."""
    with open(path, "rb") as f:
        return decode_header(f)


def read_full_title(handle: BinaryIO, header: MobiHeader) -> str:
    """Read the full title stored in record 0 of a seekable file.

    Raises DecodeError if the file has no records or the title runs past EOF.
    """
    if not header.pdb_header.records:
        raise DecodeError("No record 0 to read the full title from")
    offset = header.pdb_header.records[0].data_offset + header.full_name_offset
    handle.seek(offset)
    reader = StreamReader(handle, offset)
    return reader.read_string(header.full_name_length, header.encoding.codec, "full_name")
