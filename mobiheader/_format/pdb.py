"""
Palm database (PDB) container header.

    offset  size  field
    0       32    name (NUL-padded, latin-1)
    32      2     attributes
    34      2     version
    36      4     creation date          (PDB epoch rule)
    40      4     modification date      (PDB epoch rule)
    44      4     last backup date       (PDB epoch rule)
    48      4     modification number
    52      4     app info id
    56      4     sort info id
    60      4     type                   ("BOOK")
    64      4     creator                ("MOBI")
    68      4     unique id seed
    72      4     next record list id
    76      2     number of records
    78      8*n   record entries: offset(4) attributes(1) unique id(3)
    78+8n   2     gap

PDB epoch rule: a timestamp with the top bit set counts unsigned seconds
from 1904-01-01 UTC; otherwise it counts signed seconds from 1970-01-01 UTC.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from mobiheader import PDB_GAP_SIZE, PDB_NAME_SIZE
from mobiheader._format.stream import MalformedHeaderError, StreamReader, TruncatedInputError

log = logging.getLogger(__name__)

PDB_CHARSET = "latin-1"

EPOCH_1904 = datetime(1904, 1, 1, tzinfo=timezone.utc)
EPOCH_1970 = datetime(1970, 1, 1, tzinfo=timezone.utc)


def convert_pdb_time(raw: int) -> datetime | None:
    """Convert a raw 32-bit PDB timestamp to an aware UTC datetime.

    ``raw`` may be given signed or unsigned. Zero means "no timestamp".
    """
    raw &= 0xFFFFFFFF
    if raw == 0:
        return None
    if raw & 0x80000000:
        return EPOCH_1904 + timedelta(seconds=raw)
    return EPOCH_1970 + timedelta(seconds=raw)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class PDBRecord:
    """A record-table entry.

    Attributes:
        data_offset: Absolute file offset of the record payload.
        attributes: Record attribute byte.
        unique_id: 3-byte record id, widened with a zero top byte.
    """

    data_offset: int
    attributes: int
    unique_id: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "data_offset": self.data_offset,
            "attributes": self.attributes,
            "unique_id": self.unique_id,
        }


@dataclass(frozen=True)
class PDBHeader:
    """Decoded PDB container header plus its record table."""

    name: str
    attributes: int
    version: int
    creation_date: datetime | None
    modification_date: datetime | None
    last_backup_date: datetime | None
    modification_number: int
    app_info_id: int
    sort_info_id: int
    type: str
    creator: str
    unique_id_seed: int
    next_record_list_id: int
    records: tuple[PDBRecord, ...]

    @property
    def num_records(self) -> int:
        return len(self.records)

    def to_dict(self, include_records: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "attributes": self.attributes,
            "version": self.version,
            "creation_date": _isoformat(self.creation_date),
            "modification_date": _isoformat(self.modification_date),
            "last_backup_date": _isoformat(self.last_backup_date),
            "modification_number": self.modification_number,
            "app_info_id": self.app_info_id,
            "sort_info_id": self.sort_info_id,
            "type": self.type,
            "creator": self.creator,
            "unique_id_seed": self.unique_id_seed,
            "next_record_list_id": self.next_record_list_id,
            "num_records": self.num_records,
        }
        if include_records:
            data["records"] = [r.to_dict() for r in self.records]
        return data


def read_pdb_record(reader: StreamReader) -> PDBRecord:
    return PDBRecord(
        data_offset=reader.read_u32("record.data_offset"),
        attributes=reader.read_u8("record.attributes"),
        unique_id=reader.read_u24("record.unique_id"),
    )


def read_pdb_header(reader: StreamReader) -> PDBHeader:
    """Decode the container header, its record table and the trailing gap.

    Leaves ``reader`` positioned at the start of record 0's payload.
    """
    name = reader.read_cstring(PDB_NAME_SIZE, PDB_CHARSET, "pdb.name")
    attributes = reader.read_u16("pdb.attributes")
    version = reader.read_u16("pdb.version")
    creation_date = convert_pdb_time(reader.read_u32("pdb.creation_date"))
    modification_date = convert_pdb_time(reader.read_u32("pdb.modification_date"))
    last_backup_date = convert_pdb_time(reader.read_u32("pdb.last_backup_date"))
    modification_number = reader.read_u32("pdb.modification_number")
    app_info_id = reader.read_u32("pdb.app_info_id")
    sort_info_id = reader.read_u32("pdb.sort_info_id")
    type_ = reader.read_string(4, PDB_CHARSET, "pdb.type")
    creator = reader.read_string(4, PDB_CHARSET, "pdb.creator")
    unique_id_seed = reader.read_u32("pdb.unique_id_seed")
    next_record_list_id = reader.read_u32("pdb.next_record_list_id")
    num_records = reader.read_u16("pdb.num_records")

    try:
        records = tuple(read_pdb_record(reader) for _ in range(num_records))
    except TruncatedInputError as e:
        raise MalformedHeaderError(
            f"Record table declares {num_records} records but input ends at offset {e.offset + e.got}"
        ) from e

    # Fixed gap, independent of the record count
    reader.skip(PDB_GAP_SIZE, "pdb.gap")

    log.debug("PDB %r (%s/%s): %d records", name, type_, creator, num_records)

    return PDBHeader(
        name=name,
        attributes=attributes,
        version=version,
        creation_date=creation_date,
        modification_date=modification_date,
        last_backup_date=last_backup_date,
        modification_number=modification_number,
        app_info_id=app_info_id,
        sort_info_id=sort_info_id,
        type=type_,
        creator=creator,
        unique_id_seed=unique_id_seed,
        next_record_list_id=next_record_list_id,
        records=records,
    )
