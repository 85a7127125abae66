"""
mobiheader: decode PDB/MOBI e-book headers without touching book content.

Layout (big-endian throughout):
    PDB:   name(32) attrs(2) version(2) 3x date(4) modnum(4) appinfo(4)
           sortinfo(4) type(4) creator(4) uid_seed(4) next_list(4) nrec(2)
           nrec x [offset(4) attrs(1) uid(3)]  gap(2)
    Rec 0: PalmDOC(16) + "MOBI" header(header_length) + optional "EXTH" block

Only offsets and lengths into the record table are exposed; text records are
never decompressed.
"""

__version__ = "0.1.0"

PDB_NAME_SIZE = 32
PDB_GAP_SIZE = 2

MOBI_MAGIC = "MOBI"
EXTH_MAGIC = "EXTH"
EXTH_FLAG = 0x40
UNSET_INDEX = 0xFFFFFFFF

# Bytes of the MOBI header consumed by modeled fields, counted from the
# identifier. Equals 132 minus the 16-byte PalmDOC header.
MOBI_MODELED_SIZE = 116

from mobiheader._format.stream import (  # noqa: E402
    DecodeError, MalformedHeaderError, TruncatedInputError, UnsupportedFormatError,
)
from mobiheader._format.mobi import (  # noqa: E402
    MobiHeader, decode_header, parse_header, read_full_title, read_header,
)
