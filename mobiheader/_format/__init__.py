"""
Header decoding engine.

Layered decoders for the PDB container header, the PalmDOC/MOBI format
header and the EXTH metadata block, all reading sequentially from a single
forward-only byte stream.
"""

from mobiheader._format.stream import (
    DecodeError, MalformedHeaderError, StreamReader, TruncatedInputError,
    UnsupportedFormatError,
)
from mobiheader._format.spec import (
    CompressionType, ExthRecordType, MobiType, TextEncoding, exth_label,
)
from mobiheader._format.pdb import PDBHeader, PDBRecord, convert_pdb_time, read_pdb_header
from mobiheader._format.exth import ExthHeader, ExthRecord, read_exth_header
from mobiheader._format.mobi import (
    MobiHeader, decode_header, parse_header, read_full_title, read_header,
    read_mobi_header,
)
