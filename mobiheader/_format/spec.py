"""
Closed code tables for PDB/MOBI headers.

Compression, document type and text encoding are strict: an unmapped code
aborts decoding, since later fields depend on it. EXTH record types are
open-ended: unknown codes decode fine and are labelled ``UNKNOWN``.

References:
    https://wiki.mobileread.com/wiki/MOBI
    https://wiki.mobileread.com/wiki/PDB
"""

from __future__ import annotations

from enum import IntEnum

from mobiheader._format.stream import UnsupportedFormatError

UNKNOWN_LABEL = "UNKNOWN"


class CompressionType(IntEnum):
    """PalmDOC compression scheme."""

    NO_COMPRESSION = 1
    OLD_MOBIPOCKET_COMPRESSION = 2
    HUFF_CDIC_COMPRESSION = 17480

    @classmethod
    def convert(cls, code: int) -> CompressionType:
        try:
            return cls(code)
        except ValueError:
            raise UnsupportedFormatError(f"Unsupported compression type: {code}") from None


class MobiType(IntEnum):
    """MOBI document type."""

    MOBIPOCKET_BOOK = 2
    PALM_DOC_BOOK = 3
    AUDIO = 4
    MOBIPOCKET_GENERATED_BY_KINDLEGEN_1_2 = 232
    KF8_GENERATED_BY_KINDLEGEN_2 = 248
    NEWS = 257
    NEWS_FEED = 258
    NEWS_MAGAZINE = 259
    PICS = 513
    WORD = 514
    XLS = 515
    PPT = 516
    TEXT = 517
    HTML = 518

    @classmethod
    def convert(cls, code: int) -> MobiType:
        try:
            return cls(code)
        except ValueError:
            raise UnsupportedFormatError(f"Unsupported MOBI document type: {code}") from None


class TextEncoding(IntEnum):
    """Text encoding selector (Windows code page number)."""

    CP1252 = 1252
    UTF8 = 65001

    @property
    def codec(self) -> str:
        """Python codec name for this code page."""
        return _CODECS[self]

    @classmethod
    def convert(cls, code: int) -> TextEncoding:
        try:
            return cls(code)
        except ValueError:
            raise UnsupportedFormatError(f"Unsupported text encoding: {code}") from None


_CODECS = {
    TextEncoding.CP1252: "cp1252",
    TextEncoding.UTF8: "utf-8",
}


class ExthRecordType(IntEnum):
    """Known EXTH record type codes."""

    DRM_SERVER_ID = 1
    DRM_COMMERCE_ID = 2
    DRM_EBOOKBASE_BOOK_ID = 3
    AUTHOR = 100
    PUBLISHER = 101
    IMPRINT = 102
    DESCRIPTION = 103
    ISBN = 104
    SUBJECT = 105
    PUBLISHING_DATE = 106
    REVIEW = 107
    CONTRIBUTOR = 108
    RIGHTS = 109
    SUBJECT_CODE = 110
    TYPE = 111
    SOURCE = 112
    ASIN = 113
    VERSION_NUMBER = 114
    SAMPLE = 115
    START_READING = 116
    ADULT = 117                     # "yes" when flagged adult-only
    RETAIL_PRICE = 118              # text, e.g. "4.99"
    RETAIL_PRICE_CURRENCY = 119     # text, e.g. "USD"
    KF8_BOUNDARY_OFFSET = 121
    FIXED_LAYOUT = 122
    BOOK_TYPE = 123
    ORIENTATION_LOCK = 124
    COUNT_OF_RESOURCES = 125
    ORIGINAL_RESOLUTION = 126
    ZERO_GUTTER = 127
    ZERO_MARGIN = 128
    KF8_COVER_URI = 129
    REGION_MAGNIFICATION = 132
    DICT_SHORT_NAME = 200
    COVER_OFFSET = 201              # relative to first_image_index
    THUMB_OFFSET = 202              # relative to first_image_index
    HAS_FAKE_COVER = 203
    CREATOR_SOFTWARE_RECORDS = 204
    CREATOR_MAJOR_VERSION = 205
    CREATOR_MINOR_VERSION = 206
    CREATOR_BUILD_NUMBER = 207
    WATERMARK = 208
    TAMPER_PROOF_KEYS = 209
    FONT_SIGNATURE = 300
    CLIPPING_LIMIT = 401
    PUBLISHER_LIMIT = 402
    TEXT_TO_SPEECH = 403            # 1 disabled, 0 enabled
    TTS_FLAG = 404
    RENT_BORROW_FLAG = 405
    RENT_BORROW_EXPIRATION = 406
    CDE_TYPE = 501                  # PDOC, EBOK, EBSP
    LAST_UPDATE_TIME = 502
    UPDATED_TITLE = 503
    ASIN_2 = 504
    UNKNOWN_TITLE_FURIGANA = 508
    UNKNOWN_CREATOR_FURIGANA = 517
    UNKNOWN_PUBLISHER_FURIGANA = 522
    LANGUAGE = 524
    ALIGNMENT = 525
    PAGE_PROGRESSION = 527
    OVERRIDE_KINDLE_FONTS = 528
    KINDLEGEN_SOURCE_TARGET = 529
    INPUT_SOURCE_TYPE = 534
    KINDLEGEN_BUILDREV_NUMBER = 535
    CONTAINER_INFO = 536
    CONTAINER_RESOLUTION = 538
    CONTAINER_MIMETYPE = 539
    UNKNOWN_BUT_CHANGES_WITH_FILE_NAME = 542
    CONTAINER_ID = 543
    IN_MEMORY = 547


# Record types whose payload is a big-endian integer rather than text
NUMERIC_EXTH_TYPES = frozenset({
    ExthRecordType.SAMPLE,
    ExthRecordType.START_READING,
    ExthRecordType.KF8_BOUNDARY_OFFSET,
    ExthRecordType.COUNT_OF_RESOURCES,
    ExthRecordType.COVER_OFFSET,
    ExthRecordType.THUMB_OFFSET,
    ExthRecordType.HAS_FAKE_COVER,
    ExthRecordType.CREATOR_SOFTWARE_RECORDS,
    ExthRecordType.CREATOR_MAJOR_VERSION,
    ExthRecordType.CREATOR_MINOR_VERSION,
    ExthRecordType.CREATOR_BUILD_NUMBER,
    ExthRecordType.CLIPPING_LIMIT,
    ExthRecordType.PUBLISHER_LIMIT,
    ExthRecordType.TTS_FLAG,
    ExthRecordType.RENT_BORROW_EXPIRATION,
})


def exth_label(type_code: int) -> str:
    """Label for an EXTH type code, ``UNKNOWN`` if unrecognized."""
    try:
        return ExthRecordType(type_code).name
    except ValueError:
        return UNKNOWN_LABEL
