import logging
from io import BytesIO
from struct import pack

from ttfsubset.objects import TTFHeader, TTFOffsetTable
from ttfsubset.utils import binary_search_parameters, ttf_checksum, pad4

logger = logging.getLogger(__name__)

SFNT_VERSION_TRUETYPE = 0x00010000
CHECKSUM_MAGIC = 0xB1B0AFBA
# checkSumAdjustment lives at this offset within the head table
HEAD_CHECKSUM_OFFSET = 8


def write_font(tables, version=SFNT_VERSION_TRUETYPE):
    """ Generate a font binary from a set of tables.
        Tables are written in tag order, each padded to a 4 byte boundary, so the
        same tables always produce the same bytes.
    :param tables: dict of tag -> table data
    :param version: sfnt version to record in the header
    :return: bytes
    """
    tables = dict(tables)
    if b'head' in tables:
        head = tables[b'head']
        tables[b'head'] = head[:HEAD_CHECKSUM_OFFSET] + b'\0' * 4 + head[HEAD_CHECKSUM_OFFSET + 4:]

    header = TTFHeader()
    header.version = version
    header.num_tables = len(tables)
    header.search_range, header.entry_selector, header.range_shift = binary_search_parameters(len(tables), 16)

    output = BytesIO()
    output.write(header.as_bytes())

    head_offset = None
    offset = len(header) + len(TTFOffsetTable()) * len(tables)
    sorted_tables = sorted(tables.keys())
    for tag in sorted_tables:
        if tag == b'head':
            head_offset = offset
        tbl = TTFOffsetTable()
        tbl.tag = tag
        tbl.offset = offset
        data = tables[tag]
        tbl.length = len(data)
        tbl.calculate_checksum(data)
        offset += tbl.padded_length()
        output.write(tbl.as_bytes())
        logger.debug("%s: %d bytes", tag.decode('latin-1'), tbl.length)

    for tag in sorted_tables:
        output.write(pad4(tables[tag]))

    data = output.getvalue()
    if head_offset is None:
        return data
    checksum = (CHECKSUM_MAGIC - ttf_checksum(data)) & 0xFFFFFFFF
    pos = head_offset + HEAD_CHECKSUM_OFFSET
    return data[:pos] + pack(">I", checksum) + data[pos + 4:]
