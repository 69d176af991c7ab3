# TrueType Font table objects
import logging
from bisect import bisect_left
from io import BytesIO
from struct import calcsize, pack, unpack

from ttfsubset.exceptions import NoUsableCMap, ParseError
from ttfsubset.utils import PackedFormat, read_exact, read_list_uint16, read_list_int16, \
    read_list_uint32, glyph_more_components, glyf_skip_format, ttf_checksum

logger = logging.getLogger(__name__)


TTF_NAMES = {
    0: 'Copyright Notice',
    1: 'Font Family Name',
    2: 'Font Subfamily Name',
    3: 'Unique Font Identifier',
    4: 'Full Font Name',
    5: 'Version String',
    6: 'Postscript Name',
    16: 'Typographic Family',
    17: 'Typographic Subfamily',
}

NAME_FONT_FAMILY = 1
NAME_TYPOGRAPHIC_FAMILY = 16

# sfnt versions we know how to read
SFNT_VERSIONS = (0x00010000, 0x74727565, 0x4F54544F)  # 1.0, 'true', 'OTTO'


class TTFNameRecord(PackedFormat):
    FORMAT = [
        {'name': 'platform_id', 'format': 'H'},
        {'name': 'encoding_id', 'format': 'H'},
        {'name': 'language_id', 'format': 'H'},
        {'name': 'name_id', 'format': 'H'},
        {'name': 'length', 'format': 'H'},
        {'name': 'offset', 'format': 'H'},
    ]

    def __init__(self, fh=None, storage=None):
        self.raw = b''
        PackedFormat.__init__(self, fh)
        if storage is not None:
            if self.offset + self.length > len(storage):
                raise ParseError("name record {} points outside the string storage".format(self.key))
            self.raw = storage[self.offset:self.offset + self.length]

    @property
    def key(self):
        return self.platform_id, self.encoding_id, self.language_id, self.name_id

    def __str__(self):
        return '({}, {}, {:04X}) {:>24s}: {!r}'.format(
            self.platform_id, self.encoding_id, self.language_id,
            TTF_NAMES.get(self.name_id, 'Name {}'.format(self.name_id)), self.raw)


class TTF_name(PackedFormat):
    FORMAT = [
        {'name': 'format', 'format': 'H'},
        {'name': 'count', 'format': 'H'},
        {'name': 'offset', 'format': 'H'},
    ]

    def __init__(self, data):
        fh = BytesIO(data)
        PackedFormat.__init__(self, fh)
        if self.format not in (0, 1):
            raise ParseError("unsupported name table format {}".format(self.format))
        storage = data[self.offset:]
        self.names = []
        for n in range(self.count):
            self.names.append(TTFNameRecord(fh, storage))

        self.lang_tags = []
        if self.format == 1:
            n_tags = read_list_uint16(fh, 1)[0]
            for n in range(n_tags):
                length, offset = read_list_uint16(fh, 2)
                if offset + length > len(storage):
                    raise ParseError("language tag record points outside the string storage")
                self.lang_tags.append(storage[offset:offset + length])

    def records(self, *name_ids):
        return [n for n in self.names if n.name_id in name_ids]

    def as_bytes(self):
        """ Rebuild the table, laying out the string storage afresh. """
        storage = BytesIO()
        records = b''
        for rec in self.names:
            rec.offset = storage.tell()
            rec.length = len(rec.raw)
            storage.write(rec.raw)
            records += rec.as_bytes()
        lang_data = b''
        if self.format == 1:
            lang_data = pack(">H", len(self.lang_tags))
            for tag in self.lang_tags:
                lang_data += pack(">HH", len(tag), storage.tell())
                storage.write(tag)
        self.count = len(self.names)
        self.offset = len(self) + len(records) + len(lang_data)
        return PackedFormat.as_bytes(self) + records + lang_data + storage.getvalue()


class TTFHeader(PackedFormat):
    FORMAT = [
        {'name': 'version', 'format': 'I'},
        {'name': 'num_tables', 'format': 'H'},
        {'name': 'search_range', 'format': 'H'},
        {'name': 'entry_selector', 'format': 'H'},
        {'name': 'range_shift', 'format': 'H'},
    ]

    def __init__(self, fh=None):
        self.tables = []
        self.num_tables = 0
        PackedFormat.__init__(self, fh)
        if fh is None:
            return
        if not self.check_version():
            raise ParseError("unsupported sfnt version 0x{:08X}".format(self.version))
        for n in range(self.num_tables):
            self.tables.append(TTFOffsetTable(fh))

    def check_version(self):
        return self.version in SFNT_VERSIONS


class TTFOffsetTable(PackedFormat):
    FORMAT = [
        {'name': 'tag', 'format': '4s'},
        {'name': 'checksum', 'format': 'I'},
        {'name': 'offset', 'format': 'I'},
        {'name': 'length', 'format': 'I'},
    ]

    def padded_length(self):
        return self.length + 3 & ~ 3

    def calculate_checksum(self, data):
        self.checksum = ttf_checksum(data)


class TTFCollectionHeader(PackedFormat):
    """ The first 12 bytes of any font file. Unless the tag is 'ttcf' they are
        the start of a plain sfnt header and version/count mean nothing.
    """
    FORMAT = [
        {'name': 'tag', 'format': '4s'},
        {'name': 'version', 'format': 'I'},
        {'name': 'count', 'format': 'I'}
    ]
    VERSIONS = (0x00010000, 0x00020000)

    def __init__(self, fh):
        PackedFormat.__init__(self, fh)
        self.offsets = []
        self.is_collection = (self.tag == b'ttcf')
        if self.is_collection:
            if self.version not in self.VERSIONS:
                raise ParseError("unsupported font collection version 0x{:08X}".format(self.version))
            if self.count == 0:
                raise ParseError("font collection holds no fonts")
            self.offsets = list(read_list_uint32(fh, self.count))
        else:
            self.count = 1
            self.offsets = [0]


class TTF_head(PackedFormat):
    FORMAT = [
        {'name': 'vers', 'format': 'i'},
        {'name': 'font_version', 'format': 'i'},
        {'name': 'checksum_adj', 'format': 'I'},
        {'name': 'magic_number', 'format': 'I'},
        {'name': 'flags', 'format': 'H'},
        {'name': 'units_per_em', 'format': 'H'},
        {'name': 'created', 'format': 'q'},
        {'name': 'modified', 'format': 'q'},
        {'name': 'x_min', 'format': 'h'},
        {'name': 'y_min', 'format': 'h'},
        {'name': 'x_max', 'format': 'h'},
        {'name': 'y_max', 'format': 'h'},
        {'name': 'mac_style', 'format': 'H'},
        {'name': 'lowest_rec_ppem', 'format': 'H'},
        {'name': 'direction_hint', 'format': 'h'},
        {'name': 'index_to_loc_format', 'format': 'h'},
        {'name': 'glyph_data_format', 'format': 'h'},
    ]


class TTF_hhea(PackedFormat):
    FORMAT = [
        {'name': 'version', 'format': 'i'},
        {'name': 'ascender', 'format': 'h'},
        {'name': 'descender', 'format': 'h'},
        {'name': 'line_gap', 'format': 'h'},
        {'name': 'advance_width_max', 'format': 'H'},
        {'name': 'min_left_side_bearing', 'format': 'h'},
        {'name': 'min_right_side_bearing', 'format': 'h'},
        {'name': 'x_max_extent', 'format': 'h'},
        {'name': 'caret_slope_rise', 'format': 'h'},
        {'name': 'caret_slope_run', 'format': 'h'},
        {'name': 'caret_offset', 'format': 'h'},
        {'name': 'reserved', 'format': 'q'},
        {'name': 'metric_data_format', 'format': 'h'},
        {'name': 'number_of_metrics', 'format': 'H'},
    ]


class TTF_maxp(PackedFormat):
    FORMAT = [
        {'name': 'version', 'format': 'I'},
        {'name': 'num_glyphs', 'format': 'H'},
    ]


class TTF_post(PackedFormat):
    FORMAT = [
        {'name': 'version', 'format': 'I'},
        {'name': 'italic_angle', 'format': 'i'},
        {'name': 'underline_position', 'format': 'h'},
        {'name': 'underline_thickness', 'format': 'h'},
        {'name': 'is_fixed_pitch', 'format': 'I'},
        {'name': 'min_mem_type42', 'format': 'I'},
        {'name': 'max_mem_type42', 'format': 'I'},
        {'name': 'min_mem_type1', 'format': 'I'},
        {'name': 'max_mem_type1', 'format': 'I'},
    ]
    VERSION_2 = 0x00020000
    VERSION_3 = 0x00030000

    def __init__(self, data=None):
        self.glyph_name_index = []
        self.names = []
        if data is None:
            PackedFormat.__init__(self)
            return
        fh = BytesIO(data)
        PackedFormat.__init__(self, fh)
        if self.version != self.VERSION_2:
            return
        n_glyphs = read_list_uint16(fh, 1)[0]
        self.glyph_name_index = list(read_list_uint16(fh, n_glyphs))
        # Pascal strings run to the end of the table.
        while True:
            size = fh.read(1)
            if not size:
                break
            self.names.append(read_exact(fh, size[0]))


class TTF_cmap4(PackedFormat):
    FORMAT = [
        {'name': 'language', 'format': 'H'},
        {'name': 'seg_count', 'format': 'H', 'convert': '_halve_'},
        {'name': 'src_range', 'format': 'H'},
        {'name': 'entry_selector', 'format': 'H'},
        {'name': 'range_shift', 'format': 'H'},
    ]

    @staticmethod
    def _halve_(n):
        return n // 2

    class CMAPRange:
        def __init__(self, start, end, delta, offset, n_segments):
            self.start = start
            self.end = end
            self.delta = delta
            self.id_range_offset = offset
            # index into glyphs of the entry for start
            self.offset = offset // 2 - n_segments

        def contains(self, n):
            return self.start <= n <= self.end

        def char_to_glyph(self, n, glyphs):
            if self.id_range_offset == 0:
                return (n + self.delta) & 0xFFFF
            idx = self.offset + n - self.start
            if not 0 <= idx < len(glyphs):
                logger.warning("cmap format 4 glyph index %d is out of range", idx)
                return 0
            if glyphs[idx] == 0:
                return 0
            return (glyphs[idx] + self.delta) & 0xFFFF

    def __init__(self, fh, length):
        start = fh.tell() - 4
        PackedFormat.__init__(self, fh)
        self.ranges = []

        end_codes = read_list_uint16(fh, self.seg_count + 1)
        if end_codes[self.seg_count] != 0:
            logger.warning("cmap format 4 reserved pad is not zero")
        end_codes = end_codes[:self.seg_count]
        start_codes = read_list_uint16(fh, self.seg_count)
        iddelta = read_list_int16(fh, self.seg_count)
        id_offset = read_list_uint16(fh, self.seg_count)

        ids_length = max(0, (length - (fh.tell() - start)) // 2)
        raw = fh.read(ids_length * 2)
        self.glyph_ids = unpack(">{}H".format(len(raw) // 2), raw[:len(raw) // 2 * 2])

        for n in range(self.seg_count):
            self.ranges.append(self.CMAPRange(start_codes[n], end_codes[n], iddelta[n], id_offset[n],
                                              self.seg_count - n))
        self.ends = [r.end for r in self.ranges]

    def char_to_glyph(self, char):
        idx = bisect_left(self.ends, char)
        if idx == len(self.ranges) or not self.ranges[idx].contains(char):
            return 0
        return self.ranges[idx].char_to_glyph(char, self.glyph_ids)

    def as_map(self):
        cm = {}
        for r in self.ranges:
            for c in range(r.start, r.end + 1):
                glyph = r.char_to_glyph(c, self.glyph_ids)
                if glyph:
                    cm[c] = glyph
        return cm


class TTF_cmap12(PackedFormat):
    FORMAT = [
        {'name': 'language', 'format': 'I'},
        {'name': 'num_groups', 'format': 'I'},
    ]

    def __init__(self, fh, length=None):
        PackedFormat.__init__(self, fh)
        self.groups = []
        for n in range(self.num_groups):
            self.groups.append(read_list_uint32(fh, 3))
        self.ends = [g[1] for g in self.groups]

    def char_to_glyph(self, char):
        idx = bisect_left(self.ends, char)
        if idx == len(self.groups):
            return 0
        start, end, glyph = self.groups[idx]
        if not start <= char <= end:
            return 0
        return glyph + char - start

    def as_map(self):
        cm = {}
        for start, end, glyph in self.groups:
            for c in range(start, end + 1):
                cm[c] = glyph + c - start
        return cm


class TTFcmapTable(PackedFormat):
    FORMAT = [
        {'name': 'platform_id', 'format': 'H'},
        {'name': 'encoding_id', 'format': 'H'},
        {'name': 'offset', 'format': 'I'},
    ]

    def __init__(self, fh=None):
        PackedFormat.__init__(self, fh)
        self.format = 0
        self.map_data = None

    def char_to_glyph(self, char):
        if self.map_data is None:
            return 0
        return self.map_data.char_to_glyph(char)

    def __str__(self):
        return 'cmap ({}, {}) format {}'.format(self.platform_id, self.encoding_id, self.format)


class TTF_cmap(PackedFormat):
    FORMAT = [
        {'name': 'version', 'format': 'H'},
        {'name': 'count', 'format': 'H'},
    ]
    # Searched in order, the first format found wins.
    PREFS = [12, 4]
    PARSERS = {4: TTF_cmap4, 12: TTF_cmap12}

    def __init__(self, data):
        fh = BytesIO(data)
        PackedFormat.__init__(self, fh)
        self.tables = []

        for n in range(self.count):
            self.tables.append(TTFcmapTable(fh))

        for tbl in self.tables:
            if tbl.offset >= len(data):
                raise ParseError("cmap subtable offset {} is outside the table".format(tbl.offset))
            fh.seek(tbl.offset)
            tbl.format = read_list_uint16(fh, 1)[0]
            if tbl.format not in self.PARSERS:
                continue
            if tbl.format == 12:
                read_list_uint16(fh, 1)  # reserved
                length = read_list_uint32(fh, 1)[0]
            else:
                length = read_list_uint16(fh, 1)[0]
            tbl.map_data = self.PARSERS[tbl.format](fh, length)

    def best_subtable(self):
        """ Select the subtable used to map characters to glyphs. """
        for fmt in self.PREFS:
            for tbl in self.tables:
                if tbl.format == fmt and tbl.map_data is not None:
                    return tbl
        raise NoUsableCMap("font has no format 12 or format 4 cmap subtable")


class TTF_glyf(PackedFormat):
    FORMAT = [
        {'name': 'contours', 'format': 'h'},
        {'name': 'x_min', 'format': 'h'},
        {'name': 'y_min', 'format': 'h'},
        {'name': 'x_max', 'format': 'h'},
        {'name': 'y_max', 'format': 'h'},
    ]

    def __init__(self, data, num=0):
        self.glyph = num
        # (position of the glyph index within data, glyph index)
        self.components = []
        self.contours = 0
        if len(data) == 0:
            return
        PackedFormat.__init__(self, data=data)

        # If the glyph is a compound glyph, ie it's made up of parts of other glyphs,
        # then we need to ensure we have all the component glyphs listed.
        if self.contours < 0:
            pos = len(self)
            while True:
                if pos + 4 > len(data):
                    raise ParseError("composite glyph {} is truncated".format(num))
                flags, next_glyph = unpack(">HH", data[pos:pos + 4])
                self.components.append((pos + 2, next_glyph))
                pos += 4 + calcsize(glyf_skip_format(flags))
                if not glyph_more_components(flags):
                    break

    def is_compound(self):
        return self.contours < 0

    @property
    def required(self):
        return [c[1] for c in self.components]
