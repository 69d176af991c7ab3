import logging
from struct import pack

from ttfsubset.exceptions import SubsetTooLarge
from ttfsubset.naming import rewrite_family_name
from ttfsubset.objects import TTF_head, TTF_hhea, TTF_name, TTF_post
from ttfsubset.utils import Range, binary_search_parameters
from ttfsubset.writer import write_font

logger = logging.getLogger(__name__)

# Most of the following are valid tables, but they reference glyphs by id and
# are not renumbered, so they are stripped.
REMOVE_TABLES = frozenset([
    b'GDEF', b'GPOS', b'GSUB',
    b'kern', b'hdmx', b'vmtx', b'VDMX', b'LTSH', b'DSIG', b'vhea',
    # AAT
    b'mort', b'morx',
])

MAX_GLYPHS = 0xFFFF
# Largest glyf table a short (16-bit, halved) loca table can address.
MAX_SHORT_LOCA = 0x1FFFE

POST_STANDARD_NAMES = 258

# Windows, Unicode BMP
CMAP_PLATFORM = 3
CMAP_ENCODING = 1
# Bytes a format 4 segment takes in the end, start, delta and range offset arrays.
CMAP_SEGMENT_SIZE = 8


class TTFSubset:
    """ The tables of a font reduced to a set of glyphs.

    Glyphs are renumbered densely in ascending order of their original id,
    so glyph 0 remains glyph 0.

    :param parent: TTFont the glyphs are taken from.
    :param glyphs: Iterable of the glyph ids to keep.
    :param subtable: The parent's cmap subtable to carry character mappings from.
    :param remove_tables: Tags of tables to leave out of the subset.
    """
    def __init__(self, parent, glyphs, subtable, remove_tables=REMOVE_TABLES):
        self.parent = parent
        self.subtable = subtable
        self.remove_tables = frozenset(remove_tables)
        self.required_glyphs = sorted(set(glyphs) | {0})

        self.tables = {}
        self.name_table = None
        self.glyph_map = {}
        self.char_to_glyph = {}
        self.metrics = []
        self.short_loca = True

        self.build()

    def build(self):
        self.parent.check_subsettable()
        self.find_glyph_map()
        self.build_char_map()
        self.get_glyphs()
        self.add_cmap_table()
        self.copy_tables()
        logger.info("subset holds %d of %d glyphs, %d characters",
                    len(self.required_glyphs), self.parent.n_glyphs, len(self.char_to_glyph))

    def find_glyph_map(self):
        if len(self.required_glyphs) > MAX_GLYPHS:
            raise SubsetTooLarge("{} glyphs cannot be numbered with 16 bit ids".format(len(self.required_glyphs)))
        self.glyph_map = {}
        for rg in self.required_glyphs:
            self.glyph_map[rg] = len(self.glyph_map)

    def build_char_map(self):
        """ Every character of the source mapping whose glyph survives is kept. """
        self.char_to_glyph = {}
        for code, glyph in sorted(self.subtable.map_data.as_map().items()):
            # 0xFFFF is reserved for the final format 4 segment
            if code >= 0xFFFF or glyph not in self.glyph_map or glyph == 0:
                continue
            self.char_to_glyph[code] = self.glyph_map[glyph]

    def get_glyphs(self):
        glyphs = []
        self.metrics = []
        for g in self.required_glyphs:
            glyph = self.parent.get_glyph(g)
            data = self.parent.get_glyph_data(g)
            if glyph.is_compound():
                # need to adjust glyph indexes...
                data = bytearray(data)
                for pos, old_glyph in glyph.components:
                    new_glyph = self.glyph_map.get(old_glyph)
                    if new_glyph is None:
                        logger.warning("glyph %d refers to missing glyph %d", g, old_glyph)
                        new_glyph = 0
                    data[pos:pos + 2] = pack(">H", new_glyph)
                data = bytes(data)
            glyphs.append(data)
            if g < len(self.parent.glyph_metrics):
                self.metrics.append(self.parent.glyph_metrics[g])
            else:
                self.metrics.append((0, 0))

        total = sum(len(d) for d in glyphs)
        self.short_loca = total <= MAX_SHORT_LOCA and all(len(d) % 2 == 0 for d in glyphs)

        locations = [0]
        for d in glyphs:
            locations.append(locations[-1] + len(d))
        self.tables[b'glyf'] = b''.join(glyphs)
        if self.short_loca:
            self.tables[b'loca'] = pack(">{}H".format(len(locations)), *[n // 2 for n in locations])
        else:
            self.tables[b'loca'] = pack(">{}I".format(len(locations)), *locations)

    def build_cmap_ranges(self):
        # As we will likely have a scattered map we will use CMAP Format 4.
        # Consecutive characters mapped to consecutive glyphs share a segment,
        # described only by an id delta.
        cmap_ranges = []
        for cc, glyph in sorted(self.char_to_glyph.items()):
            if cmap_ranges and cmap_ranges[-1].is_consecutive(cc, glyph):
                cmap_ranges[-1].expand(cc)
            else:
                cmap_ranges.append(Range(cc, glyph))
        cmap_ranges.append(Range(0xFFFF, 0))
        return cmap_ranges

    def build_cmap_array_ranges(self):
        """ Fewer, wider segments for maps too scattered for id deltas alone.

        A run is folded into the segment before it, bridging the characters
        between them with glyph 0, whenever the glyph array entries that adds
        take less room than a segment of its own.
        """
        cmap_ranges = []
        for rng in self.build_cmap_ranges()[:-1]:
            if cmap_ranges:
                last = cmap_ranges[-1]
                cost = 2 * (rng.start - last.end - 1 + len(rng.glyphs))
                if last.is_delta:
                    cost += 2 * len(last.glyphs)
                if cost < CMAP_SEGMENT_SIZE:
                    for n, glyph in enumerate(rng.glyphs):
                        last.fill(rng.start + n, glyph)
                    continue
            cmap_ranges.append(rng)
        cmap_ranges.append(Range(0xFFFF, 0))
        return cmap_ranges

    def add_cmap_table(self):
        cmap_ranges = self.build_cmap_ranges()
        if 16 + CMAP_SEGMENT_SIZE * len(cmap_ranges) > 0xFFFF:
            logger.debug("%d cmap segments, merging them with a glyph id array", len(cmap_ranges))
            cmap_ranges = self.build_cmap_array_ranges()

        seg_count = len(cmap_ranges)
        deltas = []
        range_offsets = []
        glyph_ids = []
        for n, rng in enumerate(cmap_ranges):
            if rng.is_delta:
                deltas.append(rng.iddelta)
                range_offsets.append(0)
            else:
                # offset in bytes from this entry of the range offsets to the glyph array
                deltas.append(0)
                range_offsets.append(2 * (seg_count - n + len(glyph_ids)))
                glyph_ids.extend(rng.glyphs)

        length = 16 + CMAP_SEGMENT_SIZE * seg_count + 2 * len(glyph_ids)
        if length > 0xFFFF:
            raise SubsetTooLarge("{} cmap segments do not fit a format 4 subtable".format(seg_count))
        search_range, entry_selector, range_shift = binary_search_parameters(seg_count, 2)

        data = [
            0,                  # version
            1,                  # number of subtables
            CMAP_PLATFORM,      # platform id (MS)
            CMAP_ENCODING,      # encoding id (Unicode BMP)
            0, 12,              # subtable location
            #                     subtable
            4,                  # format
            length,             # length
            0,                  # language
            seg_count * 2,      # seg count * 2
            search_range,       # 2 * 2 ** floor(log2(seg_count))
            entry_selector,     # log2(search_range / 2)
            range_shift,        # 2 * seg_count - search_range
        ]
        data.extend([r.end for r in cmap_ranges])
        data.append(0)          # reserved pad
        data.extend([r.start for r in cmap_ranges])
        data.extend(deltas)
        data.extend(range_offsets)
        data.extend(glyph_ids)
        self.tables[b'cmap'] = pack(">{}H".format(len(data)), *data)

    def copy_tables(self):
        parent = self.parent

        head = TTF_head(data=parent.get_table_data(b'head'))
        head.checksum_adj = 0
        head.index_to_loc_format = 0 if self.short_loca else 1
        self.tables[b'head'] = head.as_bytes() + parent.get_table_data(b'head')[len(head):]

        maxp = parent.get_table_data(b'maxp')
        self.tables[b'maxp'] = maxp[:4] + pack(">H", len(self.required_glyphs)) + maxp[6:]

        if b'hhea' in parent.tables and b'hmtx' in parent.tables:
            hhea = TTF_hhea(data=parent.get_table_data(b'hhea'))
            hhea.number_of_metrics = len(self.metrics)
            self.tables[b'hhea'] = hhea.as_bytes()
            self.tables[b'hmtx'] = b''.join(pack(">Hh", *m) for m in self.metrics)

        if b'post' in parent.tables:
            self.add_post_table()

        self.name_table = TTF_name(data=parent.get_table_data(b'name'))

        for tag in parent.tables:
            if tag in self.tables or tag == b'name':
                continue
            if tag in self.remove_tables:
                logger.debug("dropping table %s", tag.decode('latin-1'))
                continue
            self.tables[tag] = parent.get_table_data(tag)

    def add_post_table(self):
        """ Glyph names are kept for a version 2.0 table, any other version is
            reduced to a 3.0 table that holds none.
        """
        post = TTF_post(data=self.parent.get_table_data(b'post'))
        if post.version != TTF_post.VERSION_2:
            post.version = TTF_post.VERSION_3
            self.tables[b'post'] = post.as_bytes()
            return

        indexes = []
        names = []
        name_index = {}
        for g in self.required_glyphs:
            idx = post.glyph_name_index[g] if g < len(post.glyph_name_index) else 0
            if idx >= POST_STANDARD_NAMES:
                custom = idx - POST_STANDARD_NAMES
                if custom >= len(post.names):
                    logger.warning("glyph %d has no name string", g)
                    idx = 0
                else:
                    name = post.names[custom]
                    if name not in name_index:
                        name_index[name] = POST_STANDARD_NAMES + len(names)
                        names.append(name)
                    idx = name_index[name]
            indexes.append(idx)

        data = post.as_bytes()
        data += pack(">H", len(indexes))
        data += pack(">{}H".format(len(indexes)), *indexes)
        for name in names:
            data += pack(">B", len(name)) + name
        self.tables[b'post'] = data

    def rename_family(self, suffix=None):
        rewrite_family_name(self.name_table, suffix)

    def output(self):
        """ Generate a binary based on the subset we have been given. """
        tables = dict(self.tables)
        tables[b'name'] = self.name_table.as_bytes()
        return write_font(tables)
