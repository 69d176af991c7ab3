import logging
from io import BytesIO
from struct import unpack

from ttfsubset.exceptions import ParseError
from ttfsubset.naming import family_name
from ttfsubset.objects import TTFHeader, TTF_head, TTF_name, TTF_hhea, TTF_maxp, TTF_cmap, TTF_glyf
from ttfsubset.subset import REMOVE_TABLES, TTFSubset
from ttfsubset.utils import read_exact, read_list_int16, read_list_uint16, read_list_uint32

logger = logging.getLogger(__name__)


class TTFont(object):
    """ A single font within a font image.

    Tables are read from the shared image data on demand and never modified.
    """
    REQUIRED_TABLES = (b'cmap', b'glyf', b'loca', b'name', b'head', b'maxp')

    def __init__(self, data, offset=0):
        self.header = None
        self.tables = {}
        self.parsed = {}
        self.data = data
        self.start_pos = offset

        self.idx_format = 0
        self.n_glyphs = 0
        self.glyph_metrics = []
        self.loca = []
        self.parse()

    def parse(self):
        if self.start_pos + 12 > len(self.data):
            raise ParseError("font offset {} is outside the font data".format(self.start_pos))
        fh = BytesIO(self.data)
        fh.seek(self.start_pos)
        self.header = TTFHeader(fh)
        for tbl in self.header.tables:
            if tbl.offset + tbl.length > len(self.data):
                raise ParseError("table {!r} is truncated".format(tbl.tag))
            self.tables[tbl.tag] = tbl

        self.idx_format = self.get_table_attr(b'head', TTF_head, 'index_to_loc_format', 0)
        self.n_glyphs = self.get_table_attr(b'maxp', TTF_maxp, 'num_glyphs', 0)
        if self.idx_format not in (0, 1):
            raise ParseError("unknown index to location format {}".format(self.idx_format))

        self.get_hmtx()
        self.get_loca()

    @property
    def font_family(self):
        name = self.get_table(b'name', TTF_name)
        if name is None:
            return None
        return family_name(name)

    @property
    def missing_tables(self):
        return [tag for tag in self.REQUIRED_TABLES if tag not in self.tables]

    def check_subsettable(self):
        missing = self.missing_tables
        if missing:
            raise ParseError("font lacks required tables: {}".format(", ".join(t.decode('latin-1') for t in missing)))
        if self.n_glyphs == 0:
            raise ParseError("font has no glyphs")

    # Internal Table Functions
    def get_table_data(self, tag):
        tbl = self.tables.get(tag)
        if tbl is None:
            return None
        return self.data[tbl.offset:tbl.offset + tbl.length]

    def get_table(self, tag, obj_class):
        tbl_obj = self.parsed.get(tag)
        if tbl_obj is None:
            data = self.get_table_data(tag)
            if data is None:
                return None
            tbl_obj = obj_class(data=data)
            self.parsed[tag] = tbl_obj
        return tbl_obj

    def get_table_attr(self, tag, obj_class, attr, default=None):
        tbl = self.get_table(tag, obj_class)
        if tbl is None:
            return default
        return getattr(tbl, attr, default)

    def get_hmtx(self):
        """ Read the glyph metrics. """
        data = self.get_table_data(b'hmtx')
        if data is None:
            return
        n_metrics = min(self.get_table_attr(b'hhea', TTF_hhea, 'number_of_metrics', 0), self.n_glyphs)
        fh = BytesIO(data)
        aw = 0
        for n in range(n_metrics):
            aw, lsb = unpack(">Hh", read_exact(fh, 4))
            self.glyph_metrics.append((aw, lsb))
        # Now we have read the aw and lsb for specific glyphs, we need to read additional
        # lsb data.
        extra = self.n_glyphs - n_metrics
        if extra > 0:
            for lsb in read_list_int16(fh, extra):
                self.glyph_metrics.append((aw, lsb))

    def get_loca(self):
        data = self.get_table_data(b'loca')
        if data is None:
            return
        fh = BytesIO(data)
        if self.idx_format == 0:
            self.loca = [n * 2 for n in read_list_uint16(fh, self.n_glyphs + 1)]
        else:
            self.loca = list(read_list_uint32(fh, self.n_glyphs + 1))

    # Character map
    def best_cmap(self):
        return self.get_table(b'cmap', TTF_cmap).best_subtable()

    def char_to_glyph(self, char, subtable=None):
        if subtable is None:
            subtable = self.best_cmap()
        glyph = subtable.char_to_glyph(char)
        if glyph >= self.n_glyphs:
            logger.warning("character U+%04X maps to missing glyph %d", char, glyph)
            return 0
        return glyph

    # Glyphs
    def get_glyph_data(self, glyph):
        glyf = self.tables[b'glyf']
        start, end = self.loca[glyph], self.loca[glyph + 1]
        if end < start or end > glyf.length:
            raise ParseError("glyph {} lies outside the glyf table".format(glyph))
        return self.data[glyf.offset + start:glyf.offset + end]

    def get_glyph(self, glyph):
        return TTF_glyf(self.get_glyph_data(glyph), glyph)

    def get_glyph_components(self, glyph):
        """ Return the glyphs directly referenced by a compound glyph. """
        return self.get_glyph(glyph).required

    def glyph_coverage(self, subtable, text):
        """ Find every glyph needed to draw the characters in text.

        Compound glyphs pull in their components, however deeply nested. A
        glyph that has already been seen is not visited again, so cyclic
        compound definitions terminate.

        :param subtable: The cmap subtable used to look characters up.
        :param text: String of characters to cover.
        :return: Sorted list of glyph ids, always including glyph 0.
        """
        coverage = set()
        stack = [0]
        for char in sorted(set(text)):
            code = ord(char)
            if code > 0xFFFF:
                logger.debug("skipping U+%X, outside the basic multilingual plane", code)
                continue
            stack.append(self.char_to_glyph(code, subtable))

        while stack:
            glyph = stack.pop()
            if glyph in coverage:
                continue
            if glyph >= self.n_glyphs:
                logger.warning("compound glyph refers to missing glyph %d", glyph)
                continue
            coverage.add(glyph)
            stack.extend(self.get_glyph_components(glyph))
        return sorted(coverage)

    def make_subset(self, text, remove_tables=REMOVE_TABLES):
        """ Given a string of characters, create a subset of the font holding only
            the glyphs needed to draw them.
        :param text: String of characters to include.
        :param remove_tables: Tags of tables to leave out.
        :return: TTFSubset object
        """
        self.check_subsettable()
        subtable = self.best_cmap()
        logger.debug("using %s", subtable)
        return TTFSubset(self, self.glyph_coverage(subtable, text), subtable, remove_tables)
