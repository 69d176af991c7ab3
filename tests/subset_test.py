import unittest
from io import BytesIO

from fontTools.ttLib import TTFont as FTFont

from ttfsubset.exceptions import ParseError, SubsetTooLarge
from ttfsubset.subset import TTFSubset, REMOVE_TABLES
from ttfsubset.subsetter import subset_fonts
from ttfsubset.ttfile import TTFile
from ttfsubset.utils import binary_search_parameters, ttf_checksum

from tests.fonts import build_font, build_large_font, build_collection, drop_table, gid, \
    ARING, ARINGACUTE, HIRAGANA_A, ACUTE


class TestSubset(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.font = build_font()
        cls.subset = subset_fonts(cls.font, chr(ARING))[0]

    def test_glyphs(self):
        ft = FTFont(BytesIO(self.subset))
        expected = ['.notdef', 'Aring', 'space'] + ['uni{:04X}'.format(c) for c in range(0x21, 0x7F)] + ['ring']
        self.assertEqual(ft.getGlyphOrder(), expected)
        self.assertEqual(ft['maxp'].numGlyphs, len(expected))

        cmap = ft.getBestCmap()
        self.assertEqual(cmap[ARING], 'Aring')
        self.assertEqual(cmap[ord('A')], 'uni0041')
        self.assertEqual(cmap[0x20], 'space')
        self.assertNotIn(ARINGACUTE, cmap)
        self.assertNotIn(HIRAGANA_A, cmap)
        self.assertNotIn(ACUTE, cmap)

    def test_glyph_data(self):
        src = TTFile(self.font).faces[0]
        out = TTFile(self.subset).faces[0]
        self.assertEqual(out.get_glyph_data(0), src.get_glyph_data(0))
        subtable = out.best_cmap()
        for char in 'AZaz~!':
            new = out.char_to_glyph(ord(char), subtable)
            self.assertNotEqual(new, 0)
            self.assertEqual(out.get_glyph_data(new), src.get_glyph_data(src.char_to_glyph(ord(char))))

    def test_compound(self):
        out = TTFile(self.subset).faces[0]
        for g in range(out.n_glyphs):
            for component in out.get_glyph_components(g):
                self.assertLess(component, out.n_glyphs)
        ft = FTFont(BytesIO(self.subset))
        self.assertEqual([c.glyphName for c in ft['glyf']['Aring'].components], ['uni0041', 'ring'])

    def test_nested_compound(self):
        data = subset_fonts(self.font, chr(ARINGACUTE), include_ascii_printable=False)[0]
        ft = FTFont(BytesIO(data))
        self.assertEqual(ft.getGlyphOrder(), ['.notdef', 'Aringacute', 'Aring', 'uni0041', 'acute', 'ring'])
        self.assertEqual([c.glyphName for c in ft['glyf']['Aringacute'].components], ['Aring', 'acute'])
        self.assertEqual([c.glyphName for c in ft['glyf']['Aring'].components], ['uni0041', 'ring'])
        # every surviving mapping is kept, not only the requested characters
        self.assertEqual(ft.getBestCmap(), {ARINGACUTE: 'Aringacute', ARING: 'Aring', ord('A'): 'uni0041',
                                            ACUTE: 'acute', 0x02DA: 'ring'})

    def test_tables(self):
        out = TTFile(self.subset).faces[0]
        for tag in (b'cmap', b'glyf', b'loca', b'name', b'head', b'maxp', b'hhea', b'hmtx', b'post', b'OS/2'):
            self.assertIn(tag, out.tables)
        for tag in REMOVE_TABLES:
            self.assertNotIn(tag, out.tables)

    def test_directory(self):
        out = TTFile(self.subset).faces[0]
        header = out.header
        tags = [t.tag for t in header.tables]
        self.assertEqual(tags, sorted(tags))
        self.assertEqual(header.version, 0x00010000)
        self.assertEqual((header.search_range, header.entry_selector, header.range_shift),
                         binary_search_parameters(len(tags), 16))
        for tbl in header.tables:
            self.assertEqual(tbl.offset % 4, 0)

    def test_checksums(self):
        self.assertEqual(len(self.subset) % 4, 0)
        self.assertEqual(ttf_checksum(self.subset), 0xB1B0AFBA)
        for tbl in TTFile(self.subset).faces[0].header.tables:
            data = self.subset[tbl.offset:tbl.offset + tbl.length]
            if tbl.tag == b'head':
                data = data[:8] + bytes(4) + data[12:]
            self.assertEqual(ttf_checksum(data), tbl.checksum, tbl.tag)

    def test_fonttools_checksums(self):
        ft = FTFont(BytesIO(self.subset), checkChecksums=2)
        for tag in ft.reader.keys():
            self.assertTrue(ft.reader[tag])

    def test_deterministic(self):
        self.assertEqual(subset_fonts(self.font, chr(ARING))[0], self.subset)

    def test_metrics(self):
        src = FTFont(BytesIO(self.font))
        ft = FTFont(BytesIO(self.subset))
        self.assertEqual(ft['hhea'].numberOfHMetrics, len(ft.getGlyphOrder()))
        for name in ft.getGlyphOrder():
            self.assertEqual(ft['hmtx'][name], src['hmtx'][name])
        self.assertEqual(ft['post'].formatType, 2.0)
        self.assertEqual(ft['head'].unitsPerEm, 1000)

    def test_loca(self):
        out = TTFile(self.subset).faces[0]
        self.assertEqual(out.idx_format, 0)
        self.assertEqual(out.loca[-1], out.tables[b'glyf'].length)

    def test_name(self):
        ft = FTFont(BytesIO(self.subset))
        self.assertEqual(ft['name'].getName(1, 3, 1, 0x409).toUnicode(), 'Test Sans+subset')
        self.assertEqual(ft['name'].getName(1, 1, 0, 0).toUnicode(), 'Test Sans+subset')
        self.assertEqual(ft['name'].getName(2, 3, 1, 0x409).toUnicode(), 'Regular')
        self.assertEqual(TTFile(self.subset).faces[0].font_family, 'Test Sans+subset')

    def test_typographic_name(self):
        data = build_font(family='Test Sans Bold', typographic_family='Test Sans')
        out = subset_fonts(data, 'x', suffix='web fonts')[0]
        ft = FTFont(BytesIO(out))
        self.assertEqual(ft['name'].getName(16, 3, 1, 0x409).toUnicode(), 'Test Sans+web%20fonts')
        self.assertEqual(ft['name'].getName(1, 3, 1, 0x409).toUnicode(), 'Test Sans Bold+web%20fonts')
        self.assertEqual(TTFile(out).faces[0].font_family, 'Test Sans+web%20fonts')

    def test_collection(self):
        data = build_collection(build_font('Alpha'), build_font('Beta'))
        out = subset_fonts(data, 'abc')
        self.assertEqual(len(out), 2)
        self.assertEqual([TTFile(o).faces[0].font_family for o in out], ['Alpha+subset', 'Beta+subset'])
        for o in out:
            self.assertFalse(TTFile(o).is_collection)

    def test_without_ascii(self):
        out = subset_fonts(self.font, '', include_ascii_printable=False)[0]
        face = TTFile(out).faces[0]
        self.assertEqual(face.n_glyphs, 1)
        self.assertEqual(face.best_cmap().map_data.as_map(), {})

    def test_non_bmp(self):
        out = subset_fonts(build_font(non_bmp=True), chr(0x1F600) + 'A', include_ascii_printable=False)[0]
        ft = FTFont(BytesIO(out))
        self.assertEqual(ft.getGlyphOrder(), ['.notdef', 'uni0041'])
        self.assertEqual(ft.getBestCmap(), {ord('A'): 'uni0041'})

    def test_remove_tables(self):
        out = TTFile(subset_fonts(self.font, 'A', remove_tables=frozenset())[0]).faces[0]
        self.assertIn(b'GSUB', out.tables)
        out = TTFile(subset_fonts(self.font, 'A', remove_tables={b'OS/2'})[0]).faces[0]
        self.assertNotIn(b'OS/2', out.tables)
        self.assertIn(b'DSIG', out.tables)

    def test_missing_table(self):
        with self.assertRaises(ParseError):
            subset_fonts(drop_table(self.font, 'name'), 'A')
        with self.assertRaises(ParseError):
            subset_fonts(drop_table(self.font, 'cmap'), 'A')

    def test_too_large(self):
        face = TTFile(self.font).faces[0]
        with self.assertRaises(SubsetTooLarge):
            TTFSubset(face, range(0x10000), face.best_cmap())

    def test_char_map(self):
        face = TTFile(self.font).faces[0]
        subset = TTFSubset(face, [gid('uni0041'), gid('uni0042'), gid('uni0044'), gid('kana')], face.best_cmap())
        self.assertEqual(subset.char_to_glyph, {0x41: 1, 0x42: 2, 0x44: 3, HIRAGANA_A: 4})
        ranges = subset.build_cmap_ranges()
        self.assertEqual([(r.start, r.end) for r in ranges],
                         [(0x41, 0x42), (0x44, 0x44), (HIRAGANA_A, HIRAGANA_A), (0xFFFF, 0xFFFF)])

    def test_cmap_array_ranges(self):
        face = TTFile(self.font).faces[0]
        subset = TTFSubset(face, [gid('uni0041')], face.best_cmap())
        subset.char_to_glyph = {0x41: 1, 0x43: 2, 0x48: 3}
        ranges = subset.build_cmap_array_ranges()
        self.assertEqual([(r.start, r.end) for r in ranges], [(0x41, 0x43), (0x48, 0x48), (0xFFFF, 0xFFFF)])
        self.assertEqual(ranges[0].glyphs, [1, 0, 2])
        self.assertFalse(ranges[0].is_delta)
        self.assertTrue(ranges[1].is_delta)


class TestScatteredSubset(unittest.TestCase):
    """ Every other character of a large font is too many segments for id deltas alone. """
    COUNT = 18000

    @classmethod
    def setUpClass(cls):
        cls.font = build_large_font(cls.COUNT)
        cls.chars = [0x4E00 + n for n in range(0, cls.COUNT, 2)]
        cls.subset = subset_fonts(cls.font, ''.join(chr(c) for c in cls.chars),
                                  include_ascii_printable=False)[0]

    def test_char_map(self):
        face = TTFile(self.subset).faces[0]
        self.assertEqual(face.n_glyphs, len(self.chars) + 1)
        subtable = face.best_cmap()
        self.assertEqual(subtable.format, 4)
        self.assertEqual(len(subtable.map_data.ranges), 2)
        for n, char in enumerate(self.chars):
            self.assertEqual(subtable.char_to_glyph(char), n + 1)
            self.assertEqual(subtable.char_to_glyph(char + 1), 0)
        self.assertEqual(len(subtable.map_data.as_map()), len(self.chars))

    def test_fonttools(self):
        ft = FTFont(BytesIO(self.subset))
        cmap = ft.getBestCmap()
        self.assertEqual(len(cmap), len(self.chars))
        self.assertEqual(cmap[self.chars[-1]], 'uni{:04X}'.format(self.chars[-1]))
        self.assertNotIn(self.chars[0] + 1, cmap)
