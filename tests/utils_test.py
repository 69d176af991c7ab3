import unittest
import struct
from io import BytesIO

from ttfsubset.exceptions import ParseError
from ttfsubset.utils import binary_search_parameters, ttf_checksum, read_list_uint16, \
    glyf_skip_format, pad4, Range


class TestUtils(unittest.TestCase):
    def test_binary_parameters(self):
        cases = {
            (39, 1): (32, 5, 7),
            (10, 16): (128, 3, 32),
            (19, 2): (32, 4, 6),
            (1, 2): (2, 0, 0),
            (0, 16): (0, 0, 0),
        }
        for args, result in cases.items():
            self.assertEqual(binary_search_parameters(*args), result)

    def test_checksum(self):
        data = struct.pack(">12I", *range(0, 12))
        self.assertEqual(len(data), 48)
        self.assertEqual(ttf_checksum(data), 66)
        self.assertEqual(ttf_checksum(struct.pack(">12I", *range(1000, 13000, 1000))), 78000)
        self.assertEqual(ttf_checksum(struct.pack(">512I", *range(1024, 1024 * 2048, 4096))), 0x1FF80000)

    def test_checksum_unaligned(self):
        # trailing bytes count as if zero padded
        self.assertEqual(ttf_checksum(b'\x00\x00\x00\x01\x02'), 0x02000001)
        self.assertEqual(ttf_checksum(b'\xff\xff\xff\xff\x00\x00\x00\x01'), 0)

    def test_pad4(self):
        self.assertEqual(pad4(b''), b'')
        self.assertEqual(pad4(b'abc'), b'abc\0')
        self.assertEqual(pad4(b'abcd'), b'abcd')
        self.assertEqual(len(pad4(b'abcde')), 8)

    def test_short_read(self):
        with self.assertRaises(ParseError):
            read_list_uint16(BytesIO(b'\x00\x01\x00'), 2)

    def test_glyf_skip_format(self):
        self.assertEqual(struct.calcsize(glyf_skip_format(0)), 2)
        self.assertEqual(struct.calcsize(glyf_skip_format(0x0001)), 4)
        self.assertEqual(struct.calcsize(glyf_skip_format(0x0008)), 4)
        self.assertEqual(struct.calcsize(glyf_skip_format(0x0041)), 8)
        self.assertEqual(struct.calcsize(glyf_skip_format(0x0080)), 10)

    def test_range(self):
        rng = Range(0x41, 10)
        self.assertTrue(rng.is_consecutive(0x42, 11))
        self.assertFalse(rng.is_consecutive(0x42, 12))
        self.assertFalse(rng.is_consecutive(0x43, 12))
        rng.expand(0x42)
        self.assertEqual(rng.end, 0x42)
        self.assertEqual(rng.iddelta, (10 - 0x41) & 0xFFFF)
        self.assertEqual(Range(0xFFFF, 0).iddelta, 1)
        self.assertTrue(rng.is_delta)
        self.assertEqual(rng.glyphs, [10, 11])

    def test_range_fill(self):
        rng = Range(0x41, 10)
        rng.fill(0x44, 7)
        self.assertEqual(rng.end, 0x44)
        self.assertEqual(rng.glyphs, [10, 0, 0, 7])
        self.assertFalse(rng.is_delta)
        rng.fill(0x45, 3)
        self.assertEqual(rng.glyphs, [10, 0, 0, 7, 3])
