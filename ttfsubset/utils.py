from struct import calcsize, pack, unpack

from ttfsubset.exceptions import ParseError


class PackedFormat:
    """ Class to allow simpler extraction of data from a stream into an object with
        named attributes.
        All child classes need a FORMAT list of dicts describing the data to be extracted.

    """
    FORMAT = []

    def __init__(self, fh=None, data=None, endian='>'):
        self.endian = endian
        self.parsed = False
        if fh is not None:
            self.from_file(fh)
        elif data is not None:
            self.from_data(data)

    def _set_field(self, _f, _data):
        if 'name' not in _f:
            return
        if 'convert' in _f:
            setattr(self, _f['name'] + '_raw', _data)
            _fn = _f['convert'] if callable(_f['convert']) else getattr(self, _f['convert'])
            if _fn is not None and callable(_fn):
                _data = _fn(_data)
        setattr(self, _f['name'], _data)

    def from_file(self, fh):
        for _f in self.FORMAT:
            _fmt = '{}{}'.format(self.endian, _f['format'])
            self._set_field(_f, unpack(_fmt, read_exact(fh, calcsize(_fmt)))[0])
        self.parsed = True

    def from_data(self, data):
        offset = 0
        for _f in self.FORMAT:
            _fmt = '{}{}'.format(self.endian, _f['format'])
            _sz = calcsize(_fmt)
            if offset + _sz > len(data):
                raise ParseError("{} is truncated".format(self.__class__.__name__))
            self._set_field(_f, unpack(_fmt, data[offset: offset + _sz])[0])
            offset += _sz
        self.parsed = True

    def as_bytes(self):
        output = b''
        for _f in self.FORMAT:
            _fmt = '{}{}'.format(self.endian, _f['format'])
            if 'convert' in _f:
                _val = getattr(self, _f['name'] + '_raw', b'' if 's' in _f['format'] else 0)
            else:
                _val = getattr(self, _f['name'], b'' if 's' in _f['format'] else 0)
            output += pack(_fmt, _val)
        return output

    def __len__(self):
        fmt = "{}".format(self.endian)
        for _f in self.FORMAT:
            fmt += _f['format']
        return calcsize(fmt)


def binary_search_parameters(count, unit_size=1):
    """ The TTF specification has several places that require binary search
        parameters, e.g. the table directory and the CMAP Format 4 table.
    :param count: Number of entries that will be searched.
    :param unit_size: Size of a single entry in bytes.
    :return: search range, entry selector and range shift.
    """
    if count < 1:
        return 0, 0, 0
    entry_selector = count.bit_length() - 1
    search_range = (1 << entry_selector) * unit_size
    return search_range, entry_selector, count * unit_size - search_range


class Range:
    """ A run of characters forming one segment of a CMAP Format 4 table.
        While the glyphs are consecutive the segment needs only an id delta,
        once gaps are filled it has to carry its glyphs as an array.
    """
    def __init__(self, start=0, glyph=0):
        self.start = start
        self.end = start
        self.start_glyph = glyph
        self.glyphs = [glyph]
        self.is_delta = True

    @property
    def iddelta(self):
        return (self.start_glyph - self.start) & 0xFFFF

    def is_consecutive(self, n, g):
        return n == self.end + 1 and g == self.start_glyph + n - self.start

    def expand(self, n):
        self.glyphs.append(self.start_glyph + n - self.start)
        self.end = n

    def fill(self, n, g):
        """ Extend the segment to character n, mapping any characters skipped to glyph 0. """
        if not self.is_consecutive(n, g):
            self.is_delta = False
        self.glyphs.extend([0] * (n - self.end - 1))
        self.glyphs.append(g)
        self.end = n

    def __str__(self):
        if self.is_delta:
            return "CMAP: {} - {}  @  {}".format(self.start, self.end, self.iddelta)
        return "CMAP: {} - {}  [{} glyphs]".format(self.start, self.end, len(self.glyphs))


def read_exact(fh, size):
    data = fh.read(size)
    if len(data) < size:
        raise ParseError("unexpected end of data, wanted {} bytes, got {}".format(size, len(data)))
    return data


def read_list_int16(fh, n):
    fmt = ">{}h".format(n)
    return unpack(fmt, read_exact(fh, calcsize(fmt)))


def read_list_uint16(fh, n):
    fmt = ">{}H".format(n)
    return unpack(fmt, read_exact(fh, calcsize(fmt)))


def read_list_uint32(fh, n):
    fmt = ">{}I".format(n)
    return unpack(fmt, read_exact(fh, calcsize(fmt)))


def ttf_checksum(data):
    data += b'\0' * (-len(data) % 4)
    n_uint32 = len(data) // 4
    chksum = 0
    for val in unpack(">{}I".format(n_uint32), data):
        chksum += val
    return chksum & 0xFFFFFFFF


def pad4(data):
    return data + b'\0' * (-len(data) % 4)


#############################################################################
###
### Glyph Utilities...
###
#############################################################################

# Flag Constants
GF_ARG_1_AND_2_ARE_WORDS = (1 << 0)
GF_WE_HAVE_A_SCALE = (1 << 3)
GF_MORE_COMPONENTS = (1 << 5)
GF_WE_HAVE_AN_X_AND_Y_SCALE = (1 << 6)
GF_WE_HAVE_A_TWO_BY_TWO = (1 << 7)


def glyf_skip_format(flags):
    """ Return the correct format for the data we will skip past based on flags set. """
    skip = '>I' if flags & GF_ARG_1_AND_2_ARE_WORDS else '>H'
    if flags & GF_WE_HAVE_A_SCALE:
        return skip + 'H'
    elif flags & GF_WE_HAVE_AN_X_AND_Y_SCALE:
        return skip + 'I'
    elif flags & GF_WE_HAVE_A_TWO_BY_TWO:
        return skip + 'II'
    return skip


def glyph_more_components(flag):
    return flag & GF_MORE_COMPONENTS
