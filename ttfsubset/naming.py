""" Name table manipulation for subset fonts.

    A subset font is renamed to "<family>+<suffix>" so that it can be registered
    next to the font it was made from.
"""
import logging
from urllib.parse import quote

from ttfsubset.objects import NAME_FONT_FAMILY, NAME_TYPOGRAPHIC_FAMILY

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = 'subset'

PLATFORM_UNICODE = 0
PLATFORM_MACINTOSH = 1
PLATFORM_WINDOWS = 3

WINDOWS_UCS2 = 1
WINDOWS_SHIFT_JIS = 2
WINDOWS_UCS4 = 10
MACINTOSH_JAPANESE = 1
UNICODE_2_0_FULL = 4

FALLBACK_ENCODING = 'utf-8'

# (platform, encoding) -> codec
NAME_ENCODINGS = {
    (PLATFORM_WINDOWS, WINDOWS_UCS2): 'utf-16-be',
    (PLATFORM_WINDOWS, WINDOWS_UCS4): 'utf-32-be',
    (PLATFORM_WINDOWS, WINDOWS_SHIFT_JIS): 'shift_jis',
    (PLATFORM_MACINTOSH, MACINTOSH_JAPANESE): 'shift_jis',
    (PLATFORM_UNICODE, UNICODE_2_0_FULL): 'utf-32-be',
}

# Lower sorts first when choosing which record names the family.
PLATFORM_PREFERENCE = {PLATFORM_WINDOWS: 0, PLATFORM_UNICODE: 1, PLATFORM_MACINTOSH: 2}
LANGUAGE_EN_US = 0x409


def encode_suffix(suffix):
    """ Percent encode (RFC 3986) a suffix for use within a family name. """
    return quote(suffix, safe='')


def subset_family_name(original_name, suffix=None):
    """ Return the family name given to a subset font.
    :param original_name: Family name of the source font.
    :param suffix: Unencoded suffix, 'subset' if None.
    :return: original_name + '+' + encoded suffix
    """
    if suffix is None:
        suffix = DEFAULT_SUFFIX
    return '{}+{}'.format(original_name, encode_suffix(suffix))


def resolve_encoding(platform_id, encoding_id, language_id):
    """ Return the codec used for the bytes of a name record.

        The language is not currently needed to decide. Unknown combinations
        fall back to UTF-8, which agrees with the single byte encodings over
        printable ASCII.
    """
    codec = NAME_ENCODINGS.get((platform_id, encoding_id))
    if codec is not None:
        return codec
    if platform_id == PLATFORM_UNICODE:
        return 'utf-16-be'
    return FALLBACK_ENCODING


def decode_name(record):
    codec = resolve_encoding(record.platform_id, record.encoding_id, record.language_id)
    return record.raw.decode(codec, errors='replace')


def rewrite_family_name(name_table, suffix=None):
    """ Append '+<encoded suffix>' to every family (1) and typographic family (16) name.
        Each record is written back with the codec it was read with, all other
        records are untouched.
    :param name_table: TTF_name object, modified in place.
    :param suffix: Unencoded suffix, 'subset' if None.
    """
    for record in name_table.records(NAME_FONT_FAMILY, NAME_TYPOGRAPHIC_FAMILY):
        codec = resolve_encoding(record.platform_id, record.encoding_id, record.language_id)
        new_name = subset_family_name(record.raw.decode(codec, errors='replace'), suffix)
        record.raw = new_name.encode(codec, errors='replace')
        logger.debug("renamed %s", record)


def family_name(name_table):
    """ Return the name of the family a font belongs to, or None.
        The typographic family wins over the legacy family name and Windows
        English records over anything else.
    """
    for name_id in (NAME_TYPOGRAPHIC_FAMILY, NAME_FONT_FAMILY):
        records = name_table.records(name_id)
        if records:
            best = min(records, key=lambda r: (PLATFORM_PREFERENCE.get(r.platform_id, 3),
                                               r.language_id != LANGUAGE_EN_US))
            return decode_name(best)
    return None
