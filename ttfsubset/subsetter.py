""" Entry points for subsetting a font image. """
import logging

from ttfsubset.naming import encode_suffix, subset_family_name
from ttfsubset.subset import REMOVE_TABLES
from ttfsubset.ttfile import TTFile

logger = logging.getLogger(__name__)

# U+0020 - U+007E
ASCII_PRINTABLE = ''.join(chr(n) for n in range(0x20, 0x7F))

__all__ = ['ASCII_PRINTABLE', 'encode_suffix', 'subset_family_name', 'subset_fonts']


def subset_fonts(font_bytes, subset_text, suffix=None, include_ascii_printable=True,
                 remove_tables=REMOVE_TABLES):
    """ Subset every font in a font image (a single font or a collection).

        The family names of the subset fonts become
        subset_family_name(<original family>, suffix).

    :param font_bytes: The font data.
    :param subset_text: Characters the subset fonts must be able to draw.
    :param suffix: Unencoded family name suffix, 'subset' if None.
    :param include_ascii_printable: Also keep the printable ASCII characters.
    :param remove_tables: Tags of tables to leave out of the subset fonts.
    :return: list holding one font binary per font in the image.
    """
    ttfile = TTFile(font_bytes)
    if include_ascii_printable:
        subset_text += ASCII_PRINTABLE

    output = []
    for face in ttfile.faces:
        font_subset = face.make_subset(subset_text, remove_tables)
        font_subset.rename_family(suffix)
        output.append(font_subset.output())
        logger.info("subset %s: %d bytes -> %d bytes", face.font_family,
                    sum(t.length for t in face.tables.values()), len(output[-1]))
    return output
