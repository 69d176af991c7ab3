__version__ = '0.1.0'

from ttfsubset.exceptions import TTFSubsetError, ParseError, NoUsableCMap, SubsetTooLarge
from ttfsubset.registry import FontRegistry
from ttfsubset.subsetter import ASCII_PRINTABLE, encode_suffix, subset_family_name, subset_fonts
from ttfsubset.ttfile import TTFile
