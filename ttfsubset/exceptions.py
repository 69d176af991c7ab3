"""Exceptions raised while subsetting fonts."""


class TTFSubsetError(Exception):
    """Base exception for all ttfsubset errors."""


class ParseError(TTFSubsetError):
    """The font binary is malformed, truncated or of an unsupported version."""

    def __init__(self, reason):
        TTFSubsetError.__init__(self, reason)
        self.reason = reason


class NoUsableCMap(TTFSubsetError):
    """The font has no format 12 or format 4 character map."""


class SubsetTooLarge(TTFSubsetError):
    """More glyphs are covered than a 16-bit glyph id can address."""
