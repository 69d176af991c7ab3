""" A registry of font data keyed by family name.

    Subset fonts are produced before the registry lock is taken; the lock only
    guards the short register/remove steps so that concurrent callers do not
    queue up behind each other's subsetting work.
"""
import logging
import threading

from ttfsubset.exceptions import ParseError
from ttfsubset.naming import encode_suffix
from ttfsubset.subsetter import subset_fonts
from ttfsubset.ttfile import TTFile

logger = logging.getLogger(__name__)


def suffix_predicate(suffix):
    """ Return a predicate matching family names that end with '+<encoded suffix>'. """
    ending = '+' + encode_suffix(suffix)
    return lambda name: name.endswith(ending)


class FontRegistry(object):
    def __init__(self):
        self._lock = threading.Lock()
        self._families = {}

    @staticmethod
    def family_names(data):
        """ Family name of every font in the font data, in order. """
        names = []
        for face in TTFile(data).faces:
            name = face.font_family
            if name is None:
                raise ParseError("font has no family name")
            if name not in names:
                names.append(name)
        return names

    def register(self, data):
        names = self.family_names(data)
        with self._lock:
            self._add(data, names)
        return names

    def remove(self, predicate):
        """ Remove every family whose name satisfies predicate.
        :return: list of the family names removed.
        """
        with self._lock:
            return self._remove(predicate)

    def lookup(self, family_name):
        """ Return the font data registered under a family name (possibly empty). """
        with self._lock:
            return list(self._families.get(family_name, []))

    def families(self):
        with self._lock:
            return sorted(self._families)

    def __contains__(self, family_name):
        with self._lock:
            return family_name in self._families

    def _add(self, data, names):
        for name in names:
            self._families.setdefault(name, []).append(data)
            logger.debug("registered %s", name)

    def _remove(self, predicate):
        removed = [name for name in self._families if predicate(name)]
        for name in removed:
            del self._families[name]
            logger.debug("removed %s", name)
        return removed

    # Subset fonts
    def _subset(self, font_bytes, subset_text, suffix, include_ascii_printable):
        fonts = subset_fonts(font_bytes, subset_text, suffix, include_ascii_printable)
        return [(data, self.family_names(data)) for data in fonts]

    def register_subset_fonts(self, font_bytes, subset_text, suffix=None, include_ascii_printable=True):
        """ Subset the fonts in font_bytes and register the results.
        :return: list of the family names registered.
        """
        prepared = self._subset(font_bytes, subset_text, suffix, include_ascii_printable)
        registered = []
        with self._lock:
            for data, names in prepared:
                self._add(data, names)
                registered.extend(names)
        return registered

    def update_subset_fonts(self, font_bytes, subset_text, suffix, include_ascii_printable=True):
        """ Replace every font registered with suffix by fresh subsets of font_bytes.
        :return: list of the family names registered.
        """
        prepared = self._subset(font_bytes, subset_text, suffix, include_ascii_printable)
        registered = []
        with self._lock:
            self._remove(suffix_predicate(suffix))
            for data, names in prepared:
                self._add(data, names)
                registered.extend(names)
        logger.info("updated subset fonts %s", ", ".join(registered))
        return registered

    def remove_subset_font_by_name(self, family_name):
        return self.remove(lambda name: name == family_name)

    def remove_subset_fonts_by_suffix(self, suffix):
        return self.remove(suffix_predicate(suffix))
