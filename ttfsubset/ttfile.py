import logging
from io import BytesIO

from ttfsubset.exceptions import ParseError
from ttfsubset.objects import TTFCollectionHeader
from ttfsubset.ttf import TTFont

logger = logging.getLogger(__name__)


class TTFile(object):
    """ A font image, either a single font or a collection of them.

    :param data: The raw bytes of the font file.
    """
    def __init__(self, data):
        self.data = bytes(data)
        self.faces = []

        if len(self.data) == 0:
            raise ParseError("the font data is empty")

        hdr = TTFCollectionHeader(BytesIO(self.data))
        self.is_collection = hdr.is_collection
        for off in hdr.offsets:
            self.faces.append(TTFont(self.data, off))
        logger.debug("parsed %d font(s), collection=%s", len(self.faces), self.is_collection)

    @property
    def is_valid(self):
        return len(self.faces) > 0
