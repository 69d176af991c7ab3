import logging
import sys

from ttfsubset import TTFile, subset_fonts


if __name__ == '__main__':
    if len(sys.argv) < 3:
        print("Usage: {} <font filename> <text> [suffix]".format(sys.argv[0]))
        sys.exit(0)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    with open(sys.argv[1], 'rb') as fh:
        data = fh.read()
    suffix = sys.argv[3] if len(sys.argv) > 3 else None

    for n, font in enumerate(subset_fonts(data, sys.argv[2], suffix)):
        filename = 'font_subset_{}.ttf'.format(n)
        with open(filename, 'wb') as fh:
            fh.write(font)
        print("{}: {} ({} bytes)".format(filename, TTFile(font).faces[0].font_family, len(font)))
