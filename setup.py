from setuptools import setup, find_packages
from os import path
from ttfsubset import __version__
import io


here = path.abspath(path.dirname(__file__))

# Get the long description from the relevant file
with io.open(path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()


setup(
    name='ttfsubset',
    version=__version__,
    description='Reduce TrueType fonts to the glyphs needed for a fixed string',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='Apache20',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Text Processing :: Fonts',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3',
    ],
    keywords='fonts truetype ttf ttc subset',
    packages=find_packages(exclude=['tests']),
    python_requires='>=3.8',
    extras_require={
        'test': ['fonttools>=4.38', 'pytest'],
    },
    test_suite='tests'
)
