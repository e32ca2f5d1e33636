import os
import re

from setuptools import find_packages, setup

VERSION = '0.3.1'


def parse_md_readme():
    """
    pypi won't render markdown. After conversion to rst it will still not render unless raw directives are removed
    """
    try:
        from m2r import parse_from_file

        rst_lines = parse_from_file('README.md').split('\n')
        long_description = []
        i = 0
        while i < len(rst_lines):
            if re.match(r'^..\s+raw::.*', rst_lines[i]):
                i += 1
                while re.match(r'^(\s\s+|\t|$).*', rst_lines[i]):
                    i += 1
            else:
                long_description.append(re.sub('>`_ ', '>`__ ', rst_lines[i]))  # anonymous links
                i += 1
        long_description = '\n'.join(long_description)
    except (ImportError, OSError):
        long_description = ''
    return long_description


# HSTLIB is a dependency for pysam.
# The optional compression libraries fail to build for some OS versions so we disable these options
os.environ.setdefault('HTSLIB_CONFIGURE_OPTIONS', '--disable-lzma --disable-bz2 --disable-libcurl')


TEST_REQS = [
    'timeout-decorator>=0.3.3',
    'coverage>=4.2',
    'pycodestyle>=2.3.1',
    'pytest',
    'pytest-cov',
]


INSTALL_REQS = [
    'biopython>=1.79',
    'braceexpand==0.1.2',
    'numpy>=1.20',
    'pandas>=1.1',
    'pysam>=0.16',
]

DEPLOY_REQS = ['twine', 'm2r', 'wheel']


setup(
    name='kdelta',
    version='{}'.format(VERSION),
    packages=find_packages(exclude=['tests', 'tests.*']),
    description='Per-window k-mer delta clustering and indel signatures from long-read alignments',
    long_description=parse_md_readme(),
    install_requires=INSTALL_REQS,
    extras_require={
        'test': TEST_REQS,
        'dev': ['black', 'flake8'] + TEST_REQS + DEPLOY_REQS,
        'deploy': DEPLOY_REQS,
    },
    tests_require=TEST_REQS,
    python_requires='>=3.7',
    test_suite='tests',
    entry_points={
        'console_scripts': [
            'kdelta = kdelta.main:entry_point',
        ]
    },
)
