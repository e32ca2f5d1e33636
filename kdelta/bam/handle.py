"""
file handles for the alignment and reference inputs. Each worker opens its own handles, they are not
safe to share between threads since fetching moves the underlying file pointer
"""
import re
from typing import Iterable

import pysam

from ..error import SetupError

PILEUP_MAX_DEPTH = 1000000


def resolve_reference_name(input_chrom: str, references: Iterable[str]) -> str:
    """
    find the name used by the file for a given chromosome, allowing for a missing or added 'chr' prefix

    Raises:
        KeyError: the chromosome is not present in the file
    """
    references = set(references)
    chrom = str(input_chrom)
    if chrom in references:
        return chrom
    chrom = re.sub('^chr', '', chrom)
    if chrom in references:
        return chrom
    chrom = 'chr' + chrom
    if chrom in references:
        return chrom
    raise KeyError('file does not contain the expected reference', input_chrom)


class AlignmentHandle:
    """
    wrapper around an indexed pysam alignment file
    """

    def __init__(self, bamfile: str, reference_filename: str = None):
        """
        Args:
            bamfile: path to the indexed bam (or cram) file
            reference_filename: reference used to decode cram files
        """
        self.filename = bamfile
        try:
            self.fh = pysam.AlignmentFile(bamfile, 'r', reference_filename=reference_filename)
        except (OSError, ValueError) as err:
            raise SetupError('unable to open the alignment file', bamfile, str(err))
        if not self.fh.has_index():
            self.fh.close()
            raise SetupError('alignment file is missing its index', bamfile)

    def fetch(self, chrom: str, start: int, end: int):
        """
        Returns:
            iterator of :class:`pysam.AlignedSegment`: reads overlapping the region
        """
        return self.fh.fetch(resolve_reference_name(chrom, self.fh.references), start, end)

    def pileup(self, chrom: str, start: int, end: int):
        """
        pileup columns for each position in [start, end). No reads are filtered and all base
        qualities are kept, filtering is left to the caller

        Returns:
            iterator of :class:`pysam.PileupColumn`
        """
        return self.fh.pileup(
            resolve_reference_name(chrom, self.fh.references),
            start,
            end,
            truncate=True,
            stepper='nofilter',
            max_depth=PILEUP_MAX_DEPTH,
            ignore_overlaps=False,
            ignore_orphans=False,
            min_base_quality=0,
        )

    def close(self):
        self.fh.close()

    def __enter__(self):
        return self

    def __exit__(self, *pos):
        self.close()


class ReferenceHandle:
    """
    wrapper around an indexed pysam fasta file
    """

    def __init__(self, filename: str):
        self.filename = filename
        try:
            self.fh = pysam.FastaFile(filename)
        except (OSError, ValueError) as err:
            raise SetupError('unable to open the reference file', filename, str(err))

    def fetch(self, chrom: str, start: int, end: int) -> str:
        """
        Returns:
            the upper-cased reference sequence of [start, end)
        """
        return self.fh.fetch(resolve_reference_name(chrom, self.fh.references), start, end).upper()

    def close(self):
        self.fh.close()

    def __enter__(self):
        return self

    def __exit__(self, *pos):
        self.close()
