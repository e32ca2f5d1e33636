"""
holds methods related to processing cigar tuples. Cigar tuples are generally
an iterable list of tuples where the first element in each tuple is the
CIGAR value (i.e. 1 for an insertion), and the second value is the frequency
"""
import re
from typing import List, Tuple

from ..constants import CIGAR

CigarTuples = List[Tuple[int, int]]

ALIGNED_STATES = {CIGAR.M, CIGAR.X, CIGAR.EQ}
REFERENCE_ALIGNED_STATES = ALIGNED_STATES | {CIGAR.D, CIGAR.N}


def convert_string_to_cigar(string: str) -> CigarTuples:
    """
    Given a cigar string, converts it to the appropriate cigar tuple

    Example:
        >>> convert_string_to_cigar('8M2I1D9X')
        [(CIGAR.M, 8), (CIGAR.I, 2), (CIGAR.D, 1), (CIGAR.X, 9)]
    """
    patt = r'(\d+(\D))'
    cigar = [m[0] for m in re.findall(patt, string)]
    cigar = [(CIGAR[match[-1]] if match[-1] != '=' else CIGAR.EQ, int(match[:-1])) for match in cigar]
    return cigar


def reference_end(cigar: CigarTuples, reference_start: int) -> int:
    """
    the position following the last reference-consuming operation
    """
    return reference_start + sum([f for v, f in cigar if v in REFERENCE_ALIGNED_STATES] + [0])


def project_window(cigar: CigarTuples, reference_start: int, start: int, end: int) -> Tuple[int, int]:
    """
    maps the reference window [start, end) onto the query sequence of an alignment

    Aligned bases contribute the portion of their operation inside the window. Insertions and
    soft-clipping contribute all their bases when they occur at a reference position within
    [start, end]. Deletions and skips only move the reference position. A deletion which
    covers the window start moves the query start to the first base following it

    Args:
        cigar: the alignment operations
        reference_start: the reference position of the first aligned base
        start: window start (0-based, inclusive)
        end: window end (exclusive)

    Returns:
        the query start and query length of the window

    Example:
        >>> project_window([(CIGAR.M, 100)], 0, 40, 60)
        (40, 20)
    """
    read_start = 0
    read_len = 0
    read_pos = 0
    ref_pos = reference_start

    for state, freq in cigar:
        if ref_pos >= end:
            break

        if state in ALIGNED_STATES:
            op_end = ref_pos + freq
            if ref_pos <= start < op_end:
                # only happens once, the operation covers the window start
                read_start = read_pos + start - ref_pos
                read_len += min(op_end, end) - start
            elif ref_pos > start:
                read_len += min(op_end, end) - ref_pos
            ref_pos = op_end
            read_pos += freq
        elif state in {CIGAR.D, CIGAR.N}:
            if ref_pos + freq > end:
                # the remainder of the window is deleted
                break
            if ref_pos <= start <= ref_pos + freq:
                read_start = read_pos
            ref_pos += freq
        elif state in {CIGAR.I, CIGAR.S}:
            if start <= ref_pos <= end:
                read_len += freq
            read_pos += freq
    return read_start, read_len
