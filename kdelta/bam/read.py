from typing import Optional, Tuple

from .cigar import project_window


def is_qualifying(read, start: int, end: int, min_mapq: int, mapflag: int) -> bool:
    """
    checks if a read can be used as evidence for a window

    The read must have a sequence, meet the minimum mapping quality, not have any of the excluded
    flag bits set, and be aligned across the entire window. Reads partially overlapping the window
    are not used

    Args:
        read (pysam.AlignedSegment): the read to check
        start: window start (0-based, inclusive)
        end: window end (exclusive)
        min_mapq: minimum mapping quality
        mapflag: reads with any of these flag bits set are excluded
    """
    if not read.query_sequence:
        return False
    if read.mapping_quality < min_mapq or read.flag & mapflag:
        return False
    return read.reference_start < start and read.reference_end > end


def window_query_range(read, start: int, end: int) -> Optional[Tuple[int, int]]:
    """
    Returns:
        the query start and length corresponding to the window, or None if the
        computed range extends past the end of the read sequence
    """
    read_start, read_len = project_window(read.cigartuples, read.reference_start, start, end)
    if read_start + read_len > len(read.query_sequence):
        return None
    return read_start, read_len


def is_size_informative(read_len: int, span: int, min_size_delta: int) -> bool:
    """
    checks the read length over the window differs from the window length enough to indicate an indel
    """
    return read_len != 0 and abs(read_len - span) >= min_size_delta
