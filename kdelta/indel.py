"""
collects the insertions and deletions of the reads spanning a window

Two interchangeable strategies are provided. :class:`PileupIndelExtractor` walks the pileup column of each
reference position while :class:`CigarIndelExtractor` walks the alignment operations of each read directly.
Both produce the same :class:`~kdelta.locus.IndelLocus` for the same input
"""
from typing import Dict, List, Tuple

from .bam.cigar import ALIGNED_STATES
from .bam.read import is_qualifying
from .constants import CIGAR, DELETION_PREFIX, INDEL_STRATEGY, SAM_FLAG
from .locus import IndelLocus
from .window import Window


def deletion_observation(size: int) -> str:
    return '{}{}'.format(DELETION_PREFIX, size)


def read_key(read) -> Tuple[str, int, int]:
    """
    identifies an alignment record, mates and other records sharing a name are kept apart
    """
    return (read.query_name, read.flag & (SAM_FLAG.FIRST_IN_PAIR | SAM_FLAG.LAST_IN_PAIR), read.reference_start)


def estimate_coverage(total_bases: int, window: Window, n_reads: int) -> int:
    """
    average depth over the window, never less than the number of reads used
    """
    return max(total_bases // len(window), n_reads)


class IndelExtractor:
    """
    base class for the indel signature strategies
    """

    NAME = None

    def __init__(self, min_mapq: int, mapflag: int):
        """
        Args:
            min_mapq: minimum mapping quality of reads to use
            mapflag: reads with any of these flag bits set are ignored
        """
        self.min_mapq = min_mapq
        self.mapflag = mapflag

    def is_qualifying(self, read, window: Window) -> bool:
        return is_qualifying(read, window.start, window.end, self.min_mapq, self.mapflag)

    def extract(self, bam, window: Window) -> IndelLocus:
        """
        Args:
            bam (AlignmentHandle): the alignments to read from
            window: the window to collect indels over. Indels are reported by their offset from the window start
                and are kept when they occur at a position in [start, end]
        """
        raise NotImplementedError('abstract method')


class PileupIndelExtractor(IndelExtractor):
    """
    per-base strategy, visits every position of the window and inspects each read aligned there
    """

    NAME = INDEL_STRATEGY.PILEUP

    def extract(self, bam, window):
        total_bases = 0
        indels: Dict[int, List[str]] = {}
        read_deltas: Dict[Tuple[str, int, int], int] = {}

        for column in bam.pileup(window.chrom, window.start, window.end + 1):
            pos = column.reference_pos
            if pos < window.start:
                continue
            if pos > window.end:
                break
            observations = []
            for pileup_read in column.pileups:
                read = pileup_read.alignment
                if not self.is_qualifying(read, window):
                    continue
                key = read_key(read)
                read_deltas.setdefault(key, 0)
                if pileup_read.query_position is None:  # deleted or skipped at this position
                    continue
                total_bases += 1

                if pileup_read.indel > 0:
                    qpos = pileup_read.query_position + 1
                    observations.append(read.query_sequence[qpos:qpos + pileup_read.indel])
                elif pileup_read.indel < 0:
                    observations.append(deletion_observation(-pileup_read.indel))
                else:
                    continue
                read_deltas[key] += pileup_read.indel
            if observations:
                indels[pos - window.start] = observations

        return IndelLocus(
            window,
            coverage=estimate_coverage(total_bases, window, len(read_deltas)),
            indels=indels,
            read_deltas=read_deltas,
        )


class CigarIndelExtractor(IndelExtractor):
    """
    per-read strategy, walks the cigar of each read once without building pileup columns

    An indel is placed at the last reference position before it, matching where a pileup reports it. An
    indel is only counted directly after an aligned base. Following a deletion, skip, clip or another indel
    there is no query base to attach it to and the pileup does not report it
    """

    NAME = INDEL_STRATEGY.CIGAR

    def extract(self, bam, window):
        total_bases = 0
        indels: Dict[int, List[str]] = {}
        read_deltas: Dict[Tuple[str, int, int], int] = {}

        for read in bam.fetch(window.chrom, window.start, window.end):
            if not self.is_qualifying(read, window):
                continue
            key = read_key(read)
            read_deltas.setdefault(key, 0)
            ref_pos = read.reference_start
            query_pos = 0
            previous_state = None

            for state, freq in read.cigartuples:
                if ref_pos > window.end + 1:
                    break
                after_aligned = previous_state in ALIGNED_STATES
                previous_state = state
                if state in ALIGNED_STATES:
                    total_bases += max(0, min(ref_pos + freq, window.end + 1) - max(ref_pos, window.start))
                    ref_pos += freq
                    query_pos += freq
                elif state == CIGAR.I:
                    if after_aligned and window.start <= ref_pos - 1 <= window.end:
                        indels.setdefault(ref_pos - 1 - window.start, []).append(
                            read.query_sequence[query_pos:query_pos + freq]
                        )
                        read_deltas[key] += freq
                    query_pos += freq
                elif state == CIGAR.D:
                    if after_aligned and window.start <= ref_pos - 1 <= window.end:
                        indels.setdefault(ref_pos - 1 - window.start, []).append(deletion_observation(freq))
                        read_deltas[key] -= freq
                    ref_pos += freq
                elif state == CIGAR.N:
                    ref_pos += freq
                elif state == CIGAR.S:
                    query_pos += freq

        return IndelLocus(
            window,
            coverage=estimate_coverage(total_bases, window, len(read_deltas)),
            indels=indels,
            read_deltas=read_deltas,
        )


INDEL_EXTRACTORS = {cls.NAME: cls for cls in [PileupIndelExtractor, CigarIndelExtractor]}


def get_indel_extractor(strategy: str, min_mapq: int, mapflag: int) -> IndelExtractor:
    """
    Raises:
        KeyError: the strategy is not supported
    """
    return INDEL_EXTRACTORS[INDEL_STRATEGY.enforce(strategy)](min_mapq, mapflag)
