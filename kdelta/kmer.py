"""
sequence featurization. Sequences are converted to k-mer count vectors so that reads over a window can be
compared to the reference (and each other) without aligning them
"""
import itertools
from typing import List

import numpy as np

from .constants import DNA_ALPHABET

MAX_HOMOPOLYMER = 5

_NUC_CODE = {nuc: code for code, nuc in enumerate(DNA_ALPHABET)}
_NUC_CODE.update({nuc.lower(): code for nuc, code in list(_NUC_CODE.items())})


def remove_homopolymer(sequence: str, max_span: int = MAX_HOMOPOLYMER) -> str:
    """
    truncate runs of more than max_span identical characters down to max_span

    Example:
        >>> remove_homopolymer('ACCCCCCCCT')
        'ACCCCCT'
    """
    return ''.join([char * min(len(list(run)), max_span) for char, run in itertools.groupby(sequence)])


def kmer_labels(kmer: int) -> List[str]:
    """
    the k-mer represented by each position of the vectors returned by :func:`seq_to_kmer`
    """
    return [''.join(p) for p in itertools.product(DNA_ALPHABET, repeat=kmer)]


def seq_to_kmer(sequence: str, kmer: int, negative: bool = False) -> np.ndarray:
    """
    count the k-mers of a sequence

    The index of a k-mer is its base-4 encoding (A=0, C=1, G=2, T=3), updated for each position by
    shifting in the next base. Characters outside of the alphabet are encoded as A

    Args:
        sequence: the sequence to count
        kmer: the k-mer size
        negative: count each k-mer as -1 instead of 1

    Returns:
        vector of length 4^kmer
    """
    counts = np.zeros(1 << (2 * kmer), dtype=np.float64)
    if len(sequence) < kmer:
        return counts
    value = -1.0 if negative else 1.0
    mask = (1 << (2 * kmer)) - 1

    index = 0
    for nuc in sequence[:kmer - 1]:
        index = (index << 2) | _NUC_CODE.get(nuc, 0)
    for nuc in sequence[kmer - 1:]:
        index = ((index << 2) | _NUC_CODE.get(nuc, 0)) & mask
        counts[index] += value
    return counts


def delta_kmer(sequence: str, reference_kmers: np.ndarray, kmer: int) -> np.ndarray:
    """
    k-mer counts of a sequence minus those of the reference

    Args:
        sequence: the read sequence
        reference_kmers: the negated k-mer vector of the reference (see :func:`seq_to_kmer`)
        kmer: the k-mer size
    """
    if reference_kmers.shape[0] != 1 << (2 * kmer):
        raise ValueError('reference k-mer vector does not match the k-mer size', reference_kmers.shape, kmer)
    return seq_to_kmer(sequence, kmer) + reference_kmers
