"""
per-window report records and their serialization to the output table
"""
import json
from typing import Dict, List, Optional, Tuple

import numpy as np
from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from .util import logger
from .window import Window


def mean_std(data: List[int]):
    """
    Returns:
        tuple of float and float: the mean and population standard deviation
    """
    if not data:
        return 0.0, 0.0
    values = np.asarray(data, dtype=np.float64)
    return float(values.mean()), float(values.std())


def format_data_line(window: Window, payload) -> str:
    """
    a tab delimited output line. If the payload cannot be serialized it is replaced by an empty column
    """
    try:
        text = json.dumps(payload, allow_nan=False, separators=(',', ':'))
    except (TypeError, ValueError) as err:
        logger.error(f'unable to serialize the result for {window}: {err}')
        text = ''
    return '{}\t{}\t{}\t{}\n'.format(window.chrom, window.start, window.end, text)


class Locus:
    """
    clustering result for the reads spanning a window

    Attributes:
        window (Window): the (buffered) window analyzed
        n_reads (int): reads spanning the window, including those without any size difference
        kfeats (list of numpy.ndarray): delta k-mer vector for each clustered read
        read_lengths (list of int): length of the window in each clustered read
        read_seqs (list of str): homopolymer-reduced window sequence of each clustered read
        n_clusters (int): number of clusters chosen
        cluster_score (float): quality index of the chosen clustering
        clusters (list of list of int): indices into kfeats for the members of each cluster
    """

    def __init__(self, window: Window):
        self.window = window
        self.n_reads = 0
        self.n_clusters = 0
        self.cluster_score = 0.0
        self.clusters: List[List[int]] = []
        self.kfeats: List[np.ndarray] = []
        self.read_lengths: List[int] = []
        self.read_seqs: List[str] = []

    def add_read(self, kfeat: np.ndarray, read_length: int, read_seq: str):
        self.kfeats.append(kfeat)
        self.read_lengths.append(read_length)
        self.read_seqs.append(read_seq)

    def cluster_summaries(self):
        """
        Returns:
            list of tuple: mean and standard deviation of the length difference to the window and the
            number of reads for each cluster
        """
        span = len(self.window)
        result = []
        for members in self.clusters:
            size_deltas = [self.read_lengths[index] - span for index in members]
            mean_delta, std_delta = mean_std(size_deltas)
            result.append((round(mean_delta, 2), round(std_delta, 2), len(members)))
        return result

    def payload(self) -> Dict:
        return {
            'n_reads': self.n_reads,
            'n_clustered': len(self.kfeats),
            'n_clusters': self.n_clusters,
            'score': self.cluster_score,
            'clusters': [list(summary) for summary in self.cluster_summaries()],
        }

    def make_data(self) -> str:
        return format_data_line(self.window, self.payload())

    def make_verbose_data(self, fh) -> int:
        """
        write the sequence of each clustered read to a fasta file

        Returns:
            the number of sequences written
        """
        records = []
        for index, members in enumerate(self.clusters):
            for read_index in members:
                if not self.read_seqs[read_index]:
                    continue
                records.append(
                    SeqRecord(
                        Seq(self.read_seqs[read_index]),
                        id='{}_{}'.format(self.window, index),
                        description='',
                    )
                )
        if not records:
            return 0
        return SeqIO.write(records, fh, 'fasta')


class IndelLocus:
    """
    indel signature of the reads spanning a window

    Attributes:
        window (Window): the (buffered) window analyzed
        coverage (int): estimated read depth
        indels (dict of int and list of str): window offset to the indels observed there. Insertions are
            recorded as their inserted sequence and deletions as '-' followed by their length
        read_deltas (dict of tuple and int): net inserted minus deleted bases for each alignment record, keyed by
            name, mate bit and start
    """

    def __init__(
        self,
        window: Window,
        coverage: int = 0,
        indels: Optional[Dict[int, List[str]]] = None,
        read_deltas: Optional[Dict[Tuple[str, int, int], int]] = None,
    ):
        self.window = window
        self.coverage = coverage
        self.indels = indels if indels is not None else {}
        self.read_deltas = read_deltas if read_deltas is not None else {}

    def payload(self):
        return [
            self.coverage,
            [[offset, observations] for offset, observations in sorted(self.indels.items()) if observations],
            list(self.read_deltas.values()),
        ]

    def make_data(self) -> str:
        return format_data_line(self.window, self.payload())

    def make_verbose_data(self, fh) -> int:
        return 0
