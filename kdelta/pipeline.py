"""
per-window processing and the worker threads which run it

Each worker owns its own alignment and reference handles. Windows are handed out first-come-first-served through
a shared queue and results come back, in completion order, through a second queue
"""
import queue
import threading
from collections import namedtuple
from typing import Iterable, Iterator, List, Union

from .bam.handle import AlignmentHandle, ReferenceHandle
from .bam.read import is_qualifying, is_size_informative, window_query_range
from .cluster.select import select_clusters
from .config import Config
from .constants import MODE
from .error import NoRegionsError, WindowFetchError
from .indel import get_indel_extractor
from .kmer import delta_kmer, remove_homopolymer, seq_to_kmer
from .locus import IndelLocus, Locus
from .util import logger
from .window import Window

PROGRESS_INTERVAL = 1000

FETCH_ERRORS = (KeyError, ValueError, IndexError, OSError)


def cluster_locus(locus: Locus, min_clusters: int, max_clusters: int, max_rounds: int) -> Locus:
    """
    cluster the k-mer vectors of a locus and record the chosen clustering on it

    Vectors are ordered by read length before clustering so that the initial centroids are drawn from across
    the range of sizes. Cluster members are reported as indices into the unordered input vectors. If no
    number of clusters can be scored all reads are placed in a single cluster
    """
    if not locus.kfeats:
        return locus
    order = sorted(range(0, len(locus.kfeats)), key=lambda index: locus.read_lengths[index])
    selection = select_clusters(
        [locus.kfeats[index] for index in order],
        min_clusters=min_clusters,
        max_clusters=max_clusters,
        max_rounds=max_rounds,
    )
    if selection is None:
        locus.n_clusters = 1
        locus.cluster_score = 0.0
        locus.clusters = [list(range(0, len(locus.kfeats)))]
    else:
        locus.n_clusters = selection.n_clusters
        locus.cluster_score = float(selection.score)
        locus.clusters = [sorted([order[i] for i in cluster.points_idx]) for cluster in selection.clusters]
    return locus


class WindowProcessor:
    """
    runs the analysis of a single window. Not thread safe, each worker creates its own
    """

    def __init__(self, config: Config, bam=None, reference=None):
        """
        Args:
            config: the run settings
            bam (AlignmentHandle): alignments to use. Opened from the config if not given
            reference (ReferenceHandle): reference to use. Opened from the config if not given (and required)
        """
        self.config = config
        self.bam = bam if bam is not None else AlignmentHandle(config.bam, reference_filename=config.reference)
        self.reference = reference
        if self.reference is None and config.mode == MODE.CLUSTER:
            self.reference = ReferenceHandle(config.reference)
        self.indel_extractor = get_indel_extractor(config.indel_strategy, config.min_mapq, config.mapflag)

    def process(self, window: Window) -> Union[Locus, IndelLocus]:
        window = window.widen(self.config.buffer)
        if self.config.mode == MODE.INDEL:
            return self.indel_window(window)
        return self.cluster_window(window)

    def indel_window(self, window: Window) -> IndelLocus:
        try:
            return self.indel_extractor.extract(self.bam, window)
        except FETCH_ERRORS as err:
            raise WindowFetchError('fetch alignments', window, repr(err))

    def fetch_reads(self, window: Window):
        try:
            return self.bam.fetch(window.chrom, window.start, window.end)
        except FETCH_ERRORS as err:
            raise WindowFetchError('fetch alignments', window, repr(err))

    def cluster_window(self, window: Window) -> Locus:
        config = self.config
        try:
            ref_seq = self.reference.fetch(window.chrom, window.start, window.end)
        except FETCH_ERRORS as err:
            raise WindowFetchError('fetch reference sequence', window, repr(err))
        ref_kmers = seq_to_kmer(remove_homopolymer(ref_seq, config.max_homopolymer), config.kmer, negative=True)

        locus = Locus(window)
        span = len(window)
        for read in self.fetch_reads(window):
            if not is_qualifying(read, window.start, window.end, config.min_mapq, config.mapflag):
                logger.debug(f'{read.query_name} does not pass the read filters or does not span window {window}')
                continue
            query_range = window_query_range(read, window.start, window.end)
            if query_range is None:
                logger.debug(f'window {window} extends past the sequence of {read.query_name}')
                continue
            locus.n_reads += 1
            read_start, read_len = query_range
            if not is_size_informative(read_len, span, config.min_size_delta):
                logger.debug(f'{read.query_name} is within {config.min_size_delta} bases of the window size {span}')
                continue
            seq = remove_homopolymer(read.query_sequence[read_start:read_start + read_len], config.max_homopolymer)
            locus.add_read(delta_kmer(seq, ref_kmers, config.kmer), read_len, seq)

        return cluster_locus(locus, config.min_clusters, config.max_clusters, config.max_rounds)

    def close(self):
        self.bam.close()
        if self.reference is not None:
            self.reference.close()


class WorkerFailure(namedtuple('WorkerFailure', ['stage', 'window', 'error'])):
    """
    sent to the results queue by a worker which could not complete a window
    """

    def to_error(self) -> WindowFetchError:
        if isinstance(self.error, WindowFetchError):
            return self.error
        return WindowFetchError(self.stage, self.window, repr(self.error))


class WorkerPool:
    """
    fixed number of worker threads draining a window queue into a results queue
    """

    def __init__(self, config: Config, processor_factory=WindowProcessor):
        """
        Args:
            config: the run settings, shared read-only by all workers
            processor_factory (callable): creates the per-worker processor from the config
        """
        self.config = config
        self.processor_factory = processor_factory
        self.work_queue: queue.Queue = queue.Queue()
        self.result_queue: queue.Queue = queue.Queue()
        self.workers: List[threading.Thread] = []

    def start(self):
        logger.info(f'spawning {self.config.threads} threads')
        for index in range(0, self.config.threads):
            worker = threading.Thread(target=self.work, name=f'kdelta-worker-{index}', daemon=True)
            worker.start()
            self.workers.append(worker)

    def work(self):
        try:
            processor = self.processor_factory(self.config)
        except Exception as err:
            self.result_queue.put(WorkerFailure('open input files', None, err))
            return

        window = None
        try:
            while True:
                window = self.work_queue.get()
                if window is None:
                    break
                self.result_queue.put(processor.process(window))
        except Exception as err:
            # the consumer re-raises this and ends the run
            self.result_queue.put(WorkerFailure('process window', window, err))
        finally:
            processor.close()

    def submit(self, windows: Iterable[Window]) -> int:
        """
        Returns:
            the number of windows queued
        """
        count = 0
        for window in windows:
            self.work_queue.put(window)
            count += 1
        return count

    def shutdown(self):
        """
        queue one stop signal per worker, workers finish the windows ahead of it first
        """
        for _ in self.workers:
            self.work_queue.put(None)

    def results(self, expected: int) -> Iterator[Union[Locus, IndelLocus]]:
        """
        Raises:
            WindowFetchError: a worker failed
        """
        collected = 0
        while collected < expected:
            result = self.result_queue.get()
            if isinstance(result, WorkerFailure):
                raise result.to_error()
            collected += 1
            yield result


def run(config: Config, windows: Iterable[Window], output_fh, fasta_fh=None, processor_factory=WindowProcessor) -> int:
    """
    process all windows and write one line per window to the output

    Args:
        config: the run settings
        windows: the regions to analyze, before buffering
        output_fh: writable text file for the results table
        fasta_fh: writable text file for the clustered read sequences
        processor_factory (callable): creates the per-worker processor from the config

    Returns:
        the number of windows written

    Raises:
        NoRegionsError: no windows were given
        WindowFetchError: a window could not be processed
    """
    windows = list(windows)
    if not windows:
        raise NoRegionsError('no regions to be analyzed')

    pool = WorkerPool(config, processor_factory=processor_factory)
    pool.start()
    num_regions = pool.submit(windows)
    logger.info(f'{num_regions} regions to be analyzed')
    pool.shutdown()

    logger.info('collecting output')
    collected = 0
    for locus in pool.results(num_regions):
        output_fh.write(locus.make_data())
        if fasta_fh is not None:
            locus.make_verbose_data(fasta_fh)
        collected += 1
        if collected % PROGRESS_INTERVAL == 0:
            logger.info(f'{collected}/{num_regions} windows completed')
    logger.info(f'{collected}/{num_regions} windows completed')
    return collected
