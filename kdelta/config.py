import argparse
from dataclasses import dataclass, fields

from .cluster.constants import DEFAULTS as CLUSTER_DEFAULTS
from .constants import DEFAULT_MAPFLAG, INDEL_STRATEGY, MODE, KdeltaNamespace, WeakKdeltaNamespace
from .kmer import MAX_HOMOPOLYMER
from .util import filepath

DEFAULTS = WeakKdeltaNamespace()
DEFAULTS.add('min_mapq', 5, defn='minimum mapping quality of reads to consider')
DEFAULTS.add('mapflag', DEFAULT_MAPFLAG, defn='alignments with any of these flag bits set are ignored')
DEFAULTS.add('kmer', 4, defn='k-mer size used to featurize read sequences')
DEFAULTS.add('threads', 1, defn='number of worker threads')
DEFAULTS.add('buffer', 50, defn='number of bases added to either side of each region before analysis')
DEFAULTS.add(
    'min_size_delta',
    20,
    defn='minimum difference between the read length over a window and the window length for the read to be clustered',
)
DEFAULTS.add(
    'max_homopolymer',
    MAX_HOMOPOLYMER,
    defn='homopolymer runs are truncated to this length before counting k-mers',
)
DEFAULTS.add('mode', MODE.CLUSTER, cast_type=MODE, defn='the per-window analysis to run')
DEFAULTS.add(
    'indel_strategy', INDEL_STRATEGY.CIGAR, cast_type=INDEL_STRATEGY, defn='how indels are collected in indel mode'
)
DEFAULTS.copy_from(CLUSTER_DEFAULTS)


@dataclass(frozen=True)
class Config:
    """
    settings shared (read-only) by all workers
    """

    bam: str
    reference: str
    min_mapq: int = DEFAULTS.min_mapq
    mapflag: int = DEFAULTS.mapflag
    kmer: int = DEFAULTS.kmer
    threads: int = DEFAULTS.threads
    buffer: int = DEFAULTS.buffer
    min_size_delta: int = DEFAULTS.min_size_delta
    max_homopolymer: int = DEFAULTS.max_homopolymer
    mode: str = DEFAULTS.mode
    indel_strategy: str = DEFAULTS.indel_strategy
    min_clusters: int = DEFAULTS.min_clusters
    max_clusters: int = DEFAULTS.max_clusters
    max_rounds: int = DEFAULTS.max_rounds

    def __post_init__(self):
        for attr, namespace in [('mode', MODE), ('indel_strategy', INDEL_STRATEGY)]:
            if getattr(self, attr) not in namespace.values():
                raise ValueError(f'{attr} must be one of {namespace.values()}', getattr(self, attr))
        for attr, minimum in [
            ('kmer', 1),
            ('threads', 1),
            ('buffer', 0),
            ('min_mapq', 0),
            ('mapflag', 0),
            ('min_size_delta', 0),
            ('max_homopolymer', 1),
            ('min_clusters', 2),
            ('max_rounds', 1),
        ]:
            if getattr(self, attr) < minimum:
                raise ValueError(f'{attr} must be at least {minimum}', getattr(self, attr))
        if self.max_clusters < self.min_clusters:
            raise ValueError('max_clusters cannot be less than min_clusters', self.max_clusters, self.min_clusters)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'Config':
        return cls(**{field.name: getattr(args, field.name) for field in fields(cls) if hasattr(args, field.name)})


class CustomHelpFormatter(argparse.ArgumentDefaultsHelpFormatter):
    """
    subclass the default help formatter to stop default printing for required arguments
    """

    def _format_args(self, action, default_metavar):
        if action.metavar is None:
            action.metavar = get_metavar(action.type)
        return super(CustomHelpFormatter, self)._format_args(action, default_metavar)

    def _get_help_string(self, action):
        if action.required:
            return action.help
        return super(CustomHelpFormatter, self)._get_help_string(action)

    def add_arguments(self, actions):
        # sort the arguments alphanumerically so they print in the help that way
        actions = sorted(actions, key=lambda x: getattr(x, 'option_strings'))
        super(CustomHelpFormatter, self).add_arguments(actions)


def get_metavar(arg_type):
    """
    For a given argument type, returns the string to be used for the metavar argument in add_argument

    Example:
        >>> get_metavar(int)
        'INT'
    """
    if arg_type == float:
        return 'FLOAT'
    elif arg_type == int:
        return 'INT'
    elif arg_type == filepath:
        return 'FILEPATH'
    return None


def add_defaults_arguments(parser, namespace=DEFAULTS):
    """
    add an optional argument for every attribute of the defaults namespace
    """
    for attr, value in namespace.items():
        cast_type = namespace.type(attr)
        kwargs = dict(default=value, type=cast_type, help=namespace.define(attr, None))
        if isinstance(cast_type, KdeltaNamespace):
            kwargs['choices'] = cast_type.values()
            kwargs['type'] = str
        parser.add_argument('--{}'.format(attr), **kwargs)
