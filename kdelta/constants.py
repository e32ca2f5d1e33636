"""
module responsible for small utility functions and constants used throughout the kdelta package
"""
import os

PROGNAME: str = 'kdelta'
EXIT_OK: int = 0
EXIT_ERROR: int = 1


class KdeltaNamespace:
    """
    Namespace to hold module constants

    Example:
        >>> nspace = KdeltaNamespace(thing=1, otherthing=2)
        >>> nspace.thing
        1
        >>> nspace.otherthing
        2
    """

    def __init__(self, *pos, **kwargs):
        object.__setattr__(self, '_defns', {})
        object.__setattr__(self, '_types', {})
        object.__setattr__(self, '_members', {})
        object.__setattr__(self, '_env_prefix', PROGNAME.upper())

        for k in pos:
            if k in self._members:
                raise AttributeError('Cannot respecify existing attribute', k, self._members[k])
            self[k] = k

        for attr, val in kwargs.items():
            if attr in self._members:
                raise AttributeError('Cannot respecify existing attribute', attr, self._members[attr])
            self[attr] = val

        for attr, value in self._members.items():
            self._types[attr] = type(value)

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__name__,
            ', '.join(sorted(['{}={}'.format(k, repr(v)) for k, v in self.items()])),
        )

    def get_env_name(self, attr: str) -> str:
        """
        Get the name of the corresponding environment variable

        Example:
            >>> nspace = KdeltaNamespace(a=1)
            >>> nspace.get_env_name('a')
            'KDELTA_A'
        """
        if self._env_prefix:
            return '{}_{}'.format(self._env_prefix, attr).upper()
        return attr.upper()

    def get_env_var(self, attr: str):
        """
        retrieve the environment variable definition of a given attribute
        """
        env_name = self.get_env_name(attr)
        env = os.environ[env_name].strip()
        return self._types.get(attr, str)(env)

    def is_env_overwritable(self, attr: str) -> bool:
        """
        Returns:
            bool: True if the variable is overrided by specifying the environment variable equivalent
        """
        return False

    def __getattribute__(self, attr):
        try:
            return object.__getattribute__(self, attr)
        except AttributeError as err:
            variables = object.__getattribute__(self, '_members')
            if attr not in variables:
                raise err
            if self.is_env_overwritable(attr):
                try:
                    return self.get_env_var(attr)
                except KeyError:
                    pass
            return variables[attr]

    def items(self):
        """
        Example:
            >>> KdeltaNamespace(thing=1, otherthing=2).items()
            [('thing', 1), ('otherthing', 2)]
        """
        return [(k, self[k]) for k in self.keys()]

    def __getitem__(self, key):
        return getattr(self, key)

    def __setitem__(self, key, val):
        self.__setattr__(key, val)

    def __setattr__(self, attr, val):
        if attr.startswith('_'):
            raise ValueError('cannot set private', attr)
        object.__getattribute__(self, '_members')[attr] = val

    def keys(self):
        return [k for k in self._members]

    def values(self):
        return [self[k] for k in self._members]

    def enforce(self, value):
        """
        checks that the current namespace has a given value

        Returns:
            the input value

        Raises:
            KeyError: the value did not exist

        Example:
            >>> nspace = KdeltaNamespace(thing=1, otherthing=2)
            >>> nspace.enforce(1)
            1
            >>> nspace.enforce(3)
            Traceback (most recent call last):
            ....
        """
        if value not in self.values():
            raise KeyError('value {0} is not a valid member of '.format(repr(value)), self.values())
        return value

    def __iter__(self):
        return iter(self.keys())

    def type(self, attr, *pos):
        """
        returns the type

        Example:
            >>> nspace = KdeltaNamespace(thing=1, otherthing=2)
            >>> nspace.type('thing')
            <class 'int'>
        """
        if len(pos) > 1:
            raise TypeError('too many arguments. type takes a single \'default\' value argument')
        try:
            return self._types[attr]
        except KeyError as err:
            if pos:
                return pos[0]
            raise err

    def define(self, attr, *pos):
        """
        Get the definition of a given attribute or return a default (when given) if the attribute does not exist

        Raises:
            KeyError: the attribute does not exist and a default was not given
        """
        if len(pos) > 1:
            raise TypeError('too many arguments. define takes a single \'default\' value argument')
        try:
            return self._defns[attr]
        except KeyError as err:
            if pos:
                return pos[0]
            raise err

    def add(self, attr, value, defn=None, cast_type=None):
        """
        Add an attribute to the name space

        Args:
            attr (str): name of the attribute being added
            value: the value of the attribute
            defn (str): the definition, will be used in generating help menus
            cast_type (callable): the function to use in casting the value

        Example:
            >>> nspace = KdeltaNamespace()
            >>> nspace.add('thing', value=1, cast_type=int, defn='I am a thing')
        """
        self._types[attr] = cast_type if cast_type else type(value)
        if defn:
            self._defns[attr] = defn
        self[attr] = value

    def copy_from(self, source, attrs=None):
        """
        Copy variables from one namespace onto the current namespace
        """
        if attrs is None:
            attrs = source.keys()
        for attr in attrs:
            self.add(
                attr,
                source[attr],
                defn=source.define(attr, None),
                cast_type=source.type(attr, None),
            )

    def __call__(self, value):
        try:
            return self.enforce(value)
        except KeyError:
            raise TypeError(
                'Invalid value {} for {}. Must be a valid member: {}'.format(
                    repr(value), self.__class__.__name__, self.values()
                )
            )


class WeakKdeltaNamespace(KdeltaNamespace):
    """
    namespace where every attribute may be overridden by its KDELTA_ environment variable
    """

    def is_env_overwritable(self, attr):
        return True


CIGAR = KdeltaNamespace(M=0, I=1, D=2, N=3, S=4, H=5, P=6, X=8, EQ=7)  # noqa
""":class:`KdeltaNamespace`: Enum-like. For readable cigar values

- ``M``: alignment match (can be a sequence match or mismatch)
- ``I``: insertion to the reference
- ``D``: deletion from the reference
- ``N``: skipped region from the reference
- ``S``: soft clipping (clipped sequences present in SEQ)
- ``H``: hard clipping (clipped sequences NOT present in SEQ)
- ``P``: padding (silent deletion from padded reference)
- ``EQ``: sequence match (=)
- ``X``: sequence mismatch

note: descriptions are taken from the `samfile documentation <https://samtools.github.io/hts-specs/SAMv1.pdf>`_
"""

SAM_FLAG = KdeltaNamespace(
    MULTIMAP=1,
    PROPER_PAIR=2,
    UNMAPPED=4,
    MATE_UNMAPPED=8,
    REVERSE=16,
    MATE_REVERSE=32,
    FIRST_IN_PAIR=64,
    LAST_IN_PAIR=128,
    SECONDARY=256,
    QC_FAIL=512,
    DUPLICATE=1024,
    SUPPLEMENTARY=2048,
)
""":class:`KdeltaNamespace`: Enum-like. For readable sam flag bits"""

DEFAULT_MAPFLAG: int = SAM_FLAG.SECONDARY | SAM_FLAG.QC_FAIL | SAM_FLAG.DUPLICATE | SAM_FLAG.SUPPLEMENTARY
""":class:`int`: secondary, qc-fail, duplicate and supplementary alignments (3840)"""

DNA_ALPHABET: str = 'ACGT'
""":class:`str`: nucleotide order used to enumerate k-mers"""

MODE = KdeltaNamespace(CLUSTER='cluster', INDEL='indel')
""":class:`KdeltaNamespace`: the per-window analysis performed

- ``cluster``: k-mer delta featurization and clustering of spanning reads
- ``indel``: positional indel signatures and per-read net indel deltas
"""

INDEL_STRATEGY = KdeltaNamespace(PILEUP='pileup', CIGAR='cigar')
""":class:`KdeltaNamespace`: how indel signatures are collected

- ``pileup``: per-base walk over the pileup columns of the window
- ``cigar``: per-read walk over the alignment operations
"""

DELETION_PREFIX: str = '-'
""":class:`str`: prefix of a deletion observation in an indel signature"""
