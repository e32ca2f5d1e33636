#!python
import argparse
import logging
import os
import platform
import sys
import time
from typing import List, Optional

from . import __version__
from . import config as _config
from . import util as _util
from .bam.handle import AlignmentHandle, ReferenceHandle
from .constants import EXIT_ERROR, EXIT_OK, MODE
from .error import KdeltaError, NoRegionsError
from .pipeline import run
from .util import filepath
from .window import read_bed


def create_parser(argv):
    parser = argparse.ArgumentParser(formatter_class=_config.CustomHelpFormatter, add_help=False)
    required = parser.add_argument_group('required arguments')
    optional = parser.add_argument_group('optional arguments')
    optional.add_argument('-h', '--help', action='help', help='show this help message and exit')
    optional.add_argument(
        '-v',
        '--version',
        action='version',
        version='%(prog)s version ' + __version__,
        help='Outputs the version number',
    )
    required.add_argument('--bam', required=True, type=filepath, help='path to the indexed bam file')
    required.add_argument(
        '--reference', required=True, type=filepath, help='path to the indexed reference fasta file'
    )
    required.add_argument('--bed', required=True, type=filepath, help='regions to analyze')
    required.add_argument('-o', '--output', required=True, help='path to the output table')
    optional.add_argument(
        '--fasta', default=None, help='write the sequences of the clustered reads to this fasta file'
    )
    optional.add_argument('--log', help='redirect stdout to a log file', default=None)
    optional.add_argument(
        '--log_level', help='level of logging to output', choices=['INFO', 'DEBUG'], default='INFO'
    )
    _config.add_defaults_arguments(optional)

    args = parser.parse_args(argv)
    try:
        config = _config.Config.from_args(args)
    except ValueError as err:
        parser.error(str(err))
    if args.fasta and config.mode != MODE.CLUSTER:
        parser.error('--fasta is only used with --mode {}'.format(MODE.CLUSTER))
    return parser, args, config


def check_inputs(config: _config.Config):
    """
    open the input files once before any window is dispatched so that setup problems fail the run early

    Raises:
        SetupError: an input file cannot be opened or is not indexed
    """
    with AlignmentHandle(config.bam, reference_filename=config.reference):
        pass
    with ReferenceHandle(config.reference):
        pass


def main(argv: Optional[List[str]] = None) -> int:
    """
    parses the command line, analyzes the bed regions and writes the output table

    Args:
        argv: List of arguments, defaults to command line arguments

    Returns:
        the exit code
    """
    if argv is None:  # need to do at run time or patching will not behave as expected
        argv = sys.argv[1:]
    start_time = int(time.time())
    parser, args, config = create_parser(argv)

    log_conf = {
        'format': '{asctime} [{levelname}] {message}',
        'style': '{',
        'level': args.log_level,
    }

    original_logging_handlers = logging.root.handlers[:]
    for handler in original_logging_handlers:
        logging.root.removeHandler(handler)
    if args.log:
        log_conf['filename'] = args.log
    logging.basicConfig(**log_conf)

    _util.logger.info(f'KDELTA: {__version__}')
    _util.logger.info(f'hostname: {platform.node()}')
    _util.log_arguments(args)

    try:
        check_inputs(config)
        windows = read_bed(args.bed)
        if not windows:
            raise NoRegionsError('no regions to be analyzed', args.bed)

        for filename in [args.output, args.fasta]:
            if filename and os.path.dirname(filename):
                _util.mkdirp(os.path.dirname(filename))

        _util.logger.info(f'writing: {args.output}')
        with open(args.output, 'w') as output_fh:
            if args.fasta:
                _util.logger.info(f'writing: {args.fasta}')
                with open(args.fasta, 'w') as fasta_fh:
                    run(config, windows, output_fh, fasta_fh=fasta_fh)
            else:
                run(config, windows, output_fh)

        duration = int(time.time()) - start_time
        _util.logger.info(f'run time (s): {duration}')
        return EXIT_OK
    except (KdeltaError, ValueError) as err:
        _util.logger.error(str(err))
        return EXIT_ERROR
    finally:
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)
            handler.close()
        for handler in original_logging_handlers:
            logging.root.addHandler(handler)


def entry_point():
    sys.exit(main())


if __name__ == '__main__':
    entry_point()
