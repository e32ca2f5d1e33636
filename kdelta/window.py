from collections import namedtuple
from typing import List

import pandas as pd

from .util import logger


class Window(namedtuple('Window', ['chrom', 'start', 'end'])):
    """
    half-open reference interval [start, end) using 0-based coordinates
    """

    def __new__(cls, chrom, start, end):
        start = int(start)
        end = int(end)
        if start < 0:
            raise ValueError('window start must be non-negative', chrom, start, end)
        if end <= start:
            raise ValueError('window end must be greater than the start', chrom, start, end)
        return super(Window, cls).__new__(cls, str(chrom), start, end)

    def __len__(self):
        return self.end - self.start

    def __str__(self):
        return '{}:{}-{}'.format(self.chrom, self.start, self.end)

    def widen(self, buffer: int) -> 'Window':
        """
        extend the window by buffer on either side, the start is clamped at 0
        """
        return self.__class__(self.chrom, max(0, self.start - buffer), self.end + buffer)


def read_bed(filename: str) -> List[Window]:
    """
    read the regions of a bed file. Only the first 3 columns are used

    Args:
        filename: path to the bed file

    Returns:
        the windows in file order
    """
    try:
        df = pd.read_csv(
            filename,
            sep='\t',
            header=None,
            comment='#',
            usecols=[0, 1, 2],
            dtype=str,
        )
    except pd.errors.EmptyDataError:
        return []
    df.columns = ['chrom', 'start', 'end']

    windows = []
    for row_index, row in df.iterrows():
        try:
            windows.append(Window(row['chrom'], row['start'], row['end']))
        except (TypeError, ValueError) as err:
            raise ValueError(f'invalid region in row {row_index + 1} of {filename}: {err}')
    logger.info(f'loaded {len(windows)} regions from {filename}')
    return windows
