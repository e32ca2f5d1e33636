import os
import random

import pysam


def random_sequence(length, seed=7):
    rand = random.Random(seed)
    return ''.join([rand.choice('ACGT') for _ in range(0, length)])


def write_reference(filename, sequences):
    """
    write and index a fasta file

    Args:
        filename (str): path to the fasta file
        sequences (dict of str and str): sequence by chromosome name
    """
    with open(filename, 'w') as fh:
        for chrom, seq in sequences.items():
            fh.write('>{}\n'.format(chrom))
            for i in range(0, len(seq), 60):
                fh.write(seq[i:i + 60] + '\n')
    pysam.faidx(filename)
    return filename


def write_alignments(filename, sequences, reads, index=True):
    """
    write a coordinate sorted bam file

    Args:
        filename (str): path to the bam file
        sequences (dict of str and str): reference sequence by chromosome name, used for the header
        reads (list of dict): attributes of each read (query_name, reference_name, reference_start, cigarstring,
            query_sequence and optionally mapping_quality and flag)
        index (bool): create the bam index
    """
    header = pysam.AlignmentHeader.from_dict(
        {
            'HD': {'VN': '1.6', 'SO': 'coordinate'},
            'SQ': [{'SN': chrom, 'LN': len(seq)} for chrom, seq in sequences.items()],
        }
    )
    unsorted = filename + '.unsorted.bam'
    with pysam.AlignmentFile(unsorted, 'wb', header=header) as fh:
        for read in reads:
            segment = pysam.AlignedSegment(header)
            segment.query_name = read['query_name']
            segment.query_sequence = read['query_sequence']
            segment.flag = read.get('flag', 0)
            segment.reference_name = read['reference_name']
            segment.reference_start = read['reference_start']
            segment.mapping_quality = read.get('mapping_quality', 60)
            segment.cigarstring = read['cigarstring']
            segment.query_qualities = pysam.qualitystring_to_array('I' * len(read['query_sequence']))
            fh.write(segment)
    pysam.sort('-o', filename, unsorted)
    os.remove(unsorted)
    if index:
        pysam.index(filename)
    return filename
