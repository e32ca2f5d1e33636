import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

import timeout_decorator

from kdelta.constants import EXIT_ERROR, EXIT_OK
from kdelta.main import main

from ..util import write_alignments, write_reference
from .test_bam import REFERENCE, fixture_reads


class TestMain(unittest.TestCase):
    def setUp(self):
        self.temp_output = tempfile.mkdtemp()
        self.reference = write_reference(os.path.join(self.temp_output, 'ref.fa'), REFERENCE)
        self.bam = write_alignments(os.path.join(self.temp_output, 'reads.bam'), REFERENCE, fixture_reads())
        self.bed = os.path.join(self.temp_output, 'regions.bed')
        self.output = os.path.join(self.temp_output, 'out', 'windows.tsv')
        self.write_bed(['chr1\t100\t200', 'chr1\t700\t800', 'chr2\t100\t150'])

    def write_bed(self, lines):
        with open(self.bed, 'w') as fh:
            fh.write('# regions\n')
            for line in lines:
                fh.write(line + '\n')

    def run_main(self, *extra):
        argv = ['--bam', self.bam, '--reference', self.reference, '--bed', self.bed, '-o', self.output]
        return main(argv + list(extra))

    def read_output(self):
        with open(self.output, 'r') as fh:
            rows = [line.rstrip('\n').split('\t') for line in fh.readlines()]
        return {(chrom, int(start), int(end)): payload for chrom, start, end, payload in rows}

    @timeout_decorator.timeout(30)
    def test_cluster_mode(self):
        fasta = os.path.join(self.temp_output, 'reads.fa')
        self.assertEqual(EXIT_OK, self.run_main('--buffer', '0', '--threads', '2', '--fasta', fasta))
        result = self.read_output()
        self.assertEqual(3, len(result))
        payload = json.loads(result[('chr1', 100, 200)])
        self.assertEqual(17, payload['n_reads'])
        self.assertEqual(12, payload['n_clustered'])
        self.assertEqual(2, payload['n_clusters'])
        self.assertEqual([[40.0, 0.0, 6], [80.0, 0.0, 6]], payload['clusters'])
        self.assertGreater(payload['score'], 0)
        for region in [('chr1', 700, 800), ('chr2', 100, 150)]:
            self.assertEqual(0, json.loads(result[region])['n_reads'])
        with open(fasta, 'r') as fh:
            self.assertEqual(12, fh.read().count('>chr1:100-200_'))

    @timeout_decorator.timeout(30)
    def test_buffer(self):
        self.assertEqual(EXIT_OK, self.run_main())
        result = self.read_output()
        self.assertIn(('chr1', 50, 250), result)
        self.assertIn(('chr2', 50, 200), result)

    @timeout_decorator.timeout(30)
    def test_indel_mode(self):
        for strategy in ['pileup', 'cigar']:
            self.assertEqual(
                EXIT_OK, self.run_main('--buffer', '0', '--mode', 'indel', '--indel_strategy', strategy)
            )
            result = self.read_output()
            self.assertEqual(3, len(result))
            coverage, indels, deltas = json.loads(result[('chr1', 100, 200)])
            self.assertEqual([19, 49], [offset for offset, _ in indels])
            self.assertEqual(17, len(deltas))
            self.assertEqual(sorted([40] * 6 + [80] * 6 + [-5] * 2 + [0] * 3), sorted(deltas))
            self.assertGreaterEqual(coverage, 17)
            self.assertEqual([0, [], []], json.loads(result[('chr1', 700, 800)]))

    def test_unknown_chromosome(self):
        self.write_bed(['chr1\t100\t200', 'chr9\t100\t200'])
        self.assertEqual(EXIT_ERROR, self.run_main('--buffer', '0'))

    def test_no_regions(self):
        self.write_bed([])
        self.assertEqual(EXIT_ERROR, self.run_main())
        self.assertFalse(os.path.exists(self.output))

    def test_missing_index(self):
        os.remove(self.bam + '.bai')
        self.assertEqual(EXIT_ERROR, self.run_main())
        self.assertFalse(os.path.exists(self.output))

    def test_invalid_option(self):
        with patch('sys.stderr'):
            with self.assertRaises(SystemExit):
                self.run_main('--kmer', '0')
            with self.assertRaises(SystemExit):
                self.run_main('--mode', 'indel', '--fasta', 'reads.fa')

    def test_missing_bed(self):
        with patch('sys.stderr'):
            with self.assertRaises(SystemExit):
                main(['--bam', self.bam, '--reference', self.reference, '--bed', 'missing.bed', '-o', self.output])

    def test_log_file(self):
        log = os.path.join(self.temp_output, 'run.log')
        self.assertEqual(EXIT_OK, self.run_main('--log', log, '--log_level', 'DEBUG'))
        with open(log, 'r') as fh:
            content = fh.read()
        self.assertIn('KDELTA', content)
        self.assertIn('3/3 windows completed', content)

    def tearDown(self):
        shutil.rmtree(self.temp_output)
