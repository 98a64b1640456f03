import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from bitseg import main
from bitseg.log import g_log_inst


RECORDS = [
    '@10.0.0.0/8\t192.168.1.1/32\t0 : 65535\t80 : 80\t0x06/0xFF\t0x0000/0x0200\t',
    '@10.1.0.0/16\t192.168.1.2/32\t0 : 65535\t443 : 443\t0x06/0xFF\t0x0000/0x0200\t',
    '@0.0.0.0/0\t192.168.2.0/24\t1024 : 65535\t53 : 53\t0x11/0xFF\t0x0000/0x0200\t',
]


class MainTest(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.input_dir = os.path.join(self.tmpdir.name, 'classbench')
        self.output_dir = os.path.join(self.tmpdir.name, 'data')
        self.log_file = os.path.join(self.tmpdir.name, 'log', 'bitseg.log')
        os.makedirs(self.input_dir)

    def tearDown(self):
        g_log_inst.stop()
        self.tmpdir.cleanup()

    def _run(self, lines, *extra):
        with open(os.path.join(self.input_dir, 'acl1_seed'), 'w') as fout:
            fout.write('\n'.join(lines) + '\n')
        argv = ['acl1_seed', '--input-dir', self.input_dir, '--output-dir',
                self.output_dir, '-l', self.log_file, '-j', '1'] + list(extra)
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main.main(argv)
        return code, buf.getvalue()

    def test_binarize_and_segment(self):
        code, out = self._run(RECORDS, '-s')
        self.assertEqual(code, 0)
        with open(os.path.join(self.output_dir, 'acl1_seed_mat')) as fin:
            lines = fin.read().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[2].startswith('_' * 32 + ' '))
        self.assertIn('Total uncompressed cost = 312', out)
        self.assertIn('Verify savings = ', out)
        self.assertTrue(os.path.exists(self.log_file))

    def test_binarize_only(self):
        code, out = self._run(RECORDS, '-v')
        self.assertEqual(code, 0)
        self.assertNotIn('Cut points', out)

    def test_malformed_record_aborts(self):
        code, _ = self._run(RECORDS[:1] + ['@10.0.0/24\t1.1.1.1/32'])
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(
            os.path.join(self.output_dir, 'acl1_seed_mat')))

    def test_segment_existing_matrix(self):
        code, first = self._run(RECORDS, '-s')
        self.assertEqual(code, 0)
        # the input file is no longer needed once the matrix exists
        os.remove(os.path.join(self.input_dir, 'acl1_seed'))
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main.main(['acl1_seed', '--input-dir', self.input_dir,
                              '--output-dir', self.output_dir, '-l',
                              self.log_file, '-j', '1', '-m'])
        out = buf.getvalue()
        self.assertEqual(code, 0)
        self.assertIn('Loaded 3 rules', out)
        self.assertNotIn('binarize started', out)
        for line in first.splitlines():
            if line.startswith(('Saving = ', 'Cut points = ')):
                self.assertIn(line, out)

    def test_bad_matrix_aborts(self):
        os.makedirs(self.output_dir)
        with open(os.path.join(self.output_dir, 'acl1_seed_mat'), 'w') as fout:
            fout.write('01_\n')
        with redirect_stdout(io.StringIO()):
            code = main.main(['acl1_seed', '--output-dir', self.output_dir,
                              '-l', self.log_file, '-j', '1', '-m'])
        self.assertEqual(code, 1)

    def test_jobs_must_be_positive(self):
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit):
                main.parse_args(['acl1_seed', '-j', '0'])


if __name__ == '__main__':
    unittest.main()
