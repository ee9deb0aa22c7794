import io
import os
import tempfile
import time
from unittest import mock, TestCase

import numpy as np
import pytest

pytest.importorskip('mpi4py.MPI')

from mandelbrot_pgm import distributed                          # noqa: E402
from mandelbrot_pgm.grid import GridSpec                        # noqa: E402
from mandelbrot_pgm.partition import gather_layout              # noqa: E402
from mandelbrot_pgm.serial import compute_serial                # noqa: E402


# ------------------------------------------------------------------------------
#
class FakeWorld(object):
    """ In-process stand-in for COMM_WORLD.

    Ranks run one after the other: workers deposit their send buffers, then
    the root's Gatherv assembles them at the given displacements.
    """

    def __init__(self, size):

        self.size  = size
        self.sent  = dict()
        self.calls = 0

    def comm(self, rank):

        return FakeComm(self, rank)


class FakeComm(object):

    def __init__(self, world, rank):

        self._world = world
        self._rank  = rank

    def Get_rank(self):
        return self._rank

    def Get_size(self):
        return self._world.size

    def Gatherv(self, sendbuf, recvbuf, root=0):

        self._world.calls += 1
        self._world.sent[self._rank] = np.array(sendbuf, copy=True)
        if self._rank != root:
            return

        data, (counts, displs) = recvbuf
        assert len(self._world.sent) == self._world.size
        data.fill(-1)
        for rank in range(self._world.size):
            chunk = self._world.sent[rank]
            assert chunk.size == counts[rank]
            assert np.all(data[displs[rank]:displs[rank] + counts[rank]] == -1)
            data[displs[rank]:displs[rank] + counts[rank]] = chunk


def run_world(spec, size):

    world   = FakeWorld(size)
    results = dict()
    for rank in list(range(1, size)) + [0]:
        results[rank] = distributed.compute_distributed(world.comm(rank), spec)
    return world, results


# ------------------------------------------------------------------------------
#
class ComputeDistributedTestCase(TestCase):

    # --------------------------------------------------------------------------
    #
    def test_parity_with_serial(self):

        for spec in (GridSpec(13, -0.5, 0.0, 3.0, 40),
                     GridSpec(16, -0.722, 0.246, 9.0, 127),
                     GridSpec(3, 0.0, 0.0, 1.0, 20)):
            expected = compute_serial(spec)
            for size in range(2, 10):
                world, results = run_world(spec, size)
                self.assertEqual(size, world.calls)
                np.testing.assert_array_equal(expected, results[0], err_msg=str((spec, size)))
                for rank in range(1, size):
                    self.assertIsNone(results[rank])

    # --------------------------------------------------------------------------
    #
    def test_worker_buffers_follow_partition(self):

        spec = GridSpec(10, 0.0, 0.0, 2.0, 30)
        world, _ = run_world(spec, 4)
        counts, _ = gather_layout(10, 4)

        self.assertEqual(list(counts), [world.sent[rank].size for rank in range(4)])
        self.assertEqual(0, world.sent[0].size)

    # --------------------------------------------------------------------------
    #
    def test_same_grid_for_one_or_three_workers(self):

        spec = GridSpec(4, 0.0, 0.0, 2.0, 50)

        _, one = run_world(spec, 2)
        _, three = run_world(spec, 4)

        np.testing.assert_array_equal(one[0], three[0])

    # --------------------------------------------------------------------------
    #
    def test_single_process_rejected(self):

        with self.assertRaises(ValueError):
            distributed.compute_distributed(FakeWorld(1).comm(0), GridSpec(4, 0.0, 0.0, 2.0, 50))


# ------------------------------------------------------------------------------
#
class MainTestCase(TestCase):

    # --------------------------------------------------------------------------
    #
    def setUp(self):

        self._cwd = os.getcwd()
        self._tmp = tempfile.TemporaryDirectory()
        os.chdir(self._tmp.name)

    def tearDown(self):

        os.chdir(self._cwd)
        self._tmp.cleanup()

    # --------------------------------------------------------------------------
    #
    def _run_main(self, argv, size):

        world = FakeWorld(size)
        codes = dict()
        for rank in list(range(1, size)) + [0]:
            with mock.patch.object(distributed, 'MPI') as mocked_mpi:
                mocked_mpi.COMM_WORLD = world.comm(rank)
                mocked_mpi.Wtime      = time.time
                codes[rank] = distributed.main(argv)
        return codes

    # --------------------------------------------------------------------------
    #
    @mock.patch('sys.stdout', new_callable=io.StringIO)
    def test_output_identical_across_worker_counts(self, mocked_stdout):

        argv = ['4', '0', '0', '2', '50']
        name = 'mandel_4_0.000_0.000_2.000_50.pgm'

        self.assertEqual({0: 0, 1: 0}, self._run_main(argv, 2))
        with open(name, 'rb') as f:
            one_worker = f.read()

        self.assertEqual({0: 0, 1: 0, 2: 0, 3: 0}, self._run_main(argv, 4))
        with open(name, 'rb') as f:
            three_workers = f.read()

        self.assertEqual(one_worker, three_workers)
        self.assertEqual(b'P5\n4 4\n50\n', one_worker[:10])
        self.assertEqual(10 + 16, len(one_worker))
        self.assertIn('[MPI] 3 workers', mocked_stdout.getvalue())

    # --------------------------------------------------------------------------
    #
    @mock.patch('sys.stderr', new_callable=io.StringIO)
    def test_single_process_exits_with_error(self, mocked_stderr):

        self.assertEqual({0: 1}, self._run_main(['4', '0', '0', '2', '50'], 1))
        self.assertIn('at least 2 processes', mocked_stderr.getvalue())
        self.assertEqual([], os.listdir('.'))

    # --------------------------------------------------------------------------
    #
    @mock.patch('sys.stderr', new_callable=io.StringIO)
    def test_usage_error_on_every_rank(self, mocked_stderr):

        self.assertEqual({0: 1, 1: 1, 2: 1}, self._run_main(['4', '0', '0'], 3))
        self.assertEqual(1, mocked_stderr.getvalue().count('Usage:'))

    # --------------------------------------------------------------------------
    #
    @mock.patch('sys.stdout', new_callable=io.StringIO)
    @mock.patch('sys.stderr', new_callable=io.StringIO)
    @mock.patch.object(distributed, 'output_filename', return_value='missing/out.pgm')
    def test_unwritable_output(self, mocked_filename, mocked_stderr, mocked_stdout):

        self.assertEqual({0: 1, 1: 0}, self._run_main(['4', '0', '0', '2', '50'], 2))
        self.assertIn('missing/out.pgm', mocked_stderr.getvalue())


# ------------------------------------------------------------------------------
