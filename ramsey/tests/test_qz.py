import numpy as np
from numpy.testing import assert_array_almost_equal

from unittest import TestCase

from ramsey.linalg.qz import (Finite,
                              Infinite,
                              generalized_eigenvalues,
                              qz_decompose,
                              reorder,
                              stable_roots,
                              stable_selector)


def _pencil(seed=0, size=5):
    rng = np.random.default_rng(seed)
    return rng.normal(size=(size, size)), rng.normal(size=(size, size))


class TestQZ(TestCase):

    def test_factorization_identity(self):
        G, D = _pencil()
        schur = qz_decompose(G, D)

        Gr, Dr = schur.reconstruct()
        assert_array_almost_equal(Gr, G)
        assert_array_almost_equal(Dr, D)
        assert_array_almost_equal(np.tril(schur.S, -1), 0)
        assert_array_almost_equal(np.tril(schur.T, -1), 0)

    def test_reorder_puts_stable_roots_first(self):
        G, D = _pencil(seed=3, size=6)
        cutoff = 1.0
        schur = reorder(qz_decompose(G, D), stable_selector(cutoff))

        mask = stable_roots(schur.alpha, schur.beta, cutoff)
        nstable = mask.sum()
        self.assertTrue(mask[:nstable].all())
        self.assertFalse(mask[nstable:].any())

        Gr, Dr = schur.reconstruct()
        assert_array_almost_equal(Gr, G)
        assert_array_almost_equal(Dr, D)
        assert_array_almost_equal(schur.Z.conj().T @ schur.Z, np.eye(6))

    def test_reorder_keeps_eigenvalues(self):
        G, D = _pencil(seed=4, size=4)
        schur = qz_decompose(G, D)
        reordered = reorder(schur, stable_selector(1.0))

        before = sorted(e.modulus for e in schur.eigenvalues())
        after = sorted(e.modulus for e in reordered.eigenvalues())
        assert_array_almost_equal(before, after)

    def test_rejects_mismatched_pencil(self):
        with self.assertRaises(ValueError):
            qz_decompose(np.eye(3), np.eye(2))
        with self.assertRaises(ValueError):
            qz_decompose(np.ones((2, 3)), np.ones((2, 3)))


class TestEigenvalues(TestCase):

    def test_tagging(self):
        eigs = generalized_eigenvalues([2.0, 0.0, 1.0], [1.0, 1.0, 3.0])
        self.assertEqual(eigs[0], Finite(0.5))
        self.assertEqual(eigs[1], Infinite())
        self.assertEqual(eigs[2], Finite(3.0))
        self.assertTrue(np.isinf(eigs[1].modulus))
        self.assertTrue(eigs[1].is_infinite)
        self.assertFalse(eigs[0].is_infinite)

    def test_padding(self):
        eigs = generalized_eigenvalues([1.0, 1.0], [0.5, 2.0], size=4)
        self.assertEqual(len(eigs), 4)
        self.assertTrue(all(isinstance(e, Infinite) for e in eigs[2:]))

    def test_complex_pair(self):
        eigs = generalized_eigenvalues([1.0, 1.0], [0.3 + 0.4j, 0.3 - 0.4j])
        self.assertAlmostEqual(eigs[0].modulus, 0.5)
        self.assertAlmostEqual(eigs[1].modulus, 0.5)


class TestStableRoots(TestCase):

    def test_boundary_is_stable(self):
        mask = stable_roots([1.0, 1.0], [1.5, 1.5000001], 1.5)
        self.assertTrue(mask[0])
        self.assertFalse(mask[1])

    def test_infinite_root_never_stable(self):
        for cutoff in [1.0, 1e3, 1e12]:
            self.assertFalse(stable_roots([0.0], [1.0], cutoff)[0])

    def test_stable_count_monotone_in_cutoff(self):
        rng = np.random.default_rng(7)
        alpha = rng.normal(size=50) + 1j * rng.normal(size=50)
        beta = 3 * (rng.normal(size=50) + 1j * rng.normal(size=50))
        alpha[:5] = 0.0

        cutoffs = [1.00001, 1.1, 2.0, 10.0, 1e3, 1e8]
        previous = np.zeros(50, dtype=bool)
        for cutoff in cutoffs:
            mask = stable_roots(alpha, beta, cutoff)
            # nothing classified stable becomes unstable as the cutoff grows
            self.assertTrue(np.all(mask[previous]))
            previous = mask
        self.assertFalse(previous[:5].any())
        self.assertTrue(previous[5:].all())
