import io
import textwrap
import unittest
import warnings

import numpy as np
from numpy.testing import assert_allclose, assert_array_almost_equal

from ramsey.parse_yaml import read_yaml, ValidationError, update_deprecated_keys
from ramsey.resource_utils import resource_path, bundled_examples
from ramsey.commitment import SolutionStatus


SCALAR = """
declarations:
  name: 'scalar'
  predetermined: [x]
  controls: [v]
  shocks: [e]
  parameters: [a, beta]
transition:
  x: a*x + v + e
loss: x^2 + v^2
discount: beta
calibration:
  parameters:
    a: 0.5
    beta: 0.95
"""


def from_string(txt):
    return read_yaml(io.StringIO(textwrap.dedent(txt)))


class TestBundledExamples(unittest.TestCase):

    def test_nk_commitment(self):
        with resource_path('examples/nk/nk_commitment.yaml') as p:
            problem = read_yaml(str(p))

        beta, kappa, lam, rho = 0.99, 0.024, 0.048, 0.5
        self.assertEqual((problem.n1, problem.n2, problem.k, problem.neps), (1, 1, 1, 1))
        self.assertEqual(problem.cutoff, 1.00001)

        A, B, Q, R, U, bet = problem.system_matrices()
        assert_allclose(A, [[rho, 0.0], [-1 / beta, 1 / beta]])
        assert_allclose(B, [[0.0], [-kappa / beta]])
        assert_allclose(Q, np.diag([0.0, 1.0]))
        assert_allclose(R, [[lam]])
        assert_allclose(U, np.zeros((2, 1)))
        self.assertEqual(bet, beta)

        assert_allclose(problem.shock_matrix(), [[1.0], [0.0]])
        assert_allclose(problem.covariance(), [[0.01 ** 2]])

        sol = problem.solve()
        self.assertEqual(sol.status, SolutionStatus.SUCCESS)

        irf = problem.impulse_response(h=20)['eu']
        self.assertEqual(list(irf.columns), ['u', 'pi', 'y', 'lagrange_u', 'lagrange_pi'])
        dy = np.diff(np.r_[0.0, irf['y'].values])
        assert_allclose(irf['pi'].values, -(lam / kappa) * dy, atol=1e-12)

    def test_scalar_lqr(self):
        with resource_path('examples/lqr/scalar_lqr.yaml') as p:
            problem = read_yaml(str(p))

        self.assertEqual((problem.n1, problem.n2, problem.k), (1, 0, 1))
        sol = problem.solve()
        self.assertTrue(sol.success)
        self.assertEqual(sol.C.shape, (2, 1))

        report = problem.determinacy_report(cutoffs=[0.1, 1.000001, 10.0])
        self.assertEqual([r['n_stable'] for r in report['by_cutoff']], [0, 1, 2])

        sim = problem.simulate(nsim=30, seed=0)
        self.assertEqual(sim.shape, (31, 3))

    def test_all_examples_solve(self):
        examples = bundled_examples()
        self.assertIn('examples/nk/nk_commitment.yaml', examples)
        self.assertIn('examples/lqr/scalar_lqr.yaml', examples)
        for rel in examples:
            with resource_path(rel) as p:
                problem = read_yaml(p)
            self.assertTrue(problem.solve().success, rel)


class TestReadYaml(unittest.TestCase):

    def test_stream_and_parameters(self):
        problem = from_string(SCALAR)
        self.assertEqual(problem.p0(), [0.5, 0.95])

        # the closed loop root rises with a
        low = problem.solve([0.2, 0.95]).M[0, 0]
        high = problem.solve([0.8, 0.95]).M[0, 0]
        self.assertLess(low, high)

        with self.assertRaises(ValueError):
            problem.system_matrices([0.5])

    def test_default_covariance(self):
        problem = from_string(SCALAR)
        assert_array_almost_equal(problem.covariance(), np.eye(1))

    def test_schema_failure(self):
        with self.assertRaises(ValidationError):
            from_string(SCALAR.replace("loss: x^2 + v^2\n", ""))

    def test_nonlinear_law(self):
        with self.assertRaisesRegex(ValueError, "not linear"):
            from_string(SCALAR.replace("a*x + v + e", "a*x*v + e"))

    def test_undeclared_name(self):
        with self.assertRaisesRegex(ValueError, "Undeclared names"):
            from_string(SCALAR.replace("a*x + v + e", "a*x + g*v + e"))

    def test_invalid_declarations(self):
        with self.assertRaisesRegex(ValueError, "Invalid declarations"):
            from_string(SCALAR.replace("controls: [v]", "controls: [x]"))

    def test_shock_on_forward_state(self):
        txt = """
        declarations:
          name: 'bad'
          forward: [pi]
          controls: [y]
          shocks: [e]
          parameters: [beta]
        transition:
          pi: pi/beta - y + e
        loss: pi^2 + y^2
        discount: beta
        calibration:
          parameters:
            beta: 0.99
        """
        with self.assertRaisesRegex(ValueError, "forward-looking"):
            from_string(txt)

    def test_discretion_not_implemented(self):
        txt = SCALAR.replace("name: 'scalar'", "name: 'scalar'\n  type: discretion")
        with self.assertRaises(NotImplementedError):
            from_string(txt)

    def test_deprecated_keys(self):
        txt = SCALAR.replace("discount:", "discount_factor:")
        with self.assertWarns(DeprecationWarning):
            problem = from_string(txt)
        self.assertEqual(str(problem['discount']), 'beta')

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            data = update_deprecated_keys({'calibration': {'covariances': {'e': 1}}})
        self.assertEqual(data, {'calibration': {'covariance': {'e': 1}}})

    def test_unknown_covariance_shock(self):
        txt = SCALAR + "  covariance:\n    z: 1.0\n"
        with self.assertRaisesRegex(ValueError, "undeclared shock"):
            from_string(txt)

    def test_uncalibrated_parameter_is_logged(self):
        txt = SCALAR.replace("parameters: [a, beta]", "parameters: [a, beta, c]")
        with self.assertLogs('ramsey', level='WARNING') as cm:
            from_string(txt)
        self.assertTrue(any("Parameters without calibration: c" in line for line in cm.output))


if __name__ == "__main__":
    unittest.main()
