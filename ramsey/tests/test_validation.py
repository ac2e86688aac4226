#!/usr/bin/env python3
"""
Tests for the validation module.
"""

import unittest

import sympy
from sympy import symbols

from ramsey.validation import (find_duplicate_names,
                               validate_declarations,
                               validate_transition,
                               validate_problem_consistency)


class TestDeclarations(unittest.TestCase):

    def test_valid(self):
        dec = {'name': 'nk', 'predetermined': ['u'], 'forward': ['pi'],
               'controls': ['y'], 'shocks': ['eu'], 'parameters': ['beta']}
        self.assertEqual(validate_declarations(dec), [])

    def test_duplicates(self):
        self.assertEqual(find_duplicate_names({'a': ['x', 'y'], 'b': ['y', 'z', 'x']}), ['x', 'y'])

        errors = validate_declarations({'predetermined': ['x'], 'controls': ['x']})
        self.assertEqual(len(errors), 1)
        self.assertIn("Names declared more than once: x", errors[0])

    def test_needs_a_state(self):
        errors = validate_declarations({'controls': ['u']})
        self.assertTrue(any("state is required" in e for e in errors))

    def test_reserved_names(self):
        errors = validate_declarations({'predetermined': ['x'], 'parameters': ['E', 'lambda']})
        self.assertTrue(any("Reserved names" in e and 'E' in e and 'lambda' in e for e in errors))


class TestTransition(unittest.TestCase):

    def setUp(self):
        self.u, self.pi, self.y, self.eu, self.rho = symbols('u pi y eu rho')
        self.states = [self.u, self.pi]
        self.variables = [self.u, self.pi, self.y, self.eu]

    def check(self, transition):
        return validate_transition(transition, self.states, [self.pi], self.variables, [self.eu])

    def test_valid(self):
        transition = {'u': self.rho * self.u + self.eu,
                      'pi': self.pi - self.u - self.y}
        self.assertEqual(self.check(transition), [])

    def test_missing_and_extra(self):
        errors = self.check({'u': self.u, 'z': self.u})
        self.assertTrue(any("No law of motion for state(s): pi" in e for e in errors))
        self.assertTrue(any("undeclared state(s): z" in e for e in errors))

    def test_nonlinear(self):
        errors = self.check({'u': self.u * self.y, 'pi': self.pi})
        self.assertTrue(any("not linear in" in e for e in errors))

    def test_constant(self):
        errors = self.check({'u': self.u + 1, 'pi': self.pi})
        self.assertEqual(errors, ["Law of motion for u has a constant term"])

    def test_shock_in_forward_state(self):
        errors = self.check({'u': self.u, 'pi': self.pi + self.eu})
        self.assertEqual(len(errors), 1)
        self.assertIn("forward-looking state pi", errors[0])


class TestConsistency(unittest.TestCase):

    def test_warnings(self):
        x, v, w, a, b, c = symbols('x v w a b c')
        problem = {'parameters': [a, b, c],
                   'calibration': {'a': 0.5, 'b': 1.0},
                   'controls': [v, w],
                   'transition': {'x': a * x + v},
                   'loss': x ** 2 + b * v ** 2,
                   'discount': sympy.Float(0.99),
                   'auxiliary_parameters': {},
                   'covariance': {}}
        warnings = validate_problem_consistency(problem)

        self.assertIn("Parameters without calibration: c", warnings)
        self.assertIn("Declared parameters not used: c", warnings)
        self.assertIn("Controls that appear nowhere in the problem: w", warnings)
        self.assertEqual(len(warnings), 3)


if __name__ == "__main__":
    unittest.main()
