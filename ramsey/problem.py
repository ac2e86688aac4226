#!/usr/bin/env python3
"""
LQProblem - a named, parameterized linear-quadratic policy problem.

This module turns a symbolic problem description (laws of motion, period
loss, discount factor and calibration) into the numeric matrices consumed
by the commitment solver.
"""

from typing import Callable, Dict, List, Optional

import numpy as np
import sympy
from sympy import Matrix, Symbol, sympify
from sympy.utilities.lambdify import lambdify

from .commitment import DEFAULT_CUTOFF, CommitmentSolution, determinacy_report, solve_commitment
from .logging_config import get_logger
from .loss import parse_loss
from .simulation import impulse_response, simulate
from .validation import (validate_declarations,
                         validate_transition,
                         validate_problem_consistency)

logger = get_logger("problem")

numeric_context = {'ImmutableDenseMatrix': np.array}


class LQProblem(dict):
    """
    Linear-quadratic policy problem with predetermined and forward-looking
    states.

    The dictionary holds sympy objects; numeric matrices are produced for a
    parameter vector with `system_matrices`.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        logger.info(f"Initializing LQ problem {self['name']!r}")
        errors = validate_transition(self['transition'], self.states, self.forward,
                                     self.states + self.controls + self.shocks, self.shocks)
        for error in errors:
            logger.error(error)
        if errors:
            raise ValueError("Invalid law of motion: " + "; ".join(errors))

        for warning in validate_problem_consistency(self):
            logger.warning(warning)

        Q, U, R = parse_loss(self['loss_string'], self.states, self.controls,
                             self['parameters'] + list(self['auxiliary_parameters'].keys()))
        self['Q'], self['U'], self['R'] = Q, U, R

        rhs = Matrix([self['transition'][str(s)] for s in self.states])
        self['A'] = rhs.jacobian(self.states)
        self['B'] = rhs.jacobian(self.controls) if self.controls else sympy.zeros(self.n, 0)
        self['E'] = rhs.jacobian(self.shocks) if self.shocks else sympy.zeros(self.n, 0)

        logger.info(f"LQ problem initialized with n1={self.n1}, n2={self.n2}, "
                    f"k={self.k} and {self.neps} shock(s)")

    def __repr__(self):
        indent = "\n    "
        laws = indent.join(f"{s}(+1) = {self['transition'][str(s)]}" for s in self.states)
        return f"""
Problem name: {self['name']}

Parameters: {self.parameters}

Predetermined: {self.predetermined}
Forward-looking: {self.forward}
Controls: {self.controls}
Shocks: {self.shocks}

Laws of motion:
    {laws}

Loss: {self['loss']}
Discount: {self['discount']}
        """

    @property
    def predetermined(self) -> List[Symbol]:
        return self['predetermined']

    @property
    def forward(self) -> List[Symbol]:
        return self['forward']

    @property
    def states(self) -> List[Symbol]:
        return self['predetermined'] + self['forward']

    @property
    def controls(self) -> List[Symbol]:
        return self['controls']

    @property
    def shocks(self) -> List[Symbol]:
        return self['shocks']

    @property
    def parameters(self) -> List[Symbol]:
        return self['parameters']

    @property
    def n1(self) -> int:
        return len(self.predetermined)

    @property
    def n2(self) -> int:
        return len(self.forward)

    @property
    def n(self) -> int:
        return self.n1 + self.n2

    @property
    def k(self) -> int:
        return len(self.controls)

    @property
    def neps(self) -> int:
        return len(self.shocks)

    @property
    def npara(self) -> int:
        return len(self.parameters)

    @property
    def names(self) -> Dict[str, List[str]]:
        return {'x1': [str(v) for v in self.predetermined],
                'x2': [str(v) for v in self.forward],
                'u': [str(v) for v in self.controls],
                'shocks': [str(v) for v in self.shocks]}

    @property
    def cutoff(self) -> float:
        return float(self['options'].get('cutoff', DEFAULT_CUTOFF))

    def p0(self) -> List[float]:
        return [self['calibration'][str(x)] for x in self.parameters]

    def _substitute_auxiliary(self, expr):
        resolved = {}
        for key, value in self['auxiliary_parameters'].items():
            resolved[key] = value.subs(resolved)
        return expr.subs(resolved) if resolved else expr

    def lambdify(self, expr_or_matrix) -> Callable:
        """Return f(p) evaluating `expr_or_matrix` at the parameter vector p."""
        expr = self._substitute_auxiliary(sympify(expr_or_matrix))
        if isinstance(expr, sympy.MatrixBase):
            shape = expr.shape
            if 0 in shape:
                return lambda x: np.zeros(shape)
            f = lambdify([self.parameters], expr, modules=[numeric_context, 'numpy'])
            return lambda x: np.asarray(f(x), dtype=np.float64).reshape(shape)

        f = lambdify([self.parameters], expr, modules=[numeric_context, 'numpy'])
        return lambda x: float(f(x))

    def _para(self, para):
        para = self.p0() if para is None else list(para)
        if len(para) != self.npara:
            raise ValueError(f"Expected {self.npara} parameter values, got {len(para)}")
        return para

    def system_matrices(self, para=None):
        """
        Numeric problem matrices at `para` (calibration by default).

        Returns
        -------
        A, B, Q, R, U, bet
        """
        para = self._para(para)
        A = self.lambdify(self['A'])(para)
        B = self.lambdify(self['B'])(para)
        Q = self.lambdify(self['Q'])(para)
        R = self.lambdify(self['R'])(para)
        U = self.lambdify(self['U'])(para)
        bet = self.lambdify(self['discount'])(para)
        return A, B, Q, R, U, bet

    def shock_matrix(self, para=None) -> np.ndarray:
        """(n, neps) loading of the innovations on the states."""
        return self.lambdify(self['E'])(self._para(para))

    def covariance(self, para=None) -> np.ndarray:
        """(neps, neps) innovation covariance, identity where unspecified."""
        para = self._para(para)
        QQ = sympy.eye(self.neps)
        index = {s: i for i, s in enumerate(self.shocks)}
        for (s1, s2), value in self['covariance'].items():
            i, j = index[s1], index[s2]
            QQ[i, j] = value
            QQ[j, i] = value
        return self.lambdify(QQ)(para)

    def solve(self, para=None, cutoff: Optional[float] = None,
              raise_on_failure: bool = False) -> CommitmentSolution:
        cutoff = self.cutoff if cutoff is None else cutoff
        A, B, Q, R, U, bet = self.system_matrices(para)
        return solve_commitment(A, B, Q, R, U, bet, self.n1, self.n2, cutoff,
                                raise_on_failure=raise_on_failure)

    def determinacy_report(self, para=None, cutoffs=None) -> dict:
        A, B, Q, R, U, bet = self.system_matrices(para)
        return determinacy_report(A, B, Q, R, U, bet, self.n1, self.n2,
                                  cutoffs=cutoffs or [self.cutoff])

    def impulse_response(self, para=None, h: int = 20, cutoff: Optional[float] = None):
        solution = self.solve(para, cutoff)
        return impulse_response(solution, self.shock_matrix(para), h=h,
                                QQ=self.covariance(para), names=self.names)

    def simulate(self, para=None, nsim: int = 200, seed=None, cutoff: Optional[float] = None):
        solution = self.solve(para, cutoff)
        return simulate(solution, self.shock_matrix(para), QQ=self.covariance(para),
                        nsim=nsim, seed=seed, names=self.names)

    @classmethod
    def read(cls, problem_yaml):
        dec, cal = problem_yaml['declarations'], problem_yaml['calibration']

        errors = validate_declarations(dec)
        for error in errors:
            logger.error(error)
        if errors:
            raise ValueError("Invalid declarations: " + "; ".join(errors))

        predetermined = [Symbol(v) for v in dec.get('predetermined', [])]
        forward = [Symbol(v) for v in dec.get('forward', [])]
        controls = [Symbol(v) for v in dec.get('controls', [])]
        shocks = [Symbol(v) for v in dec.get('shocks', [])]
        parameters = [Symbol(v) for v in dec.get('parameters', [])]
        other_para = [Symbol(v) for v in dec.get('auxiliary_parameters', [])]

        context = {s.name: s for s in
                   predetermined + forward + controls + shocks + parameters + other_para}

        transition = {str(state): sympify(str(rhs), locals=context)
                      for state, rhs in problem_yaml['transition'].items()}

        undeclared = set()
        for rhs in transition.values():
            undeclared |= {str(s) for s in rhs.free_symbols} - set(context)
        if undeclared:
            raise ValueError(f"Undeclared names in the laws of motion: {', '.join(sorted(undeclared))}")

        aux_cal = cal.get('auxiliary_parameters', {}) or {}
        missing_aux = [str(p) for p in other_para if str(p) not in aux_cal]
        if missing_aux:
            raise ValueError(f"Auxiliary parameters without definition: {', '.join(missing_aux)}")
        auxiliary_parameters = {p: sympify(str(aux_cal[str(p)]), locals=context) for p in other_para}

        calibration = {str(k): float(v) for k, v in (cal.get('parameters', {}) or {}).items()}

        shock_by_name = {str(s): s for s in shocks}
        covariance = {}
        for key, value in (cal.get('covariance', {}) or {}).items():
            pair = [name.strip() for name in str(key).split(',')]
            if len(pair) == 1:
                pair = pair * 2
            unknown = [name for name in pair if name not in shock_by_name]
            if unknown:
                raise ValueError(f"Covariance given for undeclared shock(s): {', '.join(unknown)}")
            covariance[(shock_by_name[pair[0]], shock_by_name[pair[1]])] = sympify(str(value), locals=context)

        return cls(name=dec['name'],
                   predetermined=predetermined,
                   forward=forward,
                   controls=controls,
                   shocks=shocks,
                   parameters=parameters,
                   auxiliary_parameters=auxiliary_parameters,
                   transition=transition,
                   loss_string=str(problem_yaml['loss']),
                   loss=sympify(str(problem_yaml['loss']), locals=context),
                   discount=sympify(str(problem_yaml['discount']), locals=context),
                   calibration=calibration,
                   covariance=covariance,
                   options=dict(problem_yaml.get('options', {}) or {}),
                   __data__=problem_yaml)
