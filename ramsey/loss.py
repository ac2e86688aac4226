from typing import List, Tuple

import numpy as np
import sympy
from sympy import Matrix, Symbol, sympify

from .logging_config import get_logger

logger = get_logger("loss")


def parse_loss(loss_string: str,
               states: List[Symbol],
               controls: List[Symbol],
               parameters: List[Symbol]) -> Tuple[Matrix, Matrix, Matrix]:
    """
    Parse a period loss and calculate the matrices Q, U and R.

    The loss must be a quadratic form in the states x and controls u,

        L = x'Q x + 2 x'U u + u'R u,

    so Q, U and R are half the corresponding blocks of the Hessian.

    Args:
    loss_string (str): The string representation of the loss function.
    states (List[Symbol]): States, in order.
    controls (List[Symbol]): Control variables, in order.
    parameters (List[Symbol]): Parameters that may appear in the weights.

    Returns:
    Tuple[Matrix, Matrix, Matrix]: Q (n x n), U (n x k), R (k x k).

    Raises:
    ValueError: If the loss references unknown names or is not a pure
    quadratic form.
    """
    context = {str(v): v for v in states + controls + parameters}
    loss = sympify(loss_string, locals=context)

    variables = states + controls
    unknown = loss.free_symbols - set(variables) - set(parameters)
    if unknown:
        raise ValueError(f"Unknown names in the loss function: {sorted(map(str, unknown))}")

    at_zero = {v: 0 for v in variables}
    if sympy.simplify(loss.subs(at_zero)) != 0:
        raise ValueError("The loss function has a constant term")
    if any(sympy.simplify(loss.diff(v).subs(at_zero)) != 0 for v in variables):
        raise ValueError("The loss function has linear terms")

    hessian = sympy.hessian(loss, variables)
    if any(h.free_symbols & set(variables) for h in hessian):
        raise ValueError("The loss function is not quadratic")

    n = len(states)
    Q = hessian[:n, :n] / 2
    U = hessian[:n, n:] / 2
    R = hessian[n:, n:] / 2

    logger.debug(f"Parsed loss with {n} state(s) and {len(controls)} control(s)")
    return Q, U, R


def discounted_loss(x, u, Q, R, U, bet: float) -> float:
    """
    Evaluate sum_t bet^t [x(t)'Q x(t) + 2 x(t)'U u(t) + u(t)'R u(t)].

    x is (T, n) and u is (T, k), one row per period starting at t = 0.
    """
    x = np.atleast_2d(np.asarray(x, dtype=np.float64))
    u = np.asarray(u, dtype=np.float64).reshape(x.shape[0], -1)
    Q = np.atleast_2d(Q)
    R = np.atleast_2d(R)
    U = np.asarray(U, dtype=np.float64).reshape(x.shape[1], u.shape[1])

    period = (np.einsum('ti,ij,tj->t', x, Q, x)
              + 2 * np.einsum('ti,ij,tj->t', x, U, u)
              + np.einsum('ti,ij,tj->t', u, R, u))
    discount = bet ** np.arange(x.shape[0])
    return float(discount @ period)
