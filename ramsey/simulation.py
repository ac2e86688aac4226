"""
Impulse responses and simulations of a solved commitment policy.

With s(t) = [x1(t); p2(t)] the solved system is

    s(t+1) = M s(t) + [E e(t+1); 0]
    [x2(t); u(t); p1(t)] = C s(t)

and the policy maker has made no promises before t = 0, so p2(0) = 0.
"""
from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np
import pandas as p
from numba import jit

from .commitment import CommitmentSolution
from .logging_config import get_logger

logger = get_logger("simulation")


@jit(nopython=True)
def propagate(M, s0, impulses):
    """
    Iterate s(t+1) = M s(t) + impulses[t] from s(0) = s0.

    Returns an (h+1, ns) array, h = impulses.shape[0].
    """
    h = impulses.shape[0]
    ns = s0.shape[0]
    S = np.zeros((h + 1, ns))
    S[0] = s0
    for t in range(h):
        S[t + 1] = M @ S[t] + impulses[t]
    return S


def default_names(n1: int, n2: int, k: int, neps: int = 0) -> Dict[str, List[str]]:
    return {'x1': [f'x1_{i}' for i in range(n1)],
            'x2': [f'x2_{i}' for i in range(n2)],
            'u': [f'u_{i}' for i in range(k)],
            'shocks': [f'shock_{i}' for i in range(neps)]}


def column_names(names: Dict[str, List[str]]) -> List[str]:
    """Columns of a simulated path: x1, x2, u, p1, p2."""
    return (names['x1'] + names['x2'] + names['u']
            + [f'lagrange_{v}' for v in names['x1']]
            + [f'lagrange_{v}' for v in names['x2']])


def closed_loop(solution: CommitmentSolution, S: np.ndarray) -> np.ndarray:
    """
    Map a path of reduced states (rows of S) into all variables.

    Columns are ordered x1, x2, u, p1, p2.
    """
    n1 = solution.n1
    S = np.atleast_2d(S)
    rest = S @ solution.C.T
    return np.hstack([S[:, :n1], rest, S[:, n1:]])


def _shock_loading(solution: CommitmentSolution, E) -> np.ndarray:
    n1, n = solution.n1, solution.n
    E = np.atleast_2d(np.asarray(E, dtype=np.float64))
    if E.shape[0] == n and n != n1:
        if np.any(E[n1:] != 0):
            raise ValueError("Shocks may only load on predetermined states.")
        E = E[:n1]
    if E.shape[0] != n1:
        raise ValueError(f"E must have n1={n1} (or n={n}) rows, got {E.shape[0]}.")
    return E


def _names(solution, names, neps):
    out = default_names(solution.n1, solution.n2, solution.k, neps)
    if names is not None:
        out.update({key: list(value) for key, value in names.items()})
    return out


def impulse_response(solution: CommitmentSolution, E, h: int = 20,
                     QQ=None, names: Optional[Dict[str, List[str]]] = None) -> Dict[str, p.DataFrame]:
    """
    Responses to a one standard deviation innovation in each shock.

    Parameters
    ----------
    solution : CommitmentSolution
    E : (n1, neps) or (n, neps) array
        Loading of the innovations on the states.
    h : int
        Number of periods after impact.
    QQ : (neps, neps) array, optional
        Innovation covariance, identity by default.
    names : dict, optional
        Lists of names under 'x1', 'x2', 'u' and 'shocks'.

    Returns
    -------
    dict of pandas.DataFrame
        One frame per shock with rows 0..h.
    """
    solution.raise_for_status()
    E = _shock_loading(solution, E)
    neps = E.shape[1]
    QQ = np.eye(neps) if QQ is None else np.atleast_2d(QQ)
    names = _names(solution, names, neps)
    columns = column_names(names)

    M = np.ascontiguousarray(solution.M)
    impulses = np.zeros((h, solution.n))

    irfs = {}
    for i in range(neps):
        s0 = np.zeros(solution.n)
        s0[:solution.n1] = E[:, i] * np.sqrt(QQ[i, i])
        S = propagate(M, s0, impulses)
        irfs[names['shocks'][i]] = p.DataFrame(closed_loop(solution, S), columns=columns)

    logger.debug(f"Computed impulse responses for {neps} shock(s) over {h} periods")
    return irfs


def simulate(solution: CommitmentSolution, E, QQ=None, nsim: int = 200,
             seed=None, names: Optional[Dict[str, List[str]]] = None) -> p.DataFrame:
    """
    Simulate the solved system from s(0) = 0 with Gaussian innovations.

    Returns a frame with rows 0..nsim.
    """
    solution.raise_for_status()
    E = _shock_loading(solution, E)
    neps = E.shape[1]
    QQ = np.eye(neps) if QQ is None else np.atleast_2d(QQ)
    names = _names(solution, names, neps)

    rng = np.random.default_rng(seed)
    eps = rng.multivariate_normal(np.zeros(neps), QQ, size=nsim)

    impulses = np.zeros((nsim, solution.n))
    impulses[:, :solution.n1] = eps @ E.T

    S = propagate(np.ascontiguousarray(solution.M), np.zeros(solution.n), impulses)
    return p.DataFrame(closed_loop(solution, S), columns=column_names(names))
