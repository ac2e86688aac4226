"""
Optimal policy under commitment for a linear-quadratic problem with
forward-looking variables.

The economy evolves as

    [x1(t+1); E_t x2(t+1)] = A [x1(t); x2(t)] + B u(t) + [e(t+1); 0]

where x1 (n1 elements) is predetermined and x2 (n2 elements) is forward
looking, and the policy maker minimizes

    sum_t bet^t [x(t)'Q x(t) + 2 x(t)'U u(t) + u(t)'R u(t)].

The solution is

    [x1(t+1); p2(t+1)] = M [x1(t); p2(t)] + [e(t+1); 0]
    [x2(t); u(t); p1(t)] = C [x1(t); p2(t)]

with p1, p2 the costates of the predetermined and forward-looking blocks.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .linalg.qz import (Eigenvalue,
                        SchurForm,
                        qz_decompose,
                        reorder,
                        stable_roots,
                        stable_selector)
from .logging_config import get_logger
from .pencil import build_pencil, symmetrize

logger = get_logger("commitment")

DEFAULT_CUTOFF = 1.00001

# condition number above which Zkt is treated as singular
COND_LIMIT = 1e14


class SolutionStatus(IntEnum):
    SUCCESS = 0
    INSUFFICIENT_STABLE_ROOTS = 1
    EXCESS_STABLE_ROOTS = 2
    RANK_DEFICIENT_TRANSFORM = 3


class CommitmentError(Exception):
    """Base class for the commitment solver's failure outcomes."""

    status = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InsufficientStableRoots(CommitmentError):
    """Fewer stable roots than predetermined variables: no bounded solution."""

    status = SolutionStatus.INSUFFICIENT_STABLE_ROOTS


class ExcessStableRoots(CommitmentError):
    """More stable roots than predetermined variables: solution not unique."""

    status = SolutionStatus.EXCESS_STABLE_ROOTS


class RankDeficientTransform(CommitmentError):
    """The stable block of Z is numerically singular."""

    status = SolutionStatus.RANK_DEFICIENT_TRANSFORM


_ERRORS = {
    SolutionStatus.INSUFFICIENT_STABLE_ROOTS: InsufficientStableRoots,
    SolutionStatus.EXCESS_STABLE_ROOTS: ExcessStableRoots,
    SolutionStatus.RANK_DEFICIENT_TRANSFORM: RankDeficientTransform,
}


@dataclass(frozen=True)
class CommitmentSolution:
    """
    Result of `solve_commitment`.

    On failure `M` and `C` keep their nominal shapes but are filled with
    NaN, and `status`/`message` say which check failed.
    """

    M: np.ndarray
    C: np.ndarray
    status: SolutionStatus
    message: str
    n1: int
    n2: int
    k: int
    n_stable: int
    eigenvalues: List[Eigenvalue] = field(default_factory=list)
    cond: float = np.nan
    imag_residual: float = np.nan

    @property
    def n(self) -> int:
        return self.n1 + self.n2

    @property
    def success(self) -> bool:
        return self.status == SolutionStatus.SUCCESS

    def raise_for_status(self) -> None:
        if not self.success:
            raise _ERRORS[self.status](self.message)

    def blocks(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Split C into the rows for x2, u and p1."""
        n2, k = self.n2, self.k
        return self.C[:n2], self.C[n2:n2 + k], self.C[n2 + k:]

    @property
    def policy(self) -> np.ndarray:
        """Rows of C giving u(t) as a function of [x1(t); p2(t)]."""
        return self.blocks()[1]


def _as_matrix(X, name: str) -> np.ndarray:
    X = np.atleast_2d(np.asarray(X, dtype=np.float64))
    if X.ndim != 2:
        raise ValueError(f"{name} must be a 2D array.")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name} contains non-finite entries.")
    return X


def _check_inputs(A, B, Q, R, U, bet, n1, n2, cutoff):
    A = _as_matrix(A, "A")
    B = _as_matrix(B, "B")
    Q = _as_matrix(Q, "Q")
    R = _as_matrix(R, "R") if np.size(R) > 0 else np.zeros((0, 0))
    U = _as_matrix(U, "U") if np.size(U) > 0 else np.zeros((A.shape[0], 0))

    if int(n1) != n1 or int(n2) != n2 or n1 < 0 or n2 < 0:
        raise ValueError("n1 and n2 must be non-negative integers.")
    n1, n2 = int(n1), int(n2)
    n = n1 + n2
    if n == 0:
        raise ValueError("At least one state variable is required (n1 + n2 > 0).")

    if R.shape[0] != R.shape[1]:
        raise ValueError(f"R must be square, got shape {R.shape}.")
    k = R.shape[0]

    if k == 0:
        B = B.reshape(n, 0) if B.size == 0 else B

    expected = {"A": (A, (n, n)), "B": (B, (n, k)), "Q": (Q, (n, n)), "U": (U, (n, k))}
    for name, (X, shape) in expected.items():
        if X.shape != shape:
            raise ValueError(f"{name} must have shape {shape} (n1={n1}, n2={n2}, k={k}), got {X.shape}.")

    if not np.isfinite(bet):
        raise ValueError("bet must be finite.")
    if not cutoff > 0:
        raise ValueError("cutoff must be positive.")

    return A, B, Q, R, U, float(bet), n1, n2, k


def _nan_solution(status, message, n1, n2, k, n_stable, eigenvalues, cond=np.nan):
    n = n1 + n2
    return CommitmentSolution(M=np.full((n, n), np.nan),
                              C=np.full((n2 + k + n1, n), np.nan),
                              status=status,
                              message=message,
                              n1=n1, n2=n2, k=k,
                              n_stable=n_stable,
                              eigenvalues=eigenvalues,
                              cond=cond)


def check_solvability(schur: SchurForm, n: int, cutoff: float) -> Tuple[SolutionStatus, str, int, float]:
    """
    Check a reordered Schur form for a unique bounded solution.

    Returns
    -------
    status, message, n_stable, cond
        `cond` is the condition number of Zkt, or NaN when the root count
        already failed.
    """
    n_stable = int(np.sum(stable_roots(schur.alpha, schur.beta, cutoff)))

    if n_stable < n:
        message = (f"Too few stable roots ({n_stable} < {n}): "
                   "no stable solution")
        return SolutionStatus.INSUFFICIENT_STABLE_ROOTS, message, n_stable, np.nan
    if n_stable > n:
        message = (f"Too many stable roots ({n_stable} > {n}): "
                   "infinite number of stable solutions")
        return SolutionStatus.EXCESS_STABLE_ROOTS, message, n_stable, np.nan

    Zkt = schur.Z[:n, :n]
    with np.errstate(divide="ignore", invalid="ignore"):
        cond = float(np.linalg.cond(Zkt))
    if not cond <= COND_LIMIT:
        message = (f"Zkt is singular (cond={cond:.3g}): "
                   "rank condition for solution not satisfied")
        return SolutionStatus.RANK_DEFICIENT_TRANSFORM, message, n_stable, cond

    return SolutionStatus.SUCCESS, "", n_stable, cond


def assemble_feedback(Stt, Ttt, Zkt, Zlt) -> Tuple[np.ndarray, np.ndarray, float]:
    """
    Form M = Zkt Stt^-1 Ttt Zkt^-1 and C = Zlt Zkt^-1.

    Returns the real parts of M and C along with the largest imaginary
    magnitude dropped.
    """
    Zkt_inv = np.linalg.inv(Zkt)
    Stt_inv = np.linalg.inv(Stt)

    M = Zkt @ Stt_inv @ Ttt @ Zkt_inv
    C = Zlt @ Zkt_inv

    imag_residual = max(np.max(np.abs(M.imag), initial=0.0),
                        np.max(np.abs(C.imag), initial=0.0))
    return np.real(M), np.real(C), float(imag_residual)


def _solve_from_schur(schur: SchurForm, n1: int, n2: int, k: int,
                      cutoff: float, log_failures: bool = True) -> CommitmentSolution:
    n = n1 + n2

    schur = reorder(schur, stable_selector(cutoff))
    eigenvalues = schur.eigenvalues()

    status, message, n_stable, cond = check_solvability(schur, n, cutoff)
    logger.debug(f"{n_stable} stable root(s) for n={n} at cutoff={cutoff}")
    if status != SolutionStatus.SUCCESS:
        if log_failures:
            logger.warning(message)
        return _nan_solution(status, message, n1, n2, k, n_stable, eigenvalues, cond)

    Stt = schur.S[:n, :n]
    Ttt = schur.T[:n, :n]
    Zkt = schur.Z[:n, :n]
    Zlt = schur.Z[n:, :n]

    M, C, imag_residual = assemble_feedback(Stt, Ttt, Zkt, Zlt)
    logger.debug(f"Solved: cond(Zkt)={cond:.3g}, imaginary residual={imag_residual:.3g}")

    return CommitmentSolution(M=M, C=C,
                              status=SolutionStatus.SUCCESS,
                              message=message,
                              n1=n1, n2=n2, k=k,
                              n_stable=n_stable,
                              eigenvalues=eigenvalues,
                              cond=cond,
                              imag_residual=imag_residual)


def _decompose(A, B, Q, R, U, bet, n1, n2):
    Q = symmetrize(Q)
    R = symmetrize(R)
    G, D = build_pencil(A, B, Q, R, U, bet, n1, n2)
    logger.debug(f"Built pencil of size {G.shape[0]}")
    return qz_decompose(G, D)


def solve_commitment(A, B, Q, R, U, bet: float, n1: int, n2: int,
                     cutoff: float = DEFAULT_CUTOFF,
                     raise_on_failure: bool = False) -> CommitmentSolution:
    """
    Solve the linear-quadratic problem under commitment.

    Parameters
    ----------
    A : (n, n) array
        State transition matrix, n = n1 + n2.
    B : (n, k) array
        Control impact matrix.
    Q : (n, n) array
        State cost matrix, used as (Q + Q')/2.
    R : (k, k) array
        Control cost matrix, used as (R + R')/2.
    U : (n, k) array
        State-control cross cost matrix.
    bet : float
        Discount factor.
    n1, n2 : int
        Number of predetermined and forward-looking states.
    cutoff : float, optional
        A root T_ii/S_ii is stable when |T_ii| <= cutoff*|S_ii|. Values
        slightly above one admit numerical unit roots.
    raise_on_failure : bool, optional
        Raise the matching `CommitmentError` instead of returning a NaN
        solution when no unique stable solution exists.

    Returns
    -------
    CommitmentSolution
        `M` is (n, n) and `C` is (n2+k+n1, n).

    Raises
    ------
    ValueError
        If the inputs have inconsistent shapes.
    """
    A, B, Q, R, U, bet, n1, n2, k = _check_inputs(A, B, Q, R, U, bet, n1, n2, cutoff)

    schur = _decompose(A, B, Q, R, U, bet, n1, n2)
    solution = _solve_from_schur(schur, n1, n2, k, cutoff)

    if raise_on_failure:
        solution.raise_for_status()
    return solution


def determinacy_report(A, B, Q, R, U, bet: float, n1: int, n2: int,
                       cutoffs: Optional[Iterable[float]] = None) -> dict:
    """
    Run the solver for several cutoffs on one QZ factorization.

    Returns
    -------
    dict
        {"n": n, "moduli": sorted root moduli,
         "by_cutoff": [{"cutoff", "n_stable", "status", "message"}, ...]}
    """
    if cutoffs is None:
        cutoffs = [DEFAULT_CUTOFF]
    cutoffs = list(cutoffs)
    for cutoff in cutoffs:
        if not cutoff > 0:
            raise ValueError("cutoff must be positive.")

    A, B, Q, R, U, bet, n1, n2, k = _check_inputs(A, B, Q, R, U, bet, n1, n2, cutoffs[0] if cutoffs else 1.0)
    schur = _decompose(A, B, Q, R, U, bet, n1, n2)

    by_cutoff = []
    # failing cutoffs are reported in the result, not logged
    for cutoff in cutoffs:
        solution = _solve_from_schur(schur, n1, n2, k, cutoff, log_failures=False)
        by_cutoff.append({"cutoff": cutoff,
                          "n_stable": solution.n_stable,
                          "status": solution.status,
                          "message": solution.message})

    moduli = sorted(e.modulus for e in schur.eigenvalues())
    return {"n": n1 + n2, "moduli": moduli, "by_cutoff": by_cutoff}
