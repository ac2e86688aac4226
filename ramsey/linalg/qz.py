"""
Generalized Schur (QZ) factorization of a matrix pencil and its reordering.

For a square pencil (G, D) the complex factorization

    G = Q S Z^H,    D = Q T Z^H

has upper triangular S and T. The generalized eigenvalues of the pencil are
lambda_i = T_ii / S_ii, so a zero S_ii is a formally infinite root. Only the
right transformation Z is used by the commitment solver; Q is carried along
so that the factorization identity can be checked.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import numpy as np
from scipy.linalg import ordqz, qz

from ..logging_config import get_logger

logger = get_logger("linalg.qz")

# |S_ii| below this multiple of |T_ii| is treated as an infinite root
REALSMALL = 1e-12


@dataclass(frozen=True)
class Finite:
    """A finite generalized eigenvalue."""

    value: complex

    @property
    def modulus(self) -> float:
        return float(abs(self.value))

    is_infinite = False


@dataclass(frozen=True)
class Infinite:
    """A formally infinite generalized eigenvalue (S_ii == 0)."""

    @property
    def modulus(self) -> float:
        return np.inf

    is_infinite = True


Eigenvalue = Union[Finite, Infinite]


def generalized_eigenvalues(alpha, beta, size: Optional[int] = None) -> List[Eigenvalue]:
    """
    Tag the diagonal pairs of a Schur form as finite or infinite eigenvalues.

    Parameters
    ----------
    alpha : array_like
        Diagonal of S.
    beta : array_like
        Diagonal of T.
    size : int, optional
        Dimension of the pencil. If fewer pairs than `size` are supplied the
        list is padded with `Infinite()` entries.

    Returns
    -------
    list of Finite | Infinite
    """
    alpha = np.atleast_1d(np.asarray(alpha, dtype=np.complex128))
    beta = np.atleast_1d(np.asarray(beta, dtype=np.complex128))
    if alpha.shape != beta.shape:
        raise ValueError("alpha and beta must have the same length.")

    eigenvalues: List[Eigenvalue] = []
    for a, b in zip(alpha, beta):
        if abs(a) <= REALSMALL * abs(b) or (a == 0 and b == 0):
            eigenvalues.append(Infinite())
        else:
            eigenvalues.append(Finite(complex(b / a)))

    if size is not None and len(eigenvalues) < size:
        missing = size - len(eigenvalues)
        logger.debug(f"Padding {missing} missing eigenvalue(s) as infinite")
        eigenvalues.extend(Infinite() for _ in range(missing))

    return eigenvalues


def stable_roots(alpha, beta, cutoff: float) -> np.ndarray:
    """
    Classify diagonal pairs as stable roots.

    A root is stable when |T_ii| <= cutoff * |S_ii|. Comparing the diagonal
    magnitudes directly keeps infinite roots (S_ii == 0) unstable without
    dividing by zero.
    """
    alpha = np.asarray(alpha)
    beta = np.asarray(beta)
    return np.abs(beta) <= cutoff * np.abs(alpha)


def stable_selector(cutoff: float) -> Callable[[np.ndarray, np.ndarray], np.ndarray]:
    """Return a sort callable in the (alpha, beta) form used by `scipy.linalg.ordqz`."""
    def _select(alpha, beta):
        return stable_roots(alpha, beta, cutoff)
    return _select


@dataclass(frozen=True)
class SchurForm:
    """
    Complex generalized Schur form G = Q S Z^H, D = Q T Z^H.
    """

    S: np.ndarray
    T: np.ndarray
    Q: np.ndarray
    Z: np.ndarray

    @property
    def alpha(self) -> np.ndarray:
        return np.diag(self.S)

    @property
    def beta(self) -> np.ndarray:
        return np.diag(self.T)

    @property
    def size(self) -> int:
        return self.S.shape[0]

    def eigenvalues(self) -> List[Eigenvalue]:
        return generalized_eigenvalues(self.alpha, self.beta, self.size)

    def reconstruct(self):
        """Return (G, D) rebuilt from the factors."""
        ZH = self.Z.conj().T
        return self.Q @ self.S @ ZH, self.Q @ self.T @ ZH


def qz_decompose(G, D) -> SchurForm:
    """
    Complex QZ factorization of the pencil (G, D).

    Raises
    ------
    ValueError
        If G and D are not square matrices of the same size.
    """
    G = np.asarray(G, dtype=np.float64)
    D = np.asarray(D, dtype=np.float64)
    if G.ndim != 2 or G.shape[0] != G.shape[1] or G.shape != D.shape:
        raise ValueError("G and D must be square and of the same size.")

    S, T, Q, Z = qz(G.astype(np.complex128), D.astype(np.complex128), output="complex")
    return SchurForm(S, T, Q, Z)


def reorder(schur: SchurForm, select: Callable[[np.ndarray, np.ndarray], np.ndarray]) -> SchurForm:
    """
    Move the diagonal pairs picked by `select` to the leading positions.

    `select` receives the diagonals (alpha, beta) and returns a boolean mask.
    The factorization identity with respect to the original pencil is
    preserved: the orthogonal factors of the reordering are accumulated into
    Q and Z.
    """
    S, T, _, _, Q, Z = ordqz(schur.S, schur.T, sort=select, output="complex")
    return SchurForm(S, T, schur.Q @ Q, schur.Z @ Z)
