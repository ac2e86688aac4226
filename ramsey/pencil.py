"""
Matrix pencil for the commitment (Ramsey) linear-quadratic problem.

The economy evolves as

    [x1(t+1); E_t x2(t+1)] = A [x1(t); x2(t)] + B u(t) + [e(t+1); 0]

and the policy maker minimizes

    sum_t bet^t [x(t)'Q x(t) + 2 x(t)'U u(t) + u(t)'R u(t)].

Stacking the transition law with the first-order conditions for the
costates p = [p1; p2] and the controls gives G z(t+1) = D z(t) for
z = [x; u; p].
"""
from typing import Tuple

import numpy as np


def symmetrize(X) -> np.ndarray:
    """Return (X + X')/2."""
    X = np.asarray(X, dtype=np.float64)
    return (X + X.T) / 2


def column_order(n1: int, n2: int, k: int) -> np.ndarray:
    """
    Column permutation x1, x2, (u, p1), p2 -> x1, p2, x2, (u, p1).

    The first n1+n2 columns of the permuted pencil are the variables known
    at t (predetermined states and forward-block costates).
    """
    n = n1 + n2
    x1 = np.arange(0, n1)
    x2 = np.arange(n1, n)
    u_p1 = np.arange(n, n + k + n1)
    p2 = np.arange(n + k + n1, 2 * n + k)
    return np.concatenate([x1, p2, x2, u_p1])


def build_pencil(A, B, Q, R, U, bet: float, n1: int, n2: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the column-permuted pencil (G, D) of size (2n+k) x (2n+k).

    Rows are: the transition law (n), the costate equations (n) and the
    first-order conditions for the controls (k):

        G = [ I   0    0     ]     D = [ A       B       0 ]
            [ 0   0   bet*A' ]         [ -bet*Q  -bet*U  I ]
            [ 0   0   -B'    ]         [ U'      R       0 ]

    Q and R are expected to be symmetric already.
    """
    A = np.asarray(A, dtype=np.float64)
    B = np.asarray(B, dtype=np.float64)
    Q = np.asarray(Q, dtype=np.float64)
    R = np.asarray(R, dtype=np.float64)
    U = np.asarray(U, dtype=np.float64)

    n = n1 + n2
    k = R.shape[0]
    size = 2 * n + k

    G = np.zeros((size, size))
    D = np.zeros((size, size))

    # x(t+1) = A x(t) + B u(t)
    G[:n, :n] = np.eye(n)
    D[:n, :n] = A
    D[:n, n:n + k] = B

    # p(t) = bet*(Q x(t) + U u(t) + A' p(t+1))
    G[n:2 * n, n + k:] = bet * A.T
    D[n:2 * n, :n] = -bet * Q
    D[n:2 * n, n:n + k] = -bet * U
    D[n:2 * n, n + k:] = np.eye(n)

    # R u(t) + U' x(t) = -B' p(t+1)
    G[2 * n:, n + k:] = -B.T
    D[2 * n:, :n] = U.T
    D[2 * n:, n:n + k] = R

    order = column_order(n1, n2, k)
    return G[:, order], D[:, order]
