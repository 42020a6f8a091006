# linalg.py
"""
Sparse symmetric solve for the implicit integrator.

The system matrix built from a spring graph is symmetric and only populated
where two nodes share a spring. Its lower triangle therefore lives inside an
envelope: row i has no entries left of `first[i]`. The LDLᵗ factorization
keeps all fill-in inside that envelope, so the factor, the forward pass, the
diagonal scaling and the backward pass only ever touch envelope entries.

For a fish lattice numbered nose to tail the envelope is a narrow band and
the whole solve is linear in the node count.
"""

from numba import njit  # type: ignore
import numpy as np

from fishsim.errors import DimensionMismatchError, SingularSystemError
from fishsim.types import INDEX, MATRIX

PIVOT_EPSILON = 1e-14


# ===============================
# KERNELS
# ===============================


@njit(cache=True)  # type: ignore
def ldl_factor(A: np.ndarray, first: np.ndarray):
    """
    Factor symmetric A = L D Lᵗ over the envelope given by `first`.

    Returns (L, d, bad) where L is unit lower triangular, d holds the
    diagonal of D and bad is the row of the first zero pivot or -1.
    """
    n = A.shape[0]
    L = np.zeros((n, n))
    d = np.zeros(n)
    for i in range(n):
        fi = first[i]
        for j in range(fi, i):
            s = A[i, j]
            start = max(fi, first[j])
            for k in range(start, j):
                s -= L[i, k] * d[k] * L[j, k]
            L[i, j] = s / d[j]

        s = A[i, i]
        for k in range(fi, i):
            s -= L[i, k] * L[i, k] * d[k]
        if abs(s) < PIVOT_EPSILON:
            return L, d, i
        d[i] = s
        L[i, i] = 1.0
    return L, d, -1


@njit(cache=True)  # type: ignore
def forward_substitution(L: np.ndarray, first: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Solve L y = b row by row, L unit lower triangular. `b` is (n, m)."""
    n = L.shape[0]
    y = b.copy()
    for i in range(n):
        for k in range(first[i], i):
            for c in range(y.shape[1]):
                y[i, c] -= L[i, k] * y[k, c]
    return y


@njit(cache=True)  # type: ignore
def backward_substitution(L: np.ndarray, first: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Solve Lᵗ x = y from the last row up, without forming Lᵗ.

    Once x[i] is final, its contribution is removed from the rows of the
    envelope above it.
    """
    n = L.shape[0]
    x = y.copy()
    for i in range(n - 1, -1, -1):
        for k in range(first[i], i):
            for c in range(x.shape[1]):
                x[k, c] -= L[i, k] * x[i, c]
    return x


# ===============================
# PUBLIC API
# ===============================


def profile(A: MATRIX) -> INDEX:
    """First nonzero column in each row of the lower triangle of A."""
    A = np.asarray(A)
    n = A.shape[0]
    first = np.arange(n, dtype=np.int64)
    for i in range(n):
        nz = np.flatnonzero(A[i, :i])
        if len(nz):
            first[i] = nz[0]
    return first


def solve_ldlt(A: MATRIX, b: np.ndarray, first: INDEX | None = None) -> np.ndarray:
    """
    Solve the symmetric system A x = b.

    Args:
        A: Symmetric (n, n) matrix.
        b: Right-hand side, (n,) or (n, m); columns are solved together.
        first: Envelope of A (see `profile`). Computed when omitted.

    Returns:
        x with the same shape as b.
    """
    A = np.ascontiguousarray(A, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise DimensionMismatchError(f"System matrix must be square, got {A.shape}")
    n = A.shape[0]
    if b.shape[0] != n:
        raise DimensionMismatchError(f"Right-hand side has {b.shape[0]} rows, matrix has {n}")
    if n == 0:
        return np.zeros_like(b)

    if first is None:
        first = profile(A)
    first = np.ascontiguousarray(first, dtype=np.int64)
    if first.shape != (n,):
        raise DimensionMismatchError(f"Envelope has shape {first.shape}, expected ({n},)")

    squeeze = b.ndim == 1
    rhs = np.ascontiguousarray(b.reshape(n, -1))

    L, d, bad = ldl_factor(A, first)
    if bad >= 0:
        raise SingularSystemError(int(bad))

    q = forward_substitution(L, first, rhs)
    q /= d[:, None]
    x = backward_substitution(L, first, q)
    return x[:, 0] if squeeze else x
