import numpy as np

from stellarforge.exceptions import NonConvergence


def eccentric_anomaly(M, e, tol=1e-6, max_iter=100):
    """
    Solve Kepler's equation E - e*sin(E) = M for the eccentric anomaly with
    Newton-Raphson, seeded with E = M.

    Since |E - M| <= e the root always lies in [M - e, M + e]. That bracket is
    tightened every iteration and a Newton step that would leave it is
    replaced by a bisection step, so the iteration cannot wander off for
    eccentricities close to 1.

    Args:
        M (float):
            Mean anomaly (radians)
        e (float):
            Eccentricity, 0 <= e < 1
        tol (float):
            Iteration stops once the last correction |dE| and the residual
            of Kepler's equation are both below this
        max_iter (int):
            Maximum number of iterations

    Returns:
        E (float):
            Eccentric anomaly (radians)

    Raises:
        ValueError:
            If the eccentricity is not elliptical
        NonConvergence:
            If max_iter iterations were not enough
    """
    if not 0 <= e < 1:
        raise ValueError(
            f"Eccentricity e={e} is outside [0, 1), no eccentric anomaly to solve for"
        )

    E = float(M)
    dE = np.inf
    lo, hi = M - e, M + e
    for i in range(max_iter):
        f = E - e * np.sin(E) - M
        if f == 0 or (abs(dE) < tol and abs(f) < tol):
            return E
        if f > 0:
            hi = E
        else:
            lo = E

        E_next = E - f / (1 - e * np.cos(E))
        if not lo <= E_next <= hi:
            # Newton overshot the bracket, bisect instead
            E_next = 0.5 * (lo + hi)
        dE = E_next - E
        E = float(E_next)

    raise NonConvergence(M, e, E, max_iter)


def kepler_residual(E, M, e):
    """Residual of Kepler's equation, E - e*sin(E) - M."""
    return E - e * np.sin(E) - M
